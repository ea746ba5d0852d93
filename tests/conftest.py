from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest

from gamenite.auth.store import AuthStore, User
from gamenite.control.models import ServerInstance
from gamenite.games.registry import EnvVarTemplate, Game, ServiceSource


@pytest.fixture(autouse=True)
def _block_real_http(monkeypatch):
    """Prevent any test from reaching a real HTTP endpoint.

    Tests that need responses pass an ``httpx.MockTransport``, which does
    not go through ``HTTPTransport``.
    """
    def _blocked(self, request):
        raise RuntimeError(
            f"Unmocked HTTP call to {request.url}! "
            f"Pass a MockTransport or patch the caller."
        )

    monkeypatch.setattr(httpx.HTTPTransport, "handle_request", _blocked)


# ── Record factories ──


@pytest.fixture
def make_server_instance():
    """Factory for ServerInstance with sensible defaults. Override any field via kwargs."""
    def _make(**overrides):
        defaults = dict(
            id="svc-1", name="mc-test", project_id="proj-1",
            project_name="game-nite", environment_id="env-1",
            created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            source=ServiceSource(image="itzg/minecraft-server"),
            deployment_status="SUCCESS",
            status_updated_at=datetime(2024, 5, 1, 12, 5, tzinfo=timezone.utc),
        )
        defaults.update(overrides)
        return ServerInstance(**defaults)
    return _make


@pytest.fixture
def make_game():
    """Factory for Game with sensible defaults. Override any field via kwargs."""
    def _make(**overrides):
        defaults = dict(
            id="testgame", name="Test Game", description="For tests",
            color="bg-gray-600", image="/games/test.jpg",
            source=ServiceSource(image="example/test-server"),
            default_port=27015,
            environment_variables=(EnvVarTemplate("MODE", "survival"),),
            volume_mount_path="/data",
        )
        defaults.update(overrides)
        return Game(**defaults)
    return _make


@pytest.fixture
def user():
    return User(id="user-1", email="player@example.com", name="Player One")


@pytest.fixture
def auth_store(tmp_path):
    store = AuthStore(str(tmp_path / "auth.db"))
    yield store
    store.close()


# ── Shared mock fixtures ──


@pytest.fixture
def mock_railway(monkeypatch):
    """Patch every Railway call the gateway makes.

    Returns a dict of MagicMocks keyed by function name; set return_value
    or side_effect per test.
    """
    defaults = {
        "fetch_project": {"id": "proj-1", "name": "game-nite", "services": {"edges": []}},
        "get_tcp_proxies": [],
        "get_workflow_status": {"status": "", "error": ""},
        "deploy_template": "wf-1",
        "create_service": {"id": "svc-new", "name": "new-server"},
        "upsert_variable": None,
        "create_volume": "vol-new",
        "create_tcp_proxy": {},
        "delete_service": None,
        "find_service_volume_ids": [],
        "delete_volume": None,
        "redeploy_service_instance": None,
    }
    mocks = {}
    for name, rv in defaults.items():
        mock = MagicMock(return_value=rv)
        monkeypatch.setattr(f"gamenite.control.gateway.{name}", mock)
        mocks[name] = mock
    return mocks


@pytest.fixture
def make_service_edge():
    """Factory for one ``services.edges`` entry as returned by the project query."""
    def _make(service_id, name, image=None, repo=None, status="SUCCESS",
              created_at="2024-05-01T12:00:00Z"):
        meta = {}
        if image:
            meta["image"] = image
        if repo:
            meta["repo"] = repo
        deployments = []
        if status is not None:
            deployments.append({"node": {
                "id": f"dep-{service_id}", "status": status,
                "statusUpdatedAt": "2024-05-01T12:05:00Z", "meta": meta,
            }})
        return {"node": {
            "id": service_id, "name": name, "createdAt": created_at,
            "updatedAt": created_at, "deployments": {"edges": deployments},
        }}
    return _make
