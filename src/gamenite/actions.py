"""Request-scoped entry points used by the web API and the CLI.

Every action returns an ActionResult instead of raising: this is the one
place where internal errors become user-facing messages.
"""

from dataclasses import dataclass
from typing import Any

from gamenite.auth.store import User
from gamenite.control.errors import (
    ErrorKind,
    GameNiteError,
    game_not_found,
    service_creation_failed,
    template_not_found,
    unauthorized,
)
from gamenite.control.servers import ServerService
from gamenite.games.registry import Game, GameCatalog
from gamenite.logging_config import get_logger

logger = get_logger(__name__)

UNAUTHORIZED_MESSAGE = "You must be logged in to perform this action"
GAME_NOT_FOUND_MESSAGE = "Game not found"
TEMPLATE_NOT_FOUND_MESSAGE = "Template not configured for this game"
NAME_REQUIRED_MESSAGE = "Please enter a server name"

_PASSTHROUGH_KINDS = frozenset({
    ErrorKind.SERVICE_CREATION_FAILED,
    ErrorKind.TEMPLATE_DEPLOYMENT_FAILED,
    ErrorKind.FETCH_FAILED,
    ErrorKind.DEPLOY_FAILED,
    ErrorKind.DELETE_FAILED,
    ErrorKind.RESTART_FAILED,
})


@dataclass
class ActionResult:
    success: bool
    error: str | None = None
    error_kind: str | None = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: Exception, fallback: str) -> "ActionResult":
        kind = error.kind.value if isinstance(error, GameNiteError) else None
        return cls(success=False, error=user_message(error, fallback), error_kind=kind)

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        if self.data is not None:
            result["data"] = self.data
        return result


def user_message(error: Exception, fallback: str) -> str:
    """Map any exception to the text shown to the user."""
    if not isinstance(error, GameNiteError):
        return fallback
    if error.kind is ErrorKind.UNAUTHORIZED:
        return UNAUTHORIZED_MESSAGE
    if error.kind is ErrorKind.GAME_NOT_FOUND:
        return GAME_NOT_FOUND_MESSAGE
    if error.kind is ErrorKind.TEMPLATE_NOT_FOUND:
        return TEMPLATE_NOT_FOUND_MESSAGE
    if error.kind in _PASSTHROUGH_KINDS:
        return error.message
    return fallback


def serialize_game(game: Game) -> dict:
    return {
        "id": game.id,
        "name": game.name,
        "description": game.description,
        "color": game.color,
        "image": game.image,
        "default_port": game.default_port,
        "deployable": game.can_deploy(),
        "environment_variables": [
            {"key": v.key, "value": v.value, "description": v.description}
            for v in game.environment_variables
        ],
    }


def _require_user(user: User | None) -> User:
    if user is None:
        raise unauthorized()
    return user


class ServerActions:
    def __init__(self, servers: ServerService, catalog: GameCatalog):
        self.servers = servers
        self.catalog = catalog

    def list_games(self, user: User | None) -> ActionResult:
        try:
            _require_user(user)
            return ActionResult.ok([serialize_game(g) for g in self.catalog.list_games()])
        except Exception as e:
            return self._fail("list_games", e, "Failed to fetch games")

    def get_game(self, user: User | None, game_id: str) -> ActionResult:
        try:
            _require_user(user)
            game = self.catalog.get_game(game_id)
            if not game:
                raise game_not_found(game_id)
            return ActionResult.ok(serialize_game(game))
        except Exception as e:
            return self._fail("get_game", e, "Failed to fetch game")

    def list_servers(self, user: User | None, game_id: str) -> ActionResult:
        try:
            _require_user(user)
            services = self.servers.list_servers(game_id)
            return ActionResult.ok([s.to_dict() for s in services])
        except Exception as e:
            return self._fail("list_servers", e, "Failed to fetch servers")

    def create_server(
        self, user: User | None, game_id: str, server_name: str,
        custom_env: dict[str, str] | None = None, direct: bool = False,
    ) -> ActionResult:
        try:
            _require_user(user)
            name = (server_name or "").strip()
            if not name:
                return ActionResult(success=False, error=NAME_REQUIRED_MESSAGE, error_kind="INVALID_NAME")

            game = self.catalog.get_game(game_id)
            if not game:
                raise game_not_found(game_id)
            if not game.can_deploy():
                raise template_not_found(game_id)

            wanted = name.lower()
            for existing in self.servers.list_servers(game_id):
                if existing.name.lower() == wanted:
                    raise service_creation_failed(
                        f"A server named '{existing.name}' already exists"
                    )

            if direct:
                server = self.servers.create_server(game, name, custom_env)
                logger.info("server_created", game_id=game_id, name=name, service_id=server.id)
                return ActionResult.ok({"name": name, "server": server.to_dict()})

            workflow_id = self.servers.deploy_template(game, name, custom_env)
            logger.info("server_deploying", game_id=game_id, name=name, workflow_id=workflow_id)
            return ActionResult.ok({"name": name, "workflow_id": workflow_id})
        except Exception as e:
            return self._fail("create_server", e, "An unexpected error occurred")

    def restart_server(self, user: User | None, service_id: str) -> ActionResult:
        try:
            _require_user(user)
            self.servers.restart_server(service_id)
            return ActionResult.ok()
        except Exception as e:
            return self._fail("restart_server", e, "Failed to restart server")

    def delete_server(self, user: User | None, service_id: str) -> ActionResult:
        try:
            _require_user(user)
            self.servers.delete_server(service_id)
            return ActionResult.ok()
        except Exception as e:
            return self._fail("delete_server", e, "Failed to delete server")

    def get_workflow_status(self, user: User | None, workflow_id: str) -> ActionResult:
        try:
            _require_user(user)
            return ActionResult.ok(self.servers.get_workflow_status(workflow_id).to_dict())
        except Exception as e:
            return self._fail("get_workflow_status", e, "Failed to fetch workflow status")

    def share_details(self, service_id: str) -> ActionResult:
        """Public: no login required to view connection details."""
        try:
            details = self.servers.share_details(service_id)
            if details is None:
                return ActionResult(success=False, error="Server not found", error_kind="NOT_FOUND")
            return ActionResult.ok({
                "server_id": details.server_id,
                "server_name": details.server_name,
                "game": details.game,
                "address": details.address,
                "port": details.port,
            })
        except Exception as e:
            return self._fail("share_details", e, "Failed to fetch server")

    def _fail(self, action: str, error: Exception, fallback: str) -> ActionResult:
        if isinstance(error, GameNiteError):
            logger.warning("action_failed", action=action, kind=error.kind.value, error=error.message)
        else:
            logger.exception("action_unexpected_error", action=action)
        return ActionResult.fail(error, fallback)
