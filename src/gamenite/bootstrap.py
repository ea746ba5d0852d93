"""Explicit construction of the service graph from settings."""

from datetime import timedelta

from gamenite.actions import ServerActions
from gamenite.auth.google import GoogleOAuth
from gamenite.auth.store import AuthStore
from gamenite.config import Settings
from gamenite.control.gateway import ServerGateway
from gamenite.control.servers import ServerService
from gamenite.games.definitions import build_catalog
from gamenite.logging_config import get_logger
from gamenite.railway.client import GraphQLClient

logger = get_logger(__name__)


def build_actions(settings: Settings) -> ServerActions:
    if not settings.railway_api_token:
        logger.warning("railway_token_missing")
    client = GraphQLClient(settings.railway_api_url, settings.railway_api_token)
    gateway = ServerGateway(
        client,
        project_id=settings.railway_project_id,
        environment_id=settings.railway_environment_id,
        workspace_id=settings.railway_workspace_id,
    )
    catalog = build_catalog()
    return ServerActions(ServerService(gateway, catalog), catalog)


def build_auth_store(settings: Settings) -> AuthStore:
    return AuthStore(
        settings.database_path,
        session_ttl=timedelta(hours=settings.session_ttl_hours),
    )


def build_google_oauth(settings: Settings) -> GoogleOAuth | None:
    if not settings.google_enabled:
        return None
    return GoogleOAuth(
        settings.google_client_id,
        settings.google_client_secret,
        redirect_uri=f"{settings.base_url.rstrip('/')}/auth/google/callback",
    )
