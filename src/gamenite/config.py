"""Application settings, read from environment variables or a ``.env`` file."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Railway
    railway_api_url: str = "https://backboard.railway.com/graphql/v2"
    railway_api_token: str = ""
    railway_project_id: str = "a5801439-cd88-43eb-8d86-3dc38f7dca75"
    railway_environment_id: str = "ae07c071-34e1-4836-9121-c49f9916306e"
    railway_workspace_id: str = ""

    # Auth
    auth_secret: str = Field(
        default="default-secret-change-in-production",
        description="Signs OAuth state parameters",
    )
    google_client_id: str = ""
    google_client_secret: str = ""
    database_url: str = "sqlite:///auth.db"
    session_ttl_hours: int = Field(default=48, ge=1)
    base_url: str = "http://localhost:8000"

    # Logging
    log_format: Literal["json", "console"] = "console"
    log_level: str = "INFO"

    @property
    def database_path(self) -> str:
        """Filesystem path for a ``sqlite:///`` database URL."""
        url = self.database_url
        for prefix in ("sqlite:///", "file:"):
            if url.startswith(prefix):
                return url[len(prefix):]
        return url

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


@lru_cache
def get_settings() -> Settings:
    return Settings()
