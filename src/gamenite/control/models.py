from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from gamenite.games.registry import ServiceSource


class DeploymentStatus(str, Enum):
    SUCCESS = "SUCCESS"
    BUILDING = "BUILDING"
    DEPLOYING = "DEPLOYING"
    INITIALIZING = "INITIALIZING"
    CRASHED = "CRASHED"
    FAILED = "FAILED"
    REMOVED = "REMOVED"


TRANSITIONAL_STATUSES = frozenset({
    DeploymentStatus.BUILDING.value,
    DeploymentStatus.DEPLOYING.value,
    DeploymentStatus.INITIALIZING.value,
})


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the API ('Z' suffix allowed)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class ServerInstance:
    id: str
    name: str
    project_id: str
    project_name: str
    environment_id: str
    created_at: datetime
    source: ServiceSource = field(default_factory=ServiceSource)
    updated_at: datetime | None = None
    deployment_status: str | None = None
    status_updated_at: datetime | None = None

    @property
    def is_transitional(self) -> bool:
        return (self.deployment_status or "").upper() in TRANSITIONAL_STATUSES

    def share_path(self) -> str:
        return f"/share/{self.id}"

    def to_dict(self) -> dict:
        """Plain JSON-safe record; datetimes become ISO strings."""
        return {
            "id": self.id,
            "name": self.name,
            "project_id": self.project_id,
            "project_name": self.project_name,
            "environment_id": self.environment_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deployment_status": self.deployment_status,
            "status_updated_at": (
                self.status_updated_at.isoformat() if self.status_updated_at else None
            ),
            "source": self.source.to_dict(),
        }


@dataclass(frozen=True)
class TcpProxy:
    domain: str
    proxy_port: int
    service_id: str


WORKFLOW_SUCCESS_STATUSES = frozenset({"complete", "completed", "success"})
WORKFLOW_FAILURE_STATUSES = frozenset({"error", "failed", "notfound"})


@dataclass(frozen=True)
class WorkflowStatus:
    status: str = ""
    error: str = ""

    @property
    def failed(self) -> bool:
        return bool(self.error) or self.status.lower() in WORKFLOW_FAILURE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.failed or self.status.lower() in WORKFLOW_SUCCESS_STATUSES

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "error": self.error}


@dataclass(frozen=True)
class ShareDetails:
    server_id: str
    server_name: str
    game: str
    address: str
    port: str


@dataclass(frozen=True)
class DeployTemplateOptions:
    service_name: str
    source: ServiceSource
    tcp_proxy_application_port: int
    variables: dict[str, str]
    volume_mount_path: str | None = None


@dataclass(frozen=True)
class CreateServiceOptions:
    name: str
    source: ServiceSource
    variables: dict[str, str] = field(default_factory=dict)
    tcp_proxy_application_port: int | None = None
    volume_mount_path: str | None = None
