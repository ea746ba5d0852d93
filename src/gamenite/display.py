from dataclasses import dataclass
from datetime import datetime, timezone

from gamenite.control.models import TRANSITIONAL_STATUSES


@dataclass(frozen=True)
class StatusDisplay:
    label: str
    color: str
    style: str  # rich style for the CLI


def format_elapsed(seconds: float) -> str:
    """Render elapsed seconds as m:ss, clamping negatives to 0:00."""
    total = max(int(seconds), 0)
    return f"{total // 60}:{total % 60:02d}"


def status_display(
    deployment_status: str | None,
    status_updated_at: datetime | None = None,
    now: datetime | None = None,
    deleting_since: datetime | None = None,
) -> StatusDisplay:
    now = now or datetime.now(timezone.utc)

    if deleting_since is not None:
        elapsed = (now - deleting_since).total_seconds()
        return StatusDisplay(f"Deleting ({format_elapsed(elapsed)})", "bg-red-500 animate-pulse", "bold red")

    if not deployment_status:
        return StatusDisplay("Unknown", "bg-gray-500", "dim")

    upper = deployment_status.upper()
    if upper in TRANSITIONAL_STATUSES:
        elapsed = 0.0
        if status_updated_at is not None:
            elapsed = (now - status_updated_at).total_seconds()
        return StatusDisplay(f"Deploying ({format_elapsed(elapsed)})", "bg-yellow-500", "yellow")
    if upper == "SUCCESS":
        return StatusDisplay("Online", "bg-green-500", "green")
    if upper in ("CRASHED", "FAILED"):
        return StatusDisplay("Crashed", "bg-red-500", "red")
    if upper == "REMOVED":
        return StatusDisplay("Removed", "bg-gray-500", "dim")
    return StatusDisplay(deployment_status, "bg-blue-500", "blue")
