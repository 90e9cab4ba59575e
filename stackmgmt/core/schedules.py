# -----------------------------------------------------------------------------
# SCHEDULE SPECS
# -----------------------------------------------------------------------------
# TTL: delete the stack a fixed number of minutes after this run.
# Drift: check hourly; remediate unless the caller asked for detection only.
# Team: admin grant, "DevTeam" unless told otherwise.
# -----------------------------------------------------------------------------

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from rich.console import Console

from stackmgmt.domain.models import (
    DriftScheduleSpec,
    StackIdentity,
    TeamGrantSpec,
    TeamPermission,
    TtlScheduleSpec,
)

console = Console()

DEFAULT_TTL_MINUTES = 8 * 60
DRIFT_SCHEDULE_CRON = "0 * * * *"
REMEDIATE_MODE = "Correct"
DEFAULT_TEAM = "DevTeam"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleSpecBuilder:
    """Computes the schedule and grant specs for a stack."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def build_ttl(
        self, identity: StackIdentity, offset_minutes: int | None = None
    ) -> TtlScheduleSpec:
        """
        Deletion time = now + offset_minutes (480 when not given).

        "now" is read on every call, so re-running moves the deadline forward.
        """
        if offset_minutes is None:
            offset_minutes = DEFAULT_TTL_MINUTES
        if offset_minutes < 0:
            raise ValueError(f"TTL offset must be >= 0 minutes, got {offset_minutes}")

        timestamp = self._clock() + timedelta(minutes=offset_minutes)
        console.print(f"[cyan][SCHEDULES] TTL for {identity}: {timestamp.isoformat()}[/cyan]")
        return TtlScheduleSpec(identity=identity, timestamp=timestamp)

    def build_drift(self, identity: StackIdentity, mode: str | None = None) -> DriftScheduleSpec:
        auto_remediate = not mode or mode == REMEDIATE_MODE
        if not auto_remediate:
            console.print(f"[yellow][SCHEDULES] Drift detection only for {identity} ({mode})[/yellow]")
        return DriftScheduleSpec(
            identity=identity,
            schedule_cron=DRIFT_SCHEDULE_CRON,
            auto_remediate=auto_remediate,
        )

    def build_team_grant(self, identity: StackIdentity, team: str | None = None) -> TeamGrantSpec:
        return TeamGrantSpec(
            identity=identity,
            team=team or DEFAULT_TEAM,
            permission=TeamPermission.ADMIN,
        )
