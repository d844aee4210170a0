"""
Adapter around the time-tracking CLI (``python -m tt.cli``).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from app.config import Settings
from app.tools import parsing
from app.tools.base import ToolAdapter
from app.tools.classifier import TIMER_SENTINELS, is_empty_state
from app.tools.errors import MalformedOutput, ToolInvocationError, ValidationError
from app.tools.invoker import ProcessInvoker
from app.tools.types import OutputClass, TimeEntry, TimerStatus, TodaySummary
from app.utils.logging import call_logger

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _minutes_between(start: datetime, end: datetime) -> int:
    # The tool may print naive local timestamps
    if start.tzinfo is None:
        end = end.astimezone().replace(tzinfo=None)
    elif end.tzinfo is None:
        start = start.astimezone().replace(tzinfo=None)
    return max(0, int((end - start).total_seconds() // 60))


class TimeTrackerAdapter(ToolAdapter):
    """
    Start/stop/status/list/summary over the time-tracking tool.
    The tool is the system of record; nothing is cached between calls.
    """

    tool = "time_tracker"
    module = "tt.cli"

    def __init__(
        self,
        settings: Settings,
        invoker: Optional[ProcessInvoker] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__(settings, invoker)
        self.clock = clock

    @property
    def working_dir(self) -> str:
        return self.settings.TIME_TRACKER_PATH

    def start_timer(self, client: str, project: str, description: str = "") -> TimeEntry:
        """Start a timer and return the entry the tool recorded."""
        client = (client or "").strip()
        project = (project or "").strip()
        if not client or not project:
            raise ValidationError("client and project are required")

        args = ["start", client, project]
        if description:
            args += ["--desc", description]
        self._execute("start_timer", args)

        if self.settings.VERIFY_MUTATIONS:
            status = self._requery_status("start_timer")
            if status is not None and status.is_running:
                return TimeEntry(
                    id=status.id or 0,
                    client=status.client or client,
                    project=status.project or project,
                    description=status.description if status.description is not None else description,
                    start_time=status.start_time or self.clock(),
                    duration_minutes=status.duration_minutes or 0,
                    is_running=True,
                )

        return TimeEntry(
            id=0,
            client=client,
            project=project,
            description=description,
            start_time=self.clock(),
            duration_minutes=0,
            is_running=True,
        )

    def stop_timer(self) -> TimeEntry:
        """
        Stop the running timer and return the finished entry.
        Stopping while idle is a ToolInvocationError, never a fabricated entry.
        """
        before = self._requery_status("stop_timer") if self.settings.VERIFY_MUTATIONS else None
        _, result = self._execute("stop_timer", ["stop"], TIMER_SENTINELS)
        # A blank exit-0 run is an acknowledgement; an idle phrase or null is not
        if result.output.strip() and is_empty_state(result.output, TIMER_SENTINELS):
            raise ToolInvocationError("failed to stop timer: no timer running", result.output)
        now = self.clock()

        # Without a snapshot the newest listed entry may be an older, unrelated one
        if self.settings.VERIFY_MUTATIONS and before is not None:
            try:
                recent = self.get_recent_entries(1)
            except (MalformedOutput, ToolInvocationError) as e:
                call_logger(logger, tool=self.tool, operation="stop_timer").warning(
                    f"Could not read back stopped entry: {e.message}"
                )
                recent = []
            if recent and not recent[0].is_running:
                return recent[0]

        started = before.start_time if before and before.start_time else now
        duration = before.duration_minutes if before and before.duration_minutes else None
        if duration is None:
            duration = _minutes_between(started, now)
        return TimeEntry(
            id=(before.id if before and before.id else 0),
            client=(before.client if before and before.client else "Unknown"),
            project=(before.project if before and before.project else "Unknown"),
            description=(before.description if before and before.description else ""),
            start_time=started,
            end_time=now,
            duration_minutes=duration,
            is_running=False,
        )

    def get_status(self) -> Optional[TimerStatus]:
        """Current timer, or None when nothing is running."""
        outcome, result = self._execute("get_status", ["status", "--json"], TIMER_SENTINELS)
        if outcome is OutputClass.EMPTY:
            return None
        return parsing.parse_status(result.output)

    def get_recent_entries(self, limit: int) -> List[TimeEntry]:
        """
        Recent entries in the order the tool prints them (most recent first, unverified).
        Non-positive limits follow ENTRIES_NONPOSITIVE_LIMIT.
        """
        outcome, result = self._execute("get_recent_entries", ["list", "--json"])
        if outcome is OutputClass.EMPTY:
            return []
        entries = parsing.parse_entries(result.output)

        effective = self.effective_limit(limit)
        if effective is not None:
            entries = entries[:effective]
        return entries

    def effective_limit(self, limit: int) -> Optional[int]:
        """Resolve a requested limit; None means no truncation."""
        if limit > 0:
            return limit
        if self.settings.ENTRIES_NONPOSITIVE_LIMIT == "default":
            return self.settings.ENTRIES_DEFAULT_LIMIT
        return None

    def get_today_summary(self) -> TodaySummary:
        """Today's totals; raw output is always kept for diagnosis."""
        outcome, result = self._execute("get_today_summary", ["today", "--json"])
        if outcome is OutputClass.EMPTY:
            fmt, _ = parsing.detect_format(result.output)
            return TodaySummary(raw_output=result.output, output_format=fmt)
        summary = parsing.parse_summary(result.output)
        call_logger(logger, tool=self.tool, operation="get_today_summary").debug(
            f"Parsed summary with {len(summary.breakdown)} breakdown rows",
            extra={"output_format": summary.output_format.value if summary.output_format else None},
        )
        return summary

    def _requery_status(self, operation: str) -> Optional[TimerStatus]:
        try:
            return self.get_status()
        except (MalformedOutput, ToolInvocationError) as e:
            call_logger(logger, tool=self.tool, operation=operation).warning(
                f"Status re-query failed, using submitted values: {e.message}"
            )
            return None
