"""
Dual-mode parsing of tool output into typed records.

The format is detected per call: output that decodes as a single JSON value is
handled by the structured strategy, anything else by the pattern-based text
strategy. Both produce the same record types.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.observability.metrics import tool_output_format_total
from app.tools.errors import MalformedOutput
from app.tools.types import (
    Breakdown,
    OutputFormat,
    TimeEntry,
    TimerStatus,
    TodaySummary,
)

logger = logging.getLogger(__name__)

STATUS = "status"
ENTRIES = "entries"
SUMMARY = "summary"

_NUMBER = r"([0-9]+(?:\.[0-9]+)?)"
TOTAL_TIME_PATTERN = re.compile(rf"Total Time:\s*{_NUMBER}\s*hours")
BREAKDOWN_PATTERN = re.compile(rf"[•◦▪‣*]\s*([^:\n]+?)\s*:\s*{_NUMBER}\s*h\b")


_DECODER = json.JSONDecoder()
_JSON_START = re.compile(r"^[ \t]*(?=[{\[]|null\b)", re.MULTILINE)


def decode_json(output: str) -> Tuple[bool, Any]:
    """
    Decode output that is a single JSON value, possibly after leading noise.

    stderr is merged into stdout, so warnings can precede the payload. The
    value must start a line and run to the end of the output.
    """
    stripped = output.strip()
    if not stripped:
        return False, None
    try:
        return True, json.loads(stripped)
    except ValueError:
        pass
    for match in _JSON_START.finditer(output):
        try:
            value, end = _DECODER.raw_decode(output, match.end())
        except ValueError:
            continue
        if not output[end:].strip():
            return True, value
    return False, None


def detect_format(output: str) -> Tuple[OutputFormat, Any]:
    """Return the output format and, for JSON, the decoded value."""
    is_json, value = decode_json(output)
    if is_json:
        return OutputFormat.JSON, value
    return OutputFormat.TEXT, None


def _validate(model: type[BaseModel], data: Any, output: str, what: str):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedOutput(f"invalid {what} in tool output: {e}", output) from e


# Structured strategy

def _status_from_json(payload: Any, output: str) -> Optional[TimerStatus]:
    if payload is None:
        return None
    if not isinstance(payload, dict):
        raise MalformedOutput("expected a JSON object for timer status", output)
    return _validate(TimerStatus, payload, output, "timer status")


def _entries_from_json(payload: Any, output: str) -> List[TimeEntry]:
    if payload is None:
        return []
    if isinstance(payload, dict) and isinstance(payload.get("entries"), list):
        payload = payload["entries"]
    if not isinstance(payload, list):
        raise MalformedOutput("expected a JSON array of time entries", output)
    return [_validate(TimeEntry, item, output, "time entry") for item in payload]


class _BreakdownPayload(BaseModel):
    client: Optional[str] = None
    project: Optional[str] = None
    client_project: Optional[str] = None
    duration_minutes: Optional[float] = None
    hours: Optional[float] = None
    minutes: Optional[int] = None


class _SummaryPayload(BaseModel):
    total_hours: Optional[float] = None
    total_minutes: Optional[float] = None
    entry_count: Optional[int] = None
    breakdown: List[_BreakdownPayload] = []


def _breakdown_row(row: _BreakdownPayload, output: str) -> Breakdown:
    label = row.client_project or f"{row.client or ''} - {row.project or ''}"
    if row.hours is not None:
        hours = row.hours
        minutes = row.minutes if row.minutes is not None else round(hours * 60)
    elif row.duration_minutes is not None:
        hours = row.duration_minutes / 60
        minutes = int(row.duration_minutes)
    else:
        raise MalformedOutput(f"breakdown row for {label!r} has no duration", output)
    return Breakdown(client_project=label, hours=hours, minutes=minutes)


def _summary_from_json(payload: Any, output: str) -> TodaySummary:
    if payload is None:
        return TodaySummary(raw_output=output, output_format=OutputFormat.JSON)
    if not isinstance(payload, dict):
        raise MalformedOutput("expected a JSON object for today's summary", output)
    data = _validate(_SummaryPayload, payload, output, "summary")
    breakdown = [_breakdown_row(row, output) for row in data.breakdown]

    if data.total_hours is not None:
        total_hours = data.total_hours
    elif data.total_minutes is not None:
        total_hours = data.total_minutes / 60
    else:
        total_hours = sum(b.hours for b in breakdown)
    if data.total_minutes is not None:
        total_minutes = int(data.total_minutes)
    else:
        total_minutes = round(total_hours * 60)

    return TodaySummary(
        total_hours=total_hours,
        total_minutes=total_minutes,
        entry_count=data.entry_count if data.entry_count is not None else len(breakdown),
        breakdown=breakdown,
        raw_output=output,
        output_format=OutputFormat.JSON,
    )


# Text strategy

def _summary_from_text(_payload: Any, output: str) -> TodaySummary:
    total_hours: Optional[float] = None
    for line in output.splitlines():
        if "Total Time:" not in line:
            continue
        match = TOTAL_TIME_PATTERN.search(line)
        if match:
            total_hours = float(match.group(1))
            break

    breakdown = []
    for match in BREAKDOWN_PATTERN.finditer(output):
        hours = float(match.group(2))
        breakdown.append(
            Breakdown(
                client_project=match.group(1).strip(),
                hours=hours,
                minutes=round(hours * 60),
            )
        )

    if total_hours is None and not breakdown:
        raise MalformedOutput("no total time or breakdown found in summary text", output)
    if total_hours is None:
        total_hours = sum(b.hours for b in breakdown)

    return TodaySummary(
        total_hours=total_hours,
        total_minutes=round(total_hours * 60),
        entry_count=len(breakdown),
        breakdown=breakdown,
        raw_output=output,
        output_format=OutputFormat.TEXT,
    )


_STRATEGIES: Dict[Tuple[str, OutputFormat], Callable[[Any, str], Any]] = {
    (STATUS, OutputFormat.JSON): _status_from_json,
    (ENTRIES, OutputFormat.JSON): _entries_from_json,
    (SUMMARY, OutputFormat.JSON): _summary_from_json,
    (SUMMARY, OutputFormat.TEXT): _summary_from_text,
}


def parse(kind: str, output: str) -> Any:
    """Detect the output format and dispatch to the matching strategy."""
    fmt, payload = detect_format(output)
    strategy = _STRATEGIES.get((kind, fmt))
    if strategy is None:
        raise MalformedOutput(f"no {fmt.value} parser for {kind} output", output)
    tool_output_format_total.labels(kind=kind, format=fmt.value).inc()
    logger.debug(f"Parsing {kind} output as {fmt.value}", extra={"output_format": fmt.value})
    return strategy(payload, output)


def parse_status(output: str) -> Optional[TimerStatus]:
    return parse(STATUS, output)


def parse_entries(output: str) -> List[TimeEntry]:
    return parse(ENTRIES, output)


def parse_summary(output: str) -> TodaySummary:
    return parse(SUMMARY, output)
