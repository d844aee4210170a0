"""
Triage of finished tool runs into success, benign empty state, or failure.

Empty-state sentinels are checked before the exit code: the tools exit
non-zero (or print a bare ``null``) when there is simply nothing to report.
"""
from __future__ import annotations

import re
from typing import Iterable

from app.tools.parsing import decode_json
from app.tools.types import OutputClass

# A JSON null occupying a whole line
_NULL_TOKEN = re.compile(r"^\s*null\s*$", re.MULTILINE)

DEFAULT_SENTINELS: tuple[str, ...] = (
    "no timer running",
    "no active timer",
    "no running timer",
    "nothing running",
    "no entries",
)

TIMER_SENTINELS: tuple[str, ...] = DEFAULT_SENTINELS + (
    "no timer is currently running",
    "timer is not running",
)


def is_empty_state(output: str, sentinels: Iterable[str] = DEFAULT_SENTINELS) -> bool:
    """
    True if output carries a known empty-state sentinel.
    Well-formed JSON other than null is data, so phrases inside it are ignored.
    """
    is_json, value = decode_json(output)
    if is_json:
        return value is None
    if _NULL_TOKEN.search(output):
        return True
    lowered = output.lower()
    return any(phrase in lowered for phrase in sentinels)


def classify(
    exit_code: int,
    output: str,
    sentinels: Iterable[str] = DEFAULT_SENTINELS,
) -> OutputClass:
    """Classify a finished run. Sentinels win over the exit code."""
    if is_empty_state(output, sentinels):
        return OutputClass.EMPTY
    if exit_code != 0:
        return OutputClass.FAILURE
    if not output.strip():
        return OutputClass.EMPTY
    return OutputClass.SUCCESS
