"""
Pydantic models for the records produced by the tool adapters.
Field names follow the JSON the tools emit.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional
from pydantic import BaseModel, ConfigDict, Field, Strict


class OutputClass(str, Enum):
    """Triage result for a finished process."""
    SUCCESS = "success"
    EMPTY = "empty"
    FAILURE = "failure"


class OutputFormat(str, Enum):
    """Shape of a tool's printed output."""
    JSON = "json"
    TEXT = "text"


class ProcessResult(BaseModel):
    """Exit status and merged stdout/stderr of one tool run."""
    exit_code: int
    output: str
    duration_ms: float = 0.0


# Timestamps arrive as ISO strings even where the record is otherwise strict
IsoDatetime = Annotated[datetime, Strict(False)]


class TimerStatus(BaseModel):
    """Live state of the (at most one) running timer."""
    model_config = ConfigDict(strict=True)

    is_running: bool
    id: Optional[int] = None
    client: Optional[str] = None
    project: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[IsoDatetime] = None
    duration_minutes: Optional[int] = None


class TimeEntry(BaseModel):
    """One tracked interval. end_time is unset while the timer runs."""
    model_config = ConfigDict(strict=True)

    id: int
    client: str
    project: str
    description: str = ""
    start_time: IsoDatetime
    end_time: Optional[IsoDatetime] = None
    duration_minutes: int = 0
    is_running: bool = False


class Breakdown(BaseModel):
    """Aggregate time for one client/project pair."""
    client_project: str
    hours: float
    minutes: int


class TodaySummary(BaseModel):
    total_hours: float = 0.0
    total_minutes: int = 0
    entry_count: int = 0
    breakdown: List[Breakdown] = Field(default_factory=list)
    raw_output: str = ""
    output_format: Optional[OutputFormat] = None


class InvoiceLineItem(BaseModel):
    """Single billable line. Instances are revalidated when handed to the adapter."""
    model_config = ConfigDict(revalidate_instances="always", str_strip_whitespace=True)

    description: str = Field(min_length=1)
    hours: float = Field(gt=0)
    rate: float = Field(gt=0)


class InvoiceResult(BaseModel):
    status: str = "success"
    message: str
    pdf_path: str
    filename: str
    download_url: str
    raw_output: str = ""
    line_items_submitted: int = 1
    line_items_forwarded: int = 1
    supports_multiple_line_items: bool = False
