"""
Error taxonomy for the external-tool adapters.

None of these are retried; the HTTP layer maps them to envelopes using
``code`` and ``status_code``.
"""
from typing import Optional


class ToolError(Exception):
    """Base exception for adapter failures."""

    code = "tool_error"
    status_code = 500

    def __init__(self, message: str, output: Optional[str] = None):
        self.message = message
        self.output = output
        super().__init__(message)

    def __str__(self) -> str:
        if self.output:
            return f"{self.message}, output: {self.output}"
        return self.message


class PathNotFound(ToolError):
    """A configured tool directory or executable does not exist."""

    code = "path_not_found"
    status_code = 500


class ToolInvocationError(ToolError):
    """The tool exited non-zero without an empty-state sentinel."""

    code = "tool_failed"
    status_code = 502


class MalformedOutput(ToolError):
    """Output was classified as success but could not be parsed."""

    code = "malformed_output"
    status_code = 502


class ToolTimeout(ToolError):
    """The tool ran past its allotted time and was killed."""

    code = "timeout"
    status_code = 504


class ValidationError(ToolError):
    """Caller input violates a precondition; nothing was spawned."""

    code = "validation_error"
    status_code = 400


class ArtifactNotProduced(ToolError):
    """Invoice generation finished but no PDF could be found."""

    code = "artifact_missing"
    status_code = 500
