from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from app.config import Settings
from app.observability.metrics import tool_invocations_total
from app.tools.classifier import DEFAULT_SENTINELS, classify
from app.tools.errors import ToolError, ToolInvocationError
from app.tools.invoker import ProcessInvoker, ensure_directory, ensure_executable
from app.tools.types import OutputClass, ProcessResult
from app.utils.logging import call_logger

logger = logging.getLogger(__name__)


class ToolAdapter:
    """
    Shared run-and-triage step for adapters around a Python CLI tool.
    Subclasses set ``tool`` and ``module`` and implement the operations.
    """

    tool: str = ""
    module: str = ""

    def __init__(self, settings: Settings, invoker: Optional[ProcessInvoker] = None):
        self.settings = settings
        self.invoker = invoker or ProcessInvoker(default_timeout=settings.tool_timeout)

    @property
    def working_dir(self) -> str:
        raise NotImplementedError

    def check_paths(self) -> None:
        """Fail fast with PathNotFound before any subprocess call."""
        ensure_directory(self.working_dir, f"{self.tool} path")
        ensure_executable(self.settings.PYTHON_EXEC_PATH)

    def command(self, *args: str) -> List[str]:
        return ["-m", self.module, *args]

    def _execute(
        self,
        operation: str,
        args: Sequence[str],
        sentinels: Iterable[str] = DEFAULT_SENTINELS,
    ) -> Tuple[OutputClass, ProcessResult]:
        """
        Run one tool command and classify the result.
        Failures raise ToolInvocationError carrying the captured output verbatim.
        """
        log = call_logger(logger, tool=self.tool, operation=operation)
        self.check_paths()
        argv = self.command(*args)

        try:
            result = self.invoker.run(
                self.settings.PYTHON_EXEC_PATH,
                argv,
                self.working_dir,
            )
        except ToolError as e:
            tool_invocations_total.labels(tool=self.tool, outcome=e.code).inc()
            log.error(f"{self.tool} {operation} could not run: {e.message}")
            raise

        outcome = classify(result.exit_code, result.output, sentinels)
        tool_invocations_total.labels(tool=self.tool, outcome=outcome.value).inc()
        log.info(
            f"{self.tool} {operation} finished: {outcome.value}",
            extra={
                "command": " ".join(argv),
                "exit_code": result.exit_code,
                "duration_ms": result.duration_ms,
            },
        )

        if outcome is OutputClass.FAILURE:
            raise ToolInvocationError(
                f"failed to {operation.replace('_', ' ')}: exit status {result.exit_code}",
                result.output,
            )
        return outcome, result
