"""
Shared fixtures: isolated settings and a scripted stand-in for the process invoker.
"""
import sys
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from app.config import Settings
from app.tools.types import ProcessResult


class FakeInvoker:
    """
    Records every run and answers from a script keyed by subcommand.
    For tt.cli commands the key is the subcommand (``status``, ``list``...);
    anything unscripted answers from ``"*"`` or exits 0 with no output.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Tuple[int, str]]] = None,
        on_run: Optional[Callable[[List[str]], None]] = None,
    ):
        self.responses = responses or {}
        self.on_run = on_run
        self.calls: List[List[str]] = []

    def run(self, executable, args, working_dir, timeout=None) -> ProcessResult:
        args = list(args)
        self.calls.append(args)
        if self.on_run:
            self.on_run(args)
        key = args[2] if len(args) > 2 else ""
        exit_code, output = self.responses.get(key, self.responses.get("*", (0, "")))
        return ProcessResult(exit_code=exit_code, output=output)

    def subcommands(self) -> List[str]:
        return [call[2] for call in self.calls if len(call) > 2]


@pytest.fixture
def tool_settings(tmp_path):
    """Settings pointing at throwaway tool directories."""
    tt_dir = tmp_path / "kb-tt-cli"
    inv_dir = tmp_path / "kb-invoice-gen-cli"
    (inv_dir / "output").mkdir(parents=True)
    tt_dir.mkdir()
    return Settings(
        _env_file=None,
        TIME_TRACKER_PATH=str(tt_dir),
        INVOICE_GEN_PATH=str(inv_dir),
        PYTHON_EXEC_PATH=sys.executable,
        VERIFY_MUTATIONS=False,
    )


@pytest.fixture
def fake_invoker_cls():
    return FakeInvoker
