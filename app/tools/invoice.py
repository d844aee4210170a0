"""
Adapter around the invoice generator CLI (``python -m src.main``).

The generator accepts a single line item per run and writes its PDF into an
output directory. Stale PDFs are removed before each run so the artifact found
afterwards is the one just produced.
"""
from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from app.config import Settings
from app.tools.base import ToolAdapter
from app.tools.errors import ArtifactNotProduced, ToolInvocationError, ValidationError
from app.tools.invoker import ProcessInvoker
from app.tools.types import InvoiceLineItem, InvoiceResult
from app.utils.logging import call_logger

logger = logging.getLogger(__name__)

DEFAULT_NOTES = "Generated via API"
ARTIFACT_NAME = "invoice.pdf"
_UNSAFE_FILENAME_CHARS = re.compile(r"[\s/\\]")


class InvoiceAdapter(ToolAdapter):
    tool = "invoice"
    module = "src.main"

    # The generator takes one -d/-h/-r triple per invocation
    SUPPORTS_MULTIPLE_LINE_ITEMS = False

    def __init__(
        self,
        settings: Settings,
        invoker: Optional[ProcessInvoker] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(settings, invoker)
        self.clock = clock

    @property
    def working_dir(self) -> str:
        return self.settings.INVOICE_GEN_PATH

    @property
    def output_dir(self) -> Path:
        return Path(self.settings.INVOICE_OUTPUT_DIR)

    def generate_invoice(
        self,
        client_name: str,
        client_email: str,
        line_items: Sequence[Any],
        notes: str = "",
        date: str = "",
    ) -> InvoiceResult:
        """
        Generate a PDF invoice.

        Only the first line item is forwarded while SUPPORTS_MULTIPLE_LINE_ITEMS
        is False; the result reports how many were submitted and forwarded.
        """
        log = call_logger(logger, tool=self.tool, operation="generate_invoice")
        client_name = (client_name or "").strip()
        client_email = (client_email or "").strip()
        if not client_name:
            raise ValidationError("client_name is required")
        if not client_email:
            raise ValidationError("client_email is required")
        items = self._validate_line_items(line_items)

        forwarded = items if self.SUPPORTS_MULTIPLE_LINE_ITEMS else items[:1]
        if len(forwarded) < len(items):
            log.warning(
                f"Invoice generator accepts one line item; ignoring {len(items) - len(forwarded)} of {len(items)}"
            )

        item = forwarded[0]
        args = [
            "-c", client_name,
            "-e", client_email,
            "-d", item.description,
            "-h", f"{item.hours:.2f}",
            "-r", f"{item.rate:.2f}",
            # Always pass notes so the generator never prompts for them
            "--notes", notes or DEFAULT_NOTES,
        ]
        if date:
            args += ["--date", date]

        self.check_paths()
        self._remove_stale_artifacts()

        try:
            _, result = self._execute("generate_invoice", args, sentinels=())
        except ToolInvocationError as e:
            if e.output and "Aborted!" in e.output:
                raise ToolInvocationError(
                    "invoice generation failed due to interactive prompts; "
                    "the generator is waiting for user input",
                    e.output,
                ) from e
            raise

        pdf_path = self._locate_artifact()
        if pdf_path is None:
            log.error(f"No PDF found in {self.output_dir} after a successful run")
            raise ArtifactNotProduced(
                f"PDF file was not created in {self.output_dir}",
                result.output,
            )

        message = "Invoice generated successfully"
        if len(forwarded) < len(items):
            message += (
                f"; only the first of {len(items)} line items was included "
                "because the invoice generator supports a single line item"
            )

        prefix = self.settings.FILES_URL_PREFIX.rstrip("/")
        return InvoiceResult(
            status="success",
            message=message,
            pdf_path=str(pdf_path),
            filename=self._download_filename(client_name),
            download_url=f"{prefix}/{pdf_path.name}",
            raw_output=result.output,
            line_items_submitted=len(items),
            line_items_forwarded=len(forwarded),
            supports_multiple_line_items=self.SUPPORTS_MULTIPLE_LINE_ITEMS,
        )

    def _validate_line_items(self, line_items: Sequence[Any]) -> List[InvoiceLineItem]:
        if not line_items:
            raise ValidationError("at least one line item is required")
        items = []
        for index, raw in enumerate(line_items):
            try:
                items.append(InvoiceLineItem.model_validate(raw))
            except PydanticValidationError as e:
                problems = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                )
                raise ValidationError(f"line_items[{index}] is invalid: {problems}") from e
        return items

    def _remove_stale_artifacts(self) -> None:
        log = call_logger(logger, tool=self.tool, operation="generate_invoice")
        if not self.output_dir.is_dir():
            return
        for stale in self.output_dir.glob("*.pdf"):
            try:
                stale.unlink()
                log.debug(f"Removed old PDF file: {stale}")
            except OSError as e:
                log.warning(f"Could not remove old PDF file {stale}: {e}")

    def _locate_artifact(self) -> Optional[Path]:
        expected = self.output_dir / ARTIFACT_NAME
        if expected.is_file():
            return expected
        if not self.output_dir.is_dir():
            return None
        candidates = sorted(p for p in self.output_dir.glob("*.pdf") if p.is_file())
        if candidates:
            logger.info(f"Adopting PDF {candidates[0].name} in place of {ARTIFACT_NAME}")
            return candidates[0]
        return None

    def _download_filename(self, client_name: str) -> str:
        timestamp = self.clock().strftime("%Y%m%d_%H%M%S")
        return _UNSAFE_FILENAME_CHARS.sub("_", f"invoice_{client_name}_{timestamp}.pdf")


def output_dir_exists(settings: Settings) -> bool:
    return bool(settings.INVOICE_OUTPUT_DIR) and os.path.isdir(settings.INVOICE_OUTPUT_DIR)
