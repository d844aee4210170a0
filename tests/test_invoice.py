"""
Tests for the invoice adapter: validation, argument mapping and artifact discovery.
"""
from datetime import datetime
from pathlib import Path

import pytest
from app.tools.errors import ArtifactNotProduced, PathNotFound, ToolInvocationError, ValidationError
from app.tools.invoice import DEFAULT_NOTES, InvoiceAdapter
from app.tools.types import InvoiceLineItem

ITEM = {"description": "Website build", "hours": 10, "rate": 85.5}


def write_pdf(name):
    def on_run(args):
        on_run.output_dir.joinpath(name).write_bytes(b"%PDF-1.4")
    return on_run


@pytest.fixture
def make_adapter(fake_invoker_cls):
    def factory(settings, responses=None, pdf_name="invoice.pdf", **overrides):
        settings = settings.model_copy(update=overrides)
        on_run = None
        if pdf_name:
            on_run = write_pdf(pdf_name)
            on_run.output_dir = Path(settings.INVOICE_OUTPUT_DIR)
        invoker = fake_invoker_cls(responses, on_run=on_run)
        adapter = InvoiceAdapter(
            settings,
            invoker=invoker,
            clock=lambda: datetime(2024, 5, 1, 14, 30, 5),
        )
        return adapter, invoker

    return factory


def test_generate_invoice(make_adapter, tool_settings):
    adapter, invoker = make_adapter(tool_settings, {"*": (0, "✅ Invoice generated")})
    result = adapter.generate_invoice("Acme Corp", "billing@acme.test", [ITEM], "Thanks", "2024-05-01")

    assert invoker.calls == [[
        "-m", "src.main",
        "-c", "Acme Corp",
        "-e", "billing@acme.test",
        "-d", "Website build",
        "-h", "10.00",
        "-r", "85.50",
        "--notes", "Thanks",
        "--date", "2024-05-01",
    ]]
    assert result.status == "success"
    assert result.pdf_path == str(Path(tool_settings.INVOICE_OUTPUT_DIR) / "invoice.pdf")
    assert result.filename == "invoice_Acme_Corp_20240501_143005.pdf"
    assert result.download_url == "/files/invoice.pdf"
    assert result.raw_output == "✅ Invoice generated"
    assert result.line_items_forwarded == 1
    assert result.supports_multiple_line_items is False


def test_default_notes_and_no_date(make_adapter, tool_settings):
    adapter, invoker = make_adapter(tool_settings)
    adapter.generate_invoice("Acme", "a@acme.test", [InvoiceLineItem(**ITEM)])
    args = invoker.calls[0]
    assert args[args.index("--notes") + 1] == DEFAULT_NOTES
    assert "--date" not in args


def test_empty_line_items_never_spawn(make_adapter, tool_settings):
    adapter, invoker = make_adapter(tool_settings)
    with pytest.raises(ValidationError):
        adapter.generate_invoice("Acme", "a@acme.test", [])
    assert invoker.calls == []


@pytest.mark.parametrize(
    "item",
    [
        {"description": "", "hours": 1, "rate": 10},
        {"description": "   ", "hours": 1, "rate": 10},
        {"description": "Work", "hours": 0, "rate": 10},
        {"description": "Work", "hours": 1, "rate": -5},
    ],
)
def test_invalid_line_item_rejected(make_adapter, tool_settings, item):
    adapter, invoker = make_adapter(tool_settings)
    with pytest.raises(ValidationError, match=r"line_items\[1\]"):
        adapter.generate_invoice("Acme", "a@acme.test", [ITEM, item])
    assert invoker.calls == []


def test_missing_client_fields_rejected(make_adapter, tool_settings):
    adapter, invoker = make_adapter(tool_settings)
    with pytest.raises(ValidationError):
        adapter.generate_invoice("", "a@acme.test", [ITEM])
    with pytest.raises(ValidationError):
        adapter.generate_invoice("Acme", " ", [ITEM])
    assert invoker.calls == []


def test_only_first_line_item_forwarded_is_reported(make_adapter, tool_settings):
    adapter, invoker = make_adapter(tool_settings)
    second = {"description": "Hosting", "hours": 1, "rate": 20}
    result = adapter.generate_invoice("Acme", "a@acme.test", [ITEM, second])
    assert "Hosting" not in invoker.calls[0]
    assert result.line_items_submitted == 2
    assert result.line_items_forwarded == 1
    assert "only the first of 2 line items" in result.message


def test_stale_pdfs_removed_before_run(make_adapter, tool_settings):
    output_dir = Path(tool_settings.INVOICE_OUTPUT_DIR)
    (output_dir / "old.pdf").write_bytes(b"%PDF-old")
    (output_dir / "notes.txt").write_text("keep me")

    seen = {}

    adapter, invoker = make_adapter(tool_settings)
    original = invoker.on_run

    def on_run(args):
        seen["before"] = sorted(p.name for p in output_dir.iterdir())
        original(args)

    invoker.on_run = on_run
    adapter.generate_invoice("Acme", "a@acme.test", [ITEM])
    assert seen["before"] == ["notes.txt"]


def test_adopts_other_pdf_when_conventional_name_missing(make_adapter, tool_settings):
    adapter, _ = make_adapter(tool_settings, pdf_name="INV-0042.pdf")
    result = adapter.generate_invoice("Acme", "a@acme.test", [ITEM])
    assert result.pdf_path.endswith("INV-0042.pdf")
    assert result.download_url == "/files/INV-0042.pdf"


def test_zero_exit_without_pdf_is_artifact_not_produced(make_adapter, tool_settings):
    adapter, invoker = make_adapter(tool_settings, {"*": (0, "done")}, pdf_name=None)
    with pytest.raises(ArtifactNotProduced) as exc_info:
        adapter.generate_invoice("Acme", "a@acme.test", [ITEM])
    assert len(invoker.calls) == 1
    assert exc_info.value.output == "done"


def test_missing_output_dir_is_artifact_not_produced(make_adapter, tool_settings, tmp_path):
    adapter, _ = make_adapter(
        tool_settings, pdf_name=None, INVOICE_OUTPUT_DIR=str(tmp_path / "nowhere")
    )
    with pytest.raises(ArtifactNotProduced):
        adapter.generate_invoice("Acme", "a@acme.test", [ITEM])


def test_interactive_prompt_failure(make_adapter, tool_settings):
    adapter, _ = make_adapter(tool_settings, {"*": (1, "Client name: \nAborted!")}, pdf_name=None)
    with pytest.raises(ToolInvocationError, match="interactive prompts"):
        adapter.generate_invoice("Acme", "a@acme.test", [ITEM])


def test_generator_failure_carries_output(make_adapter, tool_settings):
    adapter, _ = make_adapter(tool_settings, {"*": (1, "reportlab missing")}, pdf_name=None)
    with pytest.raises(ToolInvocationError) as exc_info:
        adapter.generate_invoice("Acme", "a@acme.test", [ITEM])
    assert exc_info.value.output == "reportlab missing"


def test_missing_generator_path(make_adapter, tool_settings, tmp_path):
    adapter, invoker = make_adapter(
        tool_settings, INVOICE_GEN_PATH=str(tmp_path / "missing")
    )
    with pytest.raises(PathNotFound):
        adapter.generate_invoice("Acme", "a@acme.test", [ITEM])
    assert invoker.calls == []
