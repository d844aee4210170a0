"""
Tests for settings defaults and derived values.
"""
from pathlib import Path

from app.config import Settings
from app.middleware.cors import DEV_ORIGINS, parse_origins


def test_output_dir_defaults_under_invoice_generator(tmp_path):
    settings = Settings(_env_file=None, INVOICE_GEN_PATH=str(tmp_path / "gen"))
    assert settings.INVOICE_OUTPUT_DIR == str(tmp_path / "gen" / "output")


def test_explicit_output_dir_is_kept(tmp_path):
    settings = Settings(
        _env_file=None,
        INVOICE_GEN_PATH=str(tmp_path / "gen"),
        INVOICE_OUTPUT_DIR=str(tmp_path / "pdfs"),
    )
    assert settings.INVOICE_OUTPUT_DIR == str(tmp_path / "pdfs")


def test_tool_paths_default_next_to_the_api():
    settings = Settings(_env_file=None)
    assert Path(settings.TIME_TRACKER_PATH).name == "kb-tt-cli"
    assert Path(settings.INVOICE_GEN_PATH).name == "kb-invoice-gen-cli"
    assert Path(settings.DATABASE_PATH).is_absolute()


def test_timeout_zero_disables(monkeypatch):
    monkeypatch.setenv("TOOL_TIMEOUT_SECONDS", "0")
    assert Settings(_env_file=None).tool_timeout is None
    monkeypatch.setenv("TOOL_TIMEOUT_SECONDS", "15")
    assert Settings(_env_file=None).tool_timeout == 15


def test_entries_policy_from_env(monkeypatch):
    monkeypatch.setenv("ENTRIES_NONPOSITIVE_LIMIT", "default")
    monkeypatch.setenv("ENTRIES_DEFAULT_LIMIT", "25")
    settings = Settings(_env_file=None)
    assert settings.ENTRIES_NONPOSITIVE_LIMIT == "default"
    assert settings.ENTRIES_DEFAULT_LIMIT == 25


def test_cors_origins():
    assert parse_origins("") == DEV_ORIGINS
    assert parse_origins("https://a.test, https://b.test ,") == ["https://a.test", "https://b.test"]
