from __future__ import annotations
import os
from pathlib import Path
from typing import Literal
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# The API is expected to live next to the tools it wraps
_TOOLS_ROOT = Path(os.getcwd()).parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")

    # Wrapped tools
    TIME_TRACKER_PATH: str = str(_TOOLS_ROOT / "kb-tt-cli")
    INVOICE_GEN_PATH: str = str(_TOOLS_ROOT / "kb-invoice-gen-cli")
    INVOICE_OUTPUT_DIR: str | None = None  # defaults to <INVOICE_GEN_PATH>/output
    DATABASE_PATH: str = str(Path.home() / ".kb-tt-cli" / "time_tracker.db")
    PYTHON_EXEC_PATH: str = "python3"

    # Tool invocation
    TOOL_TIMEOUT_SECONDS: float = 60.0  # 0 disables the timeout
    VERIFY_MUTATIONS: bool = True

    # Entry listing
    ENTRIES_DEFAULT_LIMIT: int = 10
    ENTRIES_NONPOSITIVE_LIMIT: Literal["unlimited", "default"] = "unlimited"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    CORS_ORIGINS: str = (
        "http://localhost:3000,http://127.0.0.1:3000,"
        "http://localhost:5173,http://127.0.0.1:5173"
    )
    FILES_URL_PREFIX: str = "/files"

    # Observability
    LOG_JSON: bool = False
    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = False

    @model_validator(mode="after")
    def _default_output_dir(self) -> "Settings":
        if not self.INVOICE_OUTPUT_DIR:
            self.INVOICE_OUTPUT_DIR = str(Path(self.INVOICE_GEN_PATH) / "output")
        return self

    @property
    def tool_timeout(self) -> float | None:
        return self.TOOL_TIMEOUT_SECONDS if self.TOOL_TIMEOUT_SECONDS > 0 else None


settings = Settings()
