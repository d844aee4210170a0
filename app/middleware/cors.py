"""
CORS middleware configuration.
"""
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
import logging

logger = logging.getLogger(__name__)

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def parse_origins(raw: str) -> list[str]:
    """Split comma-separated origins; empty input yields the dev defaults."""
    origins = [origin.strip() for origin in (raw or "").split(",") if origin.strip()]
    return origins or list(DEV_ORIGINS)


def setup_cors(app):
    """
    Setup CORS middleware with origins from CORS_ORIGINS.

    Args:
        app: FastAPI application instance
    """
    origins = parse_origins(settings.CORS_ORIGINS)
    logger.info(f"CORS configured with origins: {origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization", "X-Request-ID"],
        expose_headers=["Content-Length", "X-Request-ID"],
    )

    return origins
