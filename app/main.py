from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from dotenv import load_dotenv
import time
import logging
import os
from app.utils.logging import configure_logging, SERVICE_NAME
from app.utils.ids import current_request_id, request_id as get_request_id
from app.config import settings
from app.routes import time as time_routes
from app.routes import invoice as invoice_routes
from app.models import ApiResponse
from app.middleware.cors import setup_cors
from app.observability.metrics import setup_metrics
from app.tools.errors import ToolError
from app.tools.invoice import output_dir_exists

load_dotenv()
configure_logging(level=settings.LOG_LEVEL.upper(), use_json=settings.LOG_JSON)

logger = logging.getLogger(__name__)

app = FastAPI(title="KB Freelance API", version="0.3")

# Setup Prometheus metrics if enabled
setup_metrics(app, enabled=settings.METRICS_ENABLED)


# Request ID and logging middleware
class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add request ID to all requests and responses, log request/response."""

    async def dispatch(self, request: Request, call_next):
        req_id = get_request_id(request.headers.get("x-request-id"))
        request.state.request_id = req_id
        token = current_request_id.set(req_id)

        start_time = time.time()
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={"request_id": req_id, "path": request.url.path},
        )

        try:
            response = await call_next(request)
        finally:
            current_request_id.reset(token)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request completed: {request.method} {request.url.path} status={response.status_code}",
            extra={
                "request_id": req_id,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response


app.add_middleware(RequestIDMiddleware)
setup_cors(app)


def _request_id_for(request: Request) -> str:
    # Unhandled errors reach their handler after the middleware reset the context var
    return getattr(request.state, "request_id", None) or get_request_id(
        request.headers.get("x-request-id")
    )


@app.exception_handler(ToolError)
async def tool_error_handler(request: Request, exc: ToolError):
    req_id = _request_id_for(request)
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc}", extra={"request_id": req_id, "path": request.url.path})
    else:
        logger.warning(f"{exc.code}: {exc.message}", extra={"request_id": req_id, "path": request.url.path})
    return ApiResponse.failure(
        code=exc.code,
        message=str(exc),
        request_id=req_id,
    ).to_response(status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    req_id = _request_id_for(request)
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return ApiResponse.failure(
        code="validation_error",
        message=problems,
        request_id=req_id,
    ).to_response(status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    req_id = _request_id_for(request)
    logger.error(f"Unhandled error: {exc}", exc_info=exc, extra={"request_id": req_id})
    response = ApiResponse.failure(
        code="internal_error",
        message=str(exc),
        request_id=req_id,
    ).to_response(status_code=500)
    response.headers["X-Request-ID"] = req_id
    return response


@app.on_event("startup")
async def _startup():
    logger.info(f"Time tracker path: {settings.TIME_TRACKER_PATH}")
    logger.info(f"Invoice generator path: {settings.INVOICE_GEN_PATH}")
    logger.info(f"Python executable: {settings.PYTHON_EXEC_PATH}")
    logger.info(f"{SERVICE_NAME} started successfully")


# Health endpoints
@app.get("/health")
async def health():
    """Basic health check."""
    return {"status": "ok", "service": SERVICE_NAME}


@app.get("/api/health")
async def api_health(request: Request):
    """Health check with configured tool path validation."""
    req_id = _request_id_for(request)

    checks = {
        "time_tracker": "ok" if os.path.isdir(settings.TIME_TRACKER_PATH) else "missing",
        "invoice_generator": "ok" if os.path.isdir(settings.INVOICE_GEN_PATH) else "missing",
    }

    return ApiResponse.ok(
        data={
            "status": "ok",
            "service": SERVICE_NAME,
            "checks": checks,
        },
        request_id=req_id,
    )


# Generated PDFs
if output_dir_exists(settings):
    app.mount(
        settings.FILES_URL_PREFIX,
        StaticFiles(directory=settings.INVOICE_OUTPUT_DIR),
        name="files",
    )
    logger.info(f"Serving generated PDFs from {settings.INVOICE_OUTPUT_DIR}")

# Routes
app.include_router(time_routes.router)
app.include_router(invoice_routes.router)


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
