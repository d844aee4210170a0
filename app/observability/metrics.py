"""
Prometheus metrics for kb-freelance-api.
"""
import logging
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

logger = logging.getLogger(__name__)

# Custom metrics
tool_invocations_total = Counter(
    "tool_invocations_total",
    "Total number of external tool invocations by outcome",
    ["tool", "outcome"],
)

tool_output_format_total = Counter(
    "tool_output_format_total",
    "Parsed tool outputs by record kind and detected format",
    ["kind", "format"],
)


def setup_metrics(app, enabled: bool = False) -> bool:
    """
    Setup Prometheus metrics for the FastAPI app.
    Only enabled when METRICS_ENABLED is true.

    Args:
        app: FastAPI application instance
        enabled: whether to instrument and expose /metrics

    Returns:
        True if metrics were exposed
    """
    if not enabled:
        return False

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics"],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )

    instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["observability"])
    logger.info("Prometheus metrics exposed at /metrics")
    return True
