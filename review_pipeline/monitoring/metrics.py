"""Prometheus metrics for monitoring the Review Pipeline service."""

import logging

from prometheus_client import Counter, start_http_server

logger = logging.getLogger(__name__)

# Define metrics
COMMENT_DECISIONS = Counter(
    "review_pipeline_comment_decisions_total",
    "Comments stored, by the status they were created with",
    ["status"],
)

RATE_LIMIT_DECISIONS = Counter(
    "review_pipeline_rate_limit_decisions_total",
    "Rate limiter admission decisions",
    ["action", "outcome"],
)

RATE_LIMIT_FAIL_OPEN = Counter(
    "review_pipeline_rate_limit_fail_open_total",
    "Requests admitted because the rate-limit store was unavailable",
    ["reason"],
)

REPORTS_RECORDED = Counter(
    "review_pipeline_comment_reports_total",
    "Comment reports recorded",
)

TRANSLATION_RUNS = Counter(
    "review_pipeline_translation_runs_total",
    "Background translation runs",
    ["strategy", "outcome"],
)

TRANSLATION_FALLBACKS = Counter(
    "review_pipeline_translation_fallbacks_total",
    "Texts kept untranslated because the translation call failed",
    ["reason"],
)

TRANSLATION_CACHE = Counter(
    "review_pipeline_translation_cache_total",
    "Translation cache lookups",
    ["result"],
)


def _action_of(key: str) -> str:
    return key.split(":", 1)[0] if key else "unknown"


def record_rate_limit(key: str, allowed: bool) -> None:
    RATE_LIMIT_DECISIONS.labels(action=_action_of(key), outcome="allowed" if allowed else "blocked").inc()


def record_fail_open(reason: str) -> None:
    RATE_LIMIT_FAIL_OPEN.labels(reason=reason).inc()


def record_comment_decision(status: str) -> None:
    COMMENT_DECISIONS.labels(status=status).inc()


def record_report() -> None:
    REPORTS_RECORDED.inc()


def record_translation_run(strategy: str, outcome: str) -> None:
    TRANSLATION_RUNS.labels(strategy=strategy, outcome=outcome).inc()


def record_translation_fallback(reason: str) -> None:
    TRANSLATION_FALLBACKS.labels(reason=reason).inc()


def record_cache_lookup(hit: bool) -> None:
    TRANSLATION_CACHE.labels(result="hit" if hit else "miss").inc()


class PrometheusExporter:
    """Prometheus metrics exporter for the Review Pipeline service."""

    def __init__(self, port: int = 9102):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except Exception as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")
