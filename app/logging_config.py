"""
Structured JSON logging for analytics pipeline observability.

Provides structured logging with request IDs for correlating logs across
pipeline states, plus context managers for stage timing and LLM calls.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variables for request correlation
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
stage_var: ContextVar[str | None] = ContextVar("stage", default=None)
entity_var: ContextVar[str | None] = ContextVar("entity", default=None)


# Extra record attributes copied into JSON output when present
_EXTRA_FIELDS = (
    "event",
    "duration_ms",
    "source",
    "url",
    "attempt",
    "max_attempts",
    "delay_seconds",
    "status_code",
    "error_kind",
    "cache_key",
    "model",
    "provider",
    "tokens_in",
    "tokens_out",
)


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "request_id": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        stage = stage_var.get()
        if stage:
            log_data["stage"] = stage

        entity = entity_var.get()
        if entity:
            log_data["entity"] = entity

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure root logging for production or local development.

    Args:
        json_format: If True, use JSON format. If False, use human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def log_stage(stage: str, entity: str | None = None):
    """
    Context manager for pipeline state logging.

    Logs state entry and exit with duration. Failures are logged at WARNING
    because most of them are expected outcomes (bad input, missing entity)
    that the caller turns into a structured error.

    Usage:
        with log_stage("fetching", entity="post:abc123"):
            outcomes = await aggregator.aggregate(requests)
    """
    stage_token = stage_var.set(stage)
    entity_token = entity_var.set(entity) if entity else None

    start_time = time.time()
    logger = logging.getLogger("pipeline")

    logger.debug(f"Stage {stage} started", extra={"event": "stage_start"})

    try:
        yield
        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"Stage {stage} completed",
            extra={"event": "stage_complete", "duration_ms": duration_ms},
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.warning(
            f"Stage {stage} failed: {e}",
            extra={"event": "stage_failed", "duration_ms": duration_ms},
        )
        raise
    finally:
        stage_var.reset(stage_token)
        if entity_token is not None:
            entity_var.reset(entity_token)


@contextmanager
def log_llm_call(provider: str, model: str):
    """
    Context manager for LLM call instrumentation.

    Usage:
        with log_llm_call("openai", "gpt-4o-mini") as metrics:
            response = client.chat.completions.create(...)
            metrics["tokens_in"] = response.usage.prompt_tokens
    """
    start_time = time.time()
    logger = logging.getLogger("pipeline.llm")
    metrics: dict = {"tokens_in": 0, "tokens_out": 0}

    try:
        yield metrics

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"LLM call completed: {provider}/{model} ({duration_ms}ms)",
            extra={
                "event": "llm_call_complete",
                "provider": provider,
                "model": model,
                "duration_ms": duration_ms,
                "tokens_in": metrics["tokens_in"],
                "tokens_out": metrics["tokens_out"],
            },
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"LLM call failed: {provider}/{model} - {e}",
            extra={
                "event": "llm_call_failed",
                "provider": provider,
                "model": model,
                "duration_ms": duration_ms,
            },
        )
        raise
