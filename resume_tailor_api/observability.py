"""Observability utilities: trace IDs, generation-attempt metrics and logging.

This module provides:
- Trace ID generation and propagation via context vars
- Prometheus metrics for generation attempts (outcome, latency, tokens)
- Structured logging helpers for attempt start/finish correlation
"""

import secrets
import time
from contextvars import ContextVar
from dataclasses import dataclass, field

import structlog
from prometheus_client import Counter, Histogram

logger = structlog.get_logger()

# =============================================================================
# Trace ID Context
# =============================================================================

# Context variable for trace ID propagation across async calls
trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")


def generate_trace_id() -> str:
    """Generate cryptographically secure trace ID for request tracking."""
    return secrets.token_hex(16)


def get_trace_id() -> str:
    """Get current trace ID from context, or empty string if not set."""
    return trace_id_ctx.get()


def set_trace_id(trace_id: str) -> None:
    """Set trace ID in context."""
    trace_id_ctx.set(trace_id)


# =============================================================================
# Prometheus Metrics for generation attempts
# =============================================================================

llm_attempts_total = Counter(
    "llm_generation_attempts_total",
    "Generation attempts per candidate model",
    ["model", "outcome"],  # values: success, service_error, illegal
)

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens used in generation calls",
    ["model"],
)

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "Generation attempt latency in seconds",
    ["model"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

llm_exhausted_total = Counter(
    "llm_candidates_exhausted_total",
    "Invocations where every candidate model failed",
)


# =============================================================================
# Attempt logging
# =============================================================================


@dataclass
class AttemptLog:
    """Structured log data for one generation attempt."""

    trace_id: str
    model: str
    prompt_chars: int
    timestamp: float = field(default_factory=time.time)


def log_attempt_start(model: str, prompt: str) -> AttemptLog:
    """Log the start of a generation attempt and return it for correlation."""
    attempt = AttemptLog(trace_id=get_trace_id(), model=model, prompt_chars=len(prompt))
    logger.info(
        "llm_attempt",
        trace_id=attempt.trace_id,
        model=attempt.model,
        prompt_chars=attempt.prompt_chars,
    )
    return attempt


def log_attempt_finish(
    attempt: AttemptLog,
    outcome: str,
    tokens_total: int = 0,
    failure_reason: str | None = None,
) -> None:
    """Log the outcome of a generation attempt and record metrics."""
    latency_ms = int((time.time() - attempt.timestamp) * 1000)

    if failure_reason:
        logger.warning(
            "llm_attempt_failed",
            trace_id=attempt.trace_id,
            model=attempt.model,
            outcome=outcome,
            latency_ms=latency_ms,
            reason=failure_reason,
        )
    else:
        logger.info(
            "llm_attempt_succeeded",
            trace_id=attempt.trace_id,
            model=attempt.model,
            latency_ms=latency_ms,
            tokens_total=tokens_total,
        )

    llm_attempts_total.labels(model=attempt.model, outcome=outcome).inc()
    llm_latency_seconds.labels(model=attempt.model).observe(latency_ms / 1000.0)
    if tokens_total > 0:
        llm_tokens_total.labels(model=attempt.model).inc(tokens_total)
