"""Ordered multi-model invocation with per-attempt validation.

Candidate models are tried strictly in order, once each, with no delay.
A transport/service failure and an illegal response are treated the same:
both move on to the next candidate. The first legal response wins.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from resume_tailor_api.observability import (
    llm_exhausted_total,
    log_attempt_finish,
    log_attempt_start,
)

logger = structlog.get_logger()


class ServiceError(Exception):
    """The text-generation service failed (transport, auth or quota)."""

    pass


class ValidationFailure(Exception):
    """A generated response is structurally illegal."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class GeneratedText(Protocol):
    content: str
    tokens_used: int


class TextGenerator(Protocol):
    """Generates text for a prompt; raises ``ServiceError`` on failure."""

    async def generate(self, prompt: str, model: str) -> GeneratedText: ...


class ResponseValidator(Protocol):
    def validate(self, raw_text: str) -> None:
        """Return if ``raw_text`` is legal, raise ``ValidationFailure`` otherwise."""
        ...


@dataclass
class GenerationAttempt:
    model: str
    raw_text: str | None = None
    validated: bool = False
    failure_reason: str | None = None


class ExhaustedCandidates(Exception):
    """Every candidate model failed or produced an illegal response."""

    def __init__(self, last_reason: str, attempts: Sequence[GenerationAttempt] = ()):
        super().__init__(f"All candidate models failed: {last_reason}")
        self.last_reason = last_reason
        self.attempts = list(attempts)


@dataclass
class InvocationResult:
    text: str
    model: str
    attempts: list[GenerationAttempt] = field(default_factory=list)


class ModelInvoker:
    """Runs a prompt against an ordered list of candidate models."""

    def __init__(self, generator: TextGenerator):
        self._generator = generator

    async def invoke(
        self,
        prompt: str,
        candidates: Sequence[str],
        validator: ResponseValidator,
    ) -> InvocationResult:
        """Return the first legal response.

        Args:
            prompt: Prompt text sent unchanged to every candidate.
            candidates: Model identifiers in priority order.
            validator: Legality check applied to each raw response.

        Raises:
            ExhaustedCandidates: No candidate produced a legal response.
        """
        attempts: list[GenerationAttempt] = []
        last_reason = "no candidate models configured"

        for model in candidates:
            attempt = GenerationAttempt(model=model)
            attempts.append(attempt)
            attempt_log = log_attempt_start(model, prompt)

            try:
                response = await self._generator.generate(prompt, model)
            except ServiceError as e:
                attempt.failure_reason = f"{model}: service error: {e}"
                log_attempt_finish(attempt_log, "service_error", failure_reason=str(e))
                last_reason = attempt.failure_reason
                continue

            attempt.raw_text = response.content
            try:
                validator.validate(response.content)
            except ValidationFailure as e:
                attempt.failure_reason = f"{model}: illegal response: {e.reason}"
                log_attempt_finish(
                    attempt_log,
                    "illegal",
                    tokens_total=response.tokens_used,
                    failure_reason=e.reason,
                )
                last_reason = attempt.failure_reason
                continue

            attempt.validated = True
            log_attempt_finish(attempt_log, "success", tokens_total=response.tokens_used)
            return InvocationResult(text=response.content, model=model, attempts=attempts)

        llm_exhausted_total.inc()
        logger.error("All candidate models failed", attempts=len(attempts), last_reason=last_reason)
        raise ExhaustedCandidates(last_reason, attempts)
