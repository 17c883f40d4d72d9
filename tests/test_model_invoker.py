"""Tests for ordered multi-model invocation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from resume_tailor_api.model_invoker import (
    ExhaustedCandidates,
    GenerationAttempt,
    ModelInvoker,
    ServiceError,
    ValidationFailure,
)
from resume_tailor_api.openrouter_client import (
    LLMResponse,
    OpenRouterAuthError,
    OpenRouterError,
)

CANDIDATES = ["model-a", "model-b", "model-c"]


class AcceptAll:
    def validate(self, raw_text: str) -> None:
        return None


class RejectMarked:
    """Rejects any response containing 'BAD'."""

    def validate(self, raw_text: str) -> None:
        if "BAD" in raw_text:
            raise ValidationFailure("marked bad")


def response(content: str, model: str = "model-a") -> LLMResponse:
    return LLMResponse(content=content, model=model, tokens_used=10, finish_reason="stop")


def make_generator(*outcomes: object) -> MagicMock:
    generator = MagicMock()
    generator.generate = AsyncMock(side_effect=list(outcomes))
    return generator


class TestModelInvoker:
    """Tests for ModelInvoker.invoke."""

    @pytest.mark.asyncio
    async def test_first_legal_response_wins(self) -> None:
        generator = make_generator(response("ok"))
        invoker = ModelInvoker(generator)

        result = await invoker.invoke("prompt", CANDIDATES, AcceptAll())

        assert result.text == "ok"
        assert result.model == "model-a"
        assert generator.generate.await_count == 1
        generator.generate.assert_awaited_once_with("prompt", "model-a")
        assert result.attempts == [GenerationAttempt(model="model-a", raw_text="ok", validated=True)]

    @pytest.mark.asyncio
    async def test_service_error_falls_back(self) -> None:
        generator = make_generator(OpenRouterError("API error (500): boom"), response("ok", "model-b"))
        invoker = ModelInvoker(generator)

        result = await invoker.invoke("prompt", CANDIDATES, AcceptAll())

        assert result.model == "model-b"
        assert [call.args[1] for call in generator.generate.await_args_list] == ["model-a", "model-b"]
        assert result.attempts[0].failure_reason is not None
        assert "service error" in result.attempts[0].failure_reason
        assert not result.attempts[0].validated

    @pytest.mark.asyncio
    async def test_illegal_response_falls_back(self) -> None:
        generator = make_generator(response("BAD"), response("fine", "model-b"))
        invoker = ModelInvoker(generator)

        result = await invoker.invoke("prompt", CANDIDATES, RejectMarked())

        assert result.text == "fine"
        assert result.attempts[0].raw_text == "BAD"
        assert "illegal response: marked bad" in result.attempts[0].failure_reason
        assert generator.generate.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_when_every_candidate_fails(self) -> None:
        generator = make_generator(
            OpenRouterAuthError("Authentication failed (401)"),
            response("BAD"),
            OpenRouterError("Transport error: timed out"),
        )
        invoker = ModelInvoker(generator)

        with pytest.raises(ExhaustedCandidates) as exc_info:
            await invoker.invoke("prompt", CANDIDATES, RejectMarked())

        error = exc_info.value
        assert "model-c" in error.last_reason
        assert "timed out" in error.last_reason
        assert "timed out" in str(error)
        assert [attempt.model for attempt in error.attempts] == CANDIDATES
        assert generator.generate.await_count == 3

    @pytest.mark.asyncio
    async def test_last_candidate_success_is_not_exhaustion(self) -> None:
        generator = make_generator(response("BAD"), response("BAD"), response("good", "model-c"))
        invoker = ModelInvoker(generator)

        result = await invoker.invoke("prompt", CANDIDATES, RejectMarked())

        assert result.model == "model-c"
        assert len(result.attempts) == 3

    @pytest.mark.asyncio
    async def test_empty_candidate_list(self) -> None:
        generator = make_generator()
        invoker = ModelInvoker(generator)

        with pytest.raises(ExhaustedCandidates, match="no candidate models"):
            await invoker.invoke("prompt", [], AcceptAll())
        generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self) -> None:
        generator = make_generator(RuntimeError("bug"))
        invoker = ModelInvoker(generator)

        with pytest.raises(RuntimeError):
            await invoker.invoke("prompt", CANDIDATES, AcceptAll())
        assert generator.generate.await_count == 1

    @pytest.mark.asyncio
    async def test_any_service_error_falls_back(self) -> None:
        """Backends other than OpenRouter only need to raise ServiceError."""
        generator = make_generator(ServiceError("quota exhausted"), response("ok", "model-b"))
        invoker = ModelInvoker(generator)

        result = await invoker.invoke("prompt", CANDIDATES, AcceptAll())

        assert result.model == "model-b"
        assert "service error: quota exhausted" in result.attempts[0].failure_reason

    def test_openrouter_errors_are_service_errors(self) -> None:
        assert issubclass(OpenRouterError, ServiceError)
        assert issubclass(OpenRouterAuthError, ServiceError)
