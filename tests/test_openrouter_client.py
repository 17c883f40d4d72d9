"""Tests for OpenRouter LLM client."""

import json
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from resume_tailor_api.config import Settings
from resume_tailor_api.openrouter_client import (
    LLMResponse,
    OpenRouterAuthError,
    OpenRouterClient,
    OpenRouterError,
    OpenRouterRateLimitError,
)
from resume_tailor_api.response_validator import StructuredResumeValidator


def http_status_error(status: int, body: dict | None = None) -> httpx.HTTPStatusError:
    mock_response = MagicMock()
    mock_response.status_code = status
    mock_response.json.return_value = body or {}
    return httpx.HTTPStatusError(
        message=f"{status} error",
        request=MagicMock(),
        response=mock_response,
    )


def completion_response(payload: dict) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = payload
    mock_response.raise_for_status = MagicMock()
    return mock_response


class TestOpenRouterClient:
    """Tests for OpenRouterClient construction."""

    def test_init_default_values(self, mock_settings: Callable[..., Settings]) -> None:
        mock_settings(LLM_MAX_TOKENS="8192", LLM_TEMPERATURE="0.7")
        client = OpenRouterClient()
        assert client._max_tokens == 8192
        assert client._temperature == 0.7

    def test_init_custom_values(self) -> None:
        client = OpenRouterClient(api_key="sk-test-key", max_tokens=2048, temperature=0.0)
        assert client._api_key == "sk-test-key"
        assert client._max_tokens == 2048
        assert client._temperature == 0.0

    def test_is_configured(self) -> None:
        assert OpenRouterClient(api_key="sk-or-v1-test123").is_configured is True
        assert OpenRouterClient(api_key="invalid-key").is_configured is False


class TestGenerate:
    """Tests for OpenRouterClient.generate."""

    @pytest.mark.asyncio
    async def test_generate_sends_model_and_prompt(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with patch.object(client, "_client") as mock_client:
            mock_client.post = AsyncMock(
                return_value=completion_response(
                    {
                        "choices": [{"message": {"content": "{}"}, "finish_reason": "stop"}],
                        "usage": {"total_tokens": 42},
                    }
                )
            )

            result = await client.generate("hello", "google/gemini-2.5-pro")

            payload = mock_client.post.call_args.kwargs["json"]
            assert payload["model"] == "google/gemini-2.5-pro"
            assert payload["messages"] == [{"role": "user", "content": "hello"}]
            assert payload["stream"] is False
            assert result == LLMResponse(
                content="{}",
                model="google/gemini-2.5-pro",
                tokens_used=42,
                finish_reason="stop",
            )

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with patch.object(client, "_client") as mock_client:
            mock_client.post = AsyncMock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(OpenRouterError, match="Transport error"):
                await client.generate("hello", "model")

    @pytest.mark.asyncio
    async def test_malformed_body_is_wrapped(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with patch.object(client, "_client") as mock_client:
            mock_client.post = AsyncMock(
                return_value=completion_response({"error": {"message": "upstream failed"}})
            )
            with pytest.raises(OpenRouterError, match="Malformed completion response"):
                await client.generate("hello", "model")

    @pytest.mark.asyncio
    async def test_null_content_is_an_error(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with patch.object(client, "_client") as mock_client:
            mock_client.post = AsyncMock(
                return_value=completion_response({"choices": [{"message": {"content": None}}]})
            )
            with pytest.raises(OpenRouterError, match="no content"):
                await client.generate("hello", "model")

    @pytest.mark.asyncio
    async def test_status_error_is_mapped(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with patch.object(client, "_client") as mock_client:
            mock_response = MagicMock()
            mock_response.raise_for_status = MagicMock(
                side_effect=http_status_error(429, {"error": {"message": "slow down"}})
            )
            mock_client.post = AsyncMock(return_value=mock_response)
            with pytest.raises(OpenRouterRateLimitError, match="slow down"):
                await client.generate("hello", "model")

    @pytest.mark.asyncio
    async def test_missing_key_without_mock_mode(self, mock_settings: Callable[..., Settings]) -> None:
        mock_settings(MOCK_OPENROUTER="false")
        client = OpenRouterClient(api_key="")
        with pytest.raises(OpenRouterAuthError):
            await client.generate("hello", "model")

    @pytest.mark.asyncio
    async def test_mock_mode_returns_legal_resume(self, mock_settings: Callable[..., Settings]) -> None:
        mock_settings(MOCK_OPENROUTER="true")
        client = OpenRouterClient(api_key="")

        result = await client.generate("hello", "mock-model")

        assert result.model == "mock-model"
        StructuredResumeValidator().validate(result.content)
        data = json.loads(result.content.removeprefix("```json").removesuffix("```"))
        assert data["workExperience"][0]["company"] == "Mock Company"


class TestOpenRouterHttpErrorHandling:
    """Tests for HTTP error handling."""

    def test_handle_http_error_auth(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with pytest.raises(OpenRouterAuthError, match="Invalid API key"):
            client._handle_http_error(http_status_error(401, {"error": {"message": "Invalid API key"}}))

    def test_handle_http_error_rate_limit(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with pytest.raises(OpenRouterRateLimitError):
            client._handle_http_error(http_status_error(429))

    def test_handle_http_error_generic(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with pytest.raises(OpenRouterError, match="API error \\(500\\)"):
            client._handle_http_error(http_status_error(500, {"error": {"message": "boom"}}))

    def test_handle_http_error_unparseable_body(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        error = http_status_error(502)
        error.response.json.side_effect = ValueError("not json")
        with pytest.raises(OpenRouterError, match="API error \\(502\\)"):
            client._handle_http_error(error)


class TestConnectivity:
    """Tests for check_connectivity."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        client = OpenRouterClient(api_key="sk-test")
        with patch.object(client, "generate", AsyncMock(return_value=LLMResponse("p", "m"))) as gen:
            report = await client.check_connectivity("m")
        assert report.success is True
        gen.assert_awaited_once_with("p", "m", max_tokens=1)

    @pytest.mark.asyncio
    async def test_failure_includes_hint(self) -> None:
        client = OpenRouterClient(api_key="sk-test-key")
        with patch.object(
            client, "generate", AsyncMock(side_effect=OpenRouterError("API error (404): not found"))
        ):
            report = await client.check_connectivity("missing/model")
        assert report.success is False
        assert "model identifier is wrong" in report.details["error"]
        assert report.details["model"] == "missing/model"
        assert report.details["api_key_prefix"] == "sk-te..."

    @pytest.mark.asyncio
    async def test_unconfigured_without_mock(self, mock_settings: Callable[..., Settings]) -> None:
        mock_settings(MOCK_OPENROUTER="false")
        client = OpenRouterClient(api_key="")
        report = await client.check_connectivity("m")
        assert report.success is False
        assert "OPENROUTER_API_KEY" in report.message
