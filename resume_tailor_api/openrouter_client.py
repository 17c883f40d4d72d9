"""OpenRouter LLM client used as the text-generation backend."""

import json
from dataclasses import dataclass, field

import httpx
import structlog

from resume_tailor_api.config import get_settings
from resume_tailor_api.model_invoker import ServiceError

logger = structlog.get_logger()


class OpenRouterError(ServiceError):
    """Base exception for OpenRouter client errors (transport, auth, quota)."""

    pass


class OpenRouterAuthError(OpenRouterError):
    """Raised when authentication fails."""

    pass


class OpenRouterRateLimitError(OpenRouterError):
    """Raised when rate limit is exceeded."""

    pass


@dataclass
class LLMResponse:
    """Non-streaming response from the LLM."""

    content: str
    model: str
    tokens_used: int = 0
    finish_reason: str | None = None


@dataclass
class ConnectivityReport:
    """Outcome of a minimal connectivity probe."""

    success: bool
    message: str
    details: dict[str, str] = field(default_factory=dict)


# Hints appended to connectivity errors, keyed by a substring of the error text
_TROUBLESHOOTING_HINTS = {
    "401": "API key is invalid or revoked",
    "403": "API key lacks access to this model",
    "404": "base URL or model identifier is wrong",
    "429": "quota or rate limit exhausted",
    "transport": "network unreachable, check DNS or proxy settings",
}


class OpenRouterClient:
    """Async client for the OpenRouter chat-completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_seconds: float | None = None,
    ):
        """Initialize the OpenRouter client.

        Args:
            api_key: OpenRouter API key. Defaults to config value.
            base_url: API base URL. Defaults to config value.
            max_tokens: Maximum tokens in response. Defaults to config value.
            temperature: Sampling temperature. Defaults to config value.
            timeout_seconds: Read timeout per request. Defaults to config value.
        """
        settings = get_settings()
        self._api_key = api_key or settings.openrouter_api_key
        self._base_url = base_url or settings.openrouter_base_url
        self._max_tokens = max_tokens or settings.llm_max_tokens
        self._temperature = temperature if temperature is not None else settings.llm_temperature
        self._timeout_seconds = timeout_seconds or settings.llm_timeout_seconds
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client.

        In mock mode (MOCK_OPENROUTER=true), skips creating a real HTTP client
        since all requests will be served by the mock handler.
        """
        settings = get_settings()
        if settings.mock_openrouter:
            logger.info("OpenRouter client in mock mode, skipping HTTP client creation")
            return

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "X-Title": "Resume Tailor",
            },
            timeout=httpx.Timeout(self._timeout_seconds, connect=10.0),
        )
        logger.info("OpenRouter client connected", base_url=self._base_url)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("OpenRouter client closed")

    async def generate(self, prompt: str, model: str, max_tokens: int | None = None) -> LLMResponse:
        """Send a single-prompt completion request to ``model``.

        Args:
            prompt: Full prompt text, sent as one user message.
            model: OpenRouter model identifier.
            max_tokens: Override for the configured token limit.

        Returns:
            LLM response with content and token usage.

        Raises:
            OpenRouterError: If the request fails at transport or API level.
            OpenRouterAuthError: If MOCK_OPENROUTER=false but API key missing.
        """
        settings = get_settings()

        # Check mock policy - fail loudly if real implementation unavailable
        if not self.is_configured:
            if settings.mock_openrouter:
                logger.info("MOCK_OPENROUTER=true: Using mock LLM response", model=model)
                return self._mock_generate(prompt, model)
            error_msg = (
                "OpenRouter API key not configured with MOCK_OPENROUTER=false. "
                "Either set OPENROUTER_API_KEY or set MOCK_OPENROUTER=true for testing."
            )
            logger.error(error_msg)
            raise OpenRouterAuthError(error_msg)

        if not self._client:
            await self.connect()

        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": self._temperature,
            "stream": False,
        }

        try:
            response = await self._client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            self._handle_http_error(e)
            raise  # _handle_http_error always raises
        except httpx.HTTPError as e:
            logger.error("OpenRouter transport error", model=model, error=str(e))
            raise OpenRouterError(f"Transport error: {e}") from e
        except json.JSONDecodeError as e:
            raise OpenRouterError(f"Response body is not JSON: {e}") from e

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            error_detail = data.get("error", {}) if isinstance(data, dict) else {}
            raise OpenRouterError(f"Malformed completion response: {error_detail or e}") from e

        if content is None:
            raise OpenRouterError("Completion response has no content")

        tokens_used = (data.get("usage") or {}).get("total_tokens", 0)
        finish_reason = choice.get("finish_reason")
        logger.info(
            "LLM response received",
            model=model,
            tokens=tokens_used,
            finish_reason=finish_reason,
        )
        return LLMResponse(
            content=content,
            model=model,
            tokens_used=tokens_used,
            finish_reason=finish_reason,
        )

    async def check_connectivity(self, model: str) -> ConnectivityReport:
        """Probe the API with a one-token request against ``model``."""
        if not self.is_configured:
            if get_settings().mock_openrouter:
                return ConnectivityReport(success=True, message="Mock mode, no request sent")
            return ConnectivityReport(success=False, message="OPENROUTER_API_KEY is not set")

        try:
            await self.generate("p", model, max_tokens=1)
        except OpenRouterError as e:
            error_msg = str(e)
            for marker, hint in _TROUBLESHOOTING_HINTS.items():
                if marker in error_msg.lower():
                    error_msg += f" ({hint})"
            return ConnectivityReport(
                success=False,
                message="LLM connectivity check failed",
                details={
                    "error": error_msg,
                    "base_url": self._base_url,
                    "model": model,
                    "api_key_prefix": self._api_key[:5] + "...",
                },
            )
        return ConnectivityReport(success=True, message="LLM connectivity check passed")

    def _handle_http_error(self, error: httpx.HTTPStatusError) -> None:
        """Handle HTTP errors from OpenRouter API."""
        status = error.response.status_code
        try:
            detail = error.response.json().get("error", {}).get("message", str(error))
        except Exception:
            detail = str(error)

        logger.error("OpenRouter API error", status=status, detail=detail)

        if status == 401:
            raise OpenRouterAuthError(f"Authentication failed (401): {detail}")
        elif status == 429:
            raise OpenRouterRateLimitError(f"Rate limit exceeded (429): {detail}")
        else:
            raise OpenRouterError(f"API error ({status}): {detail}")

    def _mock_generate(self, prompt: str, model: str) -> LLMResponse:
        """Return a canned structured resume for testing.

        Args:
            prompt: Prompt text (only its length is reflected in the mock).
            model: Requested model identifier.
        """
        mock_resume = {
            "position": "mock",
            "yearsOfExperience": 3,
            "personalIntroduction": (
                "This is a mock response (MOCK_OPENROUTER=true). "
                f"Prompt length: {len(prompt)} characters."
            ),
            "professionalSkills": [
                {"title": "Mock skills", "items": ["Set OPENROUTER_API_KEY", "for real output"]}
            ],
            "workExperience": [
                {
                    "company": "Mock Company",
                    "position": "Mock Position",
                    "startDate": "2020-01",
                    "endDate": "至今",
                    "responsibilities": ["Mock responsibility"],
                }
            ],
        }
        content = "```json\n" + json.dumps(mock_resume, ensure_ascii=False) + "\n```"
        return LLMResponse(content=content, model=model, tokens_used=50, finish_reason="stop")

    @property
    def is_configured(self) -> bool:
        """Check if the client is properly configured with an API key."""
        return bool(self._api_key and self._api_key.startswith("sk-"))


# Global client instance
_openrouter_client: OpenRouterClient | None = None


async def get_openrouter_client() -> OpenRouterClient:
    """Get or create the global OpenRouter client instance."""
    global _openrouter_client
    if _openrouter_client is None:
        _openrouter_client = OpenRouterClient()
        await _openrouter_client.connect()
    return _openrouter_client


async def close_openrouter_client() -> None:
    """Close the global OpenRouter client."""
    global _openrouter_client
    if _openrouter_client:
        await _openrouter_client.close()
        _openrouter_client = None


def reset_openrouter_client() -> None:
    """Reset the global OpenRouter client (for testing)."""
    global _openrouter_client
    _openrouter_client = None
