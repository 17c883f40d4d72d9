"""Environment configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

from resume_tailor_api.segment_allocator import AllocationPolicy

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Mock control (opt-in feature gate for testing)
    mock_openrouter: bool = False  # Use mock LLM responses (don't call OpenRouter API)

    # OpenRouter configuration
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    # Tried in order, once each, until one returns a legal response
    llm_candidate_models: list[str] = [
        "google/gemini-2.0-flash-001",
        "google/gemini-2.5-pro",
    ]
    llm_max_tokens: int = 8192
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 120.0

    # Timeline reconciliation policy
    supplement_gap_threshold_months: int = 4
    supplement_max_segment_years: int = 3
    supplement_min_insert_years: float = 0.5
    legal_work_age: int = 19
    legal_work_start_month: int = 7
    default_birth_year: int = 2000

    # Request limits
    max_request_body_mb: int = 10
    rate_limit_per_minute: int = 10

    # Server configuration
    port: int = 3000
    host: str = "0.0.0.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    environment: Literal["development", "production"] = "development"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def has_openrouter_key(self) -> bool:
        """Check if OpenRouter API key is configured."""
        return bool(self.openrouter_api_key and self.openrouter_api_key.startswith("sk-"))

    @property
    def max_request_body_bytes(self) -> int:
        return self.max_request_body_mb * 1024 * 1024

    @property
    def allocation_policy(self) -> AllocationPolicy:
        """Supplement allocation constants as a policy object."""
        return AllocationPolicy(
            gap_threshold_months=self.supplement_gap_threshold_months,
            max_segment_years=self.supplement_max_segment_years,
            min_insert_years=self.supplement_min_insert_years,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    if not settings.llm_candidate_models:
        logger.warning("LLM_CANDIDATE_MODELS is empty, every enhancement will fail")
    return settings
