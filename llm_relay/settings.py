from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read from OS env and optional .env file in project root.
    _project_root = Path(__file__).parent.parent

    model_config = SettingsConfigDict(
        env_file=str(_project_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Redis connection string (rate-limit counters live here).
    redis_url: str = Field(
        "redis://localhost:6379/1",
        alias="REDIS_URL",
        description="Redis connection URL, e.g. 'redis://redis:6379/1'",
    )

    # HTTP timeouts
    upstream_timeout: float = Field(
        120.0,
        alias="UPSTREAM_TIMEOUT",
        description="Timeout in seconds for a single vendor call",
        gt=0,
    )
    default_max_tokens: int = Field(
        4096,
        alias="DEFAULT_MAX_TOKENS",
        description="Fallback max tokens when neither the request nor the model defines one",
        ge=1,
    )

    # Per-tenant hourly rate limit
    rate_limit_enabled: bool = Field(True, alias="RATE_LIMIT_ENABLED")
    rate_limit_per_hour: int = Field(
        1000,
        alias="RATE_LIMIT_PER_HOUR",
        description="Maximum gateway calls per tenant per UTC hour bucket",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        alias="RATE_LIMIT_WINDOW_SECONDS",
        description="TTL applied to a freshly created hour bucket",
        ge=1,
    )

    # Billing
    price_per_credit: float = Field(
        0.01,
        alias="PRICE_PER_CREDIT",
        description="USD price of one credit; 0 disables billing units",
        ge=0,
    )
    billing_url: Optional[str] = Field(
        default=None,
        alias="BILLING_URL",
        description="Usage reporting endpoint; when unset usage is only logged",
    )
    billing_api_key: Optional[str] = Field(default=None, alias="BILLING_API_KEY")
    billing_timeout: float = Field(10.0, alias="BILLING_TIMEOUT", gt=0)

    # Shared API token required by clients when calling this gateway.
    api_auth_token: str = Field(
        "timeline",
        alias="LLM_RELAY_AUTH_TOKEN",
        description="Expected token after base64 decoding the Authorization header",
    )

    # Vendor credentials and endpoints
    openai_api_key: Optional[str] = Field(default=None, alias="LLM_OPENAI_API_KEY")
    openai_base_url: str = Field("https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    anthropic_api_key: Optional[str] = Field(default=None, alias="LLM_ANTHROPIC_API_KEY")
    anthropic_base_url: str = Field(
        "https://api.anthropic.com/v1", alias="ANTHROPIC_BASE_URL"
    )
    anthropic_version: str = Field("2023-06-01", alias="ANTHROPIC_VERSION")
    gemini_api_key: Optional[str] = Field(default=None, alias="LLM_GEMINI_API_KEY")
    gemini_base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL"
    )
    deepseek_api_key: Optional[str] = Field(default=None, alias="LLM_DEEPSEEK_API_KEY")
    deepseek_base_url: str = Field("https://api.deepseek.com/v1", alias="DEEPSEEK_BASE_URL")
    groq_api_key: Optional[str] = Field(default=None, alias="LLM_GROQ_API_KEY")
    groq_base_url: str = Field("https://api.groq.com/openai/v1", alias="GROQ_BASE_URL")
    xai_api_key: Optional[str] = Field(default=None, alias="LLM_XAI_API_KEY")
    xai_base_url: str = Field("https://api.x.ai/v1", alias="XAI_BASE_URL")
    perplexity_api_key: Optional[str] = Field(
        default=None, alias="LLM_PERPLEXITY_API_KEY"
    )
    perplexity_base_url: str = Field(
        "https://api.perplexity.ai", alias="PERPLEXITY_BASE_URL"
    )

    # Logging
    log_level: str = Field(
        "INFO",
        alias="LOG_LEVEL",
        description="Application log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_timezone: Optional[str] = Field(
        default=None,
        alias="LOG_TIMEZONE",
        description="Timezone name for log timestamps, e.g. 'UTC'. Defaults to system local time.",
    )
    log_dir: str = Field("logs", alias="LOG_DIR")
    log_backup_days: int = Field(7, alias="LOG_BACKUP_DAYS", ge=0)
    log_split_by_business: bool = Field(True, alias="LOG_SPLIT_BY_BUSINESS")


settings = Settings()  # Reads from environment if available
