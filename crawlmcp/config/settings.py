from __future__ import annotations

from typing import Self

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env once at import so every BaseSettings subclass sees its values.
load_dotenv()


class SearxngSettings(BaseSettings):
    """SearXNG search backend. Env vars prefixed with SEARXNG_."""

    model_config = SettingsConfigDict(env_prefix="SEARXNG_")

    url: str = "http://localhost:8081"


class Crawl4AISettings(BaseSettings):
    """Crawl4AI scrape backend. Env vars prefixed with CRAWL4AI_."""

    model_config = SettingsConfigDict(env_prefix="CRAWL4AI_")

    url: str = "http://localhost:8001"


class FirecrawlSettings(BaseSettings):
    """Firecrawl API settings. Env vars prefixed with FIRECRAWL_."""

    model_config = SettingsConfigDict(env_prefix="FIRECRAWL_")

    api_key: str = ""  # empty = Firecrawl tools fail with a clear error
    api_url: str = "http://localhost:3002"


class ProxySettings(BaseSettings):
    """Outbound proxy. Env vars prefixed with PROXY_."""

    model_config = SettingsConfigDict(env_prefix="PROXY_")

    url: str | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _empty_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class GatewaySettings(BaseSettings):
    """HTTP/SSE gateway settings. Env vars prefixed with MCP_HTTP_."""

    model_config = SettingsConfigDict(env_prefix="MCP_HTTP_", populate_by_name=True)

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = Field(
        3003, gt=0, le=65535,
        validation_alias=AliasChoices("MCP_HTTP_PORT", "MCP_PORT"),
    )
    token: str = Field("", validation_alias="MCP_INTERNAL_TOKEN")  # empty = auth disabled
    sse_path: str = Field("/mcp/sse", validation_alias="MCP_SSE_PATH")
    sse_keepalive_s: float = Field(15.0, gt=0, validation_alias="MCP_SSE_KEEPALIVE_S")

    @field_validator("sse_path")
    @classmethod
    def _validate_sse_path(cls, v: str) -> str:
        if not v.startswith("/"):
            msg = f"MCP_SSE_PATH must start with '/' (got '{v}')"
            raise ValueError(msg)
        return v


class FanoutSettings(BaseSettings):
    """search_and_scrape fan-out bounds. Env vars prefixed with FANOUT_."""

    model_config = SettingsConfigDict(env_prefix="FANOUT_")

    concurrency: int = Field(2, ge=1, le=16)
    default_max_results: int = Field(3, ge=1)
    max_results_cap: int = Field(5, ge=1)

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.default_max_results > self.max_results_cap:
            raise ValueError(
                f"default_max_results ({self.default_max_results}) must not exceed "
                f"max_results_cap ({self.max_results_cap})"
            )
        return self


class LogSettings(BaseSettings):
    """Logging settings. Env vars prefixed with LOG_."""

    model_config = SettingsConfigDict(env_prefix="LOG_", populate_by_name=True)

    level: str = "INFO"
    json_output: bool = Field(True, validation_alias="LOG_JSON")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        v = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v not in allowed:
            msg = f"LOG_LEVEL must be one of {sorted(allowed)} (got '{v}')"
            raise ValueError(msg)
        return v


class Settings(BaseSettings):
    """Root settings composing all sub-configurations."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    searxng: SearxngSettings = Field(default_factory=SearxngSettings)
    crawl4ai: Crawl4AISettings = Field(default_factory=Crawl4AISettings)
    firecrawl: FirecrawlSettings = Field(default_factory=FirecrawlSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    fanout: FanoutSettings = Field(default_factory=FanoutSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    stdio_enabled: bool = Field(True, validation_alias="MCP_STDIO_ENABLED")


def get_settings() -> Settings:
    """Load and validate settings. Raises ValidationError on invalid values."""
    return Settings()
