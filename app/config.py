"""
Configuration Management
========================

Centralized configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.errors import ConfigurationError


# Shared config that all settings classes use to load .env
_shared_config = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    env_prefix="",
    extra="ignore",
)


class OpenAISettings(BaseSettings):
    """OpenAI configuration for the computer-use and URL selection models."""

    model_config = _shared_config

    openai_api_key: str = Field(default="", description="OpenAI API key")
    computer_use_model: str = Field(
        default="computer-use-preview",
        description="Model driving the browser through the Responses API",
    )
    starting_url_model: str = Field(
        default="gpt-4o",
        description="Model used to pick the first URL for a goal",
    )
    starting_url_timeout: float = Field(
        default=5.0,
        description="Seconds to wait for a starting URL before falling back",
    )
    fallback_url: str = Field(
        default="https://www.google.com",
        description="URL used when starting URL selection fails",
    )


class BrowserbaseSettings(BaseSettings):
    """Browserbase session configuration."""

    model_config = _shared_config

    browserbase_api_key: str = Field(default="", description="Browserbase API key")
    browserbase_project_id: str = Field(default="", description="Browserbase project ID")
    viewport_width: int = Field(default=1024, description="Browser viewport width")
    viewport_height: int = Field(default=768, description="Browser viewport height")
    session_timeout: int = Field(default=3600, description="Session timeout in seconds")
    block_ads: bool = Field(default=True, description="Enable Browserbase ad blocking")
    browserbase_region: str = Field(
        default="",
        description="Force a Browserbase region (leave empty to pick the closest one)",
    )
    tz: str = Field(default="", description="Server IANA time zone, used to pick the closest region")


class SlackSettings(BaseSettings):
    """Slack bot configuration."""

    model_config = _shared_config

    slack_bot_token: str = Field(default="", description="Slack bot OAuth token")
    slack_signing_secret: str = Field(default="", description="Slack request signing secret")

    @property
    def enabled(self) -> bool:
        return bool(self.slack_bot_token and self.slack_signing_secret)


class BlobSettings(BaseSettings):
    """Blob storage configuration for loop state checkpoints."""

    model_config = _shared_config

    blob_read_write_token: str = Field(default="", description="Vercel Blob read/write token")
    blob_api_url: str = Field(
        default="https://blob.vercel-storage.com",
        description="Vercel Blob API base URL",
    )
    blob_api_version: str = Field(default="7", description="Vercel Blob API version header")


class ServerSettings(BaseSettings):
    """Server configuration settings."""

    model_config = _shared_config

    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=True, description="Debug mode")
    environment: str = Field(default="development", description="Environment name (development, staging, production)")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )


class AgentSettings(BaseSettings):
    """Agent loop configuration settings."""

    model_config = _shared_config

    max_steps: int = Field(
        default=0,
        ge=0,
        description="Maximum loop iterations per run (0 = run until the model answers)",
    )
    verbose: bool = Field(default=False, description="Log every model request and response")


class Settings(BaseSettings):
    """
    Main settings class combining all configuration sections.

    Usage:
        from app.config import get_settings
        settings = get_settings()
        print(settings.browserbase.browserbase_project_id)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    browserbase: BrowserbaseSettings = Field(default_factory=BrowserbaseSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    blob: BlobSettings = Field(default_factory=BlobSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)

    def __init__(self, **kwargs):
        """Initialize settings with nested configuration."""
        super().__init__(**kwargs)
        # Re-initialize nested settings to pick up env vars
        self.openai = OpenAISettings()
        self.browserbase = BrowserbaseSettings()
        self.slack = SlackSettings()
        self.blob = BlobSettings()
        self.server = ServerSettings()
        self.agent = AgentSettings()


def validate_environment(settings: "Settings") -> None:
    """
    Check that the Browserbase credentials needed to open a session exist.

    Raises:
        ConfigurationError: If a required variable is not set.
    """
    if not settings.browserbase.browserbase_api_key:
        raise ConfigurationError("BROWSERBASE_API_KEY is not set")
    if not settings.browserbase.browserbase_project_id:
        raise ConfigurationError("BROWSERBASE_PROJECT_ID is not set")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings loaded from environment.
    """
    return Settings()
