"""
Configuration Settings.

This module defines the library configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# LLM Provider Configuration Models
# =====================================================================


class OpenAIConfig(BaseModel):
    """OpenAI API configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None, alias="OPENAI_API_KEY", description="OpenAI API key for authentication"
    )
    model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL", description="Default OpenAI model to use")
    base_url: str = Field(
        default="https://api.openai.com/v1", alias="OPENAI_BASE_URL", description="OpenAI API base URL"
    )

    model_config = {"populate_by_name": True}


class AnthropicConfig(BaseModel):
    """Anthropic API configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None, alias="ANTHROPIC_API_KEY", description="Anthropic API key for authentication"
    )
    model: str = Field(
        default="claude-3-5-sonnet-latest", alias="ANTHROPIC_MODEL", description="Default Anthropic model to use"
    )
    base_url: str = Field(
        default="https://api.anthropic.com/v1", alias="ANTHROPIC_BASE_URL", description="Anthropic API base URL"
    )
    api_version: str = Field(
        default="2023-06-01", alias="ANTHROPIC_API_VERSION", description="Value of the anthropic-version header"
    )

    model_config = {"populate_by_name": True}


class MastraConfig(BaseModel):
    """Agent backend (Mastra) configuration."""

    base_url: str = Field(
        default="http://localhost:4111", alias="MASTRA_BASE_URL", description="Agent backend base URL"
    )
    api_key: Optional[SecretStr] = Field(
        default=None, alias="MASTRA_API_KEY", description="Optional bearer token for the agent backend"
    )
    default_route: str = Field(
        default="/chat/execute-function",
        alias="MASTRA_DEFAULT_ROUTE",
        description="Route used when a round-trip does not name one",
    )

    model_config = {"populate_by_name": True}


class AISDKConfig(BaseModel):
    """Multi-vendor routed provider configuration."""

    default_model: str = Field(
        default="openai/gpt-4o-mini",
        alias="AI_SDK_DEFAULT_MODEL",
        description="Default 'vendor/model' string used when a round-trip does not name one",
    )
    openai_api_key: Optional[SecretStr] = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[SecretStr] = Field(default=None, alias="ANTHROPIC_API_KEY")
    google_api_key: Optional[SecretStr] = Field(default=None, alias="GOOGLE_API_KEY")
    mistral_api_key: Optional[SecretStr] = Field(default=None, alias="MISTRAL_API_KEY")
    groq_api_key: Optional[SecretStr] = Field(default=None, alias="GROQ_API_KEY")

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Library settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # General Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="STATEBRIDGE_AI_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Logging format (simple, detailed, json)",
        alias="STATEBRIDGE_AI_LOG_FORMAT",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Also write logs to a file under log_file_dir",
        alias="STATEBRIDGE_AI_ENABLE_FILE_LOGGING",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file when file logging is enabled",
        alias="STATEBRIDGE_AI_LOG_FILE_DIR",
    )
    http_timeout: float = Field(
        default=60.0,
        description="Timeout in seconds for outbound provider HTTP calls",
        alias="STATEBRIDGE_AI_HTTP_TIMEOUT",
    )

    # =====================================================================
    # Provider Credentials (flat, grouped below)
    # =====================================================================
    openai_api_key: Optional[SecretStr] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")

    anthropic_api_key: Optional[SecretStr] = Field(default=None, alias="ANTHROPIC_API_KEY")
    anthropic_model: str = Field(default="claude-3-5-sonnet-latest", alias="ANTHROPIC_MODEL")
    anthropic_base_url: str = Field(default="https://api.anthropic.com/v1", alias="ANTHROPIC_BASE_URL")
    anthropic_api_version: str = Field(default="2023-06-01", alias="ANTHROPIC_API_VERSION")

    mastra_base_url: str = Field(default="http://localhost:4111", alias="MASTRA_BASE_URL")
    mastra_api_key: Optional[SecretStr] = Field(default=None, alias="MASTRA_API_KEY")
    mastra_default_route: str = Field(default="/chat/execute-function", alias="MASTRA_DEFAULT_ROUTE")

    ai_sdk_default_model: str = Field(default="openai/gpt-4o-mini", alias="AI_SDK_DEFAULT_MODEL")
    google_api_key: Optional[SecretStr] = Field(default=None, alias="GOOGLE_API_KEY")
    mistral_api_key: Optional[SecretStr] = Field(default=None, alias="MISTRAL_API_KEY")
    groq_api_key: Optional[SecretStr] = Field(default=None, alias="GROQ_API_KEY")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def openai(self) -> OpenAIConfig:
        """Get OpenAI configuration from environment variables."""
        return OpenAIConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def anthropic(self) -> AnthropicConfig:
        """Get Anthropic configuration from environment variables."""
        return AnthropicConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def mastra(self) -> MastraConfig:
        """Get agent backend configuration from environment variables."""
        return MastraConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def ai_sdk(self) -> AISDKConfig:
        """Get multi-vendor routed configuration from environment variables."""
        return AISDKConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
