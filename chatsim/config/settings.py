"""chatsim configuration module."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Global application settings loaded from environment."""

    # === OpenRouter ===
    openrouter_api_key: str = Field(default="", alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL"
    )
    openrouter_app_name: str = Field(default="chatsim", alias="OPENROUTER_APP_NAME")

    # === Models ===
    orchestrator_model: str = Field(default="openai/gpt-4o-mini", alias="ORCHESTRATOR_MODEL")
    persona_model: str = Field(default="anthropic/claude-sonnet-4", alias="PERSONA_MODEL")
    parsing_model: str = Field(default="openai/gpt-4o-mini", alias="PARSING_MODEL")

    # === Simulation ===
    orchestrator_temperature: float = Field(default=0.3, alias="ORCHESTRATOR_TEMPERATURE")
    persona_temperature: float = Field(default=0.7, alias="PERSONA_TEMPERATURE")
    persona_max_tokens: int = Field(default=500, alias="PERSONA_MAX_TOKENS")
    history_preview_chars: int = Field(default=150, alias="HISTORY_PREVIEW_CHARS")
    context_window: int = Field(default=10, alias="CONTEXT_WINDOW")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global Settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
