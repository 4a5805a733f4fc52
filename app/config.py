from pydantic_settings import BaseSettings


class ConfigurationError(Exception):
    """Required configuration is missing."""

    pass


class Settings(BaseSettings):
    anthropic_api_key: str = ""
    gemini_api_key: str = ""

    recipe_model: str = "claude-sonnet-4-5-20250929"
    recipe_max_tokens: int = 8192

    # Anthropic API timeout settings (seconds)
    anthropic_timeout: int = 120
    anthropic_connect_timeout: int = 10

    # Text-to-speech (returns raw 16-bit PCM)
    speech_model: str = "gemini-2.5-flash-preview-tts"
    speech_voice: str = "Kore"
    speech_sample_rate: int = 24000
    speech_channels: int = 1

    upload_dir: str = "uploads/fridge"

    session_cookie_name: str = "kitchen_session"
    session_max_age: int = 86400  # 1 day

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()


def validate_credentials(config: Settings = settings) -> None:
    """
    Fail fast when an API credential is missing.

    Raises:
        ConfigurationError: Listing every unset credential
    """
    missing = []
    if not config.anthropic_api_key:
        missing.append("ANTHROPIC_API_KEY")
    if not config.gemini_api_key:
        missing.append("GEMINI_API_KEY")

    if missing:
        raise ConfigurationError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )
