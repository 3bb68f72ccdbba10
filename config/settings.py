"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine and classifier configuration from environment variables."""

    default_country_code: str = "LK"
    gemini_api_key: str = ""
    llm_default_model: str = "gemini/gemini-2.5-flash"
    reverse_tolerance: float = 0.01
    reverse_max_iterations: int = 50
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
