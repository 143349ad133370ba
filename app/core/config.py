import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global configuration for environment variables."""

    APP_NAME: str = "SumSnap Landing"
    APP_VERSION: str = "0.1.0"
    ENV: str = os.getenv("ENV", "development")

    # Server config
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8080))
    CORS_ORIGINS: list[str] = ["*"]

    # Generative provider (Google AI Studio)
    GEMINI_API_KEY: str | None = None
    GEMINI_ENDPOINT: str = "https://generativelanguage.googleapis.com"
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Web search provider
    TAVILY_API_KEY: str | None = None
    TAVILY_ENDPOINT: str = "https://api.tavily.com/search"

    # Waitlist store
    NOTION_API_KEY: str | None = None
    NOTION_DATABASE_ID: str | None = None
    NOTION_VERSION: str = "2022-06-28"
    # Column names of the production waitlist database
    NOTION_NAME_PROPERTY: str = "이름"
    NOTION_EMAIL_PROPERTY: str = "이메일"

    # Debug
    DEBUG: bool = os.getenv("DEBUG", "True").lower() in ("1", "true")
    LOG_LEVEL: str = "DEBUG" if DEBUG else "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")


settings = Settings()
