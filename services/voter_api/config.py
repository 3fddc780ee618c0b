"""Configuration management for the Voter API service."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    SERVICE_NAME: str = "voter-api"
    API_VERSION: str = "v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 1080

    # Rate limiting
    RATE_LIMIT: str = "100000/second"
    RATE_LIMIT_ENABLED: bool = True

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def log_level(self) -> str:
        """Effective log level; DEBUG forces debug output."""
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()


settings = Settings()
