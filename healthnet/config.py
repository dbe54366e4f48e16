"""
Application configuration settings for HealthNet.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables prefixed with HEALTHNET_."""

    model_config = SettingsConfigDict(env_prefix="HEALTHNET_", env_file=".env", extra="ignore")

    # Simulated network behaviour
    LATENCY_SECONDS: float = 0.3

    # Client-local persistent storage
    STORAGE_FILE: str = "session.json"
    KEY_FILE: str = "secret.key"

    # Sessions and credentials
    TOKEN_TTL_SECONDS: int = 86400
    RESET_CODE_TTL_MINUTES: int = 15

    # Populate the store with the demo dataset on startup
    SEED_DATA: bool = True


settings = Settings()
