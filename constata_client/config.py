"""
Configuration Management

Client settings loaded from environment variables (CONSTATA_ prefix) or a
.env file. Settings only select an environment by name; the endpoints and
trusted addresses themselves live in constata_client.environments.
"""
from typing import Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

from constata_client.environments import Environment, get_environment


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = ConfigDict(
        env_prefix="CONSTATA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================
    # Account
    # ============================================================
    environment: str = Field("production", description="Deployment: development, staging or production")
    encrypted_key: Optional[str] = Field(None, description="Encrypted key (hex) from your signature.json")
    password: Optional[str] = Field(None, description="Password for the encrypted key (prompted when unset)")

    # ============================================================
    # Transport
    # ============================================================
    timeout: float = Field(60.0, description="HTTP timeout in seconds")

    # ============================================================
    # Logging Configuration
    # ============================================================
    log_level: str = Field("INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )

    @property
    def environment_config(self) -> Environment:
        """Resolve the configured environment name."""
        return get_environment(self.environment)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get client settings (singleton).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
