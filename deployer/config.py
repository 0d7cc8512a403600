"""Application configuration using pydantic-settings."""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file and override existing env vars
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Deployment pipeline
    scratch_root: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "commit-deployer"
    )
    manifest_name: str = "package.json"
    install_command: str = "npm install"
    default_build_command: str = "npm run build"
    stage_timeout_seconds: float = Field(default=900.0, gt=0)
    deployment_timeout_seconds: float | None = Field(default=3600.0, gt=0)

    # GitHub commit listing
    github_api_url: str = "https://api.github.com"
    github_timeout_seconds: float = 15.0
    commits_per_page: int = Field(default=20, ge=1, le=100)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_directory: str = "logs"
    log_file_name: str = "deployer.log"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
