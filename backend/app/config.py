from functools import lru_cache
import logging
import os
import sys
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.utils.path_utils import resolve_local_path


logger = logging.getLogger(__name__)


VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""
    pass


class Settings(BaseSettings):
    """Application configuration pulled from environment variables or .env file."""

    # Database settings
    sqlite_db_path: str = "homelab.db"

    # Seed the store with a demo topology when it is empty
    enable_mock_data: bool = False

    # File name offered by the export endpoint
    export_filename: str = "topology.json"

    log_level: str = "INFO"

    # CORS settings
    # Comma-separated list of allowed origins, or "*" for all (not recommended)
    cors_allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Environment (development, staging, production)
    environment: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    @property
    def resolved_db_path(self) -> str:
        return resolve_local_path(self.sqlite_db_path)

    def validate_required(self) -> list[str]:
        """Validate required configuration settings.

        Returns a list of error messages for invalid settings.
        Warnings are logged but not returned.
        """
        errors: list[str] = []
        warnings: list[str] = []

        db_path = self.resolved_db_path
        if not db_path:
            errors.append("SQLITE_DB_PATH is required but not set")
        elif db_path != ":memory:":
            parent = os.path.dirname(os.path.abspath(db_path))
            if not os.path.isdir(parent):
                errors.append(f"Database directory not found: {parent}")
            elif not os.access(parent, os.W_OK):
                errors.append(f"Database directory not writable: {parent}")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(
                f"LOG_LEVEL must be one of {', '.join(sorted(VALID_LOG_LEVELS))}, got {self.log_level!r}"
            )

        if not self.export_filename.endswith(".json"):
            warnings.append("EXPORT_FILENAME does not end in .json")

        # Check CORS settings in production
        is_production = self.environment.lower() == "production"
        default_cors = "http://localhost:5173,http://localhost:3000"

        if is_production:
            if self.cors_allowed_origins == default_cors:
                errors.append(
                    "CORS_ALLOWED_ORIGINS is using default localhost values in production. "
                    "Set CORS_ALLOWED_ORIGINS to your actual domain(s) or this is a security risk."
                )
            if self.cors_allowed_origins == "*":
                errors.append(
                    "CORS_ALLOWED_ORIGINS is set to '*' (allow all) in production. "
                    "This is a security risk. Set specific allowed origins."
                )
            if self.enable_mock_data:
                warnings.append("ENABLE_MOCK_DATA is True in production; demo nodes will be seeded")

        # Log warnings
        for warning in warnings:
            logger.warning(f"Config warning: {warning}")

        return errors


def validate_config_on_startup(settings: Settings) -> None:
    """Validate configuration and exit if critical settings are missing."""
    errors = settings.validate_required()

    if errors:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        print("\nConfiguration Error:", file=sys.stderr)
        print("The following required settings are missing or invalid:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        print("\nPlease check your .env file or environment variables.", file=sys.stderr)
        raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

    logger.info("Configuration validated successfully")


def configure_logging(settings: Settings) -> None:
    level = settings.log_level.upper()
    if level not in VALID_LOG_LEVELS:
        level = "INFO"
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
