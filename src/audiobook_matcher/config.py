"""Matcher configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

_VALID_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class MatcherConfig(BaseSettings):
    """All matcher configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Keyword catalog (Audible) --
    audible_region: str = "com"
    audible_timeout: float = 10.0
    audible_num_results: int = 25
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    # -- Author/work catalog (Audnexus) --
    audnexus_base_url: str = "https://api.audnex.us"
    audnexus_region: str = "us"
    audnexus_timeout: float = 8.0

    # -- Matching --
    keyword_score_floor: float = 10
    keyword_max_candidates: int = 5
    fuzzy_title_threshold: float = 0.4

    # -- Logging --
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _VALID_LEVELS:
            raise ConfigError(f"Unknown log level: {value!r}")
        return level

    @property
    def audible_base_url(self) -> str:
        return f"https://api.audible.{self.audible_region}/1.0"

    def setup_logging(self) -> None:
        """Configure loguru for the matcher."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level,
            filter=_default_extra,
        )

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                str(self.log_file),
                format=log_format,
                level="DEBUG",
                rotation="10 MB",
                retention="30 days",
                filter=_default_extra,
            )
