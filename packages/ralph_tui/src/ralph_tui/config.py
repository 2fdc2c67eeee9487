"""Configuration for ralph_tui.

Constants with environment overrides, collected into a validated settings
model, plus the logging setup.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

VERSION = "0.1.0"

APP_NAME = "ralph"
ENV_PREFIX = f"{APP_NAME.upper()}_TUI_"

# Interrupt timing
DOUBLE_PRESS_MS = 2000
ESCAPE_TIMEOUT_MS = 100

# Viewport
SCROLL_MARGIN = 2

# Exit status used when a double Ctrl+C forces the process down
FORCE_EXIT_CODE = 130

LOGGER_NAME = "ralph_tui"


def env_name(setting: str) -> str:
    """Get the environment variable name for a setting (e.g. RALPH_TUI_LOG_LEVEL)."""
    return f"{ENV_PREFIX}{setting.upper()}"


def _color_enabled() -> bool:
    # https://no-color.org: any non-empty NO_COLOR disables colour
    if os.environ.get("NO_COLOR"):
        return False
    flag = os.environ.get(env_name("color"))
    if flag is None:
        return True
    return flag.strip().lower() not in ("0", "false", "no", "off")


class TuiSettings(BaseModel):
    """Runtime settings for the terminal engine."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    double_press_ms: int = Field(default=DOUBLE_PRESS_MS, gt=0, alias="doublePressMs")
    escape_timeout_ms: int = Field(default=ESCAPE_TIMEOUT_MS, gt=0, alias="escapeTimeoutMs")
    scroll_margin: int = Field(default=SCROLL_MARGIN, ge=0, alias="scrollMargin")
    color: bool = True
    log_level: str = Field(default="WARNING", alias="logLevel")
    log_file: Path | None = Field(default=None, alias="logFile")
    force_exit_code: int = Field(default=FORCE_EXIT_CODE, ge=0, le=255, alias="forceExitCode")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls) -> TuiSettings:
        """Build settings from defaults overridden by RALPH_TUI_* variables.

        Returns:
            Validated settings

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        values: dict[str, object] = {"color": _color_enabled()}
        for field in ("double_press_ms", "escape_timeout_ms", "scroll_margin",
                      "log_level", "log_file", "force_exit_code"):
            raw = os.environ.get(env_name(field))
            if raw:
                values[field] = raw
        return cls.model_validate(values)


def configure_logging(settings: TuiSettings) -> logging.Logger:
    """Attach handlers to the package logger.

    The UI owns stdout, so records only go to a file when one is configured.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(settings.log_level.upper())
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if settings.log_file is not None:
        handler: logging.Handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        handler = logging.NullHandler()
    logger.addHandler(handler)
    logger.propagate = settings.log_file is None
    return logger
