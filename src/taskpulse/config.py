"""Configuration management for taskpulse."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.calendar import MONDAY

logger = logging.getLogger(__name__)

TASKPULSE_HOME = Path(os.environ.get("TASKPULSE_HOME", Path.home() / ".taskpulse"))
CONFIG_FILE = TASKPULSE_HOME / "config" / "taskpulse.conf"
DATA_DIR = TASKPULSE_HOME / "data"

WEEKDAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
WINDOWS = ("today", "week", "month", "all")
TYPES = ("all", "deadline", "recurring", "idea")


@dataclass
class Config:
    """taskpulse configuration."""

    store_path: Path = field(default_factory=lambda: DATA_DIR / "tasks.json")
    week_starts_on: int = MONDAY
    completed_label: str = "Completed"
    overdue_label: str = "Overdue"
    default_window: str = "all"
    default_type: str = "all"
    warning_threshold: float = 20.0


def parse_weekday(value: str) -> int:
    """Weekday name, three-letter prefix or index (0=Sunday) to an index."""
    value = value.strip().lower()
    if value.isdigit() and 0 <= int(value) <= 6:
        return int(value)
    for i, name in enumerate(WEEKDAY_NAMES):
        if len(value) >= 3 and name.startswith(value):
            return i
    raise ValueError(f"Unknown weekday: {value!r}")


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from taskpulse.conf, falling back to defaults."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "store_path":
                config.store_path = Path(value).expanduser()
            case "week_starts_on":
                try:
                    config.week_starts_on = parse_weekday(value)
                except ValueError as e:
                    logger.warning(f"Invalid WEEK_STARTS_ON, keeping default: {e}")
            case "completed_label":
                config.completed_label = value
            case "overdue_label":
                config.overdue_label = value
            case "default_window":
                if value.lower() in WINDOWS:
                    config.default_window = value.lower()
                else:
                    logger.warning(f"Invalid DEFAULT_WINDOW: {value}")
            case "default_type":
                if value.lower() in TYPES:
                    config.default_type = value.lower()
                else:
                    logger.warning(f"Invalid DEFAULT_TYPE: {value}")
            case "warning_threshold":
                try:
                    config.warning_threshold = float(value)
                except ValueError:
                    logger.warning(f"Invalid WARNING_THRESHOLD: {value}")
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    return config
