"""Configuration management for TajUploader."""

import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir, user_log_dir

__all__ = [
    "Config",
    "StravaSettings",
    "TajiSettings",
    "SyncSettings",
    "setup_logging",
    "CREDENTIALS_FILENAME",
]

logger = logging.getLogger(__name__)

APP_NAME = "TajUploader"
APP_AUTHOR = "TajUploader"

CREDENTIALS_FILENAME = "taju.env"

# Strava defaults
DEFAULT_REDIRECT_PORT = 9191
DEFAULT_AUTH_TIMEOUT = 300  # seconds
DEFAULT_SCOPE = "read,activity:read"
DEFAULT_PER_PAGE = 100

# Taji100 defaults
DEFAULT_TAJI_URL = "https://taji100.com"

# Sync settings
DEFAULT_SYNC_INTERVAL_HOURS = 12
DEFAULT_WINDOW_START = "2025-02-01"
DEFAULT_WINDOW_END = "2025-03-01"
DEFAULT_GOAL_MILES = 100.0


@dataclass
class StravaSettings:
    """Strava OAuth and API settings."""

    redirect_port: int = DEFAULT_REDIRECT_PORT
    auth_timeout_seconds: int = DEFAULT_AUTH_TIMEOUT
    scope: str = DEFAULT_SCOPE
    per_page: int = DEFAULT_PER_PAGE

    @property
    def redirect_uri(self) -> str:
        return f"http://localhost:{self.redirect_port}"


@dataclass
class TajiSettings:
    """Taji100 site settings."""

    base_url: str = DEFAULT_TAJI_URL


@dataclass
class SyncSettings:
    """Sync configuration."""

    interval_hours: int = DEFAULT_SYNC_INTERVAL_HOURS
    window_start: str = DEFAULT_WINDOW_START  # YYYY-MM-DD, UTC midnight
    window_end: str = DEFAULT_WINDOW_END
    goal_miles: float = DEFAULT_GOAL_MILES

    @property
    def window(self) -> tuple[int, int]:
        """Sync window as (after, before) epoch seconds."""
        return _epoch(self.window_start), _epoch(self.window_end)


def _epoch(day: str) -> int:
    parsed = datetime.strptime(day, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


@dataclass
class Config:
    """Main configuration object."""

    credentials_file: Optional[str] = None
    strava: StravaSettings = field(default_factory=StravaSettings)
    taji: TajiSettings = field(default_factory=TajiSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    debug_mode: bool = False

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the configuration directory path."""
        return Path(user_config_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_log_dir(cls) -> Path:
        """Get the log directory path."""
        return Path(user_log_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_config_file(cls) -> Path:
        """Get the config file path."""
        return cls.get_config_dir() / "config.json"

    @property
    def credentials_path(self) -> Path:
        """Path of the credential store file."""
        if self.credentials_file:
            return Path(self.credentials_file).expanduser()
        return self.get_config_dir() / CREDENTIALS_FILENAME

    @classmethod
    def load(cls) -> "Config":
        """Load config from file, or return defaults."""
        config_file = cls.get_config_file()
        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    data = json.load(f)
                return cls._from_dict(data)
            except Exception as e:
                logger.warning(f"Failed to load config: {e}, using defaults")
        return cls()

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        strava_data = data.pop("strava", {})
        taji_data = data.pop("taji", {})
        sync_data = data.pop("sync", {})

        return cls(
            strava=StravaSettings(**strava_data) if strava_data else StravaSettings(),
            taji=TajiSettings(**taji_data) if taji_data else TajiSettings(),
            sync=SyncSettings(**sync_data) if sync_data else SyncSettings(),
            **{k: v for k, v in data.items() if k in cls.__dataclass_fields__},
        )

    def save(self) -> None:
        """Save config to file."""
        config_file = self.get_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)

        data = asdict(self)
        with open(config_file, "w") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Config saved to {config_file}")


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    log_dir = Config.get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "tajuploader.log"

    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )

    # Reduce noise from libraries
    for name in ("urllib3", "requests", "requests_oauthlib", "oauthlib", "apscheduler"):
        logging.getLogger(name).setLevel(logging.WARNING)
