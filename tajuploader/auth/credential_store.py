"""File-backed credential storage (dotenv format)."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

from ..errors import ConfigurationError

__all__ = [
    "CredentialStore",
    "SOURCE_CLIENT_ID",
    "SOURCE_CLIENT_SECRET",
    "SOURCE_TOKEN",
    "SINK_CSRF",
    "SINK_SESSION",
    "SINK_PARTICIPANT",
]

logger = logging.getLogger(__name__)

SOURCE_CLIENT_ID = "SOURCE_CLIENT_ID"
SOURCE_CLIENT_SECRET = "SOURCE_CLIENT_SECRET"
SOURCE_TOKEN = "SOURCE_TOKEN"
SINK_CSRF = "SINK_CSRF"
SINK_SESSION = "SINK_SESSION"
SINK_PARTICIPANT = "SINK_PARTICIPANT"

# Key names written by earlier releases
LEGACY_KEYS = {
    "TAJU_CLIENT_ID": SOURCE_CLIENT_ID,
    "TAJU_CLIENT_SECRET": SOURCE_CLIENT_SECRET,
    "STRAVA_TOKEN": SOURCE_TOKEN,
    "TAJI_CSRF": SINK_CSRF,
    "TAJI_SESSION": SINK_SESSION,
    "TAJI_PARTICIPANT": SINK_PARTICIPANT,
}


class CredentialStore:
    """Key/value credentials persisted to a local dotenv file.

    Loaded once at startup, mutated as sessions are established, and
    rewritten in full by save().
    """

    def __init__(self, path: Path):
        """Initialize credential store.

        Args:
            path: Location of the dotenv file
        """
        self.path = Path(path)
        self._values: dict[str, str] = {}

    def load(self) -> "CredentialStore":
        """Read the file into memory.

        Raises:
            ConfigurationError: If the file is missing or unreadable
        """
        if not self.path.is_file():
            raise ConfigurationError(
                f"Credentials file not found: {self.path}. "
                f"Create it with {SOURCE_CLIENT_ID} and {SOURCE_CLIENT_SECRET}."
            )
        try:
            raw = dotenv_values(self.path, interpolate=False, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read credentials file {self.path}: {e}") from e

        values = {}
        for key, value in raw.items():
            if value is None:
                continue
            if key in LEGACY_KEYS:
                # Current key name wins when both are present
                values.setdefault(LEGACY_KEYS[key], value)
                logger.info(f"Migrating legacy credential key {key}")
            else:
                values[key] = value
        self._values = values
        logger.info(f"Loaded {len(values)} credential entries from {self.path}")
        return self

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key) or None

    def require(self, key: str) -> str:
        """Get a value that must be present.

        Raises:
            ConfigurationError: If the key is absent or empty
        """
        value = self.get(key)
        if value is None:
            raise ConfigurationError(f"Missing required credential {key} in {self.path}")
        return value

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def has(self, *keys: str) -> bool:
        """Check that every key is present and non-empty."""
        return all(self.get(key) is not None for key in keys)

    def save(self) -> bool:
        """Rewrite the whole file.

        Returns:
            True if written successfully
        """
        lines = [f"{key}={_quote(value)}" for key, value in sorted(self._values.items())]
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
            tmp_path.chmod(0o600)
            os.replace(tmp_path, self.path)
            logger.info(f"Credentials saved to {self.path}")
            return True
        except OSError as e:
            logger.error(f"Failed to write credentials to {self.path}: {e}")
            return False


def _quote(value: str) -> str:
    """Single-quote a value the way python-dotenv parses it back."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
