"""User configuration for pyclasp.

Settings are read from environment variables first, then from
``~/.config/pyclasp/config`` (``KEY=value`` lines).
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://script.googleapis.com/v1"

ACCESS_TOKEN_ENV = "PYCLASP_ACCESS_TOKEN"
API_URL_ENV = "PYCLASP_API_URL"
CONFIG_DIR_ENV = "PYCLASP_CONFIG_DIR"


class Config:
    """Access token and API endpoint configuration."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ``$PYCLASP_CONFIG_DIR`` or ``~/.config/pyclasp``
        """
        if config_dir is None:
            env_dir = os.environ.get(CONFIG_DIR_ENV)
            config_dir = (
                Path(env_dir) if env_dir else Path.home() / ".config" / "pyclasp"
            )
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Path of the config file."""
        return self.config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        if not path.exists():
            return {}

        values: dict[str, str] = {}
        try:
            for line in path.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip('"').strip("'")
        except OSError as e:
            logger.warning("Cannot read config file %s: %s", path, e)
        return values

    def _write_value(self, key: str, value: str) -> None:
        values = self._read_file()
        values[key] = value
        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        path.write_text(
            "".join(f"{k}={v}\n" for k, v in values.items()), encoding="utf-8"
        )
        # The file holds a credential.
        path.chmod(0o600)

    @property
    def access_token(self) -> Optional[str]:
        """OAuth access token used for API requests."""
        return os.environ.get(ACCESS_TOKEN_ENV) or self._read_file().get(
            ACCESS_TOKEN_ENV
        )

    @property
    def api_url(self) -> str:
        """Base URL of the script API."""
        return (
            os.environ.get(API_URL_ENV)
            or self._read_file().get(API_URL_ENV)
            or DEFAULT_API_URL
        )

    def is_configured(self) -> bool:
        """Whether an access token is available."""
        return bool(self.access_token)

    def save_access_token(self, token: str) -> None:
        """Store the access token in the config file."""
        self._write_value(ACCESS_TOKEN_ENV, token)


config = Config()
