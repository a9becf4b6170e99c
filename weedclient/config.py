"""Configuration management for the volume client."""

import json
import os
import shutil
from pathlib import Path
from typing import Optional

from common.constants import (
    DEFAULT_MASTER_URL,
    DEFAULT_MAX_FILE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    LOCATION_CACHE_SWEEP_INTERVAL_SECONDS,
    LOCATION_CACHE_TTL_SECONDS
)
from common.logging_config import get_logger

logger = get_logger(__name__)


class Config:
    """Client configuration, optionally backed by a JSON file."""

    DEFAULT_CONFIG = {
        "master_url": os.environ.get("WEED_MASTER_URL", DEFAULT_MASTER_URL),
        "timeout": DEFAULT_TIMEOUT_SECONDS,
        "max_file_size": int(os.environ.get("WEED_MAX_FILE_SIZE", str(DEFAULT_MAX_FILE_SIZE_BYTES))),
        "cache_ttl": LOCATION_CACHE_TTL_SECONDS,
        "cache_sweep_interval": LOCATION_CACHE_SWEEP_INTERVAL_SECONDS,
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically
                ~/.weedclient/config.json); None uses defaults only
        """
        self.config_path = Path(config_path) if config_path is not None else None
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        config = self.DEFAULT_CONFIG.copy()
        if self.config_path is None:
            return config

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(
                    f"Unreadable config {self.config_path}, using defaults "
                    f"[backup={backup_path}, error={e}]"
                )
                shutil.copy(self.config_path, backup_path)
                return config

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            json.dump(config, f, indent=2)
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        if self.config_path is None:
            return
        with open(self.config_path, 'w') as f:
            json.dump(self.data, f, indent=2)

    def get_master_url(self) -> str:
        """
        Get master base URL.

        Returns:
            Base URL string (e.g., "http://localhost:9333")
        """
        return self.data.get('master_url', DEFAULT_MASTER_URL).rstrip('/')

    def set_master_url(self, url: str) -> None:
        self.data['master_url'] = url
        self.save()

    def get_timeout(self) -> float:
        return self.data.get('timeout', DEFAULT_TIMEOUT_SECONDS)

    def get_max_file_size(self) -> int:
        """
        Get the upload size cap.

        Returns:
            Maximum bytes read from an upload stream
        """
        return int(self.data.get('max_file_size', DEFAULT_MAX_FILE_SIZE_BYTES))

    def get_cache_ttl(self) -> float:
        return self.data.get('cache_ttl', LOCATION_CACHE_TTL_SECONDS)

    def get_cache_sweep_interval(self) -> float:
        return self.data.get('cache_sweep_interval', LOCATION_CACHE_SWEEP_INTERVAL_SECONDS)
