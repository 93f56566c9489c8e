from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from auditcord.configuration.section_settings import CacheSettings, RateLimitSettings, UserlogSettings
from auditcord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()
DEFAULT_DB_PATH = "./data/app.db"

# Environment variable that overrides ``cache.url`` from the YAML file
CACHE_URL_ENV = "AUDITCORD_CACHE_URL"


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed section helpers for the database, cache, rate limiter and userlog
    pipeline. fcntl shared locks guard reads against concurrent writers.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        value = self._data.get(name, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns an empty dict when the file is missing or unreadable.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def database_path(self) -> Path:
        """Path to the SQLite file backing snapshots and activity events."""
        value = self._section("database").get("path") or DEFAULT_DB_PATH
        return Path(str(value)).resolve()

    @property
    def cache(self) -> CacheSettings:
        """Return the cache settings; the environment may override the URL."""
        section = dict(self._section("cache"))
        env_url = os.getenv(CACHE_URL_ENV)
        if env_url:
            section["url"] = env_url
        return CacheSettings(section)

    @property
    def rate_limit(self) -> RateLimitSettings:
        return RateLimitSettings(self._section("rate_limit"))

    @property
    def userlog(self) -> UserlogSettings:
        return UserlogSettings(self._section("userlog"))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
