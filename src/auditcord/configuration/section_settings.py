from typing import Any, Dict


class SectionSettings:
    """Typed accessor around one top-level mapping of the YAML config.

    Sections expose `get`, `as_dict` and their own typed properties.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data


class CacheSettings(SectionSettings):
    """``cache:`` section. A missing URL selects the no-op store."""

    @property
    def url(self) -> str | None:
        val = self.data.get("url")
        return str(val) if val else None

    @property
    def key_prefix(self) -> str:
        return str(self.data.get("key_prefix") or "auditcord")

    @property
    def max_connections(self) -> int:
        return int(self.data.get("max_connections", 10))


class RateLimitSettings(SectionSettings):
    """``rate_limit:`` section."""

    @property
    def window_seconds(self) -> int:
        return int(self.data.get("window_seconds", 60))

    @property
    def max_hits(self) -> int:
        return int(self.data.get("max_hits", 5))


class UserlogSettings(SectionSettings):
    """``userlog:`` section."""

    @property
    def ignore_window_seconds(self) -> float:
        return float(self.data.get("ignore_window_seconds", 10.0))

    @property
    def audit_lookback_entries(self) -> int:
        return int(self.data.get("audit_lookback_entries", 25))

    @property
    def attribution_window_seconds(self) -> int:
        return int(self.data.get("attribution_window_seconds", 20))

    @property
    def query_limit_max(self) -> int:
        return int(self.data.get("query_limit_max", 200))
