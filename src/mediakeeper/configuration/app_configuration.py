from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from mediakeeper.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_CHANNELS_FILE = "./config/channels.json"
DEFAULT_GRACE_WINDOW_SECONDS = 1.5
DEFAULT_SWEEP_INTERVAL_SECONDS = 0.5
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_NOTICE_SECONDS = 10.0
DEFAULT_AUTO_ARCHIVE_MINUTES = 60
DEFAULT_PROXY_API_BASE = "https://api.pluralkit.me/v2"
DEFAULT_PROXY_SETTLE_DELAY_SECONDS = 0.4
DEFAULT_PROXY_TIMEOUT_SECONDS = 5.0

# Durations Discord accepts for a thread's auto_archive_duration
ALLOWED_AUTO_ARCHIVE_MINUTES = (60, 1440, 4320, 10080)


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes the
    media-only and proxy tunables as typed properties. Every property falls back
    to its default when the key is absent or holds an unusable value, so a
    missing file simply means "run with defaults".
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
            logger.warning("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping, ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    def _number(self, section: str, key: str, default: float) -> float:
        raw = self._section(section).get(key, default)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] %s.%s=%r is not a number, using %s", section, key, raw, default)
            return default
        if value < 0:
            logger.warning("[APP CONFIGURATION] %s.%s=%r is negative, using %s", section, key, raw, default)
            return default
        return value

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file, replace the in-memory cache and return it."""
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
    # Media-only policy
    # --------------------------
    @property
    def channels_file(self) -> Path:
        """Path of the JSON list of monitored channel ids."""
        value = self._section("media_only").get("channels_file") or DEFAULT_CHANNELS_FILE
        return Path(str(value)).resolve()

    @property
    def grace_window_seconds(self) -> float:
        """How long a plain message waits for a proxy confirmation before it is migrated."""
        return self._number("media_only", "grace_window_seconds", DEFAULT_GRACE_WINDOW_SECONDS)

    @property
    def sweep_interval_seconds(self) -> float:
        value = self._number("media_only", "sweep_interval_seconds", DEFAULT_SWEEP_INTERVAL_SECONDS)
        return value if value > 0 else DEFAULT_SWEEP_INTERVAL_SECONDS

    @property
    def history_limit(self) -> int:
        """Number of recent channel messages scanned for a media anchor."""
        value = int(self._number("media_only", "history_limit", DEFAULT_HISTORY_LIMIT))
        return value if value > 0 else DEFAULT_HISTORY_LIMIT

    @property
    def notice_seconds(self) -> float:
        return self._number("media_only", "notice_seconds", DEFAULT_NOTICE_SECONDS)

    @property
    def thread_auto_archive_minutes(self) -> int:
        value = int(self._number("media_only", "thread_auto_archive_minutes", DEFAULT_AUTO_ARCHIVE_MINUTES))
        if value not in ALLOWED_AUTO_ARCHIVE_MINUTES:
            logger.warning(
                "[APP CONFIGURATION] thread_auto_archive_minutes=%s is not one of %s, using %s",
                value, ALLOWED_AUTO_ARCHIVE_MINUTES, DEFAULT_AUTO_ARCHIVE_MINUTES,
            )
            return DEFAULT_AUTO_ARCHIVE_MINUTES
        return value

    # --------------------------
    # Identity proxy service
    # --------------------------
    @property
    def proxy_api_base(self) -> str:
        value = self._section("proxy").get("api_base") or DEFAULT_PROXY_API_BASE
        return str(value).rstrip("/")

    @property
    def proxy_settle_delay_seconds(self) -> float:
        """Delay before the proxy lookup so the service can commit its record."""
        return self._number("proxy", "settle_delay_seconds", DEFAULT_PROXY_SETTLE_DELAY_SECONDS)

    @property
    def proxy_timeout_seconds(self) -> float:
        value = self._number("proxy", "timeout_seconds", DEFAULT_PROXY_TIMEOUT_SECONDS)
        return value if value > 0 else DEFAULT_PROXY_TIMEOUT_SECONDS


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
