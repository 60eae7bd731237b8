from __future__ import annotations
import os
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from tonecord.configuration.ai_settings import AISettings
from tonecord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path(os.getenv("TONECORD_CONFIG", "./config/app_config.yml")).resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` (or the file
    named by ``TONECORD_CONFIG``), exposes dictionary-like access helpers and
    typed shortcuts for every section the moderation pipeline consumes.
    Missing keys fall back to the documented defaults, so an absent file still
    produces a working configuration.
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
            logger.error("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping, using defaults.", self.config_path)
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

        Returns the raw mapping that was loaded (an empty dict on error).
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
    def ai_settings(self) -> AISettings:
        """Return the AI settings wrapped in an AISettings helper."""
        return AISettings(self._section("ai_settings"))

    @property
    def history_window_size(self) -> int:
        """Number of recent messages kept per conversation. Default 10."""
        return max(1, int(self._section("history").get("window_size", 10)))

    @property
    def history_ttl_seconds(self) -> int:
        """Lifetime of a conversation window after its last write. Default one day."""
        return int(self._section("history").get("ttl_seconds", 86400))

    @property
    def saturation_threshold(self) -> float:
        """Fill ratio above which a window is eligible for tone classification. Default 0.5."""
        return float(self._section("history").get("saturation_threshold", 0.5))

    @property
    def spam_check_enabled(self) -> bool:
        return bool(self._section("spam").get("enabled", True))

    @property
    def spam_window_seconds(self) -> int:
        """How long an author's last message is remembered for repeat detection."""
        return int(self._section("spam").get("window_seconds", 180))

    @property
    def stream_min_edit_interval(self) -> float:
        """Minimum seconds between two in-place edits of a streamed correction."""
        return float(self._section("streaming").get("min_edit_interval", 1.0))

    @property
    def stream_cursor(self) -> str:
        return str(self._section("streaming").get("cursor", " ▌"))

    @property
    def stream_max_message_length(self) -> int:
        """Longest text the chat platform accepts in a single message."""
        return int(self._section("streaming").get("max_message_length", 2000))

    @property
    def stream_channel_size(self) -> int:
        """Capacity of the queue between the AI stream and the renderer."""
        return max(1, int(self._section("streaming").get("channel_size", 32)))

    @property
    def profanity_lexicon_path(self) -> Path | None:
        """Optional YAML file replacing the packaged profanity lexicon."""
        value = self._section("profanity").get("lexicon_path")
        return Path(value).resolve() if value else None

    @property
    def moderation_log_max_entries(self) -> int:
        return int(self._section("moderation_log").get("max_entries", 5000))

    @property
    def moderation_log_retention_days(self) -> int:
        return int(self._section("moderation_log").get("retention_days", 30))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
