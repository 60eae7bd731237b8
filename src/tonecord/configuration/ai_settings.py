import os
from typing import Any, Dict

DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEFAULT_MODEL_NAME = "deepseek-chat"
DEFAULT_API_KEY_ENV = "DEEPSEEK_API_KEY"


class AISettings:
    """Helper exposing typed accessors for the AI provider configuration.

    Wraps the ``ai_settings`` mapping of the application config. The API key
    itself is never stored in the YAML file: ``api_key_env`` names the
    environment variable that holds it.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Return the underlying mapping."""
        return self.data

    @property
    def base_url(self) -> str:
        return str(self.data.get("base_url") or DEFAULT_BASE_URL)

    @property
    def model_name(self) -> str:
        return str(self.data.get("model_name") or DEFAULT_MODEL_NAME)

    @property
    def api_key_env(self) -> str:
        return str(self.data.get("api_key_env") or DEFAULT_API_KEY_ENV)

    @property
    def api_key(self) -> str | None:
        return os.getenv(self.api_key_env) or None

    @property
    def temperature(self) -> float:
        return float(self.data.get("temperature", 0.2))

    @property
    def request_timeout(self) -> float:
        return float(self.data.get("request_timeout", 30.0))

    @property
    def max_retries(self) -> int:
        return int(self.data.get("max_retries", 1))

    @property
    def response_format(self) -> str:
        """Structured output mode: ``json_object`` (default) or ``json_schema``."""
        value = str(self.data.get("response_format", "json_object")).lower()
        return value if value in ("json_object", "json_schema") else "json_object"

    @property
    def analyze_prompt(self) -> str | None:
        return self.data.get("analyze_prompt") or None

    @property
    def correction_prompt(self) -> str | None:
        return self.data.get("correction_prompt") or None

    @property
    def answer_prompt(self) -> str | None:
        return self.data.get("answer_prompt") or None
