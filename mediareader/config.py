import json
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import (
    API_ENDPOINT,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TEMPERATURE,
)
from .models import RunConfig

CONFIG_ROOT_DIR = Path.home() / ".media-reader"
CONFIG_DIR_ENV = "MEDIA_READER_CONFIG_DIR"

_INT_KEYS = {"max_tokens"}
_FLOAT_KEYS = {"temperature", "request_timeout"}


def get_default_config_dir() -> Path:
    env_override = os.getenv(CONFIG_DIR_ENV)
    if env_override:
        return Path(env_override).expanduser()
    return CONFIG_ROOT_DIR


def get_default_config_path() -> Path:
    return get_default_config_dir() / "config.json"


def mask_api_key(key: str) -> str:
    """Hide all but the last four characters of an API key."""
    if not key:
        return ""
    return "*" * max(0, len(key) - 4) + key[-4:]


class AppConfig:
    """Settings manager: reads, merges with defaults, and saves the JSON config."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else get_default_config_path()
        self.load_warning: str | None = None
        self.defaults: Dict[str, Any] = {
            "api_key": "",
            "model": DEFAULT_MODEL,
            "temperature": DEFAULT_TEMPERATURE,
            "max_tokens": DEFAULT_MAX_TOKENS,
            "endpoint": API_ENDPOINT,
            "request_timeout": DEFAULT_REQUEST_TIMEOUT,
            "output_dir": "media_reader_output",
        }
        self.settings = self.load_config()

    def _preserve_corrupt_config(self) -> Path | None:
        """Keep a copy of the unreadable config so users can inspect what went wrong."""
        if not self.config_path.exists():
            return None
        suffix = self.config_path.suffix or ".json"
        backup = self.config_path.with_suffix(suffix + ".corrupt")
        counter = 1
        while backup.exists():
            backup = self.config_path.with_suffix(f"{suffix}.corrupt{counter}")
            counter += 1
        try:
            shutil.copy2(self.config_path, backup)
            return backup
        except OSError:
            return None

    def load_config(self) -> Dict[str, Any]:
        self.load_warning = None
        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    raw_settings = json.load(f)
                if isinstance(raw_settings, dict):
                    return {**self.defaults, **raw_settings}
                self.load_warning = f"Config at {self.config_path} is not a JSON object. Using defaults."
            except (json.JSONDecodeError, OSError) as exc:
                backup = self._preserve_corrupt_config()
                note = f"Failed to parse config at {self.config_path}: {exc}. Using defaults."
                if backup:
                    note += f" Saved unreadable copy as {backup.name}."
                self.load_warning = note
        return dict(self.defaults)

    def save_config(self) -> bool:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self.settings, f, indent=4, ensure_ascii=False)
            return True
        except OSError:
            return False

    def get(self, key: str) -> Any:
        """Return a setting, coercing numeric keys and falling back to defaults on bad values."""
        if key in _INT_KEYS:
            try:
                return int(self.settings.get(key, self.defaults.get(key, 0)))
            except (TypeError, ValueError):
                return int(self.defaults.get(key, 0))
        if key in _FLOAT_KEYS:
            try:
                return float(self.settings.get(key, self.defaults.get(key, 0.0)))
            except (TypeError, ValueError):
                return float(self.defaults.get(key, 0.0))
        return self.settings.get(key, self.defaults.get(key))

    def set(self, key: str, value: Any) -> bool:
        """Update a setting and immediately persist the config."""
        self.settings[key] = value
        return self.save_config()

    def build_run_config(
        self,
        prompt: str,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> RunConfig:
        """Layer explicit overrides on top of stored settings. Validation happens at run start."""
        return RunConfig(
            api_key=api_key if api_key is not None else str(self.get("api_key") or ""),
            model=model or str(self.get("model") or DEFAULT_MODEL),
            temperature=temperature if temperature is not None else self.get("temperature"),
            max_tokens=max_tokens if max_tokens is not None else self.get("max_tokens"),
            prompt_text=prompt,
        )

    def masked_settings(self) -> Dict[str, Any]:
        shown = {**self.defaults, **self.settings}
        shown["api_key"] = mask_api_key(str(shown.get("api_key") or ""))
        return shown
