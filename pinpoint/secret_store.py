"""Application secrets read from the environment or a settings file."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Mapping, MutableMapping

from platformdirs import user_config_dir

_PREFIX = "secrets/"
# Keys seeded from environment variables on first run.
_RUNTIME_ENV_KEYS = ("azureTtsApiKey", "azureSttApiKey")


def to_env_var_name(key: str) -> str:
    """Convert a camelCase key to UPPER_SNAKE_CASE."""
    parts: list[str] = []
    for ch in key:
        if ch.isupper() and parts:
            parts.append("_")
        parts.append(ch.upper())
    return "".join(parts)


def _default_settings_path() -> Path:
    return Path(user_config_dir("PinPoint")) / "settings.json"


class SecretsManager:
    """Reads secrets from the environment first, then from a settings file.

    A key ``fooBarKey`` is looked up as the environment variable
    ``FOO_BAR_KEY`` and as ``secrets/fooBarKey`` in the settings file.
    *defaults* holds values that initialize_defaults() seeds when absent.
    """

    def __init__(
        self,
        settings_path: str | os.PathLike[str] | None = None,
        environ: Mapping[str, str] | None = None,
        defaults: Mapping[str, str] | None = None,
    ) -> None:
        self.settings_path = Path(settings_path) if settings_path else _default_settings_path()
        self._environ = environ if environ is not None else os.environ
        self._defaults = dict(defaults or {})

    def _load(self) -> dict[str, str]:
        try:
            with self.settings_path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except (FileNotFoundError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: MutableMapping[str, str]) -> None:
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.settings_path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.settings_path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def read(self, key: str) -> str:
        """Return the secret, or an empty string if it is not set anywhere."""
        env_val = self._environ.get(to_env_var_name(key), "")
        if env_val:
            return env_val
        value = self._load().get(_PREFIX + key, "")
        return value if isinstance(value, str) else str(value)

    def write(self, key: str, value: str) -> None:
        """Store the secret in the settings file."""
        data = self._load()
        data[_PREFIX + key] = value
        self._save(data)

    def initialize_defaults(self) -> None:
        """Seed empty settings from built-in defaults and runtime environment variables."""
        data = self._load()
        changed = False

        for key, value in self._defaults.items():
            if not data.get(_PREFIX + key) and value:
                data[_PREFIX + key] = value
                changed = True

        for key in _RUNTIME_ENV_KEYS:
            setting_key = _PREFIX + key
            if not data.get(setting_key):
                env_val = self._environ.get(to_env_var_name(key), "")
                if env_val:
                    data[setting_key] = env_val
                    changed = True

        if changed:
            self._save(data)