"""Runtime settings for mvpkit applications.

Settings resolve in four layers, lowest first: dataclass defaults, the JSON
settings file, caller overrides passed to :meth:`SettingsStore.load`, and
``MVPKIT_*`` environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = ["Settings", "SettingsStore", "load_settings", "ENV_OVERRIDES"]

LOGGER = logging.getLogger(__name__)

_SETTINGS_DIR = Path.home() / ".mvpkit"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

ENV_OVERRIDES: Mapping[str, str] = {
    "MVPKIT_LOG_LEVEL": "log_level",
    "MVPKIT_LOG_DIR": "log_dir",
    "MVPKIT_DEBUG_LOGGING": "debug_logging",
    "MVPKIT_DEBUG_EVENT_LOGGING": "debug_event_logging",
    "MVPKIT_STRICT_DISPATCH": "strict_dispatch",
    "MVPKIT_AUTO_REFRESH": "auto_refresh",
}


@dataclass(slots=True)
class Settings:
    """Application-level toggles persisted between sessions.

    Attributes:
        log_level: Root logging level name.
        log_dir: Directory for the rotating log file; ``None`` uses the default.
        log_to_console: Mirror log records to ``stderr``.
        debug_logging: Force ``DEBUG`` regardless of ``log_level``.
        debug_event_logging: Log every aggregator publish.
        strict_dispatch: Dispatchers raise on unknown actions.
        auto_refresh: Dispatchers re-evaluate predicates after each execution.
    """

    log_level: str = "INFO"
    log_dir: str | None = None
    log_to_console: bool = True
    debug_logging: bool = False
    debug_event_logging: bool = False
    strict_dispatch: bool = False
    auto_refresh: bool = True

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_logging else self.log_level


_FIELD_NAMES = frozenset(field.name for field in fields(Settings))
_BOOL_FIELDS = frozenset(
    field.name for field in fields(Settings) if isinstance(field.default, bool)
)


class SettingsStore:
    """JSON file backing for :class:`Settings`."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Read the settings file and apply caller and environment overrides.

        A missing or unreadable file yields defaults. A file written by an
        older version is rewritten in the current format.
        """

        payload = self._read_payload()
        settings = self._from_payload(payload) if payload else Settings()

        if payload and payload.get("version") != _SETTINGS_VERSION:
            LOGGER.debug(
                "Settings file %s has version %s; rewriting as %s",
                self._path,
                payload.get("version"),
                _SETTINGS_VERSION,
            )
            try:
                self.save(settings)
            except OSError as exc:
                LOGGER.warning("Failed to migrate settings file %s: %s", self._path, exc)

        if overrides:
            settings = _merge(settings, overrides, source="caller")
        env_overrides = {
            field_name: os.environ[env_name]
            for env_name, field_name in ENV_OVERRIDES.items()
            if env_name in os.environ
        }
        if env_overrides:
            settings = _merge(settings, env_overrides, source="environment")
        return settings

    def save(self, settings: Settings) -> Path:
        """Write ``settings`` through a temporary file and atomic rename."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _from_payload(self, payload: Mapping[str, Any]) -> Settings:
        known = {key: value for key, value in payload.items() if key in _FIELD_NAMES}
        ignored = sorted(set(payload) - _FIELD_NAMES - {"version"})
        if ignored:
            LOGGER.debug("Ignoring unknown settings keys: %s", ignored)
        return _merge(Settings(), known, source="file")

    def _read_payload(self) -> Dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain a JSON object", self._path)
            return {}
        return payload


def load_settings(path: Path | str | None = None, **overrides: Any) -> Settings:
    """Shortcut for ``SettingsStore(path).load(overrides=...)``."""

    return SettingsStore(path).load(overrides=overrides or None)


def _merge(settings: Settings, values: Mapping[str, Any], *, source: str) -> Settings:
    """Return ``settings`` with known, non-``None`` ``values`` applied."""

    updates: Dict[str, Any] = {}
    for key, value in values.items():
        if key not in _FIELD_NAMES or value is None:
            continue
        try:
            updates[key] = _coerce(key, value)
        except ValueError as exc:
            LOGGER.warning("Ignoring %s setting %s=%r: %s", source, key, value, exc)
    if updates:
        LOGGER.debug("Applying %s settings: %s", source, sorted(updates))
        settings = replace(settings, **updates)
    return settings


def _coerce(key: str, value: Any) -> Any:
    if key in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError("expected a boolean")
    text = str(value).strip()
    if key == "log_dir" and not text:
        return None
    return text
