import json
import logging
from pathlib import Path
from typing import Any, Dict

import packnode_dev.settings as default_settings

log = logging.getLogger(__name__)


def coerce_override(default: Any, value: Any) -> Any:
    """
    Converts an override to the type of the setting's default value.

    Numbers may be given as JSON numbers or numeric strings and must not be
    negative; integer settings reject fractional values.

    :param default: The default value of the setting.
    :param value: The override as read from JSON or the command line.
    :return: The converted value.
    :raises ValueError: If `value` cannot stand in for the default.
    """
    if isinstance(default, Path):
        if not isinstance(value, (str, Path)) or not str(value):
            raise ValueError(f"expected a path, got {value!r}")
        return Path(value)
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"expected true or false, got {value!r}")
        return value
    if isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"expected a number, got {value!r}")
        try:
            number = type(default)(value)
            exact = float(value)
        except ValueError:
            raise ValueError(f"expected a number, got {value!r}") from None
        if number != exact:
            raise ValueError(f"expected a whole number, got {value!r}")
        if number < 0:
            raise ValueError(f"must not be negative, got {value!r}")
        return number
    if isinstance(default, str):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValueError(f"expected text, got {value!r}")
        return str(value)
    return value


class MergedSettings:
    """
    A singleton class that merges default settings with JSON/env overrides.

    This class provides a unified, attribute-based access point for all
    tool configuration. It follows a clear precedence:
    1. Base values from `settings.py`.
    2. Overrides from the environment / `.env` file (handled by `python-dotenv` in settings.py).
    3. Overrides from `overrides.json` for settings in `MODIFIABLE_SETTINGS`.

    Only the command layer reads this object. Every tool operation receives
    the paths and values it needs as explicit arguments.
    """

    def __init__(self, overrides_path: Path = None) -> None:
        """Initializes the settings object by loading defaults and overrides."""
        self._load_defaults()
        if overrides_path is not None:
            self.OVERRIDES_JSON_PATH = Path(overrides_path)
        self._load_overrides()
        self._derive_paths()

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings.py module as defaults."""
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _load_overrides(self) -> None:
        """
        Loads and applies settings from the `overrides.json` file.

        It will only apply overrides for keys that are explicitly listed in
        the `MODIFIABLE_SETTINGS` set in `settings.py`.
        """
        if not self.OVERRIDES_JSON_PATH.exists():
            return

        try:
            with self.OVERRIDES_JSON_PATH.open('r', encoding='utf-8') as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            log.error(f"Failed to load or parse overrides file '{self.OVERRIDES_JSON_PATH}': {e}")
            return

        if not isinstance(overrides, dict):
            log.error(f"Overrides file '{self.OVERRIDES_JSON_PATH}' must contain a JSON object. Ignoring.")
            return

        log.debug(f"Loading configuration overrides from {self.OVERRIDES_JSON_PATH}")
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self.MODIFIABLE_SETTINGS:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue

            try:
                value = coerce_override(getattr(self, key), value)
            except ValueError as e:
                log.warning(f"Invalid override for '{key}': {e}. Keeping the default.")
                continue
            setattr(self, key, value)
            log.debug(f"Overridden setting: {key} = {value}")

    def _derive_paths(self) -> None:
        """Recomputes settings that are derived from an overridable one."""
        self.BACKUP_DIRECTORIES = [self.BACKUP_ROOT / "customer", self.BACKUP_ROOT / "worker"]

    def save_overrides(self, overrides_to_save: Dict[str, Any]) -> None:
        """
        Saves the provided dictionary of settings to the overrides JSON file.

        The dictionary is filtered so only keys present in `MODIFIABLE_SETTINGS`
        are persisted. Path values are stored as strings.

        :param overrides_to_save: A dictionary of settings to persist.
        """
        filtered_overrides = {
            key: str(value) if isinstance(value, Path) else value
            for key, value in overrides_to_save.items()
            if key in self.MODIFIABLE_SETTINGS
        }

        if not filtered_overrides:
            log.warning("No modifiable settings provided to save.")
            return

        try:
            self.OVERRIDES_JSON_PATH.parent.mkdir(parents=True, exist_ok=True)
            with self.OVERRIDES_JSON_PATH.open('w', encoding='utf-8') as f:
                json.dump(filtered_overrides, f, indent=4)
            log.info(f"Configuration overrides saved to {self.OVERRIDES_JSON_PATH}")
        except OSError as e:
            log.error(f"Failed to write to overrides file '{self.OVERRIDES_JSON_PATH}': {e}")

    def get(self, item: str, default: Any = None) -> Any:
        """Provides dictionary-like access to settings with a default value."""
        return getattr(self, item, default)


# Create a singleton instance to be imported by other modules
effective_settings = MergedSettings()
