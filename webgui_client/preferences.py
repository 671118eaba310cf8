import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

THEME_KEY = "theme"
DARK = "dark"
LIGHT = "light"


class PreferenceStore:
    """
    A small key-value store for UI preferences, persisted as a JSON file.

    A missing or unreadable file behaves like an empty store. Writes
    rewrite the whole file.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Args:
            path: Location of the JSON file. None keeps preferences in memory only.
        """
        self.path = Path(path) if path is not None else None
        self._values: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preference file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring preference file {self.path}: not a JSON object")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)


class ThemePreference:
    """Light/dark theme choice backed by a PreferenceStore."""

    def __init__(self, store: PreferenceStore, system_prefers_dark: bool = False):
        self.store = store
        self.system_prefers_dark = system_prefers_dark

    @property
    def dark_mode(self) -> bool:
        """A saved choice wins; otherwise the system preference applies."""
        saved = self.store.get(THEME_KEY)
        if saved == DARK:
            return True
        if saved == LIGHT:
            return False
        return self.system_prefers_dark

    def toggle(self) -> str:
        """Flips the theme, persists it and returns the new value."""
        theme = LIGHT if self.dark_mode else DARK
        self.store.set(THEME_KEY, theme)
        return theme
