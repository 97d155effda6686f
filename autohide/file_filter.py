"""Hide selection policy - decides which entries qualify for hiding

Following the same principles as the rest of the package:
- Single Responsibility: only matching logic, no filesystem access
- Small methods
- Stateless, so the sweeper and the watcher can share one instance
"""
from typing import Optional

from autohide.config import HideConfig
from autohide.value_objects import Entry


class HideSelector:
    """Determines whether an entry matches the hide criteria

    Names and extensions in HideConfig are already case-folded; only the
    entry side is folded here.
    """

    def __init__(self, hidden_marker: Optional[str] = "."):
        self.hidden_marker = hidden_marker

    def matches(self, entry: Entry, config: HideConfig) -> bool:
        """Return True when entry should be hidden under config"""
        if entry.kind not in config.target_kinds:
            return False
        if config.matches_everything:
            return True
        return self._name_matches(entry, config) or self._extension_matches(entry, config)

    def _name_matches(self, entry: Entry, config: HideConfig) -> bool:
        """Check the name, also in its unhidden form"""
        name = self._fold(entry.name, config)
        if name in config.file_names:
            return True
        return self._unhidden(name) in config.file_names

    def _extension_matches(self, entry: Entry, config: HideConfig) -> bool:
        """Check the extension against configured extensions"""
        if not entry.extension:
            return False
        return self._fold(entry.extension.lstrip('.'), config) in config.file_extensions

    def _unhidden(self, name: str) -> str:
        """Strip one leading hidden marker (".secret" -> "secret")"""
        if self.hidden_marker and name.startswith(self.hidden_marker):
            return name[len(self.hidden_marker):]
        return name

    @staticmethod
    def _fold(value: str, config: HideConfig) -> str:
        return value if config.case_sensitive else value.lower()
