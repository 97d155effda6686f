"""
Value objects for autohide.

Principles:
- Immutable data structures
- Named instead of primitive types
- Entries and change events are built per processing step and never stored
"""

import os
import stat
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from autohide.config import TargetKind


@dataclass(frozen=True)
class Entry:
    """A filesystem object observed during a sweep or event"""
    path: Path
    name: str
    extension: Optional[str]
    kind: TargetKind

    @classmethod
    def of(cls, path: Path, kind: TargetKind) -> 'Entry':
        """Create an entry when the kind is already known (e.g. from a directory scan)"""
        return cls(path=path, name=path.name, extension=cls._extension(path), kind=kind)

    @classmethod
    def from_path(cls, path: Path) -> 'Entry':
        """Stat path and create an entry.

        A dangling symlink is an entry of its own (kind FILE), as in a
        directory scan. Raises OSError (usually FileNotFoundError) if the
        path is gone.
        """
        try:
            mode = os.stat(path).st_mode
        except FileNotFoundError:
            mode = os.lstat(path).st_mode
        kind = TargetKind.DIRECTORY if stat.S_ISDIR(mode) else TargetKind.FILE
        return cls.of(path, kind)

    @staticmethod
    def _extension(path: Path) -> Optional[str]:
        suffix = path.suffix
        return suffix[1:] if suffix else None


class ChangeKind(Enum):
    """Normalized kind of a filesystem notification"""
    CREATED = "created"
    RENAMED = "renamed"
    REMOVED = "removed"
    OTHER = "other"


@dataclass(frozen=True)
class ChangeEvent:
    """A normalized watch notification.

    For renames, path is the destination and src_path the old location.
    """
    path: Path
    kind: ChangeKind
    timestamp: float = field(default_factory=time.monotonic)
    is_directory: bool = False
    src_path: Optional[Path] = None


DRY_RUN_REASON = "dry run"


class HideAction(Enum):
    """What happened when hiding one entry"""
    HIDDEN = "hidden"
    ALREADY_HIDDEN = "already_hidden"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class HideOutcome:
    """Result of attempting to hide one entry"""
    path: Path
    action: HideAction
    reason: Optional[str] = None
    hidden_path: Optional[Path] = None

    @classmethod
    def hidden(cls, path: Path, hidden_path: Path) -> 'HideOutcome':
        return cls(path=path, action=HideAction.HIDDEN, hidden_path=hidden_path)

    @classmethod
    def already_hidden(cls, path: Path) -> 'HideOutcome':
        return cls(path=path, action=HideAction.ALREADY_HIDDEN, hidden_path=path)

    @classmethod
    def skipped(cls, path: Path, reason: str) -> 'HideOutcome':
        return cls(path=path, action=HideAction.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, path: Path, reason: str) -> 'HideOutcome':
        return cls(path=path, action=HideAction.FAILED, reason=reason)

    @property
    def is_dry_run(self) -> bool:
        return self.action is HideAction.SKIPPED and self.reason == DRY_RUN_REASON


@dataclass(frozen=True)
class SweepSummary:
    """Aggregated outcomes of one sweep"""
    hidden: int = 0
    already_hidden: int = 0
    skipped: int = 0
    failed: int = 0
    outcomes: tuple = ()

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[HideOutcome]) -> 'SweepSummary':
        """Count outcomes by action"""
        outcomes = tuple(outcomes)
        counts = {action: 0 for action in HideAction}
        for outcome in outcomes:
            counts[outcome.action] += 1
        return cls(
            hidden=counts[HideAction.HIDDEN],
            already_hidden=counts[HideAction.ALREADY_HIDDEN],
            skipped=counts[HideAction.SKIPPED],
            failed=counts[HideAction.FAILED],
            outcomes=outcomes,
        )

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def paths(self, *actions: HideAction) -> List[Path]:
        """Paths of outcomes with any of the given actions"""
        return [o.path for o in self.outcomes if o.action in actions]

    def __str__(self) -> str:
        return (f"{self.hidden} hidden, {self.already_hidden} already hidden, "
                f"{self.skipped} skipped, {self.failed} failed")
