"""
Configuration for autohide
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Tuple

from autohide.errors import ConfigValidationError


class TargetKind(Enum):
    """Kind of filesystem entry that may be hidden"""
    FILE = "file"
    DIRECTORY = "directory"


ALL_TARGET_KINDS = frozenset({TargetKind.FILE, TargetKind.DIRECTORY})


@dataclass(frozen=True)
class HideConfig:
    """What to hide and where.

    Build through HideConfig.build() so names and extensions are normalized
    once; the selector compares them as stored.
    """
    roots: Tuple[Path, ...]
    file_names: FrozenSet[str] = frozenset()
    file_extensions: FrozenSet[str] = frozenset()
    recursive: bool = False
    case_sensitive: bool = False
    dry_run: bool = False
    target_kinds: FrozenSet[TargetKind] = ALL_TARGET_KINDS

    def __post_init__(self):
        if not self.target_kinds:
            raise ConfigValidationError("At least one target kind (file or directory) is required")

    @classmethod
    def build(
        cls,
        roots: Iterable,
        file_names: Iterable[str] = (),
        file_extensions: Iterable[str] = (),
        recursive: bool = False,
        case_sensitive: bool = False,
        dry_run: bool = False,
        target_kinds: Optional[Iterable[TargetKind]] = None,
    ) -> 'HideConfig':
        """Create a normalized config from raw user input"""
        kinds = ALL_TARGET_KINDS if target_kinds is None else frozenset(target_kinds)
        return cls(
            roots=cls._unique_roots(roots),
            file_names=frozenset(cls._fold(n, case_sensitive) for n in file_names),
            file_extensions=frozenset(
                cls._fold(ext.lstrip('.'), case_sensitive) for ext in file_extensions
            ),
            recursive=recursive,
            case_sensitive=case_sensitive,
            dry_run=dry_run,
            target_kinds=kinds,
        )

    @property
    def matches_everything(self) -> bool:
        """True when no name or extension filter was given"""
        return not self.file_names and not self.file_extensions

    @staticmethod
    def _fold(value: str, case_sensitive: bool) -> str:
        return value if case_sensitive else value.lower()

    @staticmethod
    def _unique_roots(roots: Iterable) -> Tuple[Path, ...]:
        """Resolve roots to absolute paths, dropping duplicates in order"""
        seen = {}
        for root in roots:
            resolved = Path(root).expanduser().resolve()
            seen.setdefault(resolved, None)
        return tuple(seen)


@dataclass
class WatcherConfig:
    """File watcher configuration"""
    debounce_seconds: float = 0.5
    queue_size: int = 10000
    # Warn when error_limit failures happen within error_window_seconds
    error_limit: int = 20
    error_window_seconds: float = 5.0


@dataclass
class SweepConfig:
    """Sweep configuration"""
    max_workers: int = 4


@dataclass
class Config:
    """Main configuration container"""
    hide: HideConfig
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    sweep: SweepConfig = field(default_factory=SweepConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, hide: HideConfig) -> 'Config':
        """Create config from environment - delegates to EnvironmentConfigLoader"""
        from autohide.environment_config_loader import EnvironmentConfigLoader
        return EnvironmentConfigLoader().load(hide)
