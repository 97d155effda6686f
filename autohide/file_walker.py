"""Sweeper - one complete hide pass over the configured roots"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator, List

from autohide.config import HideConfig, TargetKind
from autohide.errors import HideError
from autohide.file_filter import HideSelector
from autohide.platform_hider import PlatformHider
from autohide.value_objects import DRY_RUN_REASON, Entry, HideAction, HideOutcome

logger = logging.getLogger(__name__)


class Sweeper:
    """Walks roots and hides every matching entry

    Selection is delegated to HideSelector and the effect to PlatformHider,
    so this class only handles traversal and error containment.
    """

    def __init__(self, hider: PlatformHider, selector: HideSelector = None, max_workers: int = 4):
        self.hider = hider
        self.selector = selector or HideSelector(hider.marker)
        self.max_workers = max_workers

    def run(self, config: HideConfig) -> List[HideOutcome]:
        """Sweep all roots, returning one outcome per matched or failed entry"""
        if len(config.roots) <= 1 or self.max_workers <= 1:
            return [o for root in config.roots for o in self.sweep_root(root, config)]

        workers = min(self.max_workers, len(config.roots))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="autohide-sweep") as pool:
            per_root = pool.map(lambda root: self.sweep_root(root, config), config.roots)
            return [o for outcomes in per_root for o in outcomes]

    def sweep_root(self, root: Path, config: HideConfig) -> List[HideOutcome]:
        """Sweep a single root"""
        logger.debug(f"Sweeping {root} (recursive={config.recursive})")
        outcomes = []
        for item in self._walk(root, config.recursive):
            if isinstance(item, HideOutcome):
                outcomes.append(item)
                continue
            if self.selector.matches(item, config):
                outcomes.append(self.apply(item.path, config.dry_run))
        return outcomes

    def apply(self, path: Path, dry_run: bool) -> HideOutcome:
        """Hide path (or pretend to) and describe what happened"""
        if dry_run:
            return HideOutcome.skipped(path, DRY_RUN_REASON)
        try:
            action = self.hider.hide(path)
        except HideError as e:
            return HideOutcome.failed(path, str(e))
        if action is HideAction.ALREADY_HIDDEN:
            return HideOutcome.already_hidden(path)
        return HideOutcome.hidden(path, self.hider.hidden_path(path))

    def _walk(self, root: Path, recursive: bool) -> Iterator:
        """Yield entries below root, or FAILED outcomes for unreadable directories"""
        if not recursive:
            yield from self._scan_children(root)
            return
        errors = []
        # Bottom-up, so a directory is only renamed after its contents were handled
        for dirpath, dirnames, filenames in os.walk(root, topdown=False, onerror=errors.append):
            yield from self._drain(errors)
            parent = Path(dirpath)
            for name in filenames:
                yield Entry.of(parent / name, TargetKind.FILE)
            for name in dirnames:
                yield Entry.of(parent / name, TargetKind.DIRECTORY)
        yield from self._drain(errors)

    def _scan_children(self, directory: Path) -> Iterator:
        """Yield the immediate children of directory"""
        try:
            with os.scandir(directory) as entries:
                children = list(entries)
        except OSError as e:
            yield self._walk_failure(e, directory)
            return
        for child in children:
            try:
                is_dir = child.is_dir()
            except OSError as e:
                yield self._walk_failure(e, Path(child.path))
                continue
            kind = TargetKind.DIRECTORY if is_dir else TargetKind.FILE
            yield Entry.of(Path(child.path), kind)

    def _drain(self, errors: list) -> Iterator[HideOutcome]:
        while errors:
            error = errors.pop(0)
            yield self._walk_failure(error, Path(error.filename or "."))

    @staticmethod
    def _walk_failure(error: OSError, path: Path) -> HideOutcome:
        logger.debug(f"Cannot read {path}: {error}")
        return HideOutcome.failed(path, f"Cannot read directory: {error.strerror or error}")
