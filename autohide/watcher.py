# Copyright (c) 2024 autohide Contributors
# SPDX-License-Identifier: MIT

"""
File system watcher that hides matching entries as they appear.

Native notifications arrive on watchdog's observer thread. The handler only
normalizes them into ChangeEvents and puts them on a bounded queue; a single
consumer thread owned by the Watcher does everything else (scope checks,
watch bookkeeping, debouncing, hiding).

Native event mapping (watchdog event_type -> ChangeKind):
    created -> CREATED
    moved   -> RENAMED   (path is the destination)
    deleted -> REMOVED   (watch bookkeeping only)
    modified, opened, closed, closed_no_write -> OTHER (dropped)
"""
import logging
import os
import threading
import time
from collections import OrderedDict, deque
from enum import Enum
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Callable, Dict, Iterable, List, Optional, Set

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from autohide.config import HideConfig, TargetKind, WatcherConfig
from autohide.errors import HideError, WatchAbortedError, WatcherStateError, WatchSubscriptionError
from autohide.file_filter import HideSelector
from autohide.platform_hider import PlatformHider, get_platform_hider
from autohide.value_objects import (
    DRY_RUN_REASON,
    ChangeEvent,
    ChangeKind,
    Entry,
    HideAction,
    HideOutcome,
)

logger = logging.getLogger(__name__)

NATIVE_EVENT_KINDS = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_MOVED: ChangeKind.RENAMED,
    EVENT_TYPE_DELETED: ChangeKind.REMOVED,
}

# How long the consumer blocks on an empty queue before re-checking for stop
POLL_INTERVAL = 0.2


def _as_path(raw) -> Path:
    return Path(os.fsdecode(raw))


def normalize_event(event: FileSystemEvent) -> ChangeEvent:
    """Translate a watchdog event into a ChangeEvent"""
    kind = NATIVE_EVENT_KINDS.get(event.event_type, ChangeKind.OTHER)
    if kind is ChangeKind.RENAMED:
        return ChangeEvent(
            path=_as_path(event.dest_path),
            kind=kind,
            is_directory=event.is_directory,
            src_path=_as_path(event.src_path),
        )
    return ChangeEvent(path=_as_path(event.src_path), kind=kind, is_directory=event.is_directory)


class HideEventHandler(FileSystemEventHandler):
    """Normalizes native events and hands them to the consumer queue"""

    def __init__(self, events: Queue, put_timeout: float = 1.0):
        super().__init__()
        self.events = events
        self.put_timeout = put_timeout
        self.dropped = 0
        self._lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent):
        """Enqueue every event the engine can act on"""
        change = normalize_event(event)
        if change.kind is ChangeKind.OTHER:
            return
        try:
            self.events.put(change, timeout=self.put_timeout)
        except Full:
            with self._lock:
                self.dropped += 1
            logger.warning(f"Event queue full, dropped {change.kind.value} event for {change.path}")


class WatchRegistry:
    """The set of directories currently subscribed, one watch each

    Guarded by a lock; the consumer thread is the only writer once the
    watcher is running.
    """

    def __init__(self, observer, handler: FileSystemEventHandler):
        self._observer = observer
        self._handler = handler
        self._watches: Dict[Path, object] = {}
        self._lock = threading.Lock()

    def add(self, directory: Path) -> bool:
        """Subscribe to directory. Returns False if it was already watched.

        Raises OSError when the platform refuses the subscription.
        """
        with self._lock:
            if directory in self._watches:
                return False
            self._watches[directory] = self._observer.schedule(
                self._handler, str(directory), recursive=False
            )
            return True

    def remove_tree(self, directory: Path) -> int:
        """Unsubscribe directory and everything watched below it"""
        with self._lock:
            doomed = [d for d in self._watches if d == directory or d.is_relative_to(directory)]
            for path in doomed:
                self._unschedule(self._watches.pop(path))
        if doomed:
            logger.debug(f"Stopped watching {len(doomed)} director(ies) under {directory}")
        return len(doomed)

    def directories(self) -> Set[Path]:
        with self._lock:
            return set(self._watches)

    def clear(self):
        """Unsubscribe everything"""
        with self._lock:
            for watch in self._watches.values():
                self._unschedule(watch)
            self._watches.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._watches)

    def _unschedule(self, watch):
        try:
            self._observer.unschedule(watch)
        except KeyError:
            # Observer already dropped it (e.g. directory removed)
            pass


class EventDebouncer:
    """Coalesces bursts of events per path (trailing edge)

    A path becomes due once debounce_seconds passed without a new event
    for it. Only used from the consumer thread.
    """

    def __init__(self, debounce_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.delay = debounce_seconds
        self.clock = clock
        self._pending: "OrderedDict[Path, tuple]" = OrderedDict()
        self._suppressed: Dict[Path, float] = {}

    def add(self, change: ChangeEvent):
        """Add or refresh the pending event for change.path"""
        self._pending.pop(change.path, None)
        self._pending[change.path] = (change, self.clock())

    def discard_tree(self, directory: Path):
        """Forget pending events for directory and its descendants"""
        for path in [p for p in self._pending if p == directory or p.is_relative_to(directory)]:
            del self._pending[path]

    def next_delay(self) -> Optional[float]:
        """Seconds until the oldest pending event is due, None if nothing is pending"""
        if not self._pending:
            return None
        _, seen = next(iter(self._pending.values()))
        return max(0.0, seen + self.delay - self.clock())

    def pop_due(self) -> List[ChangeEvent]:
        """Remove and return every event whose window has elapsed"""
        now = self.clock()
        due = []
        while self._pending:
            path, (change, seen) = next(iter(self._pending.items()))
            if now - seen < self.delay:
                break
            del self._pending[path]
            due.append(change)
        return due

    def suppress(self, path: Path, seconds: float):
        """Ignore the next event for path (our own rename) within seconds"""
        self._suppressed[path] = self.clock() + seconds

    def is_suppressed(self, path: Path) -> bool:
        """Consume a suppression for path if one is active"""
        now = self.clock()
        for expired in [p for p, until in self._suppressed.items() if until < now]:
            del self._suppressed[expired]
        return self._suppressed.pop(path, None) is not None

    def __len__(self) -> int:
        return len(self._pending)


class ErrorBudget:
    """Tracks failures in a sliding window to flag failure floods"""

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window_seconds
        self.clock = clock
        self._failures = deque()

    def record_failure(self) -> bool:
        """Record one failure, returning True when limit failures fell within the window

        The window starts over after each True, so a steady flood is reported
        once per limit failures rather than on every one.
        """
        now = self.clock()
        self._failures.append(now)
        while self._failures and now - self._failures[0] > self.window:
            self._failures.popleft()
        if self.limit > 0 and len(self._failures) >= self.limit:
            self._failures.clear()
            return True
        return False


class WatcherState(Enum):
    IDLE = "idle"
    BUFFERING = "buffering"
    WATCHING = "watching"
    STOPPED = "stopped"


class Watcher:
    """Watch session over the configured roots

    Lifecycle: IDLE -> (subscribe) BUFFERING -> (start) WATCHING -> (stop) STOPPED.
    While BUFFERING, notifications queue up without being processed.
    """

    def __init__(
        self,
        config: HideConfig,
        watcher_config: Optional[WatcherConfig] = None,
        hider: Optional[PlatformHider] = None,
        selector: Optional[HideSelector] = None,
        on_outcome: Optional[Callable[[HideOutcome], None]] = None,
        observer_factory: Callable = Observer,
    ):
        self.config = config
        self.settings = watcher_config or WatcherConfig()
        self.hider = hider or get_platform_hider()
        self.selector = selector or HideSelector(self.hider.marker)
        self.on_outcome = on_outcome
        self.events: Queue = Queue(maxsize=self.settings.queue_size)
        self.handler = HideEventHandler(self.events)
        self.debouncer = EventDebouncer(self.settings.debounce_seconds)
        self.error_budget = ErrorBudget(self.settings.error_limit, self.settings.error_window_seconds)
        self.registry: Optional[WatchRegistry] = None
        self.state = WatcherState.IDLE
        self.fatal_error: Optional[WatchAbortedError] = None
        self._observer_factory = observer_factory
        self._observer = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._finished = threading.Event()

    @property
    def dropped_events(self) -> int:
        """Notifications lost because the queue was full"""
        return self.handler.dropped

    # ============ Lifecycle ============

    def subscribe(self):
        """Register watches on all roots; events are buffered until start()"""
        with self._lock:
            self._require(WatcherState.IDLE, "subscribe")
            observer = self._observer_factory()
            observer.start()
            self._observer = observer
            self.registry = WatchRegistry(observer, self.handler)

            if not self._subscribe_roots():
                self._shutdown_observer()
                self.state = WatcherState.STOPPED
                self._finished.set()
                raise WatchSubscriptionError("Could not watch any of the configured directories")
            self.state = WatcherState.BUFFERING
        logger.info(f"Watching {len(self.registry)} director(ies)")
        logger.debug(f"Watched: {', '.join(sorted(str(d) for d in self.registry.directories()))}")

    def start(self):
        """Start processing events (subscribing first if needed)"""
        if self.state is WatcherState.IDLE:
            self.subscribe()
        with self._lock:
            if self.state is WatcherState.WATCHING:
                return
            self._require(WatcherState.BUFFERING, "start")
            self._thread = threading.Thread(target=self._consume, name="autohide-watcher", daemon=True)
            self._thread.start()
            self.state = WatcherState.WATCHING
        logger.info("File watcher started")

    def stop(self):
        """Stop watching and release every watch handle. Terminal."""
        with self._lock:
            if self.state is WatcherState.STOPPED:
                return
            self.state = WatcherState.STOPPED
        self._stop_requested.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=10)
        if self.registry:
            self.registry.clear()
        self._shutdown_observer()
        self._finished.set()
        logger.info("File watcher stopped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the watcher stopped or aborted; True if it did"""
        return self._finished.wait(timeout)

    def expect_renames(self, outcomes: Iterable[HideOutcome]):
        """Ignore the notifications of hides made elsewhere (e.g. a sweep) while buffering

        Only valid before start(), while the consumer thread is not running.
        """
        with self._lock:
            self._require(WatcherState.BUFFERING, "expect renames on")
            for outcome in outcomes:
                if outcome.action is HideAction.HIDDEN and outcome.hidden_path not in (None, outcome.path):
                    self.debouncer.suppress(outcome.hidden_path, self._suppress_seconds)

    @property
    def _suppress_seconds(self) -> float:
        return max(1.0, 2 * self.settings.debounce_seconds)

    def _require(self, expected: WatcherState, operation: str):
        if self.state is not expected:
            raise WatcherStateError(f"Cannot {operation} a watcher that is {self.state.value}")

    def _shutdown_observer(self):
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)

    def _subscribe_roots(self) -> int:
        """Watch every root (and existing subdirectories when recursive)"""
        subscribed = 0
        for root in self.config.roots:
            try:
                self.registry.add(root)
            except OSError as e:
                logger.error(f"Cannot watch {root}: {e}")
                continue
            subscribed += 1
            if self.config.recursive:
                self._watch_tree(root, seed=False)
        return subscribed

    # ============ Event loop ============

    def _consume(self):
        """Single consumer: drain the queue, process debounced events"""
        try:
            while not self._stop_requested.is_set():
                change = self._next_event()
                if change is not None:
                    self._accept(change)
                for due in self.debouncer.pop_due():
                    if self._stop_requested.is_set():
                        break
                    self._process(due)
                    if self.fatal_error:
                        return
        except Exception as e:
            logger.exception("Watcher event loop crashed")
            self.fatal_error = WatchAbortedError(f"Watcher event loop crashed: {e}")
        finally:
            self._finished.set()

    def _next_event(self) -> Optional[ChangeEvent]:
        delay = self.debouncer.next_delay()
        timeout = POLL_INTERVAL if delay is None else min(delay, POLL_INTERVAL)
        try:
            return self.events.get(timeout=timeout)
        except Empty:
            return None

    def _accept(self, change: ChangeEvent):
        """Bookkeeping at dequeue time, then hand the event to the debouncer"""
        if change.kind is ChangeKind.REMOVED:
            # Includes the subscription-closed notification of a removed watched directory
            if self.registry.remove_tree(change.path) and not len(self.registry):
                logger.warning("No directories left to watch")
            return
        if change.kind is ChangeKind.RENAMED and change.src_path is not None:
            self._relocate_if_watched(change.src_path, change.path)
        if not self._in_scope(change.path):
            return
        if self.debouncer.is_suppressed(change.path):
            logger.debug(f"Ignoring own rename to {change.path}")
            return
        if change.kind is ChangeKind.CREATED and change.is_directory and self.config.recursive:
            # Watch before anything else is processed so children created right away are seen
            self._watch_tree(change.path, seed=True)
        self.debouncer.add(change)

    def _process(self, change: ChangeEvent):
        """Re-stat the path, select, hide and emit the outcome"""
        path = change.path
        try:
            entry = Entry.from_path(path)
        except OSError:
            self._emit(HideOutcome.skipped(path, "vanished before it could be processed"))
            return
        if not self.selector.matches(entry, self.config):
            return
        if self.config.dry_run:
            self._emit(HideOutcome.skipped(path, DRY_RUN_REASON))
            return

        hidden_path = self.hider.hidden_path(path)
        try:
            action = self.hider.hide(path)
        except HideError as e:
            self._emit(HideOutcome.failed(path, str(e)))
            return

        if action is HideAction.ALREADY_HIDDEN:
            self._emit(HideOutcome.already_hidden(path))
            return
        if hidden_path != path:
            self.debouncer.suppress(hidden_path, self._suppress_seconds)
            if entry.kind is TargetKind.DIRECTORY:
                self._relocate_if_watched(path, hidden_path)
        self._emit(HideOutcome.hidden(path, hidden_path))

    def _relocate_if_watched(self, old: Path, new: Path):
        """Move watches (and pending events) of a renamed directory to its new name"""
        if not self.registry.remove_tree(old):
            return
        self.debouncer.discard_tree(old)
        if self.config.recursive and self._in_scope(new):
            self._watch_tree(new, seed=True)

    def _watch_tree(self, directory: Path, seed: bool):
        """Watch directory and its subdirectories; optionally queue existing children"""
        for dirpath, dirnames, filenames in os.walk(directory, onerror=self._walk_error):
            current = Path(dirpath)
            try:
                self.registry.add(current)
            except OSError as e:
                self._emit(HideOutcome.failed(current, f"Cannot watch directory: {e}"))
            if not seed:
                continue
            for name in filenames:
                self.debouncer.add(ChangeEvent(current / name, ChangeKind.CREATED))
            for name in dirnames:
                self.debouncer.add(ChangeEvent(current / name, ChangeKind.CREATED, is_directory=True))

    def _walk_error(self, error: OSError):
        logger.debug(f"Cannot list {error.filename}: {error}")

    def _in_scope(self, path: Path) -> bool:
        """Below a root; immediate children only unless recursive"""
        for root in self.config.roots:
            if path == root or not path.is_relative_to(root):
                continue
            if self.config.recursive or path.parent == root:
                return True
        return False

    def _emit(self, outcome: HideOutcome):
        if outcome.action is HideAction.FAILED and self.error_budget.record_failure():
            # Per-entry failures never end the session
            logger.warning(
                f"{self.settings.error_limit} failures within "
                f"{self.settings.error_window_seconds:g}s, still watching"
            )
        if self.on_outcome is None:
            return
        try:
            self.on_outcome(outcome)
        except Exception:
            logger.exception(f"Outcome callback failed for {outcome.path}")
