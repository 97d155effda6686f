"""Mode controller - sequences sweeps and watch sessions.

The run mode is resolved once into a strategy method; nothing below this
class checks mode flags.

IMMEDIATE_THEN_WATCH subscribes the watcher before sweeping, so changes made
during the sweep are buffered and processed once the watcher starts. The
notifications of the sweep's own renames are ignored. If the buffer overflowed
meanwhile, a reconciliation sweep runs after the start.
"""
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from autohide.config import Config
from autohide.file_filter import HideSelector
from autohide.file_walker import Sweeper
from autohide.orchestration.outcome_reporter import OutcomeReporter
from autohide.platform_hider import PlatformHider, get_platform_hider
from autohide.value_objects import SweepSummary
from autohide.watcher import Watcher

logger = logging.getLogger(__name__)


class RunMode(Enum):
    """Closed set of run strategies"""
    IMMEDIATE = "immediate"
    WATCH = "watch"
    IMMEDIATE_THEN_WATCH = "immediate_then_watch"

    @classmethod
    def from_flags(cls, immediate: bool, watch: bool) -> 'RunMode':
        """Resolve CLI switches; no switch at all means a single sweep"""
        if watch and immediate:
            return cls.IMMEDIATE_THEN_WATCH
        if watch:
            return cls.WATCH
        return cls.IMMEDIATE


class ModeController:
    """Runs the sweeper and/or watcher for one configuration"""

    # Granularity of the cancellation check while a watch session blocks
    WAIT_INTERVAL = 0.5

    def __init__(
        self,
        config: Config,
        hider: Optional[PlatformHider] = None,
        cancel_event: Optional[threading.Event] = None,
        watcher_factory: Optional[Callable[..., Watcher]] = None,
        reporter: Optional[OutcomeReporter] = None,
    ):
        self.config = config
        self.hider = hider or get_platform_hider()
        self.selector = HideSelector(self.hider.marker)
        self.cancel_event = cancel_event or threading.Event()
        self.reporter = reporter or OutcomeReporter()
        self.sweeper = Sweeper(self.hider, self.selector, config.sweep.max_workers)
        self._watcher_factory = watcher_factory or Watcher
        self._strategies = {
            RunMode.IMMEDIATE: self._run_immediate,
            RunMode.WATCH: self._run_watch,
            RunMode.IMMEDIATE_THEN_WATCH: self._run_immediate_then_watch,
        }

    def run(self, mode: RunMode) -> Optional[SweepSummary]:
        """Run mode to completion (or until cancelled for watch modes)"""
        logger.debug(f"Running in {mode.value} mode")
        return self._strategies[mode]()

    def cancel(self):
        """Ask a running watch session to finish"""
        self.cancel_event.set()

    def sweep(self) -> SweepSummary:
        """Run one sweep and report it"""
        summary = SweepSummary.from_outcomes(self.sweeper.run(self.config.hide))
        self.reporter.report_all(summary)
        return summary

    def _run_immediate(self) -> SweepSummary:
        return self.sweep()

    def _run_watch(self) -> None:
        watcher = self._create_watcher()
        try:
            watcher.start()
            self._block(watcher)
        finally:
            watcher.stop()
        self._raise_if_aborted(watcher)
        return None

    def _run_immediate_then_watch(self) -> SweepSummary:
        watcher = self._create_watcher()
        try:
            watcher.subscribe()
            summary = self.sweep()
            # The sweep's own renames are queued too
            watcher.expect_renames(summary.outcomes)
            watcher.start()
            if watcher.dropped_events:
                logger.warning(f"{watcher.dropped_events} change(s) dropped during the sweep, reconciling")
                self.sweep()
            self._block(watcher)
        finally:
            watcher.stop()
        self._raise_if_aborted(watcher)
        return summary

    def _create_watcher(self) -> Watcher:
        return self._watcher_factory(
            self.config.hide,
            watcher_config=self.config.watcher,
            hider=self.hider,
            selector=self.selector,
            on_outcome=self.reporter.report,
        )

    def _block(self, watcher: Watcher):
        """Wait for cancellation (event or Ctrl+C) or a watcher abort"""
        logger.info("Watching for changes, press Ctrl+C to stop")
        try:
            while not self.cancel_event.wait(self.WAIT_INTERVAL):
                if watcher.wait(0):
                    break
        except KeyboardInterrupt:
            logger.info("Interrupted")

    @staticmethod
    def _raise_if_aborted(watcher: Watcher):
        if watcher.fatal_error is not None:
            raise watcher.fatal_error
