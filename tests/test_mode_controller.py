"""
Tests for ModeController strategies
"""
import threading
import time
from unittest.mock import Mock

import pytest

from autohide.config import Config
from autohide.errors import WatchAbortedError
from autohide.orchestration import ModeController, OutcomeReporter, RunMode
from autohide.value_objects import HideAction, HideOutcome, SweepSummary
from tests import make_tree, requires_dot_hiding, requires_inotify, wait_until


class FakeWatcher:
    """Records lifecycle calls in a shared log"""

    def __init__(self, calls, dropped_events=0, fatal_error=None):
        self.calls = calls
        self.dropped_events = dropped_events
        self.fatal_error = fatal_error
        self.kwargs = None
        self.expected = None

    def subscribe(self):
        self.calls.append("subscribe")

    def expect_renames(self, outcomes):
        self.expected = list(outcomes)
        self.calls.append("expect_renames")

    def start(self):
        self.calls.append("start")

    def stop(self):
        self.calls.append("stop")

    def wait(self, timeout=None):
        return self.fatal_error is not None


@pytest.fixture
def calls():
    return []


@pytest.fixture
def cancelled():
    event = threading.Event()
    event.set()
    return event


def make_controller(config, calls, cancel_event=None, **watcher_kwargs):
    watcher = FakeWatcher(calls, **watcher_kwargs)

    def factory(hide_config, **kwargs):
        watcher.kwargs = kwargs
        return watcher

    controller = ModeController(config, hider=Mock(marker="."), cancel_event=cancel_event,
                                watcher_factory=factory)
    controller.sweeper = Mock()
    controller.sweeper.run.side_effect = lambda hide: calls.append("sweep") or []
    return controller, watcher


class TestRunMode:
    """Test flag resolution"""

    @pytest.mark.parametrize("immediate,watch,expected", [
        (False, False, RunMode.IMMEDIATE),
        (True, False, RunMode.IMMEDIATE),
        (False, True, RunMode.WATCH),
        (True, True, RunMode.IMMEDIATE_THEN_WATCH),
    ])
    def test_from_flags(self, immediate, watch, expected):
        assert RunMode.from_flags(immediate=immediate, watch=watch) is expected


class TestStrategies:
    """Call order of each strategy with fakes"""

    @pytest.fixture
    def config(self, tmp_path, hide_config):
        return Config(hide=hide_config(tmp_path))

    def test_immediate_only_sweeps(self, config, calls):
        controller, _ = make_controller(config, calls)

        summary = controller.run(RunMode.IMMEDIATE)

        assert calls == ["sweep"]
        assert isinstance(summary, SweepSummary)

    def test_watch_never_sweeps(self, config, calls, cancelled):
        controller, _ = make_controller(config, calls, cancel_event=cancelled)

        assert controller.run(RunMode.WATCH) is None
        assert calls == ["start", "stop"]

    def test_immediate_then_watch_subscribes_before_sweeping(self, config, calls, cancelled):
        controller, _ = make_controller(config, calls, cancel_event=cancelled)

        summary = controller.run(RunMode.IMMEDIATE_THEN_WATCH)

        assert calls == ["subscribe", "sweep", "expect_renames", "start", "stop"]
        assert summary.total == 0

    def test_dropped_events_trigger_reconciliation(self, config, calls, cancelled):
        controller, _ = make_controller(config, calls, cancel_event=cancelled, dropped_events=3)

        controller.run(RunMode.IMMEDIATE_THEN_WATCH)

        assert calls == ["subscribe", "sweep", "expect_renames", "start", "sweep", "stop"]

    def test_sweep_renames_passed_to_watcher(self, config, calls, cancelled, tmp_path):
        controller, watcher = make_controller(config, calls, cancel_event=cancelled)
        hidden = HideOutcome.hidden(tmp_path / "a.txt", tmp_path / ".a.txt")
        controller.sweeper.run.side_effect = lambda hide: [hidden]

        controller.run(RunMode.IMMEDIATE_THEN_WATCH)

        assert watcher.expected == [hidden]

    def test_watcher_abort_is_raised(self, config, calls):
        controller, _ = make_controller(
            config, calls, fatal_error=WatchAbortedError("Watcher event loop crashed: boom")
        )

        with pytest.raises(WatchAbortedError):
            controller.run(RunMode.WATCH)
        assert calls[-1] == "stop"

    def test_watcher_shares_hider_and_reporter(self, config, calls, cancelled):
        controller, watcher = make_controller(config, calls, cancel_event=cancelled)

        controller.run(RunMode.WATCH)

        assert watcher.kwargs["hider"] is controller.hider
        assert watcher.kwargs["selector"] is controller.selector
        assert watcher.kwargs["watcher_config"] is config.watcher
        assert watcher.kwargs["on_outcome"] == controller.reporter.report

    def test_sweep_reports_summary(self, config):
        reporter = Mock(spec=OutcomeReporter)
        controller = ModeController(config, hider=Mock(marker="."), reporter=reporter)
        controller.sweeper = Mock()
        controller.sweeper.run.return_value = []

        summary = controller.sweep()

        reporter.report_all.assert_called_once_with(summary)


@requires_inotify
@requires_dot_hiding
class TestImmediateThenWatch:
    """End to end with the real sweeper and watcher"""

    def test_existing_and_new_matches_hidden(self, tmp_path, hide_config, fast_watcher_config):
        root = make_tree(tmp_path / "d", "old.txt", "keep.md")
        config = Config(hide=hide_config(root, file_extensions=["txt"]), watcher=fast_watcher_config)
        reporter = Mock(wraps=OutcomeReporter())
        controller = ModeController(config, reporter=reporter)
        result = {}

        runner = threading.Thread(target=lambda: result.update(summary=controller.run(RunMode.IMMEDIATE_THEN_WATCH)))
        runner.start()
        try:
            assert wait_until(lambda: (root / ".old.txt").exists())
            (root / "new.txt").write_text("x")
            assert wait_until(lambda: (root / ".new.txt").exists())
            time.sleep(0.3)
        finally:
            controller.cancel()
            runner.join(timeout=10)

        assert not runner.is_alive()
        summary = result["summary"]
        assert summary.paths(HideAction.HIDDEN) == [root / "old.txt"]
        assert (root / "keep.md").exists()
        # Only the new file went through the watcher; the sweep's rename was not replayed
        watched = [c.args[0] for c in reporter.report.call_args_list]
        assert [(o.path, o.action) for o in watched] == [(root / "new.txt", HideAction.HIDDEN)]
