"""
Pytest configuration and shared fixtures

Common fixtures used across multiple test files are defined here.
"""
from pathlib import Path
from unittest.mock import Mock

import pytest

from autohide.config import HideConfig, TargetKind, WatcherConfig
from autohide.platform_hider import DotPrefixHider
from tests import make_tree


@pytest.fixture
def tree(tmp_path):
    """Scenario tree: a.txt, b.log and sub/c.txt below a root directory"""
    root = tmp_path / "d"
    return make_tree(root, "a.txt", "b.log", "sub/c.txt")


@pytest.fixture
def hide_config():
    """Factory for HideConfig with test-friendly defaults"""
    def _build(roots, **overrides):
        if isinstance(roots, Path):
            roots = [roots]
        return HideConfig.build(roots=roots, **overrides)
    return _build


@pytest.fixture
def files_only():
    return [TargetKind.FILE]


@pytest.fixture
def fast_watcher_config():
    """Short debounce window so watch tests finish quickly"""
    return WatcherConfig(debounce_seconds=0.1, queue_size=1000, error_limit=20, error_window_seconds=5.0)


@pytest.fixture
def hider():
    return DotPrefixHider()


@pytest.fixture
def mock_observer_factory():
    """Observer factory returning a Mock observer whose schedule() returns a fresh watch"""
    observer = Mock()
    observer.schedule.side_effect = lambda handler, path, recursive=False: Mock(path=path)
    factory = Mock(return_value=observer)
    factory.observer = observer
    return factory
