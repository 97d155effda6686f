"""Test package for autohide

Shared test utilities and markers.
"""
import sys
import time

import pytest


requires_dot_hiding = pytest.mark.skipif(
    sys.platform == "win32",
    reason="Leading-dot hiding is not used on Windows"
)

requires_inotify = pytest.mark.skipif(
    not sys.platform.startswith("linux"),
    reason="Watch timing tests rely on inotify"
)


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.05) -> bool:
    """Poll predicate until it returns True or timeout expires"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def make_tree(root, *relative_paths: str):
    """Create files (and "dir/" entries) below root"""
    for rel in relative_paths:
        path = root / rel
        if rel.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(rel)
    return root.resolve()
