# Copyright (c) 2024 autohide Contributors
# SPDX-License-Identifier: MIT

"""
Exception hierarchy for autohide.

Fatal errors (bad roots, no watch subscription, a crashed event loop) end
the run. HideError subclasses are per-entry and become FAILED outcomes.
"""


class AutohideError(Exception):
    """Base class for all autohide errors"""
    pass


class ConfigValidationError(AutohideError):
    """Configuration validation failed"""
    pass


class WatchSubscriptionError(AutohideError):
    """No filesystem subscription could be established"""
    pass


class WatchAbortedError(AutohideError):
    """Watch session ended because its event loop crashed"""
    pass


class WatcherStateError(AutohideError):
    """Watcher operation called in the wrong lifecycle state"""
    pass


class HideError(AutohideError):
    """Hiding a single path failed"""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class NameCollisionError(HideError):
    """The hidden name of the path is already taken"""

    def __init__(self, path, target):
        self.target = target
        super().__init__(path, f"Cannot hide, {target.name} already exists")


class HidePermissionError(HideError):
    """Not allowed to rename the path or change its attributes"""

    def __init__(self, path):
        super().__init__(path, "Permission denied")


class HideNotFoundError(HideError):
    """The path disappeared before it could be hidden"""

    def __init__(self, path):
        super().__init__(path, "No such file or directory")
