# Copyright (c) 2024 autohide Contributors
# SPDX-License-Identifier: MIT

"""
Platform hide operations.

Two conventions exist:
- Windows: the FILE_ATTRIBUTE_HIDDEN attribute bit (set via kernel32)
- Everything else: a leading dot in the entry name (rename "foo" -> ".foo")

Both hiders are idempotent: hiding an already hidden path returns
ALREADY_HIDDEN instead of touching it again.
"""

import ctypes
import errno
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from autohide.errors import HideError, HideNotFoundError, HidePermissionError, NameCollisionError
from autohide.value_objects import HideAction

logger = logging.getLogger(__name__)


def _translate_os_error(path: Path, error: OSError) -> HideError:
    """Map an OSError raised while hiding onto the HideError taxonomy"""
    if isinstance(error, FileNotFoundError):
        return HideNotFoundError(path)
    if isinstance(error, PermissionError):
        return HidePermissionError(path)
    if error.errno in (errno.EEXIST, errno.ENOTEMPTY):
        return NameCollisionError(path, Path(error.filename2 or path))
    return HideError(path, error.strerror or str(error))


class PlatformHider:
    """Interface for platform hide operations"""

    #: Name prefix that marks an entry as hidden, None for attribute based hiding
    marker: Optional[str] = None

    def hide(self, path: Path) -> HideAction:
        """Hide path, returning HIDDEN or ALREADY_HIDDEN.

        Raises:
            HideError: NameCollisionError, HidePermissionError or HideNotFoundError
        """
        raise NotImplementedError

    def is_hidden(self, path: Path) -> bool:
        raise NotImplementedError

    def hidden_path(self, path: Path) -> Path:
        """Where path lives once hidden"""
        return path


class DotPrefixHider(PlatformHider):
    """Hides entries by prepending a dot to their name"""

    marker = "."

    def is_hidden(self, path: Path) -> bool:
        return path.name.startswith(self.marker)

    def hidden_path(self, path: Path) -> Path:
        if self.is_hidden(path):
            return path
        return path.with_name(self.marker + path.name)

    def hide(self, path: Path) -> HideAction:
        if self.is_hidden(path):
            if not os.path.lexists(path):
                raise HideNotFoundError(path)
            return HideAction.ALREADY_HIDDEN

        target = self.hidden_path(path)
        if os.path.lexists(target):
            raise NameCollisionError(path, target)
        try:
            os.rename(path, target)
        except OSError as e:
            raise _translate_os_error(path, e) from e
        logger.debug(f"Renamed {path} -> {target.name}")
        return HideAction.HIDDEN


class AttributeHider(PlatformHider):
    """Hides entries by setting FILE_ATTRIBUTE_HIDDEN (Windows only)"""

    # FILE_ATTRIBUTE_HIDDEN = 2 (0x2) from GetFileAttributes documentation.
    HIDDEN_MASK = 0x2
    INVALID_FILE_ATTRIBUTES = 0xFFFFFFFF

    def __init__(self, kernel32=None):
        self._kernel32 = kernel32 or ctypes.windll.kernel32

    def _attributes(self, path: Path) -> int:
        attrs = self._kernel32.GetFileAttributesW(str(path))
        if attrs == -1 or attrs == self.INVALID_FILE_ATTRIBUTES:
            raise HideNotFoundError(path)
        return attrs

    def is_hidden(self, path: Path) -> bool:
        try:
            return bool(self._attributes(path) & self.HIDDEN_MASK)
        except HideNotFoundError:
            return False

    def hide(self, path: Path) -> HideAction:
        attrs = self._attributes(path)
        if attrs & self.HIDDEN_MASK:
            return HideAction.ALREADY_HIDDEN

        if not self._kernel32.SetFileAttributesW(str(path), attrs | self.HIDDEN_MASK):
            code = ctypes.GetLastError()
            raise _translate_os_error(path, ctypes.WinError(code))
        return HideAction.HIDDEN


def get_platform_hider() -> PlatformHider:
    """Pick the hide convention of the running platform"""
    if sys.platform == "win32":
        return AttributeHider()
    return DotPrefixHider()
