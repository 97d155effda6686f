"""
Configuration validator for startup checks.

Validates the root directories early to provide clear error messages
before anything is swept or watched.
"""
import logging
import os
from pathlib import Path
from typing import List

from autohide.config import HideConfig
from autohide.errors import ConfigValidationError

logger = logging.getLogger(__name__)


class ConfigValidator:
    """Validates configuration settings on startup"""

    def __init__(self, config: HideConfig):
        self.config = config
        self.errors: List[str] = []

    def validate(self) -> None:
        """Validate all configuration settings

        Raises:
            ConfigValidationError: If validation fails
        """
        if not self.config.roots:
            self.errors.append("No directories given")
        for root in self.config.roots:
            self._validate_root(root)

        if self.errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(
                f"  - {error}" for error in self.errors
            )
            raise ConfigValidationError(error_msg)

    def _validate_root(self, root: Path) -> None:
        """Validate one root directory"""
        try:
            exists = root.exists()
        except OSError as e:
            self.errors.append(f"Cannot check whether {root} exists: {e}")
            return

        if not exists:
            self.errors.append(f"Path {root} does not exist")
            return

        if not root.is_dir():
            self.errors.append(f"Path {root} is not a directory")
            return

        if not os.access(root, os.R_OK | os.X_OK):
            self.errors.append(f"Directory is not readable: {root}")
            return

        # Hiding by rename needs write access; a warning, not a hard error
        if not self.config.dry_run and not os.access(root, os.W_OK):
            logger.warning(f"Directory is not writable, hiding entries in it will fail: {root}")
