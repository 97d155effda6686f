"""
Environment configuration loader.

Tuning knobs that are not worth a command-line flag (debounce window, queue
size, error budget, sweep parallelism, log level) come from AUTOHIDE_*
environment variables.
"""
import os

from autohide.config import Config, HideConfig, SweepConfig, WatcherConfig
from autohide.errors import ConfigValidationError


class EnvironmentConfigLoader:
    """Loads configuration from environment variables"""

    PREFIX = "AUTOHIDE_"

    def __init__(self, environ=None):
        self.environ = os.environ if environ is None else environ

    def load(self, hide: HideConfig) -> Config:
        """Create Config around hide settings, reading the rest from the environment"""
        return Config(
            hide=hide,
            watcher=self._load_watcher_config(),
            sweep=self._load_sweep_config(),
            log_level=self._get_optional("LOG_LEVEL", "INFO").upper(),
        )

    def _load_watcher_config(self) -> WatcherConfig:
        """Load file watcher configuration from environment"""
        defaults = WatcherConfig()
        return WatcherConfig(
            debounce_seconds=self._get_float("DEBOUNCE_SECONDS", defaults.debounce_seconds),
            queue_size=self._get_int("QUEUE_SIZE", defaults.queue_size),
            error_limit=self._get_int("ERROR_LIMIT", defaults.error_limit),
            error_window_seconds=self._get_float("ERROR_WINDOW_SECONDS", defaults.error_window_seconds),
        )

    def _load_sweep_config(self) -> SweepConfig:
        """Load sweep configuration from environment"""
        return SweepConfig(
            max_workers=max(1, self._get_int("SWEEP_WORKERS", SweepConfig.max_workers))
        )

    def _get_optional(self, key: str, default: str) -> str:
        """Get optional string environment variable"""
        return self.environ.get(self.PREFIX + key, default)

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable"""
        value = self._get_optional(key, str(default))
        try:
            return int(value)
        except ValueError:
            raise ConfigValidationError(f"{self.PREFIX}{key} must be an integer, got {value!r}")

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable"""
        value = self._get_optional(key, str(default))
        try:
            return float(value)
        except ValueError:
            raise ConfigValidationError(f"{self.PREFIX}{key} must be a number, got {value!r}")
