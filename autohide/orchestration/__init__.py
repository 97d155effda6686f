"""Orchestration of sweeps and watch sessions"""

from .mode_controller import ModeController, RunMode
from .outcome_reporter import OutcomeReporter

__all__ = ['ModeController', 'RunMode', 'OutcomeReporter']
