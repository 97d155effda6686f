"""Outcome reporting for sweeps and watch sessions"""
import logging

from autohide.value_objects import HideAction, HideOutcome, SweepSummary

logger = logging.getLogger(__name__)


class OutcomeReporter:
    """Logs hide outcomes at a level matching their importance

    Small methods, one concern: turning outcomes into log lines.
    """

    def report(self, outcome: HideOutcome):
        """Log a single outcome"""
        if outcome.action is HideAction.HIDDEN:
            logger.info(f"Hidden: {outcome.path}")
        elif outcome.action is HideAction.FAILED:
            logger.warning(f"Failed to hide {outcome.path}: {outcome.reason}")
        elif outcome.is_dry_run:
            logger.info(f"Would hide: {outcome.path}")
        else:
            logger.debug(self._describe(outcome))

    def report_all(self, summary: SweepSummary):
        """Log every outcome of a sweep followed by the totals"""
        for outcome in summary.outcomes:
            self.report(outcome)
        self.report_summary(summary)

    def report_summary(self, summary: SweepSummary):
        """Log sweep totals"""
        if summary.total == 0:
            logger.info("Sweep complete: nothing to hide")
        elif summary.skipped and summary.skipped == self._dry_run_count(summary):
            logger.info(f"Sweep complete (dry run): {summary.skipped} entr(ies) would be hidden")
        else:
            logger.info(f"Sweep complete: {summary}")

    def _describe(self, outcome: HideOutcome) -> str:
        if outcome.action is HideAction.ALREADY_HIDDEN:
            return f"Already hidden: {outcome.path}"
        return f"Skipped {outcome.path}: {outcome.reason}"

    def _dry_run_count(self, summary: SweepSummary) -> int:
        return sum(1 for o in summary.outcomes if o.is_dry_run)
