"""
Escalation Engine - time-based overdue detection and escalation sweep.

DESIGN PRINCIPLES:
- RESOLVED and REJECTED reports are never touched
- A report older than the threshold is marked overdue (never un-marked)
- A stagnant report older than the threshold is force-moved to ESCALATED
- One batch write per sweep, only if something changed
- Re-running a sweep is a no-op
"""

from datetime import datetime, timedelta
from typing import Callable, List, Optional
import logging

from app.models.report import TERMINAL_STATUSES, IssueStatus, Report, UpdatedBy, utc_now
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine

logger = logging.getLogger(__name__)

DEFAULT_ESCALATION_THRESHOLD = timedelta(days=3)
DEFAULT_ESCALATION_TARGET = "City Commissioner / Oversight Board"


class EscalationEngine:
    """
    Periodic policy pass over open reports.

    Invoked on a fixed interval by the application and eagerly whenever
    the report list is refreshed.
    """

    def __init__(
        self,
        store: ReportStore,
        threshold: timedelta = DEFAULT_ESCALATION_THRESHOLD,
        escalation_target: str = DEFAULT_ESCALATION_TARGET,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.threshold = threshold
        self.escalation_target = escalation_target
        self.clock = clock

    def is_past_threshold(self, report: Report, now: datetime) -> bool:
        return now - report.created_at > self.threshold

    def evaluate(self, report: Report, now: datetime) -> bool:
        """
        Apply the escalation policy to one report in memory.

        Returns:
            True if the report was modified
        """
        if report.status in TERMINAL_STATUSES or not self.is_past_threshold(report, now):
            return False

        modified = False

        if not report.is_overdue:
            report.is_overdue = True
            modified = True

        if report.status != IssueStatus.ESCALATED:
            old_status = report.status
            report.status = IssueStatus.ESCALATED
            report.escalated_at = report.escalated_at or now
            report.escalated_to = self.escalation_target
            report.updated_by = UpdatedBy.SYSTEM
            report.status_history.append(
                StatusWorkflowEngine.create_status_history_entry(
                    old_status, IssueStatus.ESCALATED, UpdatedBy.SYSTEM, now,
                    note=f"Open longer than {self.threshold}; escalated to {self.escalation_target}",
                )
            )
            modified = True
            logger.info(f"Report {report.id} escalated to {self.escalation_target} (was {old_status.value})")

        return modified

    def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Mark overdue reports and escalate stagnant ones.

        Args:
            now: Evaluation time (defaults to the engine clock)

        Returns:
            Number of reports changed
        """
        now = now or self.clock()

        with self.store.lock:
            changed = [report for report in self.store.get_all() if self.evaluate(report, now)]
            self.store.overwrite_many(changed)

        if changed:
            logger.info(f"Escalation sweep changed {len(changed)} report(s)")
        else:
            logger.debug("Escalation sweep: no changes")

        return len(changed)

    def get_overdue_reports(self, limit: int = 50) -> List[Report]:
        """Open reports flagged overdue, oldest first."""
        overdue = [
            report for report in self.store.get_all()
            if report.is_overdue and report.status not in TERMINAL_STATUSES
        ]
        overdue.sort(key=lambda r: r.created_at)
        return overdue[:limit]
