"""
Status Workflow Engine - hazard report lifecycle transitions.

DESIGN PRINCIPLES:
- Permissive: any status may be set from any status. The escalation
  sweeper and authority links depend on setting arbitrary statuses.
  Arcs outside the conventional lifecycle are logged, not rejected.
- Status timestamps are stamped on first entry only
- Trust rewards/penalties apply only when the status actually changes
- All transitions are appended to status_history
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional
import logging

from app.models.base import OperationResult, OperationStatus
from app.models.report import IssueStatus, Report, StatusHistoryEntry, UpdatedBy, utc_now
from app.services.report_store import ReportStore
from app.services.trust_ledger import TrustDelta, TrustScoreLedger

logger = logging.getLogger(__name__)


class StatusWorkflowEngine:
    """
    Applies lifecycle transitions and the reputation rules tied to them.

    Conventional lifecycle:
    REPORTED → EMAILED → ACKNOWLEDGED → IN_PROGRESS → RESOLVED
    with ESCALATED and REJECTED reachable from any open state.
    """

    # Advisory map: {from_status: [to_status, ...]}. Not enforced.
    CONVENTIONAL_TRANSITIONS: Dict[IssueStatus, List[IssueStatus]] = {
        IssueStatus.REPORTED: [
            IssueStatus.EMAILED, IssueStatus.ACKNOWLEDGED, IssueStatus.IN_PROGRESS,
            IssueStatus.RESOLVED, IssueStatus.REJECTED, IssueStatus.ESCALATED,
        ],
        IssueStatus.EMAILED: [
            IssueStatus.ACKNOWLEDGED, IssueStatus.IN_PROGRESS,
            IssueStatus.RESOLVED, IssueStatus.REJECTED, IssueStatus.ESCALATED,
        ],
        IssueStatus.ACKNOWLEDGED: [
            IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED, IssueStatus.REJECTED, IssueStatus.ESCALATED,
        ],
        IssueStatus.IN_PROGRESS: [IssueStatus.RESOLVED, IssueStatus.REJECTED, IssueStatus.ESCALATED],
        IssueStatus.ESCALATED: [
            IssueStatus.ACKNOWLEDGED, IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED, IssueStatus.REJECTED,
        ],
        IssueStatus.RESOLVED: [],
        IssueStatus.REJECTED: [],
    }

    # Status-specific timestamp field stamped on first entry
    STATUS_TIMESTAMP_FIELDS: Dict[IssueStatus, str] = {
        IssueStatus.ACKNOWLEDGED: "acknowledged_at",
        IssueStatus.IN_PROGRESS: "started_at",
        IssueStatus.RESOLVED: "resolved_at",
    }

    # Reporter reputation change on entering a status
    STATUS_TRUST_DELTAS: Dict[IssueStatus, int] = {
        IssueStatus.ACKNOWLEDGED: TrustDelta.ACKNOWLEDGED,
        IssueStatus.RESOLVED: TrustDelta.RESOLVED,
        IssueStatus.REJECTED: TrustDelta.REJECTED,
    }

    def __init__(
        self,
        store: ReportStore,
        ledger: TrustScoreLedger,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.ledger = ledger
        self.clock = clock

    @classmethod
    def is_conventional_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check whether a transition follows the usual lifecycle.

        Same-status transitions are always conventional (no-op).
        """
        try:
            from_enum = IssueStatus.parse(from_status)
            to_enum = IssueStatus.parse(to_status)
        except ValueError:
            return False

        if from_enum == to_enum:
            return True
        return to_enum in cls.CONVENTIONAL_TRANSITIONS.get(from_enum, [])

    @classmethod
    def get_conventional_transitions(cls, current_status: str) -> List[str]:
        """List the usual next statuses from current_status."""
        try:
            current_enum = IssueStatus.parse(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.CONVENTIONAL_TRANSITIONS.get(current_enum, [])]

    @classmethod
    def create_status_history_entry(
        cls,
        from_status: Optional[IssueStatus],
        to_status: IssueStatus,
        changed_by: UpdatedBy,
        timestamp: datetime,
        note: Optional[str] = None,
    ) -> StatusHistoryEntry:
        return StatusHistoryEntry(
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            timestamp=timestamp,
            note=note or "",
        )

    def apply_transition(
        self,
        report: Report,
        new_status: IssueStatus,
        actor: UpdatedBy,
        note: Optional[str] = None,
    ) -> Dict:
        """
        Mutate an in-memory report for a transition. Does not persist.

        Returns:
            Dict with from_status, to_status, changed and trust_award
            ((user_id, delta) or None) for the caller to apply after the
            report has been written.
        """
        now = self.clock()
        old_status = report.status
        changed = old_status != new_status

        if changed and not self.is_conventional_transition(old_status, new_status):
            logger.warning(
                f"Unconventional transition on report {report.id}: "
                f"{old_status.value} → {new_status.value} by {actor.value}. "
                f"Usual next statuses: {self.get_conventional_transitions(old_status)}"
            )

        report.status = new_status
        report.updated_by = actor

        timestamp_field = self.STATUS_TIMESTAMP_FIELDS.get(new_status)
        if timestamp_field and getattr(report, timestamp_field) is None:
            setattr(report, timestamp_field, now)

        trust_award = None
        if changed:
            report.status_history.append(
                self.create_status_history_entry(old_status, new_status, actor, now, note)
            )
            delta = self.STATUS_TRUST_DELTAS.get(new_status)
            if delta is not None and not report.is_anonymous:
                trust_award = (report.reported_by, delta)

        return {
            "from_status": old_status,
            "to_status": new_status,
            "changed": changed,
            "trust_award": trust_award,
        }

    def set_status(
        self,
        report_id: str,
        new_status,
        actor: UpdatedBy = UpdatedBy.USER,
        note: Optional[str] = None,
    ) -> OperationResult:
        """
        Load, transition and persist a report.

        Args:
            report_id: Report to transition
            new_status: Target IssueStatus (member, value or name)
            actor: USER, AUTHORITY or SYSTEM
            note: Optional note recorded in status_history

        Returns:
            OperationResult (NOT_FOUND for unknown ids; never raises for them)

        Raises:
            ValueError: If new_status is not a known status
        """
        target = IssueStatus.parse(new_status)

        report, transition = self.store.update(
            report_id, lambda r: self.apply_transition(r, target, actor, note)
        )
        if report is None:
            logger.warning(f"Status update ignored: report {report_id} not found")
            return OperationResult.not_found(report_id)

        if transition["trust_award"]:
            self.ledger.apply_delta(*transition["trust_award"])

        if transition["changed"]:
            logger.info(
                f"Report {report_id}: {transition['from_status'].value} → {target.value} by {actor.value}"
            )

        return OperationResult(status=OperationStatus.OK, report=report, changed=transition["changed"])
