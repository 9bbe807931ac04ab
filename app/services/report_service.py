"""
Report service - Business logic for citizen hazard submissions.

DESIGN NOTE:
- The AI verdict gates storage: an invalid image is rejected with the
  model's reason and nothing is persisted
- Valid reports start as REPORTED and earn the named reporter +5 trust
- Dispatch to the routed authority follows immediately when AUTO_DISPATCH
  is on; a dispatch failure is raised after the report is marked FAILED
"""

from datetime import datetime
from typing import Callable, List, Optional
import logging

from app.models.report import (
    ANONYMOUS_REPORTER,
    IssueStatus,
    Location,
    Report,
    ReportCreate,
    UpdatedBy,
    utc_now,
)
from app.services.ai_plugin.base import AIProvider, AIProviderError
from app.services.email_dispatch import EmailDispatchService
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine
from app.services.trust_ledger import TrustDelta, TrustScoreLedger

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "The image does not show a road safety or civic infrastructure issue"


class ReportRejectedError(Exception):
    """Raised when the AI classifies a submission as not a genuine hazard."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ReportService:
    """Submission flow and report queries."""

    def __init__(
        self,
        store: ReportStore,
        ledger: TrustScoreLedger,
        ai_provider: AIProvider,
        dispatcher: Optional[EmailDispatchService] = None,
        auto_dispatch: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.ledger = ledger
        self.ai_provider = ai_provider
        self.dispatcher = dispatcher
        self.auto_dispatch = auto_dispatch
        self.clock = clock

    def submit_report(self, report_data: ReportCreate, reporter_id: Optional[str] = None) -> Report:
        """
        Analyse and store a new hazard report.

        Flow:
        1. AI classification of the photo (raises on provider failure)
        2. Reject invalid submissions with the model's reason
        3. Insert as REPORTED; +5 trust for a named reporter
        4. Auto-dispatch to the routed authority (if enabled)

        Args:
            report_data: Validated submission
            reporter_id: Session user id (None or anonymous flag stores "Anonymous")

        Returns:
            The stored report (EMAILED after a successful auto-dispatch)

        Raises:
            AIProviderError: AI classification failed; nothing stored
            ReportRejectedError: Image is not a genuine hazard; nothing stored
            DispatchError: Auto-dispatch failed; report stored as REJECTED / FAILED
        """
        try:
            analysis = self.ai_provider.analyze_hazard(report_data.image, report_data.description or "")
        except AIProviderError:
            logger.error("AI analysis failed; submission not stored", exc_info=True)
            raise

        if not analysis.is_valid_issue:
            reason = analysis.rejection_reason or DEFAULT_REJECTION_REASON
            logger.info(f"Submission rejected by AI: {reason}")
            raise ReportRejectedError(reason)

        reported_by = ANONYMOUS_REPORTER if report_data.anonymous or not reporter_id else reporter_id
        now = self.clock()

        report = Report(
            created_at=now,
            image=report_data.image,
            media_type=report_data.media_type,
            city=report_data.city,
            location=report_data.location or Location(),
            description=report_data.description or analysis.description,
            analysis=analysis,
            status=IssueStatus.REPORTED,
            reported_by=reported_by,
            updated_by=UpdatedBy.USER,
            status_history=[
                StatusWorkflowEngine.create_status_history_entry(
                    None, IssueStatus.REPORTED, UpdatedBy.USER, now, note="Report submitted"
                )
            ],
        )
        stored = self.store.insert(report)

        if not stored.is_anonymous:
            self.ledger.apply_delta(stored.reported_by, TrustDelta.VALID_SUBMISSION)

        logger.info(
            f"Report {stored.id} submitted: {analysis.category.value}/{analysis.severity.value} "
            f"by {stored.reported_by}"
        )

        if self.auto_dispatch and self.dispatcher is not None:
            outcome = self.dispatcher.dispatch(stored.id)
            return outcome["result"].report

        return stored

    def get_report(self, report_id: str) -> Optional[Report]:
        return self.store.get(report_id)

    def get_reports(self, status: Optional[IssueStatus] = None, limit: Optional[int] = None) -> List[Report]:
        """All reports newest first, optionally filtered by status."""
        reports = self.store.get_all()
        if status is not None:
            reports = [r for r in reports if r.status == status]
        return reports[:limit] if limit else reports

    def get_reports_for_user(self, user_id: str) -> List[Report]:
        return [r for r in self.store.get_all() if r.reported_by == user_id]

    def get_pending_reports(self) -> List[Report]:
        """Reports captured offline and not yet synced."""
        return [r for r in self.store.get_all() if not r.synced]
