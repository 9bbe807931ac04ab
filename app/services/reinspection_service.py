"""
Re-Inspection Service - AI-confirmed resolution from a follow-up photo.

A citizen photographs the site again; the AI compares it with the
original capture. A confirmed fix resolves the report directly (it does
not go through the workflow engine) and rewards the inspecting citizen.
"""

from datetime import datetime
from typing import Callable, Dict, Optional
import logging

from app.models.base import OperationResult, OperationStatus
from app.models.report import IssueStatus, ReInspectionVerdict, Report, UpdatedBy, utc_now
from app.services.ai_plugin.base import AIProvider, AIProviderError
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine
from app.services.trust_ledger import TrustDelta, TrustScoreLedger

logger = logging.getLogger(__name__)


class ReInspectionService:
    """Stores follow-up photos and applies AI re-inspection verdicts."""

    def __init__(
        self,
        store: ReportStore,
        ledger: TrustScoreLedger,
        ai_provider: AIProvider,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.ledger = ledger
        self.ai_provider = ai_provider
        self.clock = clock

    def _apply_verdict(self, report: Report, follow_up_image: str, verdict: ReInspectionVerdict) -> bool:
        report.re_inspection_image = follow_up_image
        if verdict != ReInspectionVerdict.RESOLVED:
            return False

        now = self.clock()
        old_status = report.status
        report.status = IssueStatus.RESOLVED
        if report.resolved_at is None:
            report.resolved_at = now
        report.updated_by = UpdatedBy.SYSTEM
        report.ai_verified_resolution = True
        if old_status != IssueStatus.RESOLVED:
            report.status_history.append(
                StatusWorkflowEngine.create_status_history_entry(
                    old_status, IssueStatus.RESOLVED, UpdatedBy.SYSTEM, now,
                    note="Resolution confirmed by AI re-inspection",
                )
            )
        return True

    def apply_reinspection(
        self,
        report_id: str,
        follow_up_image: str,
        verdict,
        actor_id: Optional[str],
    ) -> OperationResult:
        """
        Record a follow-up photo and its verdict.

        The image is always stored. A RESOLVED verdict resolves the report
        and awards the inspecting citizen; NOT_RESOLVED changes nothing else.

        Args:
            report_id: Report being re-inspected
            follow_up_image: Base64 data URL of the new photo
            verdict: ReInspectionVerdict or its value
            actor_id: Citizen who took the follow-up photo

        Returns:
            OperationResult (changed is True when the report was resolved)
        """
        verdict = ReInspectionVerdict(verdict)

        report, resolved = self.store.update(
            report_id, lambda r: self._apply_verdict(r, follow_up_image, verdict)
        )
        if report is None:
            logger.warning(f"Re-inspection ignored: report {report_id} not found")
            return OperationResult.not_found(report_id)

        if resolved:
            logger.info(f"Report {report_id} resolved by AI re-inspection (inspector={actor_id})")
            self.ledger.apply_delta(actor_id, TrustDelta.AI_VERIFIED_RESOLUTION)
        else:
            logger.info(f"Re-inspection of report {report_id}: hazard still present")

        return OperationResult(status=OperationStatus.OK, report=report, changed=resolved)

    def reinspect(self, report_id: str, follow_up_image: str, actor_id: Optional[str]) -> Dict:
        """
        Compare the follow-up photo with the original and apply the result.

        Returns:
            Dict with the OperationResult under "result" and the AI comparison
            under "inspection" (None when the report does not exist)

        Raises:
            AIProviderError: If the comparison fails (nothing is written)
        """
        report = self.store.get(report_id)
        if report is None:
            return {"result": OperationResult.not_found(report_id), "inspection": None}
        if not report.image:
            raise AIProviderError(f"Report {report_id} has no original image to compare against")

        try:
            inspection = self.ai_provider.compare_images(report.image, follow_up_image)
        except AIProviderError:
            logger.error(f"Re-inspection comparison failed for report {report_id}", exc_info=True)
            raise

        result = self.apply_reinspection(report_id, follow_up_image, inspection.to_verdict(), actor_id)
        return {"result": result, "inspection": inspection.to_dict()}
