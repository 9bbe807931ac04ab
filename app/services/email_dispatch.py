"""
Email Dispatch Service - notifies the routed authority about a hazard.

Flow:
1. Route the report through the authority directory
2. Draft the email with the AI provider (action links embedded)
3. Append an audit entry to email_logs (simulated send)
4. Mark the report EMAILED with a masked recipient

On any failure the report is marked REJECTED / email FAILED with the
failure detail, and DispatchError is raised to the caller.

Sending is SIMULATED: the email_logs collection is the outbox. A real
mail transport can replace _deliver() later.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional
import logging

from app.models.authority import AuthorityContact, EmailDispatchResult, EmailLog
from app.models.base import OperationResult, OperationStatus
from app.models.report import EmailStatus, IssueStatus, Report, UpdatedBy, utc_now
from app.services.ai_plugin.base import AIProvider
from app.services.authority_directory import AuthorityDirectory
from app.services.authority_gateway import AuthorityGateway
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine
from app.utils.security import mask_email

logger = logging.getLogger(__name__)

EMAIL_LOGS_COLLECTION = "email_logs"


class DispatchError(Exception):
    """Raised when a report could not be dispatched to an authority."""

    def __init__(self, report_id: str, detail: str):
        super().__init__(f"Dispatch failed for report {report_id}: {detail}")
        self.report_id = report_id
        self.detail = detail


class EmailDispatchService:
    """Orchestrates routing, drafting, logging and report bookkeeping."""

    def __init__(
        self,
        db,
        store: ReportStore,
        engine: StatusWorkflowEngine,
        directory: AuthorityDirectory,
        gateway: AuthorityGateway,
        ai_provider: AIProvider,
        sender: str,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.store = store
        self.engine = engine
        self.directory = directory
        self.gateway = gateway
        self.ai_provider = ai_provider
        self.sender = sender
        self.clock = clock

    @staticmethod
    def build_subject(report: Report, contact: AuthorityContact) -> str:
        return (
            f"[URGENT] {report.analysis.severity.value} Hazard: "
            f"{report.analysis.category.value} | Area: {contact.region}"
        )

    def _save_log(self, log: EmailLog) -> None:
        self.db.collection(EMAIL_LOGS_COLLECTION).document(log.id).set(log.model_dump(mode="json"))

    def _deliver(self, log: EmailLog) -> None:
        self._save_log(log)
        logger.info(
            f"Dispatch (simulated) from {self.sender} to {len(log.recipients)} recipient(s) "
            f"at {log.authority_name}: {log.subject}"
        )

    def _mark_emailed(self, report: Report, contact: AuthorityContact) -> Dict:
        transition = self.engine.apply_transition(
            report, IssueStatus.EMAILED, UpdatedBy.SYSTEM, note=f"Dispatched to {contact.name}"
        )
        report.email_sent = True
        report.email_status = EmailStatus.SENT
        report.emailed_to = f"{contact.name} ({mask_email(contact.emails[0])})"
        report.emailed_at = self.clock()
        report.dispatch_error = None
        return transition

    def _mark_failed(self, report: Report, detail: str) -> None:
        # Bypasses the workflow engine: no trust penalty for the reporter.
        old_status = report.status
        report.status = IssueStatus.REJECTED
        report.updated_by = UpdatedBy.SYSTEM
        report.email_sent = False
        report.email_status = EmailStatus.FAILED
        report.dispatch_error = detail
        if old_status != IssueStatus.REJECTED:
            report.status_history.append(
                StatusWorkflowEngine.create_status_history_entry(
                    old_status, IssueStatus.REJECTED, UpdatedBy.SYSTEM, self.clock(),
                    note=f"Dispatch failed: {detail}",
                )
            )

    def dispatch(self, report_id: str) -> Dict:
        """
        Dispatch one report to its authority.

        Returns:
            Dict with "result" (OperationResult) and "dispatch"
            (EmailDispatchResult, None when the report does not exist)

        Raises:
            DispatchError: If routing, drafting or delivery fails
        """
        report = self.store.get(report_id)
        if report is None:
            return {"result": OperationResult.not_found(report_id), "dispatch": None}
        if report.analysis is None:
            raise DispatchError(report_id, "report has no AI analysis")

        logger.info(f"Starting dispatch for report {report_id}")

        try:
            contact = self.directory.get_authority_for_issue(report)
            if not contact.emails:
                raise ValueError(f"authority '{contact.name}' has no email addresses")

            body = self.ai_provider.generate_authority_email(
                report, contact, self.gateway.build_action_links(report)
            )
            log = EmailLog(
                report_id=report.id,
                timestamp=self.clock(),
                recipients=list(contact.emails),
                subject=self.build_subject(report, contact),
                content=body,
                status=EmailStatus.SENT,
                authority_name=contact.name,
            )
            self._deliver(log)
        except Exception as e:
            detail = str(e) or e.__class__.__name__
            logger.error(f"Dispatch failed for report {report_id}: {detail}", exc_info=True)
            self.store.update(report_id, lambda r: self._mark_failed(r, detail))
            raise DispatchError(report_id, detail) from e

        updated, transition = self.store.update(report_id, lambda r: self._mark_emailed(r, contact))
        logger.info(f"Report {report_id} dispatched to {contact.name}")

        return {
            "result": OperationResult(status=OperationStatus.OK, report=updated, changed=transition["changed"]),
            "dispatch": EmailDispatchResult(success=True, recipients=log.recipients, content=body),
        }

    def get_email_logs(self, report_id: Optional[str] = None, limit: int = 100) -> List[EmailLog]:
        """Email audit log, newest first."""
        logs = []
        for doc in self.db.collection(EMAIL_LOGS_COLLECTION).stream():
            log = EmailLog.model_validate(doc.to_dict())
            if report_id is None or log.report_id == report_id:
                logs.append(log)
        logs.sort(key=lambda log: log.timestamp, reverse=True)
        return logs[:limit]
