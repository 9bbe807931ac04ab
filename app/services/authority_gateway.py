"""
Authority Gateway - token-gated status updates from dispatch emails.

Authorities are not logged in. Each report carries an opaque token and
every action link in the dispatch email embeds it; a request is honoured
only when the token matches the stored one.
"""

from typing import List, Tuple
from urllib.parse import urlencode
import logging

from app.models.base import OperationResult, OperationStatus
from app.models.report import IssueStatus, Report, UpdatedBy
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine
from app.utils.security import tokens_match

logger = logging.getLogger(__name__)

UPDATE_STATUS_ACTION = "updateStatus"

# Statuses offered as one-click links in dispatch emails
ACTION_LINK_STATUSES = [IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED, IssueStatus.REJECTED]


class AuthorityGateway:
    """Validates authority tokens and delegates to the workflow engine."""

    def __init__(self, store: ReportStore, engine: StatusWorkflowEngine, public_base_url: str):
        self.store = store
        self.engine = engine
        self.public_base_url = public_base_url.rstrip("/")

    def set_status_by_token(self, report_id: str, token: str, status) -> OperationResult:
        """
        Apply an authority's status choice.

        Args:
            report_id: Report from the action link
            token: Token from the action link
            status: Target status (member, value or name)

        Returns:
            OperationResult: NOT_FOUND, UNAUTHORIZED (nothing written) or the
            workflow engine's result with actor AUTHORITY

        Raises:
            ValueError: If status is not a known status
        """
        target = IssueStatus.parse(status)

        report = self.store.get(report_id)
        if report is None:
            logger.warning(f"Authority action for unknown report {report_id}")
            return OperationResult.not_found(report_id)

        if not tokens_match(report.authority_token, token):
            logger.warning(f"Authority action rejected for report {report_id}: token mismatch")
            return OperationResult(status=OperationStatus.UNAUTHORIZED, message="Invalid token or report ID")

        logger.info(f"Authority action accepted for report {report_id}: {target.value}")
        return self.engine.set_status(report_id, target, actor=UpdatedBy.AUTHORITY, note="Updated via authority link")

    def build_action_url(self, report: Report, status: IssueStatus) -> str:
        query = urlencode({
            "action": UPDATE_STATUS_ACTION,
            "id": report.id,
            "token": report.authority_token or "",
            "status": status.value,
        })
        return f"{self.public_base_url}?{query}"

    def build_action_links(self, report: Report) -> List[Tuple[str, str]]:
        """(label, url) pairs for the statuses authorities can set by email."""
        return [(status.value, self.build_action_url(report, status)) for status in ACTION_LINK_STATUSES]
