"""
Analytics Service - dashboard statistics over all reports.
"""

from collections import defaultdict
import logging

from app.models.report import DashboardStats, IssueStatus
from app.services.report_store import ReportStore

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Service for generating dashboard analytics."""

    def __init__(self, store: ReportStore):
        self.store = store

    def get_stats(self) -> DashboardStats:
        """
        Headline counts for the dashboard.

        pending_count counts reports still in REPORTED (not yet dispatched
        or acted on). category_distribution only includes analysed reports.
        """
        reports = self.store.get_all()
        distribution = defaultdict(int)
        for report in reports:
            if report.analysis:
                distribution[report.analysis.category.value] += 1

        return DashboardStats(
            total_reports=len(reports),
            resolved_count=sum(1 for r in reports if r.status == IssueStatus.RESOLVED),
            pending_count=sum(1 for r in reports if r.status == IssueStatus.REPORTED),
            escalated_count=sum(1 for r in reports if r.status == IssueStatus.ESCALATED),
            category_distribution=dict(distribution),
        )
