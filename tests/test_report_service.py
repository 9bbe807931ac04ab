"""
Tests for hazard submission and report queries.
"""
import pytest

from app.models.report import ANONYMOUS_REPORTER, IssueStatus, ReportCreate, UpdatedBy
from app.services.ai_plugin.base import AIProviderError
from app.services.email_dispatch import DispatchError
from app.services.report_service import DEFAULT_REJECTION_REASON, ReportRejectedError

from conftest import BEFORE_IMAGE, make_analysis, score


def _submission(**overrides) -> ReportCreate:
    data = dict(image=BEFORE_IMAGE, description="Pothole near the market", city="Bhilai",
                location={"lat": 21.19, "lng": 81.35})
    data.update(overrides)
    return ReportCreate(**data)


class TestSubmitReport:

    def test_valid_submission_is_stored_rewarded_and_dispatched(self, services, reporter, ai_provider):
        report = services.reports.submit_report(_submission(), reporter_id=reporter.uid)

        assert report.status == IssueStatus.EMAILED
        assert report.reported_by == reporter.uid
        assert report.authority_token
        assert score(services, reporter) == 55

        stored = services.store.get(report.id)
        assert [h.to_status for h in stored.status_history] == [IssueStatus.REPORTED, IssueStatus.EMAILED]
        assert stored.status_history[0].changed_by == UpdatedBy.USER
        ai_provider.analyze_hazard.assert_called_once_with(BEFORE_IMAGE, "Pothole near the market")

    def test_invalid_image_is_rejected_and_not_stored(self, services, reporter, ai_provider):
        ai_provider.analyze_hazard.return_value = make_analysis(
            is_valid_issue=False, rejection_reason="Image is a screenshot")

        with pytest.raises(ReportRejectedError) as exc_info:
            services.reports.submit_report(_submission(), reporter_id=reporter.uid)

        assert exc_info.value.reason == "Image is a screenshot"
        assert services.store.get_all() == []
        assert score(services, reporter) == 50

    def test_rejection_without_reason_uses_default(self, services, ai_provider):
        ai_provider.analyze_hazard.return_value = make_analysis(is_valid_issue=False)

        with pytest.raises(ReportRejectedError) as exc_info:
            services.reports.submit_report(_submission())

        assert exc_info.value.reason == DEFAULT_REJECTION_REASON

    def test_ai_failure_stores_nothing(self, services, reporter, ai_provider):
        ai_provider.analyze_hazard.side_effect = AIProviderError("timeout")

        with pytest.raises(AIProviderError):
            services.reports.submit_report(_submission(), reporter_id=reporter.uid)

        assert services.store.get_all() == []

    def test_anonymous_flag_hides_reporter(self, services, reporter):
        report = services.reports.submit_report(_submission(anonymous=True), reporter_id=reporter.uid)

        assert report.reported_by == ANONYMOUS_REPORTER
        assert score(services, reporter) == 50

    def test_missing_description_uses_ai_description(self, services):
        report = services.reports.submit_report(_submission(description=None))

        assert report.description == "Deep pothole in the left lane"

    def test_dispatch_failure_is_raised_after_storing(self, services, reporter, ai_provider):
        ai_provider.generate_authority_email.side_effect = AIProviderError("quota exceeded")

        with pytest.raises(DispatchError) as exc_info:
            services.reports.submit_report(_submission(), reporter_id=reporter.uid)

        stored = services.store.get(exc_info.value.report_id)
        assert stored.status == IssueStatus.REJECTED
        # +5 for the submission, no rejection penalty for a failed dispatch
        assert score(services, reporter) == 55

    def test_auto_dispatch_disabled(self, services):
        services.reports.auto_dispatch = False

        report = services.reports.submit_report(_submission())

        assert report.status == IssueStatus.REPORTED
        assert services.dispatcher.get_email_logs() == []


class TestReportQueries:

    def test_filter_by_status(self, services, make_report):
        reported = make_report()
        make_report(status=IssueStatus.RESOLVED)

        assert [r.id for r in services.reports.get_reports(status=IssueStatus.REPORTED)] == [reported.id]

    def test_limit(self, services, make_report):
        for _ in range(3):
            make_report()

        assert len(services.reports.get_reports(limit=2)) == 2

    def test_reports_for_user(self, services, make_report, reporter):
        mine = make_report(reported_by=reporter.uid)
        make_report()

        assert [r.id for r in services.reports.get_reports_for_user(reporter.uid)] == [mine.id]

    def test_pending_reports(self, services, make_report):
        offline = make_report(synced=False)
        make_report()

        assert [r.id for r in services.reports.get_pending_reports()] == [offline.id]


class TestDashboardStats:

    def test_stats(self, services, make_report):
        make_report()
        make_report(status=IssueStatus.RESOLVED)
        make_report(status=IssueStatus.ESCALATED, analysis=make_analysis(category="WATERLOGGING"))
        make_report(analysis=None)

        stats = services.analytics.get_stats()

        assert stats.total_reports == 4
        assert stats.resolved_count == 1
        assert stats.pending_count == 2
        assert stats.escalated_count == 1
        assert stats.category_distribution == {"POTHOLE": 2, "WATERLOGGING": 1}
