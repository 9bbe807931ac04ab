"""
Tests for AI re-inspection of follow-up photos.
"""
import pytest

from app.models.base import OperationStatus
from app.models.report import IssueStatus, UpdatedBy
from app.services.ai_plugin.base import AIProviderError, ReInspectionResult

from conftest import AFTER_IMAGE, BEFORE_IMAGE, score


class TestReInspection:

    def test_confirmed_fix_resolves_and_rewards_inspector(self, services, make_report, reporter, voters, clock):
        report = make_report(reported_by=reporter.uid, status=IssueStatus.IN_PROGRESS)
        clock.advance(days=1)

        outcome = services.reinspection.reinspect(report.id, AFTER_IMAGE, voters[0].uid)

        assert outcome["result"].changed
        assert outcome["inspection"]["verdict"] == "resolved"
        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.RESOLVED
        assert stored.resolved_at == clock()
        assert stored.ai_verified_resolution is True
        assert stored.re_inspection_image == AFTER_IMAGE
        assert stored.updated_by == UpdatedBy.SYSTEM
        assert stored.status_history[-1].to_status == IssueStatus.RESOLVED
        assert score(services, voters[0]) == 70
        # the reporter is not rewarded by a re-inspection
        assert score(services, reporter) == 50

        services.ai_provider.compare_images.assert_called_once_with(BEFORE_IMAGE, AFTER_IMAGE)

    def test_hazard_still_present_only_stores_image(self, services, make_report, voters, ai_provider):
        ai_provider.compare_images.return_value = ReInspectionResult(False, 75.0, "Pothole still visible")
        report = make_report(status=IssueStatus.IN_PROGRESS)

        outcome = services.reinspection.reinspect(report.id, AFTER_IMAGE, voters[0].uid)

        assert not outcome["result"].changed
        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.IN_PROGRESS
        assert stored.re_inspection_image == AFTER_IMAGE
        assert stored.ai_verified_resolution is None
        assert score(services, voters[0]) == 50

    def test_ai_failure_changes_nothing(self, services, make_report, voters, ai_provider):
        ai_provider.compare_images.side_effect = AIProviderError("model unavailable")
        report = make_report(status=IssueStatus.IN_PROGRESS)

        with pytest.raises(AIProviderError):
            services.reinspection.reinspect(report.id, AFTER_IMAGE, voters[0].uid)

        stored = services.store.get(report.id)
        assert stored.re_inspection_image is None
        assert stored.status == IssueStatus.IN_PROGRESS

    def test_unknown_report(self, services, ai_provider):
        outcome = services.reinspection.reinspect("missing", AFTER_IMAGE, None)

        assert outcome["result"].status == OperationStatus.NOT_FOUND
        assert outcome["inspection"] is None
        ai_provider.compare_images.assert_not_called()

    def test_apply_reinspection_accepts_external_verdict(self, services, make_report):
        report = make_report()

        result = services.reinspection.apply_reinspection(report.id, AFTER_IMAGE, "notResolved", None)

        assert result.ok and not result.changed
        assert services.store.get(report.id).status == IssueStatus.REPORTED


class TestReInspectionResult:

    def test_from_external_requires_is_resolved(self):
        with pytest.raises(AIProviderError):
            ReInspectionResult.from_external({"confidence": 90})

    def test_from_external_maps_verdict(self):
        result = ReInspectionResult.from_external({"isResolved": True, "confidence": "81.5", "summary": "Filled"})

        assert result.to_verdict().value == "resolved"
        assert result.confidence == 81.5
