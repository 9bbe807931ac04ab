"""
Tests for token-gated authority status updates.
"""
from urllib.parse import parse_qs, urlparse

import pytest

from app.models.base import OperationStatus
from app.models.report import IssueStatus, UpdatedBy
from app.services.ai_plugin.base import AIProviderError
from app.services.email_dispatch import DispatchError

from conftest import score


class TestSetStatusByToken:

    def test_valid_token_applies_status_as_authority(self, services, make_report, reporter):
        report = make_report(reported_by=reporter.uid, status=IssueStatus.EMAILED)

        result = services.gateway.set_status_by_token(report.id, report.authority_token, "Rejected")

        assert result.ok and result.changed
        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.REJECTED
        assert stored.updated_by == UpdatedBy.AUTHORITY
        assert stored.status_history[-1].note == "Updated via authority link"
        assert score(services, reporter) == 25

    def test_rejection_penalty_floors_at_zero(self, services, make_report, reporter):
        services.ledger.apply_delta(reporter.uid, -40)
        report = make_report(reported_by=reporter.uid)

        services.gateway.set_status_by_token(report.id, report.authority_token, IssueStatus.REJECTED)

        assert score(services, reporter) == 0

    def test_rejection_after_redispatch_penalizes_reporter(self, services, make_report, reporter, ai_provider):
        report = make_report(reported_by=reporter.uid)
        ai_provider.generate_authority_email.side_effect = AIProviderError("quota exceeded")
        with pytest.raises(DispatchError):
            services.dispatcher.dispatch(report.id)
        ai_provider.generate_authority_email.side_effect = None
        services.dispatcher.dispatch(report.id)

        result = services.gateway.set_status_by_token(report.id, report.authority_token, "Rejected")

        assert result.changed
        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.REJECTED
        assert stored.updated_by == UpdatedBy.AUTHORITY
        assert score(services, reporter) == 25

    def test_wrong_token_is_unauthorized(self, services, make_report, reporter):
        report = make_report(reported_by=reporter.uid, status=IssueStatus.EMAILED)

        result = services.gateway.set_status_by_token(report.id, "not-the-token", "Resolved")

        assert result.status == OperationStatus.UNAUTHORIZED
        assert result.message == "Invalid token or report ID"
        assert services.store.get(report.id).status == IssueStatus.EMAILED
        assert score(services, reporter) == 50

    def test_empty_token_is_unauthorized(self, services, make_report):
        report = make_report()

        result = services.gateway.set_status_by_token(report.id, "", "Resolved")

        assert result.status == OperationStatus.UNAUTHORIZED

    def test_unknown_report(self, services):
        result = services.gateway.set_status_by_token("missing", "token", "Resolved")

        assert result.status == OperationStatus.NOT_FOUND

    def test_unknown_status_raises(self, services, make_report):
        report = make_report()

        with pytest.raises(ValueError):
            services.gateway.set_status_by_token(report.id, report.authority_token, "Closed")


class TestActionLinks:

    def test_action_url_carries_report_token_and_status(self, services, make_report):
        report = make_report()

        url = services.gateway.build_action_url(report, IssueStatus.IN_PROGRESS)

        parsed = urlparse(url)
        assert f"{parsed.scheme}://{parsed.netloc}" == "https://civic.test"
        assert parse_qs(parsed.query) == {
            "action": ["updateStatus"],
            "id": [report.id],
            "token": [report.authority_token],
            "status": ["In Progress"],
        }

    def test_links_offered_for_each_authority_status(self, services, make_report):
        labels = [label for label, _ in services.gateway.build_action_links(make_report())]

        assert labels == ["In Progress", "Resolved", "Rejected"]
