"""
Tests for the escalation sweep.
"""
from datetime import timedelta

from app.models.report import IssueStatus, UpdatedBy
from app.services.escalation_engine import DEFAULT_ESCALATION_TARGET

from conftest import T0

PAST_THRESHOLD = T0 + timedelta(hours=72, milliseconds=1)


class TestEscalationSweep:

    def test_stagnant_report_is_escalated(self, services, make_report):
        report = make_report(status=IssueStatus.EMAILED)

        changed = services.escalation.sweep(PAST_THRESHOLD)

        assert changed == 1
        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.ESCALATED
        assert stored.is_overdue is True
        assert stored.escalated_at == PAST_THRESHOLD
        assert stored.escalated_to == DEFAULT_ESCALATION_TARGET
        assert stored.updated_by == UpdatedBy.SYSTEM
        assert stored.status_history[-1].from_status == IssueStatus.EMAILED
        assert stored.status_history[-1].to_status == IssueStatus.ESCALATED

    def test_second_sweep_is_a_noop(self, services, make_report):
        make_report()

        assert services.escalation.sweep(PAST_THRESHOLD) == 1
        assert services.escalation.sweep(PAST_THRESHOLD + timedelta(hours=1)) == 0

    def test_exactly_at_threshold_is_not_overdue(self, services, make_report):
        report = make_report()

        assert services.escalation.sweep(T0 + timedelta(hours=72)) == 0
        assert services.store.get(report.id).status == IssueStatus.REPORTED

    def test_terminal_reports_are_skipped(self, services, make_report):
        resolved = make_report(status=IssueStatus.RESOLVED)
        rejected = make_report(status=IssueStatus.REJECTED)

        assert services.escalation.sweep(T0 + timedelta(days=30)) == 0
        assert services.store.get(resolved.id).is_overdue is False
        assert services.store.get(rejected.id).status == IssueStatus.REJECTED

    def test_young_reports_are_untouched(self, services, make_report, clock):
        old = make_report()
        clock.advance(hours=48)
        young = make_report()

        services.escalation.sweep(PAST_THRESHOLD)

        assert services.store.get(old.id).status == IssueStatus.ESCALATED
        stored_young = services.store.get(young.id)
        assert stored_young.status == IssueStatus.REPORTED
        assert stored_young.is_overdue is False

    def test_escalation_keeps_first_escalated_at(self, services, make_report):
        report = make_report()
        services.escalation.sweep(PAST_THRESHOLD)

        # authority moves it along, but it stays open past the threshold
        services.workflow.set_status(report.id, IssueStatus.IN_PROGRESS, actor=UpdatedBy.AUTHORITY)
        later = PAST_THRESHOLD + timedelta(days=1)
        assert services.escalation.sweep(later) == 1

        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.ESCALATED
        assert stored.escalated_at == PAST_THRESHOLD
        assert stored.is_overdue is True

    def test_overdue_flag_survives_resolution(self, services, make_report):
        report = make_report()
        services.escalation.sweep(PAST_THRESHOLD)

        services.workflow.set_status(report.id, IssueStatus.RESOLVED, actor=UpdatedBy.AUTHORITY)
        services.escalation.sweep(PAST_THRESHOLD + timedelta(days=1))

        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.RESOLVED
        assert stored.is_overdue is True

    def test_sweep_uses_engine_clock_by_default(self, services, make_report, clock):
        report = make_report()
        clock.advance(days=4)

        assert services.escalation.sweep() == 1
        assert services.store.get(report.id).escalated_at == clock()


class TestOverdueReports:

    def test_lists_open_overdue_reports_oldest_first(self, services, make_report, clock):
        first = make_report()
        clock.advance(hours=1)
        second = make_report()
        clock.advance(hours=1)
        done = make_report()
        services.escalation.sweep(T0 + timedelta(days=5))
        services.workflow.set_status(done.id, IssueStatus.RESOLVED)

        overdue = services.escalation.get_overdue_reports()

        assert [r.id for r in overdue] == [first.id, second.id]
