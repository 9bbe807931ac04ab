"""
Tests for community verification votes.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.models.base import OperationStatus
from app.models.report import IssueStatus, UpdatedBy, VoteVerdict
from app.models.user import SignupRequest

from conftest import score


class TestCastVote:

    def test_vote_is_recorded_and_rewarded(self, services, make_report, voters):
        report = make_report()

        result = services.votes.cast_vote(report.id, voters[0].uid, VoteVerdict.ACTIVE)

        assert result.ok and not result.changed
        assert services.store.get(report.id).verification_votes.no == [voters[0].uid]
        assert score(services, voters[0]) == 52

    def test_duplicate_vote_changes_nothing(self, services, make_report, voters):
        report = make_report()
        services.votes.cast_vote(report.id, voters[0].uid, "resolved")

        result = services.votes.cast_vote(report.id, voters[0].uid, "active")

        assert result.status == OperationStatus.DUPLICATE
        assert result.message == "You have already voted on this report"
        votes = services.store.get(report.id).verification_votes
        assert votes.yes == [voters[0].uid]
        assert votes.no == []
        assert score(services, voters[0]) == 52

    def test_quorum_resolves_report(self, services, make_report, reporter, voters):
        report = make_report(reported_by=reporter.uid, status=IssueStatus.IN_PROGRESS)

        first = services.votes.cast_vote(report.id, voters[0].uid, "resolved")
        second = services.votes.cast_vote(report.id, voters[1].uid, "resolved")
        third = services.votes.cast_vote(report.id, voters[2].uid, "resolved")

        assert not first.changed and not second.changed
        assert third.changed
        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.RESOLVED
        assert stored.updated_by == UpdatedBy.SYSTEM
        assert stored.resolved_at is not None
        assert score(services, reporter) == 65
        assert score(services, voters[2]) == 52

    def test_quorum_on_reopened_report_rewards_reporter(self, services, make_report, reporter, voters):
        report = make_report(reported_by=reporter.uid, status=IssueStatus.IN_PROGRESS)
        services.workflow.set_status(report.id, IssueStatus.RESOLVED, actor=UpdatedBy.AUTHORITY)
        services.workflow.set_status(report.id, IssueStatus.IN_PROGRESS, actor=UpdatedBy.AUTHORITY)
        before = score(services, reporter)

        for voter in voters[:3]:
            services.votes.cast_vote(report.id, voter.uid, "resolved")

        assert services.store.get(report.id).status == IssueStatus.RESOLVED
        assert score(services, reporter) - before == 15

    def test_active_votes_never_resolve(self, services, make_report, voters):
        report = make_report()

        for voter in voters[:3]:
            services.votes.cast_vote(report.id, voter.uid, "active")

        assert services.store.get(report.id).status == IssueStatus.REPORTED

    def test_mixed_votes_need_three_yes(self, services, make_report, voters):
        report = make_report()
        services.votes.cast_vote(report.id, voters[0].uid, "resolved")
        services.votes.cast_vote(report.id, voters[1].uid, "active")
        services.votes.cast_vote(report.id, voters[2].uid, "resolved")

        assert services.store.get(report.id).status == IssueStatus.REPORTED

        result = services.votes.cast_vote(report.id, voters[3].uid, "resolved")

        assert result.changed
        assert services.store.get(report.id).status == IssueStatus.RESOLVED

    def test_unknown_report(self, services, voters):
        result = services.votes.cast_vote("missing", voters[0].uid, "resolved")

        assert result.status == OperationStatus.NOT_FOUND
        assert score(services, voters[0]) == 50

    def test_unknown_verdict_raises(self, services, make_report, voters):
        report = make_report()

        with pytest.raises(ValueError):
            services.votes.cast_vote(report.id, voters[0].uid, "maybe")


class TestVoteCounts:

    def test_counts(self, services, make_report, voters):
        report = make_report()
        services.votes.cast_vote(report.id, voters[0].uid, "resolved")
        services.votes.cast_vote(report.id, voters[1].uid, "active")

        assert services.votes.get_vote_counts(report.id) == {
            "report_id": report.id, "yes": 1, "no": 1, "threshold": 3,
        }

    def test_counts_for_unknown_report(self, services):
        assert services.votes.get_vote_counts("missing") is None


class TestConcurrentVotes:

    @pytest.fixture
    def crowd(self, services):
        signups = [
            services.users.signup(SignupRequest(email=f"neighbour{i}@example.com", password="secret123"))
            for i in range(16)
        ]
        return [s["user"] for s in signups]

    def _cast_all(self, services, report_id, ballots):
        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(services.votes.cast_vote, report_id, uid, verdict) for uid, verdict in ballots]
            return [f.result() for f in futures]

    def test_every_parallel_vote_is_recorded_once(self, services, make_report, crowd):
        report = make_report()

        results = self._cast_all(services, report.id, [(u.uid, "active") for u in crowd])

        assert all(r.status == OperationStatus.OK for r in results)
        votes = services.store.get(report.id).verification_votes
        assert sorted(votes.no) == sorted(u.uid for u in crowd)
        assert votes.yes == []
        assert all(score(services, u) == 52 for u in crowd)

    def test_parallel_quorum_resolves_exactly_once(self, services, make_report, reporter, crowd):
        report = make_report(reported_by=reporter.uid, status=IssueStatus.IN_PROGRESS)

        results = self._cast_all(services, report.id, [(u.uid, "resolved") for u in crowd])

        assert sum(1 for r in results if r.changed) == 1
        stored = services.store.get(report.id)
        assert stored.status == IssueStatus.RESOLVED
        assert len(stored.verification_votes.yes) == len(crowd)
        assert len(stored.status_history) == 1
        assert score(services, reporter) == 65

    def test_repeated_parallel_votes_from_one_voter_count_once(self, services, make_report, voters):
        report = make_report()

        results = self._cast_all(services, report.id, [(voters[0].uid, "resolved")] * 8)

        statuses = [r.status for r in results]
        assert statuses.count(OperationStatus.OK) == 1
        assert statuses.count(OperationStatus.DUPLICATE) == 7
        assert services.store.get(report.id).verification_votes.yes == [voters[0].uid]
        assert score(services, voters[0]) == 52
