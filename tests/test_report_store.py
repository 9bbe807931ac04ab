"""
Tests for the report store: token assignment, ordering and overwrite rules.
"""
from app.models.report import IssueStatus, Report, VerificationVotes


class TestReportStore:

    def test_insert_assigns_token_and_empty_votes(self, services, make_report):
        report = make_report()

        assert report.authority_token
        assert report.verification_votes == VerificationVotes()

    def test_tokens_are_unique(self, services, make_report):
        tokens = {make_report().authority_token for _ in range(20)}
        assert len(tokens) == 20

    def test_reinsert_never_replaces_token(self, services, make_report):
        report = make_report()
        original_token = report.authority_token

        again = report.model_copy(update={"authority_token": None, "description": "edited"})
        stored = services.store.insert(again)

        assert stored.authority_token == original_token
        assert services.store.get(report.id).authority_token == original_token

    def test_insert_then_get_all_preserves_fields(self, services, make_report):
        report = make_report(description="Crack across both lanes", city="Durg")

        (stored,) = [r for r in services.store.get_all() if r.id == report.id]

        assert stored.to_document() == report.to_document()
        assert stored.created_at == report.created_at

    def test_get_all_newest_first(self, services, make_report, clock):
        first = make_report()
        clock.advance(minutes=5)
        second = make_report()
        clock.advance(minutes=5)
        third = make_report()

        assert [r.id for r in services.store.get_all()] == [third.id, second.id, first.id]

    def test_get_unknown_returns_none(self, services):
        assert services.store.get("missing") is None
        assert services.store.get("") is None

    def test_overwrite_unknown_writes_nothing(self, services):
        assert services.store.overwrite(Report(id="ghost")) is False
        assert services.store.get("ghost") is None

    def test_overwrite_keeps_stored_token(self, services, make_report):
        report = make_report()
        token = report.authority_token

        report.authority_token = "forged"
        report.status = IssueStatus.ACKNOWLEDGED
        assert services.store.overwrite(report) is True

        stored = services.store.get(report.id)
        assert stored.authority_token == token
        assert stored.status == IssueStatus.ACKNOWLEDGED

    def test_update_unknown_report(self, services):
        assert services.store.update("missing", lambda r: "never called") == (None, None)

    def test_update_returns_mutator_result(self, services, make_report):
        report = make_report()

        def mutate(r):
            r.description = "updated"
            return "done"

        updated, outcome = services.store.update(report.id, mutate)

        assert outcome == "done"
        assert services.store.get(report.id).description == "updated"
        assert updated.description == "updated"

    def test_public_view_hides_token(self, make_report):
        assert "authority_token" not in make_report().public_view()
