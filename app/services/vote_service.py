"""
Vote Service - community verification of hazard resolution.

Citizens vote "resolved" or "active" on a report. Each voter is counted
once. When enough citizens confirm a fix the report is resolved through
the workflow engine on behalf of SYSTEM.
"""

from typing import Dict, Optional
import logging

from app.models.base import OperationResult, OperationStatus
from app.models.report import IssueStatus, Report, UpdatedBy, VerificationVotes, VoteVerdict
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine
from app.services.trust_ledger import TrustDelta, TrustScoreLedger

logger = logging.getLogger(__name__)

DEFAULT_VOTE_THRESHOLD = 3


class VerificationVoteService:
    """Records verification votes and resolves reports by consensus."""

    def __init__(
        self,
        store: ReportStore,
        engine: StatusWorkflowEngine,
        ledger: TrustScoreLedger,
        vote_threshold: int = DEFAULT_VOTE_THRESHOLD,
    ):
        self.store = store
        self.engine = engine
        self.ledger = ledger
        self.vote_threshold = vote_threshold

    def _record_vote(self, report: Report, voter_id: str, verdict: VoteVerdict) -> Dict:
        votes = report.verification_votes or VerificationVotes()
        report.verification_votes = votes

        if votes.has_voted(voter_id):
            return {"duplicate": True, "transition": None}

        if verdict == VoteVerdict.RESOLVED:
            votes.yes.append(voter_id)
        else:
            votes.no.append(voter_id)

        transition = None
        if len(votes.yes) >= self.vote_threshold and report.status != IssueStatus.RESOLVED:
            transition = self.engine.apply_transition(
                report, IssueStatus.RESOLVED, UpdatedBy.SYSTEM,
                note=f"Confirmed fixed by {len(votes.yes)} community votes",
            )

        return {"duplicate": False, "transition": transition}

    def cast_vote(self, report_id: str, voter_id: str, verdict) -> OperationResult:
        """
        Record one citizen's verdict on a report.

        Args:
            report_id: Report being verified
            voter_id: Voting user's id
            verdict: VoteVerdict or its value ("resolved" / "active")

        Returns:
            OperationResult: OK, NOT_FOUND or DUPLICATE (voter already counted).
            changed is True when the vote resolved the report.
        """
        verdict = VoteVerdict(verdict)

        with self.store.lock:
            report = self.store.get(report_id)
            if report is None:
                logger.warning(f"Vote ignored: report {report_id} not found")
                return OperationResult.not_found(report_id)

            outcome = self._record_vote(report, voter_id, verdict)
            if outcome["duplicate"]:
                logger.info(f"Duplicate vote from {voter_id} on report {report_id} ignored")
                return OperationResult(
                    status=OperationStatus.DUPLICATE,
                    report=report,
                    message="You have already voted on this report",
                )

            self.store.overwrite(report)

        logger.info(f"Vote '{verdict.value}' recorded for report {report_id} by {voter_id}")
        self.ledger.apply_delta(voter_id, TrustDelta.VOTE_CAST)

        transition: Optional[Dict] = outcome["transition"]
        resolved = bool(transition and transition["changed"])
        if resolved:
            logger.info(f"Report {report_id} resolved by community consensus")
            if transition["trust_award"]:
                self.ledger.apply_delta(*transition["trust_award"])

        return OperationResult(status=OperationStatus.OK, report=report, changed=resolved)

    def get_vote_counts(self, report_id: str) -> Optional[Dict]:
        report = self.store.get(report_id)
        if report is None:
            return None
        votes = report.verification_votes or VerificationVotes()
        return {
            "report_id": report_id,
            "yes": len(votes.yes),
            "no": len(votes.no),
            "threshold": self.vote_threshold,
        }
