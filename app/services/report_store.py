"""
Report Store - authoritative collection of hazard reports.

One Firestore document per report. Every read-modify-write goes through
update(), which holds a store-wide re-entrant lock so two mutations in the
same process can never overwrite each other's changes.
"""

import logging
import threading
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from pydantic import ValidationError

from app.models.report import Report, VerificationVotes
from app.utils.security import generate_authority_token

logger = logging.getLogger(__name__)

REPORTS_COLLECTION = "reports"

T = TypeVar("T")


class ReportStore:
    """Insert, read and overwrite hazard reports."""

    def __init__(self, db):
        self.db = db
        self.lock = threading.RLock()

    def _doc(self, report_id: str):
        return self.db.collection(REPORTS_COLLECTION).document(report_id)

    def insert(self, report: Report) -> Report:
        """
        Persist a new report.

        Assigns the authority token and empty vote sets when absent. If a
        record with the same id already exists its token is kept: tokens
        are assigned once and never regenerated.

        Returns:
            The stored report
        """
        with self.lock:
            stored = report.model_copy(deep=True)
            existing = self.get(stored.id)

            if existing is not None and existing.authority_token:
                stored.authority_token = existing.authority_token
            elif not stored.authority_token:
                stored.authority_token = generate_authority_token()

            if stored.verification_votes is None:
                stored.verification_votes = (
                    existing.verification_votes if existing and existing.verification_votes
                    else VerificationVotes()
                )

            self._doc(stored.id).set(stored.to_document())

        logger.info(f"Report saved: {stored.id} (status={stored.status.value}, reporter={stored.reported_by})")
        return stored

    def get(self, report_id: str) -> Optional[Report]:
        if not report_id:
            return None
        doc = self._doc(report_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        data.setdefault("id", doc.id)
        return Report.from_document(data)

    def get_all(self) -> List[Report]:
        """All reports, newest first. Callers must not rely on insertion order."""
        reports = []
        for doc in self.db.collection(REPORTS_COLLECTION).stream():
            data = doc.to_dict()
            data.setdefault("id", doc.id)
            try:
                reports.append(Report.from_document(data))
            except ValidationError as e:
                logger.warning(f"Skipping malformed report document {doc.id}: {e}")

        reports.sort(key=lambda r: r.created_at, reverse=True)
        return reports

    def overwrite(self, report: Report) -> bool:
        """
        Replace the stored record with the same id.

        Returns:
            False if no such record exists (nothing is written)
        """
        with self.lock:
            existing = self.get(report.id)
            if existing is None:
                return False
            if existing.authority_token and report.authority_token != existing.authority_token:
                report.authority_token = existing.authority_token
            self._doc(report.id).set(report.to_document())
        return True

    def update(self, report_id: str, mutate: Callable[[Report], T]) -> Tuple[Optional[Report], Optional[T]]:
        """
        Atomically load, mutate and write back one report.

        Args:
            report_id: Report to mutate
            mutate: Called with the loaded report; its return value is passed back

        Returns:
            (updated report, mutate's return value), or (None, None) if not found
        """
        with self.lock:
            report = self.get(report_id)
            if report is None:
                return None, None
            outcome = mutate(report)
            self.overwrite(report)
            return report, outcome

    def overwrite_many(self, reports: Iterable[Report]) -> int:
        """Write several reports in one batch. Returns the number written."""
        reports = list(reports)
        if not reports:
            return 0
        with self.lock:
            batch = self.db.batch()
            for report in reports:
                batch.set(self._doc(report.id), report.to_document())
            batch.commit()
        return len(reports)
