"""
Authority Directory - routes a hazard to the responsible municipal body.

Routing priority:
1. Entry for the report's region and exact category
2. Entry for the region with category ALL
3. Any entry with region ALL
4. Emergency Global Dispatch
"""

from typing import List, Optional
import logging

from pydantic import ValidationError

from app.models.authority import ALL_CATEGORIES, ALL_REGIONS, AuthorityContact, AuthorityDirectoryEntry
from app.models.report import IssueCategory, Location, Report
from app.services.geocoding.base import GeocodingProvider

logger = logging.getLogger(__name__)

AUTHORITY_DIRECTORY_COLLECTION = "authority_directory"

GLOBAL_DISPATCH = AuthorityContact(
    name="Emergency Global Dispatch",
    emails=["global.dispatch@demo-civicwatch.gov"],
    region="Global",
)

DEFAULT_DIRECTORY = [
    AuthorityDirectoryEntry(
        id="bhilai-roads",
        region="Bhilai",
        category=IssueCategory.POTHOLE,
        authority_name="Bhilai Municipal Corporation - Roads Division",
        emails=["roads@bhilai-demo.gov", "ee.roads@bhilai-demo.gov"],
    ),
    AuthorityDirectoryEntry(
        id="bhilai-drainage",
        region="Bhilai",
        category=IssueCategory.WATERLOGGING,
        authority_name="Bhilai Municipal Corporation - Drainage Cell",
        emails=["drainage@bhilai-demo.gov"],
    ),
    AuthorityDirectoryEntry(
        id="bhilai-general",
        region="Bhilai",
        category=ALL_CATEGORIES,
        authority_name="Bhilai Municipal Corporation - Public Works",
        emails=["pwd@bhilai-demo.gov"],
    ),
    AuthorityDirectoryEntry(
        id="north-general",
        region="North",
        category=ALL_CATEGORIES,
        authority_name="North Zone Public Works",
        emails=["north.works@demo-civicwatch.gov"],
    ),
    AuthorityDirectoryEntry(
        id="west-general",
        region="West",
        category=ALL_CATEGORIES,
        authority_name="West Zone Public Works",
        emails=["west.works@demo-civicwatch.gov"],
    ),
    AuthorityDirectoryEntry(
        id="east-general",
        region="East",
        category=ALL_CATEGORIES,
        authority_name="East Zone Public Works",
        emails=["east.works@demo-civicwatch.gov"],
    ),
    AuthorityDirectoryEntry(
        id="downtown-general",
        region="Downtown",
        category=ALL_CATEGORIES,
        authority_name="Downtown Civic Maintenance",
        emails=["downtown.maintenance@demo-civicwatch.gov"],
    ),
]


def region_from_coordinates(location: Location) -> str:
    """
    Coordinate-box fallback used when no city is known.

    (0, 0) and the Chhattisgarh box map to Bhilai; anything else is
    split into North / West / East / Downtown by hemisphere.
    """
    lat, lng = location.lat, location.lng
    if lat == 0 and lng == 0:
        return "Bhilai"
    if 15 < lat < 25 and 75 < lng < 85:
        return "Bhilai"
    if lat > 0:
        return "North" if lng > 0 else "West"
    return "East" if lng > 0 else "Downtown"


class AuthorityDirectory:
    """Reads the authority directory and resolves contacts for reports."""

    def __init__(self, db, geocoder: Optional[GeocodingProvider] = None):
        self.db = db
        self.geocoder = geocoder

    def get_directory(self) -> List[AuthorityDirectoryEntry]:
        entries = []
        for doc in self.db.collection(AUTHORITY_DIRECTORY_COLLECTION).stream():
            data = doc.to_dict()
            data.setdefault("id", doc.id)
            try:
                entries.append(AuthorityDirectoryEntry.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Skipping malformed directory entry {doc.id}: {e}")
        entries.sort(key=lambda e: e.id)
        return entries

    def seed_defaults(self) -> int:
        """Write the default directory if the collection is empty. Returns entries written."""
        collection = self.db.collection(AUTHORITY_DIRECTORY_COLLECTION)
        if any(True for _ in collection.limit(1).stream()):
            return 0

        batch = self.db.batch()
        for entry in DEFAULT_DIRECTORY:
            batch.set(collection.document(entry.id), entry.model_dump(mode="json"))
        batch.commit()
        logger.info(f"Seeded authority directory with {len(DEFAULT_DIRECTORY)} entries")
        return len(DEFAULT_DIRECTORY)

    def resolve_region(self, report: Report) -> str:
        """Report city, then reverse-geocoded city, then the coordinate box."""
        if report.city and report.city.strip():
            return report.city.strip().title()

        if self.geocoder is not None:
            city = self.geocoder.resolve_city(report.location.lat, report.location.lng)
            if city:
                return city

        return region_from_coordinates(report.location)

    def get_authority_for_issue(self, report: Report) -> AuthorityContact:
        """
        Pick the authority responsible for a report.

        Args:
            report: Report with an analysis (category OTHER is assumed otherwise)

        Returns:
            AuthorityContact (Emergency Global Dispatch when nothing matches)
        """
        region = self.resolve_region(report)
        category = report.analysis.category if report.analysis else IssueCategory.OTHER
        directory = self.get_directory()

        def _matches_region(entry: AuthorityDirectoryEntry) -> bool:
            return entry.region.lower() == region.lower()

        match = (
            next((e for e in directory if _matches_region(e) and e.category == category), None)
            or next((e for e in directory if _matches_region(e) and e.category == ALL_CATEGORIES), None)
            or next((e for e in directory if e.region == ALL_REGIONS), None)
        )

        if match is None:
            logger.warning(f"No authority for region '{region}' / {category.value}; using global dispatch")
            return GLOBAL_DISPATCH

        logger.info(f"Routed report {report.id} ({category.value}, {region}) to {match.authority_name}")
        return AuthorityContact(name=match.authority_name, emails=match.emails, region=match.region)
