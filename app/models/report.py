"""
Pydantic models for hazard reports.

A Report is the central record of the lifecycle engine. It is persisted as
one Firestore document per report (JSON-mode dump) and re-validated on
every read.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

ANONYMOUS_REPORTER = "Anonymous"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are treated as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class IssueStatus(str, Enum):
    """
    Accountability lifecycle of a hazard report.

    Wire values are the human-readable labels used in authority action
    links; parse() also accepts the member name.
    """
    REPORTED = "Reported"
    EMAILED = "Emailed to Authority"
    ACKNOWLEDGED = "Acknowledged"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"
    ESCALATED = "Escalated"

    @classmethod
    def parse(cls, raw: Any) -> "IssueStatus":
        if isinstance(raw, cls):
            return raw
        text = str(raw).strip()
        try:
            return cls(text)
        except ValueError:
            pass
        key = text.upper().replace(" ", "_")
        if key in cls.__members__:
            return cls[key]
        raise ValueError(f"Unknown issue status: {raw!r}")


TERMINAL_STATUSES = frozenset({IssueStatus.RESOLVED, IssueStatus.REJECTED})


class UpdatedBy(str, Enum):
    """Who caused the last transition (provenance only, not authorization)."""
    USER = "USER"
    AUTHORITY = "AUTHORITY"
    SYSTEM = "SYSTEM"


class IssueCategory(str, Enum):
    POTHOLE = "POTHOLE"
    CRACK = "CRACK"
    WATERLOGGING = "WATERLOGGING"
    ACCIDENT = "ACCIDENT"
    VEHICLE_DAMAGE = "VEHICLE_DAMAGE"
    FALLEN_OBJECT = "FALLEN_OBJECT"
    OTHER = "OTHER"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class EmailStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"


class VoteVerdict(str, Enum):
    """Community verdict on whether a hazard has been fixed."""
    RESOLVED = "resolved"
    ACTIVE = "active"


class ReInspectionVerdict(str, Enum):
    RESOLVED = "resolved"
    NOT_RESOLVED = "notResolved"


class Location(BaseModel):
    lat: float = Field(0.0, ge=-90, le=90)
    lng: float = Field(0.0, ge=-180, le=180)
    address: Optional[str] = None


class AIAnalysis(BaseModel):
    """Classification verdict returned by the AI collaborator."""
    category: IssueCategory = IssueCategory.OTHER
    severity: Severity = Severity.LOW
    description: str = ""
    estimated_repair_cost: str = ""
    public_safety_impact: str = ""
    safety_insight: str = ""
    confidence_score: float = Field(0.0, ge=0, le=100)
    is_valid_issue: bool = False
    rejection_reason: Optional[str] = None

    @classmethod
    def from_external(cls, payload: Dict[str, Any]) -> "AIAnalysis":
        """
        Map the AI service's camelCase response onto this model.

        Unknown categories fall back to OTHER and unknown severities to LOW
        rather than failing the whole analysis.
        """
        category = str(payload.get("category", "OTHER")).upper()
        severity = str(payload.get("severity", "LOW")).upper()
        return cls(
            category=category if category in IssueCategory.__members__ else IssueCategory.OTHER,
            severity=severity if severity in Severity.__members__ else Severity.LOW,
            description=payload.get("description") or "",
            estimated_repair_cost=payload.get("estimatedRepairCost") or "",
            public_safety_impact=payload.get("publicSafetyImpact") or "",
            safety_insight=payload.get("safetyInsight") or "",
            confidence_score=max(0.0, min(100.0, float(payload.get("confidenceScore") or 0))),
            is_valid_issue=bool(payload.get("isValidIssue", False)),
            rejection_reason=payload.get("rejectionReason"),
        )


class VerificationVotes(BaseModel):
    yes: List[str] = Field(default_factory=list, description="Voters saying the hazard is fixed")
    no: List[str] = Field(default_factory=list, description="Voters saying the hazard is still active")

    def has_voted(self, voter_id: str) -> bool:
        return voter_id in self.yes or voter_id in self.no


class StatusHistoryEntry(BaseModel):
    """Status transition audit entry."""
    from_status: Optional[IssueStatus] = None
    to_status: IssueStatus
    changed_by: UpdatedBy
    timestamp: datetime
    note: str = ""

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value):
        return ensure_utc(value)


class Report(BaseModel):
    """A single hazard report and its full lifecycle state."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = Field(default_factory=utc_now)

    # Capture
    image: Optional[str] = Field(None, description="Base64 data URL of the captured photo")
    media_type: MediaType = MediaType.IMAGE
    city: Optional[str] = None
    location: Location = Field(default_factory=Location)
    description: str = ""
    synced: bool = True

    # Classification
    analysis: Optional[AIAnalysis] = None

    # Lifecycle
    status: IssueStatus = IssueStatus.REPORTED
    reported_by: str = ANONYMOUS_REPORTER
    updated_by: Optional[UpdatedBy] = None
    acknowledged_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)

    # Dispatch audit
    email_sent: bool = False
    email_status: Optional[EmailStatus] = None
    emailed_to: Optional[str] = None
    emailed_at: Optional[datetime] = None
    dispatch_error: Optional[str] = None

    # Escalation (system-set)
    is_overdue: bool = False
    escalated_at: Optional[datetime] = None
    escalated_to: Optional[str] = None

    # Authority link secret, assigned once by the report store
    authority_token: Optional[str] = None

    # Community verification and re-inspection
    verification_votes: Optional[VerificationVotes] = None
    re_inspection_image: Optional[str] = None
    ai_verified_resolution: Optional[bool] = None

    @field_validator(
        "created_at", "acknowledged_at", "started_at", "resolved_at", "emailed_at", "escalated_at"
    )
    @classmethod
    def normalize_timestamps(cls, value):
        return ensure_utc(value)

    @property
    def is_anonymous(self) -> bool:
        return not self.reported_by or self.reported_by == ANONYMOUS_REPORTER

    def to_document(self) -> Dict[str, Any]:
        """Serialize for storage (JSON-safe for both Firestore and the mock DB)."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Report":
        return cls.model_validate(data)

    def public_view(self) -> Dict[str, Any]:
        """Report as shown to citizens: the authority token never leaves the backend."""
        return self.model_dump(mode="json", exclude={"authority_token"})


class ReportCreate(BaseModel):
    """
    Incoming hazard submission.
    The image is analysed by the AI collaborator before anything is stored.
    """
    image: str = Field(..., min_length=1, description="Base64 data URL of the photo")
    media_type: MediaType = MediaType.IMAGE
    description: Optional[str] = Field(None, max_length=1000)
    city: Optional[str] = Field(None, max_length=100)
    location: Optional[Location] = None
    anonymous: bool = Field(False, description="Submit without attributing the report to the session user")

    class Config:
        json_schema_extra = {
            "example": {
                "image": "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ...",
                "description": "Deep pothole in the left lane",
                "city": "Bhilai",
                "location": {"lat": 21.1938, "lng": 81.3509},
            }
        }
        extra = "ignore"


class DashboardStats(BaseModel):
    total_reports: int = 0
    resolved_count: int = 0
    pending_count: int = 0
    escalated_count: int = 0
    category_distribution: Dict[str, int] = Field(default_factory=dict)
