"""
Authority routing and dispatch audit models.
"""

import uuid
from datetime import datetime
from typing import List, Union

from pydantic import BaseModel, Field

from app.models.report import EmailStatus, IssueCategory, utc_now

ALL_CATEGORIES = "ALL"
ALL_REGIONS = "ALL"


class AuthorityDirectoryEntry(BaseModel):
    """Read-only routing reference data."""
    id: str
    region: str
    category: Union[IssueCategory, str] = Field(..., description="Issue category or 'ALL'")
    authority_name: str
    emails: List[str] = Field(default_factory=list)


class AuthorityContact(BaseModel):
    name: str
    emails: List[str]
    region: str


class EmailLog(BaseModel):
    """Append-only record of one dispatch attempt."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    report_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    recipients: List[str]
    subject: str
    content: str
    status: EmailStatus
    authority_name: str


class EmailDispatchResult(BaseModel):
    success: bool
    recipients: List[str]
    content: str
