"""
Shared response and result models.

Lifecycle operations never raise for a missing record or a rejected
request; they return an OperationResult so callers can tell "nothing
happened because the id is unknown" apart from "nothing happened because
the report was already in that state".
"""

from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Optional

from app.models.report import Report, utc_now


class OperationStatus(str, Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    DUPLICATE = "DUPLICATE"


class OperationResult(BaseModel):
    status: OperationStatus
    report: Optional[Report] = None
    changed: bool = Field(False, description="Whether the report's status actually changed")
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.OK

    @classmethod
    def not_found(cls, report_id: str) -> "OperationResult":
        return cls(status=OperationStatus.NOT_FOUND, message=f"Report {report_id} not found")


class BaseResponse(BaseModel):
    """
    Base response model for API responses.
    """
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
