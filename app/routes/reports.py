"""
Report endpoints - submission, listing and lifecycle actions.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from app.models.base import OperationResult, OperationStatus
from app.models.report import (
    TERMINAL_STATUSES,
    IssueStatus,
    ReportCreate,
    UpdatedBy,
    VoteVerdict,
)
from app.models.user import UserProfile, UserRole
from app.routes.dependencies import get_optional_user, get_services, require_user
from app.services.ai_plugin.base import AIProviderError
from app.services.container import ServiceContainer
from app.services.email_dispatch import DispatchError
from app.services.report_service import ReportRejectedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])

CITIZEN_SETTABLE_STATUSES = frozenset({IssueStatus.IN_PROGRESS, IssueStatus.RESOLVED})


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="Target status label or name, e.g. 'In Progress'")
    note: Optional[str] = Field(None, max_length=500)


class VoteRequest(BaseModel):
    verdict: VoteVerdict


class ReInspectionRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Base64 data URL of the follow-up photo")


def _raise_for_result(result: OperationResult):
    if result.status == OperationStatus.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_report(
    report: ReportCreate,
    user: Optional[UserProfile] = Depends(get_optional_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Submit a new hazard report.

    This endpoint:
    1. Runs AI classification on the photo
    2. Rejects non-hazards with the AI's reason (422, nothing stored)
    3. Stores the report and rewards the named reporter
    4. Dispatches it to the routed authority (if AUTO_DISPATCH)
    """
    try:
        logger.info(f"POST /reports - city={report.city}, anonymous={report.anonymous}")
        created = services.reports.submit_report(report, reporter_id=user.uid if user else None)
        return created.public_view()
    except ReportRejectedError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.reason)
    except AIProviderError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"AI analysis failed: {str(e)}")
    except DispatchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"POST /reports - Report creation failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Report creation failed: {str(e)}"
        )


@router.get("")
def get_reports(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    services: ServiceContainer = Depends(get_services),
):
    """
    List reports newest first.

    Runs the escalation sweep before reading so overdue reports are
    always shown escalated.
    """
    try:
        target = IssueStatus.parse(status_filter) if status_filter else None
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        services.escalation.sweep()
        return [r.public_view() for r in services.reports.get_reports(status=target, limit=limit)]
    except Exception as e:
        logger.error(f"Failed to retrieve reports: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve reports: {str(e)}",
        )


@router.get("/stats")
def get_stats(services: ServiceContainer = Depends(get_services)):
    return services.analytics.get_stats()


@router.get("/mine")
def get_my_reports(
    user: UserProfile = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    return [r.public_view() for r in services.reports.get_reports_for_user(user.uid)]


@router.get("/{report_id}")
def get_report(report_id: str, services: ServiceContainer = Depends(get_services)):
    report = services.reports.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Report {report_id} not found")
    return report.public_view()


@router.patch("/{report_id}/status")
def update_report_status(
    report_id: str,
    request: StatusUpdateRequest,
    user: UserProfile = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Set a report's status from the dashboard.

    Authorities and admins may set any status from any status; unusual
    transitions are logged. Citizens may only mark work in progress or
    resolved.
    """
    try:
        target = IssueStatus.parse(request.status)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if user.role == UserRole.CITIZEN and target not in CITIZEN_SETTABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Citizens cannot set status to {target.value}",
        )

    actor = UpdatedBy.USER if user.role == UserRole.CITIZEN else UpdatedBy.AUTHORITY
    result = services.workflow.set_status(report_id, target, actor=actor, note=request.note)

    _raise_for_result(result)
    return {
        "success": True,
        "changed": result.changed,
        "report": result.report.public_view(),
    }


@router.post("/{report_id}/votes")
def cast_vote(
    report_id: str,
    request: VoteRequest,
    user: UserProfile = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Vote on whether a hazard has been fixed.

    Authors cannot verify their own reports and closed reports take no
    votes. A repeated vote is accepted but not counted (recorded=false).
    """
    report = services.reports.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Report {report_id} not found")
    if report.reported_by == user.uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot verify your own report")
    if report.status in TERMINAL_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Report is already {report.status.value}"
        )

    result = services.votes.cast_vote(report_id, user.uid, request.verdict)
    _raise_for_result(result)
    return {
        "recorded": result.status != OperationStatus.DUPLICATE,
        "resolved": result.changed,
        "message": result.message,
        "votes": services.votes.get_vote_counts(report_id),
        "report": result.report.public_view(),
    }


@router.post("/{report_id}/reinspection")
def reinspect_report(
    report_id: str,
    request: ReInspectionRequest,
    user: UserProfile = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Upload a follow-up photo; the AI compares it with the original.
    A confirmed fix resolves the report and rewards the inspector (+20).
    """
    try:
        outcome = services.reinspection.reinspect(report_id, request.image, user.uid)
    except AIProviderError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"AI re-inspection failed: {str(e)}")

    result = outcome["result"]
    _raise_for_result(result)
    return {
        "resolved": result.changed,
        "inspection": outcome["inspection"],
        "report": result.report.public_view(),
    }


@router.post("/{report_id}/dispatch")
def dispatch_report(
    report_id: str,
    user: UserProfile = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    (Re-)dispatch a report to its routed authority.
    """
    try:
        outcome = services.dispatcher.dispatch(report_id)
    except DispatchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    result = outcome["result"]
    _raise_for_result(result)
    return {
        "success": True,
        "dispatch": outcome["dispatch"],
        "report": result.report.public_view(),
    }
