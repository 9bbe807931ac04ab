"""
Authority endpoints - one-click status links, dispatch audit and directory.

Dispatch emails carry links of the form
    <PUBLIC_BASE_URL>?action=updateStatus&id=<report>&token=<token>&status=<status>
which are handled here (and at the application root). The response
includes redirect_to so the client can drop the query string and the
action is handled exactly once.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from app.models.base import OperationStatus
from app.models.user import UserProfile
from app.routes.dependencies import get_services, require_authority
from app.services.authority_gateway import UPDATE_STATUS_ACTION
from app.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/authority", tags=["Authority"])

STATUS_UPDATE_FAILED = "Status update failed. Invalid token or report ID."


def handle_authority_action(
    services: ServiceContainer,
    action: Optional[str],
    report_id: Optional[str],
    token: Optional[str],
    new_status: Optional[str],
    redirect_to: str,
) -> JSONResponse:
    """
    Apply an authority action link and build the notice shown to the user.
    """
    if action != UPDATE_STATUS_ACTION:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported action: {action}")
    if not report_id or not token or not new_status:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="id, token and status are required")

    try:
        result = services.gateway.set_status_by_token(report_id, token, new_status)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not result.ok:
        status_code = (
            status.HTTP_404_NOT_FOUND if result.status == OperationStatus.NOT_FOUND
            else status.HTTP_403_FORBIDDEN
        )
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "detail": STATUS_UPDATE_FAILED, "redirect_to": redirect_to},
        )

    report = result.report
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "message": f"Report status updated to {report.status.value}.",
            "report_id": report.id,
            "status": report.status.value,
            "changed": result.changed,
            "redirect_to": redirect_to,
        },
    )


@router.get("/action")
def authority_action(
    action: str = Query(...),
    report_id: str = Query(..., alias="id"),
    token: str = Query(...),
    new_status: str = Query(..., alias="status"),
    services: ServiceContainer = Depends(get_services),
):
    return handle_authority_action(services, action, report_id, token, new_status, redirect_to="/authority/action")


@router.get("/email-logs")
def get_email_logs(
    report_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    user: UserProfile = Depends(require_authority),
    services: ServiceContainer = Depends(get_services),
):
    """Dispatch audit trail, newest first."""
    return services.dispatcher.get_email_logs(report_id=report_id, limit=limit)


@router.get("/directory")
def get_directory(services: ServiceContainer = Depends(get_services)):
    return services.directory.get_directory()
