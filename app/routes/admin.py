"""
Admin endpoints - escalation oversight and lifecycle inspection.

SCOPE OF ADMIN:
- Trigger an escalation sweep on demand
- List overdue (escalation) reports
- Inspect a report's status history and conventional next statuses
- Re-seed the authority directory and demo users
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.models.user import UserProfile
from app.routes.dependencies import get_services, require_admin
from app.services.container import ServiceContainer
from app.services.status_workflow import StatusWorkflowEngine

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/escalations/sweep")
def run_escalation_sweep(
    user: UserProfile = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
):
    """
    Run the escalation sweep now instead of waiting for the next interval.

    Returns:
        Number of reports marked overdue or escalated
    """
    try:
        changed = services.escalation.sweep()
        return {
            "success": True,
            "changed": changed,
            "threshold_hours": services.config.ESCALATION_THRESHOLD_HOURS,
        }
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Escalation sweep failed: {str(e)}"
        )


@router.get("/escalations")
def get_escalation_candidates(
    limit: int = Query(50, ge=1, le=200, description="Maximum number of reports"),
    user: UserProfile = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
):
    """
    Get open reports flagged overdue, oldest first.
    """
    overdue = services.escalation.get_overdue_reports(limit=limit)
    return {
        "success": True,
        "count": len(overdue),
        "reports": [r.public_view() for r in overdue],
    }


@router.get("/reports/{report_id}/transitions")
def get_conventional_transitions(
    report_id: str,
    user: UserProfile = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
):
    """
    Current status, the usual next statuses and the full status history.

    Any status can still be set; the list only reflects the usual lifecycle.
    """
    report = services.store.get(report_id)
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report {report_id} not found"
        )

    return {
        "success": True,
        "current_status": report.status.value,
        "conventional_transitions": StatusWorkflowEngine.get_conventional_transitions(report.status),
        "status_history": [entry.model_dump(mode="json") for entry in report.status_history],
    }


@router.post("/seed")
def seed_reference_data(
    user: UserProfile = Depends(require_admin),
    services: ServiceContainer = Depends(get_services),
):
    """Create the default authority directory and demo users if missing."""
    return {
        "success": True,
        "directory_entries": services.directory.seed_defaults(),
        "users": services.users.seed_demo_users(),
    }
