"""
CivicWatch Hazard Hub - FastAPI Application Entry Point

Citizen road-hazard reporting with an accountability lifecycle.

DESIGN PRINCIPLES:
- AI gates submissions: only genuine hazards are stored
- Every report is routed to a responsible authority
- Authorities act through token-protected one-click links
- Stagnant reports escalate automatically to an oversight body
- Citizens verify fixes by vote or AI re-inspection, and earn trust
"""

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config.firebase import initialize_firestore
from app.core.logging_config import configure_logging
from app.core.settings import settings
from app.routes import admin, auth, authority, health, reports
from app.routes.authority import handle_authority_action
from app.routes.dependencies import get_services
from app.services.container import ServiceContainer, build_services

configure_logging()
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Road hazard reporting with authority dispatch, escalation and community verification",
    debug=settings.DEBUG
)


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Internal server error: {str(exc)}"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Catch Pydantic validation errors and log them."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()}
    )


# CORS configuration - origins come from settings, never "*".
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def escalation_sweep_loop(services: ServiceContainer, interval_seconds: float):
    """Run the escalation sweep every interval until cancelled."""
    loop = asyncio.get_running_loop()
    while True:
        try:
            await loop.run_in_executor(None, services.escalation.sweep)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Periodic escalation sweep failed: {e}", exc_info=True)
        await asyncio.sleep(interval_seconds)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Firestore connection, service wiring, reference data, escalation loop.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if getattr(app.state, "services", None) is None:
        try:
            db = initialize_firestore()
        except RuntimeError as e:
            logger.warning(f"Firestore initialization failed: {e}")
            logger.warning("The app will start but database operations will return 503.")
            return

        services = build_services(db, settings)
        services.directory.seed_defaults()
        services.users.seed_demo_users()
        app.state.services = services

    app.state.sweep_task = asyncio.create_task(
        escalation_sweep_loop(app.state.services, settings.ESCALATION_SWEEP_INTERVAL_SECONDS)
    )


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    """
    task = getattr(app.state, "sweep_task", None)
    if task is not None:
        task.cancel()
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(reports.router)
app.include_router(authority.router)
app.include_router(admin.router)


# Root endpoint
@app.get("/")
def root(
    request: Request,
    action: Optional[str] = Query(None),
    report_id: Optional[str] = Query(None, alias="id"),
    token: Optional[str] = Query(None),
    new_status: Optional[str] = Query(None, alias="status"),
):
    """
    Root endpoint - API information, or an authority action link
    (?action=updateStatus&id=...&token=...&status=...).
    """
    if action:
        services = get_services(request)
        return handle_authority_action(services, action, report_id, token, new_status, redirect_to="/")

    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }
