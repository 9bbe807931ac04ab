"""
Service container - explicit wiring of every lifecycle service.

Built once at startup from a database handle, settings and a clock,
stored on app.state.services and handed to routes through Depends.
Tests build their own container over an in-memory mock database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
import logging

from app.core.settings import Settings
from app.models.report import utc_now
from app.services.ai_plugin.base import AIProvider
from app.services.ai_plugin.registry import build_ai_provider
from app.services.analytics_service import AnalyticsService
from app.services.authority_directory import AuthorityDirectory
from app.services.authority_gateway import AuthorityGateway
from app.services.email_dispatch import EmailDispatchService
from app.services.escalation_engine import EscalationEngine
from app.services.geocoding.resolver import build_geocoding_provider
from app.services.reinspection_service import ReInspectionService
from app.services.report_service import ReportService
from app.services.report_store import ReportStore
from app.services.status_workflow import StatusWorkflowEngine
from app.services.trust_ledger import TrustScoreLedger
from app.services.user_service import UserService
from app.services.vote_service import VerificationVoteService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    db: object
    config: Settings
    ai_provider: AIProvider
    ledger: TrustScoreLedger
    store: ReportStore
    workflow: StatusWorkflowEngine
    escalation: EscalationEngine
    votes: VerificationVoteService
    reinspection: ReInspectionService
    directory: AuthorityDirectory
    gateway: AuthorityGateway
    dispatcher: EmailDispatchService
    reports: ReportService
    analytics: AnalyticsService
    users: UserService


def build_services(
    db,
    config: Settings,
    clock: Callable[[], datetime] = utc_now,
    ai_provider: AIProvider = None,
    geocoder=None,
) -> ServiceContainer:
    """
    Wire the services together.

    Args:
        db: Firestore client or MockFirestore
        config: Settings instance
        clock: Time source shared by every service
        ai_provider: Override the configured AI provider
        geocoder: Override the configured geocoding provider
    """
    ai_provider = ai_provider or build_ai_provider(config)
    if geocoder is None:
        geocoder = build_geocoding_provider(config)

    ledger = TrustScoreLedger(db)
    users = UserService(db)
    ledger.subscribe(users.refresh_session_profile)

    store = ReportStore(db)
    workflow = StatusWorkflowEngine(store, ledger, clock=clock)
    escalation = EscalationEngine(
        store,
        threshold=timedelta(hours=config.ESCALATION_THRESHOLD_HOURS),
        escalation_target=config.ESCALATION_TARGET,
        clock=clock,
    )
    directory = AuthorityDirectory(db, geocoder=geocoder)
    gateway = AuthorityGateway(store, workflow, public_base_url=config.PUBLIC_BASE_URL)
    dispatcher = EmailDispatchService(
        db, store, workflow, directory, gateway, ai_provider,
        sender=config.DISPATCH_SENDER, clock=clock,
    )

    logger.info(
        f"Services ready (AI={ai_provider.get_model_info()['name']}, "
        f"escalation after {config.ESCALATION_THRESHOLD_HOURS}h, vote threshold {config.VOTE_THRESHOLD})"
    )

    return ServiceContainer(
        db=db,
        config=config,
        ai_provider=ai_provider,
        ledger=ledger,
        store=store,
        workflow=workflow,
        escalation=escalation,
        votes=VerificationVoteService(store, workflow, ledger, vote_threshold=config.VOTE_THRESHOLD),
        reinspection=ReInspectionService(store, ledger, ai_provider, clock=clock),
        directory=directory,
        gateway=gateway,
        dispatcher=dispatcher,
        reports=ReportService(
            store, ledger, ai_provider, dispatcher=dispatcher,
            auto_dispatch=config.AUTO_DISPATCH, clock=clock,
        ),
        analytics=AnalyticsService(store),
        users=users,
    )
