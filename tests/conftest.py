"""
Shared fixtures: services wired over an in-memory mock Firestore, a
controllable clock and a MagicMock AI provider.
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from app.config.mock_firestore import MockFirestore
from app.core.settings import Settings
from app.models.report import AIAnalysis, IssueCategory, Location, Report, Severity
from app.models.user import SignupRequest
from app.services.ai_plugin.base import AIProvider, ReInspectionResult
from app.services.container import build_services

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

# "hazard-photo" / "fixed-photo" base64-encoded
BEFORE_IMAGE = "data:image/jpeg;base64,aGF6YXJkLXBob3Rv"
AFTER_IMAGE = "data:image/jpeg;base64,Zml4ZWQtcGhvdG8="


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_analysis(**overrides) -> AIAnalysis:
    data = dict(
        category=IssueCategory.POTHOLE,
        severity=Severity.HIGH,
        description="Deep pothole in the left lane",
        estimated_repair_cost="INR 15,000",
        public_safety_impact="Two-wheelers at risk of falling",
        safety_insight="Slow down near the junction",
        confidence_score=92,
        is_valid_issue=True,
    )
    data.update(overrides)
    return AIAnalysis(**data)


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    monkeypatch.setattr("app.utils.security.BCRYPT_ROUNDS", 4)


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def db():
    return MockFirestore()


@pytest.fixture
def config():
    return Settings(
        _env_file=None,
        USE_MOCK_DB=True,
        AI_ENABLED=False,
        GEOCODING_ENABLED=False,
        AUTO_DISPATCH=True,
        PUBLIC_BASE_URL="https://civic.test",
        ESCALATION_THRESHOLD_HOURS=72.0,
        VOTE_THRESHOLD=3,
    )


@pytest.fixture
def ai_provider():
    provider = MagicMock(spec=AIProvider)
    provider.is_enabled.return_value = True
    provider.get_model_info.return_value = {"name": "test-model", "version": "1"}
    provider.analyze_hazard.return_value = make_analysis()
    provider.compare_images.return_value = ReInspectionResult(True, 88.0, "Pothole has been filled")
    provider.generate_authority_email.return_value = "Dear Roads Division, please repair the pothole."
    return provider


@pytest.fixture
def services(db, config, clock, ai_provider):
    container = build_services(db, config, clock=clock, ai_provider=ai_provider)
    container.directory.seed_defaults()
    container.users.seed_demo_users()
    return container


def _signup(services, email):
    return services.users.signup(SignupRequest(email=email, password="secret123"))


@pytest.fixture
def reporter(services):
    """A fresh citizen with the default trust score of 50."""
    return _signup(services, "reporter@example.com")["user"]


@pytest.fixture
def voters(services):
    return [_signup(services, f"voter{i}@example.com")["user"] for i in range(4)]


@pytest.fixture
def make_report(services, clock):
    """Insert a report directly through the store."""

    def _make(**overrides) -> Report:
        data = dict(
            created_at=clock(),
            image=BEFORE_IMAGE,
            city="Bhilai",
            location=Location(lat=21.19, lng=81.35),
            description="Pothole near the market",
            analysis=make_analysis(),
        )
        data.update(overrides)
        return services.store.insert(Report(**data))

    return _make


def score(services, user) -> int:
    return services.ledger.get_score(user.uid)
