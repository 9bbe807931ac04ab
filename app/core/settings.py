"""
Core settings and environment variables for CivicWatch Hazard Hub.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "CivicWatch Hazard Hub"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Public origin used when building authority action links in dispatch emails
    PUBLIC_BASE_URL: str = "http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # Mock DB mode for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    MOCK_DB_PATH: Optional[str] = "./mock_db.json"

    # AI Configuration
    AI_ENABLED: bool = True  # If False, the rule-based mock provider is used
    AI_PROVIDER: str = "gemini"
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    AI_TIMEOUT_SECONDS: float = 30.0

    # Reverse geocoding for authority routing (Nominatim, no API key)
    GEOCODING_ENABLED: bool = False

    # Lifecycle policy
    ESCALATION_THRESHOLD_HOURS: float = 72.0  # 3 days
    ESCALATION_SWEEP_INTERVAL_SECONDS: float = 300.0
    ESCALATION_TARGET: str = "City Commissioner / Oversight Board"
    VOTE_THRESHOLD: int = 3

    # Dispatch
    AUTO_DISPATCH: bool = True  # Dispatch to authority right after a valid submission
    DISPATCH_SENDER: str = "CivicWatch AI Dispatch <dispatch@civicwatch.local>"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
