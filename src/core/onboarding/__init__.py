# src/core/onboarding/__init__.py
"""
Домен подключения водителей: заявки, проверка биографии, смена роли.
"""

from src.core.onboarding.actions import CheckStatus, Complete, Initiate, ReviewAction, parse_action
from src.core.onboarding.authorization import AdminContext, AuthorizationGate
from src.core.onboarding.errors import (
    ConflictRetry,
    Forbidden,
    InvalidInput,
    NotFound,
    OnboardingError,
    Unauthenticated,
    UnknownAction,
    UpstreamFailure,
)
from src.core.onboarding.models import (
    ApplicationStats,
    DriverApplication,
    Profile,
    ReviewOutcome,
    SecondaryEffect,
    VerificationCheck,
    VerificationReport,
)
from src.core.onboarding.repository import ApplicationRepository
from src.core.onboarding.service import BackgroundCheckWorkflow
from src.core.onboarding.verification import BackgroundCheckSimulator, evaluate_background_check

__all__ = [
    "AdminContext",
    "ApplicationRepository",
    "ApplicationStats",
    "AuthorizationGate",
    "BackgroundCheckSimulator",
    "BackgroundCheckWorkflow",
    "CheckStatus",
    "Complete",
    "ConflictRetry",
    "DriverApplication",
    "Forbidden",
    "Initiate",
    "InvalidInput",
    "NotFound",
    "OnboardingError",
    "Profile",
    "ReviewAction",
    "ReviewOutcome",
    "SecondaryEffect",
    "Unauthenticated",
    "UnknownAction",
    "UpstreamFailure",
    "VerificationCheck",
    "VerificationReport",
    "evaluate_background_check",
    "parse_action",
]
