"""Database models."""

from backend.app.models.user import User
from backend.app.models.session import AuthSession
from backend.app.models.portfolio import Portfolio
from backend.app.models.work import Work, WorkFlag
from backend.app.models.theme import Theme, ThemeSubmission
from backend.app.models.vote import Vote

__all__ = [
    "User",
    "AuthSession",
    "Portfolio",
    "Work",
    "WorkFlag",
    "Theme",
    "ThemeSubmission",
    "Vote",
]
