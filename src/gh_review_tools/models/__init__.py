"""
Data Models

Diagnostic results and GitHub payload models.
"""

from .diagnostics import CheckResult, DiagnosticReport, OK, WARNING, ERROR, INFO
from .github import (
    AuthStatus,
    GitHubUser,
    PullRequestRef,
    PullRequestSummary,
    RateLimit,
    RepositorySummary,
    ReviewThread,
    ReviewThreadComment,
)

__all__ = [
    "CheckResult",
    "DiagnosticReport",
    "OK",
    "WARNING",
    "ERROR",
    "INFO",
    "AuthStatus",
    "GitHubUser",
    "PullRequestRef",
    "PullRequestSummary",
    "RateLimit",
    "RepositorySummary",
    "ReviewThread",
    "ReviewThreadComment",
]
