"""
gh-review-tools

GitHub access diagnostics and pull request review-thread tools.
"""

__version__ = "1.0.0"

from .diagnostics import GhAccessDiagnostics, TokenAccessDiagnostics
from .review import ReviewThreadService

__all__ = ["GhAccessDiagnostics", "TokenAccessDiagnostics", "ReviewThreadService"]
