"""
Access Diagnostics

Checks of GitHub access through the ``gh`` CLI and through a stored token.
"""

from .gh_access import GhAccessDiagnostics
from .token_access import TokenAccessDiagnostics

__all__ = ['GhAccessDiagnostics', 'TokenAccessDiagnostics']
