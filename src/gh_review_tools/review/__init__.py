"""
Review Threads

Listing and resolution of pull request review threads.
"""

from .threads import ResolutionOutcome, ReviewThreadService, report_filename

__all__ = ['ResolutionOutcome', 'ReviewThreadService', 'report_filename']
