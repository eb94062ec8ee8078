"""
Diagnostic Runner Base

Shared plumbing for the access diagnostics: report construction and
delivery of each check to an optional listener as soon as it completes.
"""

import logging
from typing import Callable, Optional

from ..models.diagnostics import CheckResult, DiagnosticReport


logger = logging.getLogger(__name__)

CheckListener = Callable[[CheckResult], None]


class Diagnostic:
    """Base class for sequential access diagnostics."""

    name = "diagnostic"
    heading = "Running diagnostics..."

    def __init__(self, listener: Optional[CheckListener] = None):
        self.listener = listener
        self.report = DiagnosticReport(name=self.name)

    def _new_report(self) -> DiagnosticReport:
        self.report = DiagnosticReport(name=self.name)
        return self.report

    def _emit(self, check: CheckResult) -> CheckResult:
        self.report.add(check)
        logger.debug(f"[{self.name}] {check.title}: {check.status}")
        if self.listener:
            self.listener(check)
        return check

    def _fail(self, check: CheckResult) -> DiagnosticReport:
        """Record a fatal check and stop the run."""
        self._emit(check)
        self.report.abort()
        logger.error(f"[{self.name}] aborted at: {check.title}")
        return self.report
