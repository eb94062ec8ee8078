"""
Diagnostic Data Models

Results produced by the access diagnostics.
"""

from dataclasses import dataclass, field
from typing import List, Optional


OK = "ok"
WARNING = "warning"
ERROR = "error"
INFO = "info"

VALID_STATUSES = {OK, WARNING, ERROR, INFO}


@dataclass
class CheckResult:
    """Outcome of a single diagnostic check"""
    title: str
    status: str
    summary: str = ""
    context: List[str] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    hints: List[str] = field(default_factory=list)
    children: List["CheckResult"] = field(default_factory=list)

    def __post_init__(self):
        if self.status not in VALID_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")
        if not self.title.strip():
            raise ValueError("Title cannot be empty")

    @property
    def passed(self) -> bool:
        return self.status in (OK, INFO)

    def add(self, message: str) -> "CheckResult":
        self.messages.append(message)
        return self


@dataclass
class DiagnosticReport:
    """A sequence of checks run by one diagnostic"""
    name: str
    checks: List[CheckResult] = field(default_factory=list)
    aborted: bool = False
    summary: Optional[CheckResult] = None

    def add(self, check: CheckResult) -> CheckResult:
        self.checks.append(check)
        return check

    def abort(self) -> None:
        self.aborted = True

    @property
    def exit_code(self) -> int:
        return 1 if self.aborted else 0

    def find(self, title: str) -> Optional[CheckResult]:
        """Return the first check whose title starts with ``title``."""
        for check in self.checks:
            if check.title.startswith(title):
                return check
        return None
