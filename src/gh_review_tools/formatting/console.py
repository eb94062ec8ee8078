"""
Console Formatter

Renders diagnostic checks and review threads for the terminal.
"""

import sys
from typing import List, Optional, TextIO, TYPE_CHECKING

from ..models.diagnostics import CheckResult, DiagnosticReport, OK, WARNING, ERROR, INFO
from ..models.github import ReviewThread

if TYPE_CHECKING:
    from ..review.threads import ResolutionOutcome


GREEN = "\033[0;32m"
RED = "\033[0;31m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
DIM = "\033[2m"
NC = "\033[0m"

RULE = "═" * 63
INDENT = "   "

MARKERS = {
    OK: ("✅", GREEN),
    WARNING: ("⚠️ ", YELLOW),
    ERROR: ("❌", RED),
    INFO: ("💡", BLUE),
}


class ConsoleFormatter:
    """
    Writes coloured, indented check output.

    Checks are numbered in the order they are written.
    """

    def __init__(self, stream: Optional[TextIO] = None, color: bool = True):
        self.stream = stream or sys.stdout
        self.color = color
        self._counter = 0

    def _paint(self, text: str, colour: str) -> str:
        if not self.color:
            return text
        return f"{colour}{text}{NC}"

    def _write(self, line: str = "") -> None:
        self.stream.write(line + "\n")

    def status_line(self, status: str, text: str) -> str:
        marker, colour = MARKERS[status]
        return self._paint(f"{marker} {text}", colour)

    def heading(self, text: str) -> None:
        self._counter = 0
        self._write(text)
        self._write()

    def check(self, check: CheckResult) -> None:
        """Write a numbered top-level check."""
        self._counter += 1
        self._write(f"Test {self._counter}: {check.title}...")
        for line in check.context:
            self._write(f"{INDENT}{line}")
        if check.context:
            self._write()
        self._write(self.status_line(check.status, check.summary or check.title))
        self._body(check, INDENT)
        self._write()

    def _body(self, check: CheckResult, indent: str) -> None:
        for message in check.messages:
            self._write(f"{indent}{message}")
        if check.children:
            for child in check.children:
                self._write(f"{indent}{self.status_line(child.status, child.summary or child.title)}")
                for message in child.messages:
                    self._write(f"{indent}{message}")
        if check.hints:
            self._write()
            for hint in check.hints:
                self._write(f"{indent}{hint}")

    def summary(self, report: DiagnosticReport) -> None:
        """Write the closing banner and summary of a finished report."""
        summary = report.summary
        if summary is None:
            return
        self._write(RULE)
        self._write(self.status_line(OK, summary.title))
        self._write(RULE)
        self._write()

        if summary.status == OK:
            self._write(self._paint(summary.summary, GREEN))
        else:
            self._write(self._paint(f"⚠️  {summary.summary}", RED))
        self._write()
        for message in summary.messages:
            self._write(message)
        for hint in summary.hints:
            self._write(hint)
        for child in summary.children:
            self._write()
            self._write(self._paint(f"💡 {child.summary}", BLUE))
            for message in child.messages:
                self._write(f"{INDENT}{message}")
        self._write()

    def threads(self, threads: List[ReviewThread]) -> None:
        if not threads:
            self._write(self._paint("No review threads to show.", DIM))
            return
        for thread in threads:
            status = OK if thread.is_resolved else WARNING
            label = "resolved" if thread.is_resolved else "unresolved"
            if thread.is_outdated:
                label += ", outdated"
            self._write(self.status_line(status, f"{thread.location} ({label})"))
            self._write(f"{INDENT}id: {thread.id}")
            first = thread.first_comment
            if first is not None:
                author = f"@{first.author_login}" if first.author_login else "unknown"
                body = first.body.strip().splitlines()[0] if first.body.strip() else ""
                self._write(f"{INDENT}{author}: {body}")
                if len(thread.comments) > 1:
                    self._write(f"{INDENT}(+{len(thread.comments) - 1} replies)")

    def outcomes(self, outcomes: List["ResolutionOutcome"]) -> None:
        if not outcomes:
            self._write(self._paint("No unresolved review threads.", DIM))
            return
        for outcome in outcomes:
            if outcome.resolved:
                self._write(self.status_line(OK, f"Resolved {outcome.thread_id}"))
            else:
                self._write(self.status_line(ERROR, f"Could not resolve {outcome.thread_id}"))
                if outcome.error:
                    self._write(f"{INDENT}Error: {outcome.error}")

    def message(self, status: str, text: str) -> None:
        self._write(self.status_line(status, text))

    def line(self, text: str = "") -> None:
        self._write(text)
