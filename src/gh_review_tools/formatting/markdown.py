"""
Markdown Report Formatter

Renders review threads as a Markdown document.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from ..models.github import PullRequestRef, ReviewThread

if TYPE_CHECKING:
    from ..review.threads import ResolutionOutcome


MAX_EXCERPT_LENGTH = 500


def _excerpt(body: str) -> str:
    body = body.strip()
    if len(body) > MAX_EXCERPT_LENGTH:
        body = body[:MAX_EXCERPT_LENGTH].rstrip() + "..."
    return "\n".join(f"> {line}" if line else ">" for line in body.splitlines()) or "> (empty)"


def render_thread_report(ref: PullRequestRef, threads: List[ReviewThread],
                         outcomes: Optional[List["ResolutionOutcome"]] = None,
                         generated_at: Optional[datetime] = None) -> str:
    """
    Render a Markdown report for a pull request's review threads.

    Threads are grouped by file in first-seen order. When ``outcomes`` is
    given a resolution section lists each thread's result.
    """
    generated_at = generated_at or datetime.now()
    unresolved = sum(1 for t in threads if not t.is_resolved)

    lines = [
        f"# Review threads for {ref}",
        "",
        f"- Pull request: https://github.com/{ref.slug}/pull/{ref.number}",
        f"- Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"- Threads: {len(threads)} ({unresolved} unresolved)",
        "",
    ]

    by_file = {}
    for thread in threads:
        by_file.setdefault(thread.path or "(general)", []).append(thread)

    for path, file_threads in by_file.items():
        lines.append(f"## `{path}`")
        lines.append("")
        for thread in file_threads:
            state = "resolved" if thread.is_resolved else "unresolved"
            if thread.is_outdated:
                state += ", outdated"
            line_label = f"line {thread.line}" if thread.line is not None else "file"
            lines.append(f"### {line_label} ({state})")
            lines.append("")
            lines.append(f"Thread: `{thread.id}`")
            lines.append("")
            for comment in thread.comments:
                author = f"@{comment.author_login}" if comment.author_login else "unknown"
                link = f" ([link]({comment.url}))" if comment.url else ""
                lines.append(f"**{author}**{link}:")
                lines.append("")
                lines.append(_excerpt(comment.body))
                lines.append("")

    if not threads:
        lines.append("No review threads.")
        lines.append("")

    if outcomes is not None:
        lines.append("## Resolution")
        lines.append("")
        for outcome in outcomes:
            mark = "x" if outcome.resolved else " "
            detail = f" - {outcome.error}" if outcome.error else ""
            lines.append(f"- [{mark}] `{outcome.thread_id}`{detail}")
        lines.append("")

    return "\n".join(lines)
