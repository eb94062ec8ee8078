"""
Review Thread Service

Lists pull request review threads, marks them resolved and writes a
Markdown record of the outcome.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..github.client import GitHubAPIError, GitHubClient
from ..formatting.markdown import render_thread_report
from ..models.github import PullRequestRef, ReviewThread


logger = logging.getLogger(__name__)


REPORT_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


@dataclass
class ResolutionOutcome:
    """Result of resolving one thread"""
    thread_id: str
    resolved: bool
    error: Optional[str] = None
    thread: Optional[ReviewThread] = None

    @property
    def failed(self) -> bool:
        return not self.resolved


def report_filename(pr_number: int, timestamp: Optional[datetime] = None) -> str:
    """``review-pr-<N>-<YYYYmmdd-HHMMSS>.md``"""
    timestamp = timestamp or datetime.now()
    return f"review-pr-{pr_number}-{timestamp.strftime(REPORT_TIMESTAMP_FORMAT)}.md"


class ReviewThreadService:
    """
    Review thread operations for a single pull request at a time.

    Resolution continues past individual failures; each thread's outcome is
    returned so the caller can report what still needs attention.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    def list_threads(self, ref: PullRequestRef, include_resolved: bool = False) -> List[ReviewThread]:
        threads = self.client.get_review_threads(ref.owner, ref.repo, ref.number)
        if include_resolved:
            return threads
        return [t for t in threads if not t.is_resolved]

    def resolve_threads(self, ref: PullRequestRef,
                        thread_ids: Optional[Iterable[str]] = None) -> List[ResolutionOutcome]:
        """
        Resolve the given threads, or every unresolved thread when none are given.

        Ids that do not belong to the pull request are reported as failures
        without calling the API. Threads that are already resolved are
        reported as resolved without calling the API.
        """
        threads = {t.id: t for t in self.client.get_review_threads(ref.owner, ref.repo, ref.number)}

        if thread_ids is None:
            targets = [t.id for t in threads.values() if not t.is_resolved]
        else:
            targets = list(dict.fromkeys(thread_ids))

        logger.info(f"Resolving {len(targets)} review threads on {ref}")

        outcomes = []
        for thread_id in targets:
            thread = threads.get(thread_id)
            if thread is None:
                logger.warning(f"Thread {thread_id} is not part of {ref}")
                outcomes.append(ResolutionOutcome(thread_id, False, error=f"Thread not found on {ref}"))
                continue

            if thread.is_resolved:
                outcomes.append(ResolutionOutcome(thread_id, True, thread=thread))
                continue

            try:
                resolved = self.client.resolve_review_thread(thread_id)
            except GitHubAPIError as e:
                logger.error(f"Failed to resolve {thread_id}: {e}")
                outcomes.append(ResolutionOutcome(thread_id, False, error=str(e), thread=thread))
                continue

            if resolved:
                thread = thread.model_copy(update={'is_resolved': True})
            outcomes.append(ResolutionOutcome(
                thread_id,
                resolved,
                error=None if resolved else "GitHub did not mark the thread resolved",
                thread=thread,
            ))

        failures = sum(1 for o in outcomes if o.failed)
        if failures:
            logger.warning(f"{failures} of {len(outcomes)} threads could not be resolved on {ref}")
        return outcomes

    def write_report(self, ref: PullRequestRef, threads: List[ReviewThread],
                     directory: Union[str, Path] = ".",
                     outcomes: Optional[List[ResolutionOutcome]] = None,
                     timestamp: Optional[datetime] = None) -> Path:
        """Write a Markdown report of ``threads`` and return its path."""
        timestamp = timestamp or datetime.now()
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        path = directory / report_filename(ref.number, timestamp)
        content = render_thread_report(ref, threads, outcomes=outcomes, generated_at=timestamp)
        path.write_text(content, encoding='utf-8')

        logger.info(f"Wrote review thread report to {path}")
        return path
