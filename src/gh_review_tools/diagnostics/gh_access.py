"""
GitHub CLI Access Diagnostics

Checks that ``gh`` is installed and authenticated, that the REST and GraphQL
APIs answer, and optionally that a repository and pull request are readable.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from ..github.gh_cli import GhCli, GhCommandError
from ..github.parser import parse_auth_status
from ..models.diagnostics import CheckResult, DiagnosticReport, OK, WARNING, ERROR, INFO
from ..models.github import GitHubUser, PullRequestSummary, RateLimit, RepositorySummary
from .base import CheckListener, Diagnostic


logger = logging.getLogger(__name__)


INSTALL_HINTS = [
    "Please install GitHub CLI first:",
    "  macOS:   brew install gh",
    "  Linux:   See https://github.com/cli/cli/blob/trunk/docs/install_linux.md",
    "  Windows: winget install --id GitHub.cli",
]

LOGIN_HINTS = [
    "Please authenticate first:",
    "  gh auth login",
    "Then run this test again.",
]

REPO_HINTS = [
    "Make sure:",
    "1. The repository exists",
    "2. You have access to it",
    "3. The repository name is correct (format: owner/repo)",
]

PR_HINTS = [
    "Make sure:",
    "1. The PR exists in the repository",
    "2. You have access to the repository",
    "3. The PR number is correct",
]

USAGE_LINES = [
    "You can now use:",
    "  • /review-my-pr <pr-url>     - Review PR comments",
    "  • /fix-my-pr <pr-url>        - Apply fixes automatically",
    "  • gh-review-tools threads <pr-url> --resolve - Resolve review threads",
    "  • gh pr view <number>        - View PR details",
]

TIP_LINES = [
    "Run with arguments to test specific access:",
    "  gh-review-tools gh owner/repo          # Test repo access",
    "  gh-review-tools gh owner/repo 123      # Test PR #123 access",
]


class GhAccessDiagnostics(Diagnostic):
    """
    Sequential checks of GitHub CLI access.

    A missing ``gh`` or a failed ``gh auth status`` aborts the run with exit
    code 1. Every later failure is reported and the run continues.
    """

    name = "gh-access"
    heading = "🔍 Testing GitHub CLI Access..."

    def __init__(self, gh: Optional[GhCli] = None, low_rate_limit: int = 100,
                 listener: Optional[CheckListener] = None):
        super().__init__(listener)
        self.gh = gh or GhCli()
        self.low_rate_limit = low_rate_limit

    def run(self, repo: Optional[str] = None, pr: Optional[int] = None) -> DiagnosticReport:
        """
        Run every check.

        Args:
            repo: Optional ``owner/repo`` to test repository access
            pr: Optional pull request number, only used together with ``repo``
        """
        self._new_report()
        logger.info(f"Running gh access diagnostics (repo={repo}, pr={pr})")

        if not self._check_installed():
            return self.report
        if not self._check_auth():
            return self.report

        rate_ok = self._check_rate_limit()
        self._check_user()

        if repo:
            self._check_repository(repo)
            if pr is not None:
                self._check_pull_request(repo, pr)

        self._summarize(auth_ok=True, rate_ok=rate_ok, repo=repo)
        return self.report

    # -- individual checks -------------------------------------------------

    def _check_installed(self) -> bool:
        title = "Checking if GitHub CLI is installed"
        if not self.gh.is_installed():
            self._fail(CheckResult(
                title=title,
                status=ERROR,
                summary="GitHub CLI (gh) is not installed",
                hints=list(INSTALL_HINTS),
            ))
            return False

        check = CheckResult(title=title, status=OK, summary="GitHub CLI is installed")
        version = self._safe_run(self.gh.version)
        check.add(f"Version: {version or 'unknown'}")
        self._emit(check)
        return True

    def _check_auth(self) -> bool:
        title = "Checking authentication status"
        result = self._safe_run(self.gh.auth_status)
        if result is None or not result.ok:
            self._fail(CheckResult(
                title=title,
                status=ERROR,
                summary="Not authenticated with GitHub",
                hints=list(LOGIN_HINTS),
            ))
            return False

        status = parse_auth_status(result.output)
        check = CheckResult(title=title, status=OK, summary="Authenticated with GitHub")
        if status.username:
            check.add(f"Authenticated as: @{status.username}")
        if status.has_token:
            check.add("Token: Active")
        if status.scopes:
            check.add(f"Scopes: {', '.join(status.scopes)}")
        self._emit(check)
        return True

    def _check_rate_limit(self) -> bool:
        title = "Checking API access and rate limit"
        result = self._safe_run(self.gh.api, "/rate_limit")
        if result is None or not result.ok:
            check = CheckResult(title=title, status=ERROR, summary="API access failed")
            check.add(f"Error: {result.error if result else 'gh could not be run'}")
            self._emit(check)
            return False

        check = CheckResult(title=title, status=OK, summary="API access successful")
        try:
            rate = RateLimit.from_payload(result.json())
        except (GhCommandError, AttributeError, ValueError, ValidationError) as e:
            logger.warning(f"Unreadable rate limit payload: {e}")
            check.add("(Rate limit details unavailable)")
            self._emit(check)
            return True

        check.add(f"Limit: {rate.limit} requests/hour")
        check.add(f"Remaining: {rate.remaining} requests")
        if rate.is_low(self.low_rate_limit):
            check.children.append(CheckResult(
                title="Rate limit",
                status=WARNING,
                summary="Warning: Low rate limit remaining",
                messages=[f"Resets at: {rate.format_reset()}"],
            ))
        self._emit(check)
        return True

    def _check_user(self) -> None:
        title = "Checking token permissions"
        result = self._safe_run(self.gh.api, "/user")
        if result is None or not result.ok:
            self._emit(CheckResult(title=title, status=ERROR, summary="User API access failed"))
            return

        check = CheckResult(title=title, status=OK, summary="User API access successful")
        try:
            user = GitHubUser(**result.json())
            check.add(f"Login: @{user.login}")
            if user.display_name:
                check.add(f"Name: {user.display_name}")
        except (GhCommandError, TypeError, ValidationError) as e:
            logger.warning(f"Unreadable user payload: {e}")

        repos = self._safe_run(self.gh.api, "/user/repos?per_page=1")
        if repos is not None and repos.ok:
            check.children.append(CheckResult(title="List repositories", status=OK,
                                              summary="Can list repositories"))
        else:
            check.children.append(CheckResult(title="List repositories", status=ERROR,
                                              summary="Cannot list repositories"))

        orgs = self._safe_run(self.gh.api, "/user/orgs")
        if orgs is not None and orgs.ok:
            check.children.append(CheckResult(title="List organizations", status=OK,
                                              summary="Can list organizations"))
        else:
            check.children.append(CheckResult(title="List organizations", status=WARNING,
                                              summary="Cannot list organizations (may be expected)"))
        self._emit(check)

    def _check_repository(self, repo: str) -> None:
        title = "Testing repository access"
        context = [f"Repository: {repo}"]
        result = self._safe_run(self.gh.repo_view, repo)
        if result is None or not result.ok:
            self._emit(CheckResult(
                title=title,
                status=ERROR,
                summary="Repository access failed",
                context=context,
                messages=[f"Error: {result.error if result else 'gh could not be run'}"],
                hints=list(REPO_HINTS),
            ))
            return

        check = CheckResult(title=title, status=OK, summary="Repository access successful", context=context)
        try:
            summary = RepositorySummary.from_gh(result.json())
        except (GhCommandError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Unexpected repo view payload: {e}")
            check.add(result.stdout.strip())
            self._emit(check)
            return

        check.add(f"Name: {summary.name}")
        check.add(f"Owner: @{summary.owner_login}")
        check.add(f"Private: {str(summary.is_private).lower()}")
        if summary.description:
            check.add(f"Description: {summary.description}")
        self._emit(check)

    def _check_pull_request(self, repo: str, pr: int) -> None:
        title = "Testing PR access"
        context = [f"Repository: {repo}", f"PR: #{pr}"]
        result = self._safe_run(self.gh.pr_view, pr, repo)
        if result is None or not result.ok:
            self._emit(CheckResult(
                title=title,
                status=ERROR,
                summary="PR access failed",
                context=context,
                messages=[f"Error: {result.error if result else 'gh could not be run'}"],
                hints=list(PR_HINTS),
            ))
            return

        check = CheckResult(title=title, status=OK, summary="PR access successful", context=context)
        try:
            summary = PullRequestSummary.from_gh(result.json())
            check.add(f"Title: {summary.title}")
            check.add(f"State: {summary.state}")
            check.add(f"Author: @{summary.author_login}")
            check.add(f"Created: {summary.created_at}")
            check.add(f"Comments: {summary.comment_count}")
            check.add(f"Reviews: {summary.review_count}")
        except (GhCommandError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Unexpected pr view payload: {e}")
            check.add(result.stdout.strip())

        comments = self._safe_run(self.gh.pr_view, pr, repo, "comments")
        if comments is not None and comments.ok:
            check.children.append(CheckResult(title="PR comments", status=OK,
                                              summary="Can fetch PR comments"))
        else:
            check.children.append(CheckResult(title="PR comments", status=ERROR,
                                              summary="Cannot fetch PR comments"))

        check.children.append(self._check_graphql())
        self._emit(check)

    def _check_graphql(self) -> CheckResult:
        title = "GraphQL API access (for marking as resolved)"
        result = self._safe_run(self.gh.graphql, "query { viewer { login } }")
        if result is None or not result.ok:
            return CheckResult(
                title=title,
                status=ERROR,
                summary="GraphQL API access failed",
                messages=[f"Error: {result.error if result else 'gh could not be run'}"],
            )

        check = CheckResult(title=title, status=OK, summary="GraphQL API access successful")
        try:
            viewer = ((result.json() or {}).get('data') or {}).get('viewer') or {}
            if viewer.get('login'):
                check.add(f"GraphQL viewer: @{viewer['login']}")
        except (GhCommandError, AttributeError) as e:
            logger.warning(f"Unreadable GraphQL payload: {e}")
        check.messages.extend([
            "This means you can:",
            "- Fetch PR review threads",
            "- Mark comments as resolved",
            "- Use all /review-my-pr and /fix-my-pr features",
        ])
        return check

    def _summarize(self, auth_ok: bool, rate_ok: bool, repo: Optional[str]) -> None:
        if auth_ok and rate_ok:
            summary = CheckResult(
                title="GitHub CLI access test complete",
                status=OK,
                summary="Your GitHub CLI is configured correctly!",
                messages=list(USAGE_LINES),
            )
            if not repo:
                summary.children.append(CheckResult(
                    title="Tip", status=INFO, summary="Tip:", messages=list(TIP_LINES),
                ))
        else:
            summary = CheckResult(
                title="GitHub CLI access test complete",
                status=ERROR,
                summary="Setup incomplete",
                hints=["Please run: gh auth login"],
            )
        self.report.summary = summary

    def _safe_run(self, func, *args) -> Any:
        """Call a GhCli method, returning None when gh cannot be run."""
        try:
            return func(*args)
        except GhCommandError as e:
            logger.error(f"gh invocation failed: {e}")
            return None
