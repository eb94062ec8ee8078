"""
Token Access Diagnostics

Checks a personal access token stored in the credentials file directly
against the GitHub REST API: authentication, rate limit, OAuth scopes and
pull request access.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from pydantic import ValidationError

from ..config import DEFAULT_CREDENTIALS_PATH
from ..credentials import (
    CredentialsError,
    CredentialsNotFoundError,
    GitHubCredentials,
    MissingTokenError,
    load_credentials,
    template_path,
)
from ..github.client import GitHubAPIError, GitHubClient
from ..github.parser import has_scope, parse_repo_slug
from ..models.diagnostics import CheckResult, DiagnosticReport, OK, WARNING, ERROR
from ..models.github import PullRequestSummary, RateLimit
from .base import CheckListener, Diagnostic


logger = logging.getLogger(__name__)


REQUIRED_SCOPE = "repo"
OPTIONAL_SCOPE = "read:discussion"
TOKEN_SETTINGS_URL = "https://github.com/settings/tokens"
UNSET_USERNAME = "(not set)"

ClientFactory = Callable[[str], GitHubClient]


class TokenAccessDiagnostics(Diagnostic):
    """
    Sequential checks of token-based REST API access.

    Missing credentials, a missing token or a failed ``/user`` call abort the
    run with exit code 1.
    """

    name = "token-access"
    heading = "🔍 Testing GitHub API Access..."

    def __init__(self, credentials_path: Union[str, Path] = DEFAULT_CREDENTIALS_PATH,
                 client_factory: Optional[ClientFactory] = None, low_rate_limit: int = 10,
                 listener: Optional[CheckListener] = None):
        super().__init__(listener)
        self.credentials_path = Path(credentials_path)
        self.client_factory = client_factory or GitHubClient
        self.low_rate_limit = low_rate_limit

    def run(self, repo: str = "owner/repository", pr: int = 123) -> DiagnosticReport:
        """
        Run every check.

        Args:
            repo: ``owner/repo`` used for the PR access check
            pr: Pull request number used for the PR access check
        """
        self._new_report()
        logger.info(f"Running token access diagnostics with {self.credentials_path}")

        credentials = self._load_credentials()
        if credentials is None:
            return self.report

        client = self.client_factory(credentials.token)

        if not self._check_authentication(client, credentials):
            return self.report

        self._check_rate_limit(client)
        self._check_scopes(client)
        self._check_pull_request(client, repo, pr)

        self.report.summary = CheckResult(
            title="GitHub API access test complete",
            status=OK,
            summary="Your credentials are configured correctly!",
            messages=["You can now use: /review-my-pr <pr-url>"],
        )
        return self.report

    def _load_credentials(self) -> Optional[GitHubCredentials]:
        title = "Loading credentials"
        try:
            credentials = load_credentials(self.credentials_path)
        except CredentialsNotFoundError as e:
            template = template_path(self.credentials_path)
            self._fail(CheckResult(
                title=title,
                status=ERROR,
                summary=f"Error: {e}",
                hints=[
                    "Please create the credentials file first:",
                    f"  cp {template} {self.credentials_path}",
                    f"Then edit {self.credentials_path.name} with your GitHub token.",
                ],
            ))
            return None
        except MissingTokenError as e:
            self._fail(CheckResult(title=title, status=ERROR, summary=f"Error: {e}"))
            return None
        except CredentialsError as e:
            self._fail(CheckResult(
                title=title,
                status=ERROR,
                summary="Error: credentials file is not valid JSON",
                messages=[str(e)],
            ))
            return None

        check = CheckResult(title=title, status=OK, summary="Credentials loaded")
        check.add(f"Username: {credentials.username or UNSET_USERNAME}")
        check.add(f"Token: {credentials.masked_token} (hidden)")
        self._emit(check)
        return credentials

    def _check_authentication(self, client: GitHubClient, credentials: GitHubCredentials) -> bool:
        title = "Checking authentication"
        try:
            user = client.get_authenticated_user()
        except GitHubAPIError as e:
            if e.status_code is None:
                self._fail(CheckResult(title=title, status=ERROR,
                                       summary="Failed to connect to GitHub API",
                                       messages=[str(e)]))
            else:
                self._fail(CheckResult(title=title, status=ERROR, summary="Authentication failed",
                                       messages=[f"Error: {e.api_message or e}"]))
            return False

        login = user.get('login') if isinstance(user, dict) else None
        if not login:
            self._fail(CheckResult(title=title, status=ERROR, summary="Authentication failed",
                                   messages=[f"Error: {user.get('message') if isinstance(user, dict) else user}"]))
            return False

        check = CheckResult(title=title, status=OK, summary="Authentication successful")
        check.add(f"Authenticated as: @{login}")
        if login != credentials.username:
            logger.warning(f"Token belongs to {login}, credentials name {credentials.username}")
            check.children.append(CheckResult(
                title="Username",
                status=WARNING,
                summary="Warning: Username mismatch",
                messages=[f"Expected: @{credentials.username or UNSET_USERNAME}", f"Actual: @{login}"],
            ))
        self._emit(check)
        return True

    def _check_rate_limit(self, client: GitHubClient) -> None:
        title = "Checking rate limit"
        try:
            rate = RateLimit.from_payload(client.get_rate_limit_status())
        except (GitHubAPIError, AttributeError, ValueError, ValidationError) as e:
            logger.error(f"Rate limit lookup failed: {e}")
            self._emit(CheckResult(title=title, status=ERROR, summary="Failed to get rate limit info"))
            return

        check = CheckResult(title=title, status=OK, summary="Rate limit info retrieved")
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

    def _check_scopes(self, client: GitHubClient) -> None:
        title = "Checking token scopes"
        try:
            scopes = client.get_token_scopes()
        except GitHubAPIError as e:
            logger.error(f"Scope lookup failed: {e}")
            scopes = None

        if not scopes:
            self._emit(CheckResult(title=title, status=WARNING, summary="Could not determine token scopes"))
            return

        check = CheckResult(title=title, status=OK, summary="Token scopes:")
        check.add(", ".join(scopes))
        check.add("Required scopes for /review-my-pr:")

        has_repo = has_scope(scopes, REQUIRED_SCOPE)
        if has_repo:
            check.children.append(CheckResult(title=REQUIRED_SCOPE, status=OK, summary=REQUIRED_SCOPE))
        else:
            check.children.append(CheckResult(title=REQUIRED_SCOPE, status=ERROR,
                                              summary=f"{REQUIRED_SCOPE} (MISSING)"))

        if has_scope(scopes, OPTIONAL_SCOPE):
            check.children.append(CheckResult(title=OPTIONAL_SCOPE, status=OK, summary=OPTIONAL_SCOPE))
        else:
            check.children.append(CheckResult(title=OPTIONAL_SCOPE, status=WARNING,
                                              summary=f"{OPTIONAL_SCOPE} (MISSING - may still work)"))

        if not has_repo:
            check.status = ERROR
            check.hints.extend([
                f"Missing required scope '{REQUIRED_SCOPE}'",
                "Please regenerate your token with the correct scopes:",
                TOKEN_SETTINGS_URL,
            ])
        self._emit(check)

    def _check_pull_request(self, client: GitHubClient, repo: str, pr: int) -> None:
        title = "Testing PR access"
        context = [f"Repository: {repo}", f"PR: #{pr}"]
        owner, name = parse_repo_slug(repo)
        try:
            summary = PullRequestSummary.from_rest(client.get_pull_request(owner, name, pr))
        except GitHubAPIError as e:
            message = e.api_message or str(e)
            if message == "Not Found":
                self._emit(CheckResult(
                    title=title,
                    status=WARNING,
                    summary=f"PR #{pr} not found or not accessible",
                    context=context,
                    messages=self._not_found_messages(repo),
                ))
            else:
                self._emit(CheckResult(title=title, status=ERROR, summary="Failed to access PR",
                                       context=context, messages=[f"Error: {message}"]))
            return
        except (KeyError, TypeError, ValidationError) as e:
            logger.error(f"Unexpected pull request payload: {e}")
            self._emit(CheckResult(title=title, status=ERROR, summary="Failed to access PR",
                                   context=context, messages=[f"Error: {e}"]))
            return

        check = CheckResult(title=title, status=OK, summary="PR access successful", context=context)
        check.add(f"Title: {summary.title}")
        check.add(f"State: {summary.state}")
        check.add(f"Comments: {summary.comment_count}")
        check.add(f"Review Comments: {summary.review_comment_count}")
        self._emit(check)

    @staticmethod
    def _not_found_messages(repo: str) -> List[str]:
        if repo == "owner/repository":
            return [
                "This is expected - this is an example repository",
                "Pass --repo and --pr to test your own pull request",
                "The token will work with PRs in repositories you have access to",
            ]
        return ["Check that the repository and PR number are correct and the token can read them"]
