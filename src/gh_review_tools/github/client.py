"""
GitHub API Client

Handles GitHub API authentication, rate limiting, and communication.
Provides the REST lookups used by the token diagnostics and the GraphQL
calls used to list and resolve pull request review threads.
"""

import time
import logging
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.github import ReviewThread
from .parser import parse_scopes


logger = logging.getLogger(__name__)


REVIEW_THREADS_QUERY = """
query($owner: String!, $repo: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $number) {
      reviewThreads(first: 100, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          isResolved
          isOutdated
          path
          line
          comments(first: 50) {
            nodes { id body url createdAt author { login } }
          }
        }
      }
    }
  }
}
"""

RESOLVE_THREAD_MUTATION = """
mutation($threadId: ID!) {
  resolveReviewThread(input: {threadId: $threadId}) {
    thread { id isResolved }
  }
}
"""

UNMETERED_ENDPOINTS = {'/rate_limit'}


class GitHubAPIError(Exception):
    """GitHub API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}

    @property
    def api_message(self) -> Optional[str]:
        """The ``message`` field GitHub returned, if any."""
        return self.response_data.get('message')


class RateLimitExceeded(GitHubAPIError):
    """GitHub API rate limit exceeded"""
    def __init__(self, reset_time: datetime, status_code: Optional[int] = None):
        super().__init__(f"Rate limit exceeded. Resets at {reset_time}", status_code=status_code)
        self.reset_time = reset_time


class GitHubClient:
    """
    GitHub API client with authentication, rate limiting, and error handling.

    Provides methods for:
    - Authentication, rate limit and token scope checks
    - Repository and pull request lookups
    - Review thread listing and resolution over GraphQL
    """

    def __init__(self, token: str, base_url: str = "https://api.github.com", timeout: int = 30):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout: Per-request timeout in seconds
        """
        if not token:
            raise ValueError("GitHub token is required")
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = self._create_session()
        self.rate_limit_remaining = 5000
        self.rate_limit_reset = datetime.now()

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self.session.headers)

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy and authentication."""
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'gh-review-tools/1.0'
        })

        return session

    def _check_rate_limit(self) -> None:
        """Refuse to send requests while the known budget is exhausted."""
        if self.rate_limit_remaining <= 0 and datetime.now() < self.rate_limit_reset:
            wait_time = (self.rate_limit_reset - datetime.now()).total_seconds()
            logger.warning(f"Rate limit exhausted, resets in {wait_time:.1f}s")
            raise RateLimitExceeded(self.rate_limit_reset)

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        if 'X-RateLimit-Remaining' in response.headers:
            self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

        if 'X-RateLimit-Reset' in response.headers:
            reset_timestamp = int(response.headers['X-RateLimit-Reset'])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API with rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            GitHubAPIError: For API errors
            RateLimitExceeded: When rate limit is exceeded
        """
        # /rate_limit does not count against the core budget
        if endpoint.rstrip('/') not in UNMETERED_ENDPOINTS:
            self._check_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise GitHubAPIError(f"Request failed: {str(e)}")

        self._update_rate_limit(response)

        if response.status_code == 429 or (
            response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0'
        ):
            reset_time = datetime.fromtimestamp(int(response.headers.get('X-RateLimit-Reset', time.time() + 3600)))
            raise RateLimitExceeded(reset_time, status_code=response.status_code)

        if not response.ok:
            error_data = self._safe_json(response)
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {error_data.get('message', 'Unknown error')}",
                status_code=response.status_code,
                response_data=error_data
            )

        return response

    @staticmethod
    def _safe_json(response: requests.Response) -> Dict:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def get_authenticated_user(self) -> Dict:
        """Get the user the token belongs to."""
        response = self._make_request('GET', '/user')
        return response.json()

    def test_authentication(self) -> Tuple[bool, Dict]:
        """
        Test GitHub API authentication.

        Returns:
            Tuple of (success, user_info)
        """
        try:
            user_data = self.get_authenticated_user()
            logger.info(f"Authentication successful for user: {user_data.get('login')}")
            return True, user_data
        except GitHubAPIError as e:
            logger.error(f"Authentication failed: {e}")
            return False, {}

    def get_rate_limit_status(self) -> Dict:
        """
        Get current rate limit status.

        Returns:
            Rate limit information as returned by ``/rate_limit``
        """
        response = self._make_request('GET', '/rate_limit')
        return response.json()

    def get_token_scopes(self) -> Optional[List[str]]:
        """
        Get the OAuth scopes granted to the token.

        Returns:
            List of scopes, or None when GitHub does not report them
            (fine-grained tokens carry no ``X-OAuth-Scopes`` header)
        """
        response = self._make_request('HEAD', '/user')
        header = response.headers.get('X-OAuth-Scopes')
        if header is None:
            return None
        return parse_scopes(header)

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> Dict:
        """
        Get pull request information.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Pull request data
        """
        logger.info(f"Fetching PR {owner}/{repo}#{pr_number}")

        response = self._make_request('GET', f'/repos/{owner}/{repo}/pulls/{pr_number}')
        return response.json()

    def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict:
        """
        Run a GraphQL query or mutation.

        Returns:
            The ``data`` member of the response

        Raises:
            GitHubAPIError: When the response carries ``errors``
        """
        payload: Dict[str, Any] = {'query': query}
        if variables:
            payload['variables'] = variables

        response = self._make_request('POST', '/graphql', json=payload)
        body = response.json()

        errors = body.get('errors')
        if errors:
            messages = "; ".join(e.get('message', 'Unknown error') for e in errors)
            raise GitHubAPIError(f"GraphQL error: {messages}", status_code=response.status_code, response_data=body)

        return body.get('data') or {}

    def get_review_threads(self, owner: str, repo: str, pr_number: int) -> List[ReviewThread]:
        """
        Get every review thread on a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            List of review threads in the order GitHub returns them
        """
        logger.info(f"Fetching review threads for {owner}/{repo}#{pr_number}")

        threads = []
        cursor = None

        while True:
            data = self.graphql(REVIEW_THREADS_QUERY, {
                'owner': owner,
                'repo': repo,
                'number': pr_number,
                'cursor': cursor,
            })

            pull_request = (data.get('repository') or {}).get('pullRequest')
            if pull_request is None:
                raise GitHubAPIError(f"Pull request not found: {owner}/{repo}#{pr_number}", status_code=404)

            connection = pull_request['reviewThreads']
            threads.extend(ReviewThread.from_graphql(node) for node in connection['nodes'])

            page_info = connection['pageInfo']
            if not page_info['hasNextPage']:
                break
            cursor = page_info['endCursor']

        logger.info(f"Found {len(threads)} review threads")
        return threads

    def resolve_review_thread(self, thread_id: str) -> bool:
        """
        Mark a review thread as resolved.

        Returns:
            The thread's ``isResolved`` state after the mutation
        """
        logger.info(f"Resolving review thread {thread_id}")

        data = self.graphql(RESOLVE_THREAD_MUTATION, {'threadId': thread_id})
        thread = (data.get('resolveReviewThread') or {}).get('thread') or {}
        return bool(thread.get('isResolved'))
