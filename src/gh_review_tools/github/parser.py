"""
GitHub Reference Parser

Parses repository slugs, pull request URLs, ``gh auth status`` output and
OAuth scope headers into structured values.
"""

import re
import logging
from typing import List, Optional, Tuple

from ..models.github import AuthStatus, PullRequestRef


logger = logging.getLogger(__name__)


SLUG_PATTERN = re.compile(r'^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$')
PR_URL_PATTERN = re.compile(
    r'^(?:https?://)?(?:www\.)?github\.com/([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)/pulls?/(\d+)(?:[/?#].*)?$'
)

# gh >= 2.40 prints "Logged in to github.com account <user> (keyring)",
# older releases print "Logged in to github.com as <user> (oauth_token)"
LOGGED_IN_PATTERN = re.compile(r'Logged in to \S+ (?:as|account) ([^\s(]+)')
SCOPES_PATTERN = re.compile(r'Token scopes:\s*(.*)$')

# Classic OAuth scope hierarchy, child -> parent
SCOPE_PARENTS = {
    'repo:status': 'repo',
    'repo_deployment': 'repo',
    'public_repo': 'repo',
    'repo:invite': 'repo',
    'security_events': 'repo',
    'write:repo_hook': 'admin:repo_hook',
    'read:repo_hook': 'write:repo_hook',
    'write:org': 'admin:org',
    'read:org': 'write:org',
    'manage_runners:org': 'admin:org',
    'write:public_key': 'admin:public_key',
    'read:public_key': 'write:public_key',
    'write:gpg_key': 'admin:gpg_key',
    'read:gpg_key': 'write:gpg_key',
    'write:ssh_signing_key': 'admin:ssh_signing_key',
    'read:ssh_signing_key': 'write:ssh_signing_key',
    'read:user': 'user',
    'user:email': 'user',
    'user:follow': 'user',
    'read:discussion': 'write:discussion',
    'read:packages': 'write:packages',
    'read:project': 'project',
    'codespace:secrets': 'codespace',
    'manage_runners:enterprise': 'admin:enterprise',
    'manage_billing:enterprise': 'admin:enterprise',
    'read:enterprise': 'admin:enterprise',
}


def parse_repo_slug(slug: str) -> Tuple[str, str]:
    """
    Split an ``owner/repo`` slug.

    Raises:
        ValueError: When the slug is not of the form owner/repo
    """
    match = SLUG_PATTERN.match(slug.strip())
    if not match:
        raise ValueError(f"Repository must be in the form owner/repo: {slug!r}")
    return match.group(1), match.group(2)


def parse_pr_url(url: str) -> PullRequestRef:
    """
    Parse a pull request URL such as ``https://github.com/owner/repo/pull/123``.

    Trailing path segments (``/files``), query strings and fragments are ignored.
    """
    match = PR_URL_PATTERN.match(url.strip())
    if not match:
        raise ValueError(f"Not a GitHub pull request URL: {url!r}")
    owner, repo, number = match.groups()
    return PullRequestRef(owner=owner, repo=repo, number=int(number))


def parse_pr_reference(target: str, pr_number: Optional[int] = None) -> PullRequestRef:
    """Accept either a PR URL or an ``owner/repo`` slug plus a number."""
    if "github.com" in target:
        return parse_pr_url(target)
    owner, repo = parse_repo_slug(target)
    if pr_number is None:
        raise ValueError("A pull request number is required with owner/repo")
    return PullRequestRef(owner=owner, repo=repo, number=pr_number)


def parse_scopes(header: str) -> List[str]:
    """Split an ``X-OAuth-Scopes`` header or ``Token scopes:`` value into scope names."""
    scopes = []
    for part in header.split(','):
        scope = part.strip().strip("'\"").strip()
        if scope:
            scopes.append(scope)
    return scopes


def has_scope(scopes: List[str], required: str) -> bool:
    """
    Check whether ``required`` is granted.

    A scope is granted when it is listed or when any scope above it in
    ``SCOPE_PARENTS`` is listed, so ``admin:org`` satisfies ``read:org``.
    """
    granted = set(scopes)
    scope: Optional[str] = required
    while scope is not None:
        if scope in granted:
            return True
        scope = SCOPE_PARENTS.get(scope)
    return False


def parse_auth_status(output: str) -> AuthStatus:
    """
    Extract username, token presence and scopes from ``gh auth status`` output.

    Only the first account listed is considered.
    """
    status = AuthStatus()

    for line in output.splitlines():
        if status.username is None:
            match = LOGGED_IN_PATTERN.search(line)
            if match:
                status.username = match.group(1)
                continue

        if not status.scopes:
            match = SCOPES_PATTERN.search(line)
            if match:
                status.scopes = parse_scopes(match.group(1))

    status.has_token = 'Token:' in output

    logger.debug(f"Parsed gh auth status: user={status.username} scopes={status.scopes}")
    return status
