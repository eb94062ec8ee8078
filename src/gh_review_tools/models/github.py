"""
GitHub Payload Models

Typed views over the JSON returned by `gh` and the GitHub REST/GraphQL APIs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator


RESET_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class RateLimit(BaseModel):
    """Core API rate limit"""
    limit: int
    remaining: int
    reset: int

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "RateLimit":
        """Build from a ``/rate_limit`` response (``resources.core``)."""
        core = (data.get('resources') or {}).get('core')
        if core is None:
            core = data.get('rate')
        if core is None:
            raise ValueError("Rate limit payload has no core resource")
        return cls(**core)

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset)

    def format_reset(self) -> str:
        return self.reset_at.strftime(RESET_TIME_FORMAT)

    def is_low(self, threshold: int) -> bool:
        return self.remaining < threshold


class GitHubUser(BaseModel):
    """Authenticated user"""
    login: str
    name: Optional[str] = None

    @field_validator('login')
    @classmethod
    def login_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("login cannot be empty")
        return v

    @property
    def display_name(self) -> Optional[str]:
        """Name, or None when GitHub reports it as null or empty."""
        return self.name or None


class RepositorySummary(BaseModel):
    """Repository fields reported by the diagnostics"""
    name: str
    owner_login: str
    is_private: bool
    description: Optional[str] = None

    @classmethod
    def from_gh(cls, data: Dict[str, Any]) -> "RepositorySummary":
        """Build from ``gh repo view --json name,owner,isPrivate,description``."""
        return cls(
            name=data['name'],
            owner_login=data['owner']['login'],
            is_private=data['isPrivate'],
            description=data.get('description'),
        )


class PullRequestSummary(BaseModel):
    """Pull request fields reported by the diagnostics"""
    number: int
    title: str
    state: str
    author_login: Optional[str] = None
    created_at: Optional[str] = None
    comment_count: int = 0
    review_count: Optional[int] = None
    review_comment_count: Optional[int] = None

    @classmethod
    def from_gh(cls, data: Dict[str, Any]) -> "PullRequestSummary":
        """Build from ``gh pr view --json number,title,state,author,createdAt,comments,reviews``."""
        author = data.get('author') or {}
        return cls(
            number=data['number'],
            title=data['title'],
            state=data['state'],
            author_login=author.get('login'),
            created_at=data.get('createdAt'),
            comment_count=len(data.get('comments') or []),
            review_count=len(data.get('reviews') or []),
        )

    @classmethod
    def from_rest(cls, data: Dict[str, Any]) -> "PullRequestSummary":
        """Build from ``GET /repos/{owner}/{repo}/pulls/{number}``."""
        user = data.get('user') or {}
        return cls(
            number=data['number'],
            title=data['title'],
            state=data['state'],
            author_login=user.get('login'),
            created_at=data.get('created_at'),
            comment_count=data.get('comments', 0),
            review_comment_count=data.get('review_comments', 0),
        )


class ReviewThreadComment(BaseModel):
    """A comment inside a review thread"""
    id: str
    author_login: Optional[str] = None
    body: str = ""
    url: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_graphql(cls, node: Dict[str, Any]) -> "ReviewThreadComment":
        author = node.get('author') or {}
        return cls(
            id=node['id'],
            author_login=author.get('login'),
            body=node.get('body') or "",
            url=node.get('url'),
            created_at=node.get('createdAt'),
        )


class ReviewThread(BaseModel):
    """A pull request review thread"""
    id: str
    is_resolved: bool
    is_outdated: bool = False
    path: Optional[str] = None
    line: Optional[int] = None
    comments: List[ReviewThreadComment] = []

    @classmethod
    def from_graphql(cls, node: Dict[str, Any]) -> "ReviewThread":
        comment_nodes = (node.get('comments') or {}).get('nodes') or []
        return cls(
            id=node['id'],
            is_resolved=node['isResolved'],
            is_outdated=node.get('isOutdated', False),
            path=node.get('path'),
            line=node.get('line'),
            comments=[ReviewThreadComment.from_graphql(c) for c in comment_nodes],
        )

    @property
    def location(self) -> str:
        if not self.path:
            return "(general)"
        if self.line is None:
            return self.path
        return f"{self.path}:{self.line}"

    @property
    def first_comment(self) -> Optional[ReviewThreadComment]:
        return self.comments[0] if self.comments else None


@dataclass
class AuthStatus:
    """Parsed ``gh auth status`` output"""
    username: Optional[str] = None
    has_token: bool = False
    scopes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PullRequestRef:
    """Identifies a pull request"""
    owner: str
    repo: str
    number: int

    def __post_init__(self):
        if not self.owner or not self.repo:
            raise ValueError("Owner and repository are required")
        if self.number <= 0:
            raise ValueError("Pull request number must be positive")

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.slug}#{self.number}"
