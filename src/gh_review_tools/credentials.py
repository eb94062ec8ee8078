"""
Credentials

Loads the GitHub token and username from the credentials file::

    {"github": {"token": "ghp_...", "username": "octocat"}}
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ValidationError, field_validator

from .config import DEFAULT_CREDENTIALS_PATH


logger = logging.getLogger(__name__)


class CredentialsError(Exception):
    """The credentials file is unusable"""
    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class CredentialsNotFoundError(CredentialsError):
    """The credentials file does not exist"""


class MissingTokenError(CredentialsError):
    """The credentials file carries no token"""


class GitHubCredentials(BaseModel):
    """Token and expected username"""
    token: str
    username: Optional[str] = None

    @field_validator('token')
    @classmethod
    def token_not_empty(cls, v: str) -> str:
        if not v or not v.strip() or v == "null":
            raise ValueError("token cannot be empty")
        return v.strip()

    @property
    def masked_token(self) -> str:
        return f"{self.token[:8]}..."


def template_path(path: Union[str, Path]) -> Path:
    path = Path(path)
    return path.with_name(path.name + ".template")


def load_credentials(path: Union[str, Path] = DEFAULT_CREDENTIALS_PATH) -> GitHubCredentials:
    """
    Load credentials from ``path``.

    Raises:
        CredentialsNotFoundError: The file does not exist
        CredentialsError: The file is not a JSON object
        MissingTokenError: ``github.token`` is absent, null or empty
    """
    path = Path(path)
    if not path.is_file():
        raise CredentialsNotFoundError(f"{path.name} not found", path)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CredentialsError(f"Cannot read {path}: {e}", path) from e

    if not isinstance(data, dict):
        raise CredentialsError(f"Credentials root must be a JSON object: {path}", path)

    section = data.get('github') or {}
    if not isinstance(section, dict):
        raise CredentialsError(f"'github' must be a JSON object: {path}", path)

    try:
        credentials = GitHubCredentials(token=section.get('token') or "", username=section.get('username'))
    except ValidationError as e:
        raise MissingTokenError(f"Token not found in {path.name}", path) from e

    logger.info(f"Loaded credentials for {credentials.username or 'unknown user'} from {path}")
    return credentials
