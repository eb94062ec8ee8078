"""
Test helpers: a fake ``gh`` executable, canned HTTP responses and GraphQL nodes.
"""

import json
import subprocess
from typing import Dict, List, Optional, Tuple, Union
from unittest.mock import Mock


AUTH_STATUS_OUTPUT = """github.com
  ✓ Logged in to github.com account octocat (keyring)
  - Active account: true
  - Git operations protocol: https
  - Token: gho_************************************
  - Token scopes: 'gist', 'read:org', 'repo', 'workflow'
"""

RATE_LIMIT_PAYLOAD = {
    "resources": {
        "core": {"limit": 5000, "remaining": 4990, "reset": 1700000000, "used": 10},
        "graphql": {"limit": 5000, "remaining": 5000, "reset": 1700000000, "used": 0},
    },
    "rate": {"limit": 5000, "remaining": 4990, "reset": 1700000000, "used": 10},
}

REPO_VIEW_PAYLOAD = {
    "name": "hello-world",
    "owner": {"id": "MDQ6VXNlcjE=", "login": "octocat"},
    "isPrivate": False,
    "description": "My first repository on GitHub!",
}

PR_VIEW_PAYLOAD = {
    "number": 7,
    "title": "Add greeting",
    "state": "OPEN",
    "author": {"login": "hubot"},
    "createdAt": "2024-05-01T10:00:00Z",
    "comments": [{"body": "LGTM"}, {"body": "nit"}],
    "reviews": [{"state": "APPROVED"}],
}


class FakeGh:
    """
    Stand-in for the ``gh`` executable.

    Routes are keyed by a prefix of the space-joined argument string. The
    most recently registered matching route wins, so a test can override a
    happy-path route with a shorter prefix. Unknown commands exit 1.
    """

    def __init__(self):
        self.installed = True
        self.routes: Dict[str, Union[Tuple[int, str, str], Exception]] = {}
        self.calls: List[List[str]] = []

    def respond(self, prefix: str, stdout="", returncode: int = 0, stderr: str = "") -> None:
        if not isinstance(stdout, str):
            stdout = json.dumps(stdout)
        self.routes.pop(prefix, None)
        self.routes[prefix] = (returncode, stdout, stderr)

    def fail(self, prefix: str, stderr: str) -> None:
        self.respond(prefix, "", returncode=1, stderr=stderr)

    def raise_on(self, prefix: str, error: Exception) -> None:
        """Make matching commands raise ``error`` from ``subprocess.run``."""
        self.routes.pop(prefix, None)
        self.routes[prefix] = error

    def which(self, name):
        return f"/usr/bin/{name}" if self.installed else None

    def run(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        key = " ".join(cmd[1:])
        for prefix in reversed(list(self.routes)):
            if key.startswith(prefix):
                route = self.routes[prefix]
                if isinstance(route, Exception):
                    raise route
                code, out, err = route
                return subprocess.CompletedProcess(cmd, code, out, err)
        return subprocess.CompletedProcess(cmd, 1, "", f"unknown command: {key}")

    def called(self, *args: str) -> bool:
        return any(call[1:] == list(args) for call in self.calls)

    def install_happy_path(self, repo: str = "octocat/hello-world", pr: int = 7) -> None:
        self.respond("--version", "gh version 2.45.0 (2024-03-04)\nhttps://github.com/cli/cli/releases/tag/v2.45.0\n")
        self.respond("auth status", AUTH_STATUS_OUTPUT)
        self.respond("api /rate_limit", RATE_LIMIT_PAYLOAD)
        self.respond("api /user", {"login": "octocat", "name": "The Octocat"})
        self.respond("api /user/repos?per_page=1", [])
        self.respond("api /user/orgs", [])
        self.respond(f"repo view {repo} --json name,owner,isPrivate,description", REPO_VIEW_PAYLOAD)
        self.respond(f"pr view {pr} --repo {repo} --json number,title,state,author,createdAt,comments,reviews",
                     PR_VIEW_PAYLOAD)
        self.respond(f"pr view {pr} --repo {repo} --json comments", {"comments": []})
        self.respond("api graphql", {"data": {"viewer": {"login": "octocat"}}})


def make_response(status_code: int = 200, json_data=None, headers: Optional[Dict[str, str]] = None) -> Mock:
    """Build a mock ``requests.Response``."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers if headers is not None else {
        'X-RateLimit-Remaining': '4999',
        'X-RateLimit-Reset': '1700000000',
    }
    response.content = b'' if json_data is None else json.dumps(json_data).encode()
    response.json.return_value = json_data
    return response


def thread_node(thread_id: str, resolved: bool = False, path: Optional[str] = "src/app.py",
                line: Optional[int] = 10, body: str = "Please rename this variable",
                author: str = "reviewer") -> Dict:
    """A ``reviewThreads`` node as returned by the GraphQL API."""
    return {
        "id": thread_id,
        "isResolved": resolved,
        "isOutdated": False,
        "path": path,
        "line": line,
        "comments": {"nodes": [{
            "id": f"{thread_id}-c1",
            "body": body,
            "url": f"https://github.com/octocat/hello-world/pull/7#discussion_{thread_id}",
            "createdAt": "2024-05-01T10:00:00Z",
            "author": {"login": author},
        }]},
    }
