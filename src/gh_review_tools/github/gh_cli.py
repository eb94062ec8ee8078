"""
GitHub CLI Wrapper

Runs ``gh`` subcommands and decodes their JSON output.
"""

import json
import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Optional, Sequence


logger = logging.getLogger(__name__)


REPO_VIEW_FIELDS = "name,owner,isPrivate,description"
PR_VIEW_FIELDS = "number,title,state,author,createdAt,comments,reviews"


class GhCommandError(Exception):
    """A ``gh`` invocation failed or produced unusable output"""
    def __init__(self, message: str, args: Sequence[str] = (), returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr


@dataclass
class GhResult:
    """Captured result of a ``gh`` invocation"""
    args: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr combined, as ``2>&1`` would show them."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)

    @property
    def error(self) -> str:
        return self.stderr.strip() or self.stdout.strip()

    def json(self) -> Any:
        try:
            return json.loads(self.stdout)
        except ValueError as e:
            raise GhCommandError(f"gh returned invalid JSON: {e}", self.args, self.returncode, self.stderr)


class GhCli:
    """
    Thin wrapper over the ``gh`` executable.

    Every call is blocking. ``run`` never raises on a non-zero exit.
    """

    def __init__(self, executable: str = "gh", timeout: Optional[int] = 60):
        self.executable = executable
        self.timeout = timeout

    def is_installed(self) -> bool:
        return shutil.which(self.executable) is not None

    def run(self, *args: str) -> GhResult:
        cmd = [self.executable] + list(args)
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            r = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise GhCommandError(f"{self.executable} not found", cmd) from e
        except subprocess.TimeoutExpired as e:
            raise GhCommandError(f"{self.executable} timed out after {self.timeout}s", cmd) from e
        except OSError as e:
            raise GhCommandError(f"{self.executable} could not be run: {e}", cmd) from e

        if r.returncode != 0:
            logger.debug(f"gh exited {r.returncode}: {r.stderr.strip()}")
        return GhResult(args=cmd, returncode=r.returncode, stdout=r.stdout, stderr=r.stderr)

    def version(self) -> str:
        """First line of ``gh --version``."""
        result = self.run("--version")
        lines = result.stdout.strip().splitlines()
        return lines[0] if lines else ""

    def auth_status(self) -> GhResult:
        return self.run("auth", "status")

    def api(self, endpoint: str) -> GhResult:
        return self.run("api", endpoint)

    def repo_view(self, repo: str, fields: str = REPO_VIEW_FIELDS) -> GhResult:
        return self.run("repo", "view", repo, "--json", fields)

    def pr_view(self, pr: int, repo: str, fields: str = PR_VIEW_FIELDS) -> GhResult:
        return self.run("pr", "view", str(pr), "--repo", repo, "--json", fields)

    def graphql(self, query: str, **variables: Any) -> GhResult:
        """
        Run ``gh api graphql``.

        String variables are passed with ``-f``; everything else with ``-F`` so
        that gh sends numbers and booleans typed.
        """
        args = ["api", "graphql", "-f", f"query={query}"]
        for name, value in variables.items():
            if value is None:
                continue
            flag = "-f" if isinstance(value, str) else "-F"
            if isinstance(value, bool):
                value = str(value).lower()
            args.extend([flag, f"{name}={value}"])
        return self.run(*args)
