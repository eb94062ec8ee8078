"""
Command line entry point for the access diagnostics and review-thread tools.
"""

import argparse
import logging
import sys
import textwrap
from typing import List, Optional

from . import __version__
from .config import AppConfig, load_config, setup_logging
from .credentials import CredentialsError, load_credentials
from .diagnostics import GhAccessDiagnostics, TokenAccessDiagnostics
from .formatting import ConsoleFormatter
from .github import GhCli, GhCommandError, GitHubAPIError, GitHubClient
from .github.parser import parse_pr_reference, parse_repo_slug
from .models.diagnostics import OK, ERROR, WARNING
from .review import ReviewThreadService


logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═════════════════════════════════════════════════════════════════════════════

def cmd_gh(args, config: AppConfig, out: ConsoleFormatter) -> int:
    """Diagnose GitHub CLI access."""
    if args.repo:
        parse_repo_slug(args.repo)

    diagnostics = GhAccessDiagnostics(
        gh=GhCli(config.github.gh_executable, timeout=config.github.timeout_seconds),
        low_rate_limit=config.diagnostics.gh_low_rate_limit,
        listener=out.check,
    )
    out.heading(diagnostics.heading)
    report = diagnostics.run(repo=args.repo, pr=args.pr if args.repo else None)
    out.summary(report)
    return report.exit_code


def cmd_token(args, config: AppConfig, out: ConsoleFormatter) -> int:
    """Diagnose token access from the credentials file."""
    repo = args.repo or config.diagnostics.example_repo
    pr = args.pr if args.pr is not None else config.diagnostics.example_pr
    parse_repo_slug(repo)

    base_url = config.github.api_base_url
    timeout = config.github.timeout_seconds
    diagnostics = TokenAccessDiagnostics(
        credentials_path=args.credentials or config.diagnostics.credentials_path,
        client_factory=lambda token: GitHubClient(token, base_url=base_url, timeout=timeout),
        low_rate_limit=config.diagnostics.token_low_rate_limit,
        listener=out.check,
    )
    out.heading(diagnostics.heading)
    report = diagnostics.run(repo=repo, pr=pr)
    out.summary(report)
    return report.exit_code


def _resolve_token(args, config: AppConfig) -> str:
    """Token from GITHUB_TOKEN/config, falling back to the credentials file."""
    if config.github.token:
        return config.github.token
    return load_credentials(args.credentials or config.diagnostics.credentials_path).token


def cmd_threads(args, config: AppConfig, out: ConsoleFormatter) -> int:
    """List, resolve and report pull request review threads."""
    ref = parse_pr_reference(args.target, args.pr)
    client = GitHubClient(_resolve_token(args, config),
                          base_url=config.github.api_base_url,
                          timeout=config.github.timeout_seconds)

    authenticated, user = client.test_authentication()
    if not authenticated:
        out.message(ERROR, "Authentication failed: check GITHUB_TOKEN or the credentials file")
        return 1
    logger.info(f"Authenticated as {user.get('login')}")

    service = ReviewThreadService(client)

    outcomes = None
    if args.resolve or args.thread:
        outcomes = service.resolve_threads(ref, thread_ids=args.thread or None)
        out.line(f"Resolving review threads on {ref}")
        out.line()
        out.outcomes(outcomes)
        out.line()

    threads = service.list_threads(ref, include_resolved=args.all or outcomes is not None)
    out.line(f"Review threads on {ref}")
    out.line()
    out.threads(threads)
    out.line()

    if args.report_dir:
        path = service.write_report(ref, threads, directory=args.report_dir, outcomes=outcomes)
        out.message(WARNING if outcomes and any(o.failed for o in outcomes) else OK, f"Report written to {path}")

    if outcomes and any(o.failed for o in outcomes):
        return 1
    return 0


# ═════════════════════════════════════════════════════════════════════════════
# MAIN
# ═════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-review-tools",
        description="GitHub access diagnostics and PR review-thread tools.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              gh-review-tools gh                         # basic gh CLI checks
              gh-review-tools gh owner/repo 123          # plus repo and PR access
              gh-review-tools token --repo owner/repo --pr 123
              gh-review-tools threads https://github.com/owner/repo/pull/123 --resolve
        """),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--no-color", action="store_true", help="Disable coloured output")

    sub = parser.add_subparsers(dest="command", required=True)

    p_gh = sub.add_parser("gh", help="Test GitHub CLI (gh) access")
    p_gh.add_argument("repo", nargs="?", help="owner/repo to test repository access")
    p_gh.add_argument("pr", nargs="?", type=int, help="PR number to test PR access")
    p_gh.set_defaults(func=cmd_gh)

    p_token = sub.add_parser("token", help="Test token access from the credentials file")
    p_token.add_argument("--credentials", help="Path to github.json")
    p_token.add_argument("--repo", help="owner/repo for the PR access check")
    p_token.add_argument("--pr", type=int, help="PR number for the PR access check")
    p_token.set_defaults(func=cmd_token)

    p_threads = sub.add_parser("threads", help="List or resolve PR review threads")
    p_threads.add_argument("target", help="PR URL or owner/repo")
    p_threads.add_argument("--pr", type=int, help="PR number when target is owner/repo")
    p_threads.add_argument("--all", action="store_true", help="Include resolved threads")
    p_threads.add_argument("--resolve", action="store_true", help="Resolve every unresolved thread")
    p_threads.add_argument("--thread", action="append", metavar="ID", help="Resolve only this thread (repeatable)")
    p_threads.add_argument("--report-dir", help="Write review-pr-<N>-<timestamp>.md into this directory")
    p_threads.add_argument("--credentials", help="Path to github.json when GITHUB_TOKEN is unset")
    p_threads.set_defaults(func=cmd_threads)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    out = ConsoleFormatter(color=not args.no_color and sys.stdout.isatty())

    try:
        config = load_config(args.config)
        if args.log_level:
            config.logging.level = args.log_level
            config.validate()
    except (FileNotFoundError, ValueError, TypeError) as e:
        out.message(ERROR, f"Invalid configuration: {e}")
        return 1

    setup_logging(config.logging)

    try:
        return args.func(args, config, out)
    except (CredentialsError, GhCommandError, GitHubAPIError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        out.message(ERROR, str(e))
        return 1
