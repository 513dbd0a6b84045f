"""CLI entrypoint for the post-process steps of the Leonidas workflow.

Each subcommand runs one step after the coding agent has finished:
linking sub-issues, posting completion/failure comments, rescuing partial
work, copying issue metadata onto the PR and triggering CI.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from leonidas_orchestrator import __version__
from leonidas_orchestrator.orchestrator.config import LeonidasSettings
from leonidas_orchestrator.orchestrator.github.client import GitHubClient, LeonidasError
from leonidas_orchestrator.orchestrator.logging import configure_logging
from leonidas_orchestrator.orchestrator.planning.comments import (
    build_completion_comment,
    build_failure_comment,
    build_partial_progress_comment,
    build_rescue_pr_body,
    build_rescue_pr_title,
)
from leonidas_orchestrator.orchestrator.planning.metadata import (
    extract_parent_issue_number,
    extract_sub_issue_numbers,
    is_decomposed_plan,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="leonidas-orchestrator",
        description="Post-process steps for the Leonidas issue workflow",
    )
    parser.add_argument(
        "--version", action="version", version=f"leonidas-orchestrator {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "link-subissues",
        help="Link the sub-issues of a decomposed plan to their parent issue",
    )
    subparsers.add_parser(
        "post-completion",
        help="Comment on the issue with the PR created for it",
    )
    subparsers.add_parser(
        "post-failure",
        help="Comment on the issue that the plan/execute run failed",
    )
    subparsers.add_parser(
        "rescue",
        help="Preserve partial work by reporting or opening a draft PR for the issue branch",
    )
    subparsers.add_parser(
        "post-process-pr",
        help="Copy issue labels and author onto the PR built from the issue branch",
    )
    trigger_ci = subparsers.add_parser(
        "trigger-ci",
        help="Dispatch the CI workflow on the issue branch",
    )
    trigger_ci.add_argument(
        "--workflow",
        default=None,
        help="Workflow file to dispatch (defaults to LEONIDAS_CI_WORKFLOW)",
    )
    return parser


def _require_issue_number(settings: LeonidasSettings) -> int:
    if settings.issue_number is None:
        raise LeonidasError("ISSUE_NUMBER is required")
    return settings.issue_number


def _write_output(settings: LeonidasSettings, key: str, value: str) -> None:
    """Append a step output for GitHub Actions, if running inside a workflow."""

    if not settings.github_output:
        return
    with Path(settings.github_output).open("a", encoding="utf-8") as f:
        f.write(f"{key}={value}\n")


def run_link_subissues(github: GitHubClient, settings: LeonidasSettings) -> int:
    issue_number = _require_issue_number(settings)

    plan = github.find_plan_comment(issue_number)
    if not plan or not is_decomposed_plan(plan):
        print("No decomposed plan found, skipping sub-issue linking.")
        return 0

    sub_numbers = extract_sub_issue_numbers(plan)
    if not sub_numbers:
        print("No sub-issue numbers found in checklist.")
        return 0

    result = github.link_sub_issues(issue_number, sub_numbers)
    print(
        f"Sub-issue linking complete: {result.linked} linked, {result.failed} skipped/failed."
    )
    return 0


def run_post_completion(github: GitHubClient, settings: LeonidasSettings) -> int:
    issue_number = _require_issue_number(settings)
    pr_number = github.get_pr_for_branch(settings.branch_name)
    comment = build_completion_comment(
        issue_number=issue_number, pr_number=pr_number, run_url=settings.run_url
    )
    github.post_comment(issue_number, comment)
    return 0


def run_post_failure(github: GitHubClient, settings: LeonidasSettings) -> int:
    issue_number = _require_issue_number(settings)
    comment = build_failure_comment(
        mode="plan" if settings.mode == "plan" else "execute",
        run_url=settings.run_url,
    )
    github.post_comment(issue_number, comment)
    return 0


def run_rescue(github: GitHubClient, settings: LeonidasSettings) -> int:
    issue_number = _require_issue_number(settings)
    branch_name = settings.branch_name

    exists = github.branch_exists_on_remote(branch_name)
    _write_output(settings, "branch_exists", "true" if exists else "false")
    if not exists:
        print(f"Branch {branch_name} not found on remote, skipping rescue.")
        return 0

    pr_number = github.get_pr_for_branch(branch_name)
    if pr_number is not None:
        _write_output(settings, "pr_exists", "true")
        _write_output(settings, "pr_number", str(pr_number))
        comment = build_partial_progress_comment(run_url=settings.run_url, existing_pr=pr_number)
        github.post_comment(issue_number, comment)
        return 0

    issue = github.get_issue(issue_number)
    parent_number = extract_parent_issue_number(issue.body)
    title = build_rescue_pr_title(
        issue_number=issue_number, issue_title=issue.title, parent_number=parent_number
    )
    body = build_rescue_pr_body(
        issue_number=issue_number, run_url=settings.run_url, parent_number=parent_number
    )

    pr_url = github.create_draft_pr(branch_name, settings.base_branch, title, body)
    if pr_url is None:
        print(f"Could not create a draft PR for {branch_name}.")
        return 0

    _write_output(settings, "pr_created", "true")
    comment = build_partial_progress_comment(run_url=settings.run_url, draft_pr_url=pr_url)
    github.post_comment(issue_number, comment)
    return 0


def run_post_process_pr(github: GitHubClient, settings: LeonidasSettings) -> int:
    github.post_process_pr(_require_issue_number(settings), settings.branch_prefix)
    return 0


def run_trigger_ci(
    github: GitHubClient, settings: LeonidasSettings, workflow: str | None = None
) -> int:
    github.trigger_ci(settings.branch_name, workflow or settings.ci_workflow)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = LeonidasSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        github = GitHubClient(
            token=settings.github_token,
            owner=settings.owner,
            repo=settings.repo,
            base_url=settings.github_base_url,
            trusted_authors=settings.trusted_authors,
            tracking_label=settings.tracking_label,
        )
    except Exception:
        logger.exception("Failed to connect to GitHub", extra={"repo": settings.repository})
        return 1

    try:
        if args.command == "link-subissues":
            return run_link_subissues(github, settings)
        if args.command == "post-completion":
            return run_post_completion(github, settings)
        if args.command == "post-failure":
            return run_post_failure(github, settings)
        if args.command == "rescue":
            return run_rescue(github, settings)
        if args.command == "post-process-pr":
            return run_post_process_pr(github, settings)
        if args.command == "trigger-ci":
            return run_trigger_ci(github, settings, args.workflow)
        logger.error("Unknown command", extra={"command": args.command})
        return 2
    except (LeonidasError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("Command failed", extra={"command": args.command})
        return 1
    finally:
        github.close()


if __name__ == "__main__":
    raise SystemExit(main())
