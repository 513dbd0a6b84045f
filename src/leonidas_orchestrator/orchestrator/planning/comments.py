"""Comment and PR text posted by the post-process commands.

Only English text is produced here. The wording is kept identical to what
earlier releases posted, so existing issue threads read consistently.
"""

from __future__ import annotations

from typing import Literal

Mode = Literal["plan", "execute"]

PARTIAL_HEADER = "## ⚠️ Leonidas Partial Progress"
FAILURE_HEADER = "## ⚠️ Leonidas Failed"
PARTIAL_PR_BODY_HEADER = "## Partial Implementation"


def build_completion_comment(*, issue_number: int, pr_number: int | None, run_url: str) -> str:
    if pr_number is not None:
        return (
            f"✅ **Leonidas** has completed the implementation for issue #{issue_number}. "
            f"Check pull request #{pr_number} for details."
        )
    return (
        "⚠️ **Leonidas** execution completed but failed to create a pull request for issue "
        f"#{issue_number}. The branch push may have failed.\n\n"
        f"**Workflow run:** [View logs]({run_url})\n\n"
        "**To retry:** Comment `/approve` again."
    )


def build_partial_progress_comment(
    *,
    run_url: str,
    existing_pr: int | None = None,
    draft_pr_url: str | None = None,
) -> str:
    """Build the comment posted when execution stopped before finishing.

    An existing PR takes precedence over a freshly created draft PR. With
    neither, only the header is returned.
    """

    if existing_pr is not None:
        body = (
            "Implementation was interrupted (likely hit max turns), but a PR exists.\n\n"
            f"**Pull Request:** #{existing_pr}\n"
            "**Status:** Partial implementation — review the PR for completed work.\n"
            f"**Workflow run:** [View logs]({run_url})\n\n"
            "**To continue:** Comment `/approve` again to retry from a clean branch, "
            "or manually complete the PR."
        )
    elif draft_pr_url:
        body = (
            "Implementation was interrupted, but a draft PR was created to preserve progress.\n\n"
            f"**Draft PR:** {draft_pr_url}\n"
            f"**Workflow run:** [View logs]({run_url})\n\n"
            "**To continue:** Comment `/approve` again to retry, or manually complete the draft PR."
        )
    else:
        return PARTIAL_HEADER
    return f"{PARTIAL_HEADER}\n\n{body}"


def build_failure_comment(*, mode: Mode, run_url: str) -> str:
    if mode == "plan":
        body = (
            "The automated plan encountered an error.\n\n"
            f"**Workflow run:** [View logs]({run_url})\n\n"
            "**To retry:** Remove the `leonidas` label and re-add it."
        )
    else:
        body = (
            "The automated execution encountered an error.\n\n"
            f"**Workflow run:** [View logs]({run_url})\n\n"
            "**To retry:** Comment `/approve` again on this issue."
        )
    return f"{FAILURE_HEADER}\n\n{body}"


def build_rescue_pr_title(
    *, issue_number: int, issue_title: str, parent_number: int | None = None
) -> str:
    if parent_number is not None:
        return f"#{parent_number} {issue_title} [partial]"
    return f"#{issue_number}: {issue_title} [partial]"


def build_rescue_pr_body(
    *, issue_number: int, run_url: str, parent_number: int | None = None
) -> str:
    content = (
        "This PR was auto-created by Leonidas to preserve partial progress after the "
        "execution was interrupted (likely hit max turns).\n\n"
        "**Status:** Incomplete — review and continue manually or retry.\n"
        f"**Workflow run:** [View logs]({run_url})\n\n"
        f"Closes #{issue_number}"
    )
    body = f"{PARTIAL_PR_BODY_HEADER}\n\n{content}"
    if parent_number is not None:
        return f"Part of #{parent_number}\n\n{body}"
    return body
