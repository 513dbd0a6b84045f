"""GitHub API client for the plan/execute workflow.

One client is scoped to a single repository and token. It wraps a
`requests.Session` for REST endpoints and PyGithub for the repository object,
and keeps every GitHub call out of the CLI code so tests can inject fakes.

Error policy:
- `is_issue_closed` separates "not found" (`DependencyNotFoundError`) from
  everything else; `post_comment` and `get_pr_for_branch` wrap failures in
  `RemoteOperationError`.
- Best-effort operations (sub-issue linking, PR post-processing, CI dispatch,
  draft PR creation) log a warning and carry on.
- Expected absences (no plan, no PR yet, missing branch) are plain `None`/`False`.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

import requests
from github import Auth, Github, GithubException
from github.Repository import Repository

from leonidas_orchestrator.orchestrator.github.plan_discovery import (
    Comment,
    select_plan_comment,
)
from leonidas_orchestrator.orchestrator.planning.markers import (
    DEFAULT_CI_WORKFLOW,
    DEFAULT_TRUSTED_AUTHORS,
    TRACKING_LABEL,
)

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "unknown error"


class LeonidasError(Exception):
    """Base class for errors the workflow must surface to the caller."""


class DependencyNotFoundError(LeonidasError):
    """A dependency issue referenced by a sub-issue does not exist."""

    def __init__(self, issue_number: int, repository: str) -> None:
        self.issue_number = issue_number
        self.repository = repository
        super().__init__(
            f"Dependency issue #{issue_number} was not found in {repository}. "
            "Check the leonidas-depends tag on the sub-issue."
        )


class RemoteOperationError(LeonidasError):
    """A GitHub call failed for a reason other than 'not found'."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")


class StepOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Aggregate result of linking sub-issues to a parent."""

    linked: int
    failed: int


@dataclass(frozen=True, slots=True)
class IssueSnapshot:
    """Issue fields read at a single point in time."""

    number: int
    id: int
    title: str
    body: str
    state: str
    labels: list[str]
    author: str | None


def _status_code(exc: BaseException) -> int | None:
    if isinstance(exc, GithubException):
        return exc.status
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code
    status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def error_message(exc: object) -> str:
    """Best-effort human readable message for any failure value."""

    if isinstance(exc, BaseException):
        message = getattr(exc, "message", None)
        if isinstance(message, str) and message.strip():
            return message
        text = str(exc)
    elif isinstance(exc, str):
        text = exc
    else:
        text = ""
    return text if text.strip() else UNKNOWN_ERROR


def _safe_login(value: object) -> str | None:
    if isinstance(value, dict):
        login = value.get("login")
        if isinstance(login, str) and login.strip():
            return login
    return None


class GitHubClient:
    """Repository-scoped wrapper around the GitHub REST API."""

    def __init__(
        self,
        *,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        trusted_authors: Collection[str] = DEFAULT_TRUSTED_AUTHORS,
        tracking_label: str = TRACKING_LABEL,
        session: requests.Session | None = None,
        github_api: Github | None = None,
        repo_api: Repository | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not owner.strip() or not repo.strip():
            raise ValueError("GitHub owner and repo are required")

        self._owner = owner.strip()
        self._repo_name = repo.strip().rstrip("/")
        self._rest_base_url = base_url.rstrip("/")
        self._trusted_authors = frozenset(trusted_authors)
        self._tracking_label = tracking_label

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "leonidas-orchestrator",
            }
        )

        if repo_api is not None:
            self._repo = repo_api
            self._github = None
            logger.debug("Using injected Repository instance")
            return

        self._github = github_api or Github(auth=Auth.Token(token), base_url=self._rest_base_url)
        self._repo = self._github.get_repo(self.repository)
        logger.info("Connected to GitHub repository", extra={"repo": self.repository})

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def repo(self) -> str:
        return self._repo_name

    @property
    def repository(self) -> str:
        """Return the repository name ("owner/repo")."""

        return f"{self._owner}/{self._repo_name}"

    def _repo_url(self, path: str) -> str:
        path = path.lstrip("/")
        base = f"{self._rest_base_url}/repos/{self.repository}"
        return f"{base}/{path}" if path else base

    def _issues_url(self, *, issue_number: int, suffix: str = "") -> str:
        if issue_number <= 0:
            raise ValueError("issue_number must be a positive integer")
        if suffix and not suffix.startswith("/"):
            suffix = "/" + suffix
        return self._repo_url(f"issues/{issue_number}{suffix}")

    def _get_paginated_json_list(self, url: str) -> list[dict[str, Any]]:
        """Fetch every page of a REST endpoint that returns a JSON list."""

        items: list[dict[str, Any]] = []
        per_page = 100
        for page in itertools.count(1):
            resp = self._session.get(
                url,
                params={"per_page": per_page, "page": page},
                timeout=30,
            )
            resp.raise_for_status()
            payload = resp.json()
            if not isinstance(payload, list):
                break

            items.extend(p for p in payload if isinstance(p, dict))
            if len(payload) < per_page:
                break
        return items

    # Issues and comments

    def get_issue(self, issue_number: int) -> IssueSnapshot:
        """Fetch an issue by number via REST."""

        resp = self._session.get(self._issues_url(issue_number=issue_number), timeout=30)
        resp.raise_for_status()
        data: dict[str, Any] = resp.json()

        number = data.get("number")
        issue_id = data.get("id")
        if not isinstance(number, int) or not isinstance(issue_id, int):
            raise ValueError("Invalid issue response: missing number or id")

        labels: list[str] = []
        for label in data.get("labels") or []:
            name = label.get("name") if isinstance(label, dict) else label
            if isinstance(name, str) and name:
                labels.append(name)

        return IssueSnapshot(
            number=number,
            id=issue_id,
            title=data.get("title") or "",
            body=data.get("body") or "",
            state=data.get("state") or "",
            labels=labels,
            author=_safe_login(data.get("user")),
        )

    def list_issue_comments(self, issue_number: int) -> list[Comment]:
        """Return every comment on an issue in the order GitHub lists them."""

        url = self._issues_url(issue_number=issue_number, suffix="comments")
        comments: list[Comment] = []
        for item in self._get_paginated_json_list(url):
            comment_id = item.get("id")
            body = item.get("body")
            comments.append(
                Comment(
                    id=comment_id if isinstance(comment_id, int) else 0,
                    author=_safe_login(item.get("user")),
                    body=body if isinstance(body, str) else None,
                )
            )
        return comments

    def find_plan_comment(self, issue_number: int) -> str | None:
        """Return the body of the latest authoritative plan comment, if any."""

        comments = self.list_issue_comments(issue_number)
        selected = select_plan_comment(comments, trusted_authors=self._trusted_authors)
        if selected is None:
            logger.info(
                "No plan comment found",
                extra={"repo": self.repository, "issue_number": issue_number},
            )
            return None
        return selected.body

    def post_comment(self, issue_number: int, body: str) -> None:
        try:
            issue = self._repo.get_issue(number=issue_number)
            issue.create_comment(body)
        except Exception as e:
            raise RemoteOperationError(
                f"Failed to comment on issue #{issue_number}", error_message(e)
            ) from e
        logger.info(
            "Comment posted",
            extra={"repo": self.repository, "issue_number": issue_number},
        )

    def is_issue_closed(self, issue_number: int) -> bool:
        """Return True when the issue is closed (for any reason).

        Raises:
            DependencyNotFoundError: GitHub reports the issue does not exist.
            RemoteOperationError: any other failure.
        """

        try:
            issue = self.get_issue(issue_number)
        except Exception as e:
            if _status_code(e) == 404:
                raise DependencyNotFoundError(issue_number, self.repository) from e
            raise RemoteOperationError(
                f"Failed to check state of issue #{issue_number}", error_message(e)
            ) from e
        return issue.state == "closed"

    # Sub-issues

    def _link_one(self, parent_number: int, sub_number: int) -> StepOutcome:
        try:
            sub_issue = self.get_issue(sub_number)
            resp = self._session.post(
                self._issues_url(issue_number=parent_number, suffix="sub_issues"),
                json={"sub_issue_id": sub_issue.id},
                timeout=30,
            )
            resp.raise_for_status()
        except Exception as e:
            logger.warning(
                "Failed to link sub-issue (continuing)",
                extra={
                    "repo": self.repository,
                    "parent_issue_number": parent_number,
                    "sub_issue_number": sub_number,
                    "error": error_message(e),
                },
            )
            return StepOutcome.FAILED
        logger.info(
            "Sub-issue linked",
            extra={
                "repo": self.repository,
                "parent_issue_number": parent_number,
                "sub_issue_number": sub_number,
            },
        )
        return StepOutcome.SUCCEEDED

    def link_sub_issues(self, parent_number: int, sub_numbers: Iterable[int]) -> LinkResult:
        """Link each sub-issue to the parent; one failure never stops the rest."""

        outcomes = [self._link_one(parent_number, n) for n in sub_numbers]
        return LinkResult(
            linked=outcomes.count(StepOutcome.SUCCEEDED),
            failed=outcomes.count(StepOutcome.FAILED),
        )

    # Branches and pull requests

    def get_pr_for_branch(self, branch_name: str) -> int | None:
        """Return the first PR (any state) whose head is this branch."""

        try:
            resp = self._session.get(
                self._repo_url("pulls"),
                params={"head": f"{self._owner}:{branch_name}", "state": "all"},
                timeout=30,
            )
            resp.raise_for_status()
            payload = resp.json()
        except Exception as e:
            raise RemoteOperationError(
                f"Failed to look up PR for branch {branch_name}", error_message(e)
            ) from e
        if not isinstance(payload, list):
            return None
        for item in payload:
            number = item.get("number") if isinstance(item, dict) else None
            if isinstance(number, int) and number > 0:
                return number
        return None

    def branch_exists_on_remote(self, branch_name: str) -> bool:
        try:
            resp = self._session.get(
                self._repo_url(f"branches/{quote(branch_name, safe='')}"),
                timeout=30,
            )
            resp.raise_for_status()
        except Exception as e:
            logger.debug(
                "Branch lookup failed; treating as missing",
                extra={"repo": self.repository, "branch": branch_name, "error": error_message(e)},
            )
            return False
        return True

    def create_draft_pr(self, head: str, base: str, title: str, body: str) -> str | None:
        """Open a draft PR and return its URL, or None if GitHub refused."""

        payload = {"title": title, "body": body, "head": head, "base": base, "draft": True}
        try:
            resp = self._session.post(self._repo_url("pulls"), json=payload, timeout=30)
            resp.raise_for_status()
            data: dict[str, Any] = resp.json()
        except Exception as e:
            logger.warning(
                "Failed to create draft PR",
                extra={"repo": self.repository, "head": head, "base": base, "error": error_message(e)},
            )
            return None

        html_url = data.get("html_url")
        if not isinstance(html_url, str) or not html_url.strip():
            return None
        logger.info(
            "Draft PR created",
            extra={"repo": self.repository, "pull_number": data.get("number"), "url": html_url},
        )
        return html_url

    def _copy_labels(self, issue: IssueSnapshot, pr_number: int) -> StepOutcome:
        labels = [name for name in issue.labels if name != self._tracking_label]
        if not labels:
            return StepOutcome.SKIPPED
        try:
            resp = self._session.post(
                self._issues_url(issue_number=pr_number, suffix="labels"),
                json={"labels": labels},
                timeout=30,
            )
            resp.raise_for_status()
        except Exception as e:
            logger.warning(
                f"Failed to add labels to PR #{pr_number}",
                extra={"repo": self.repository, "pull_number": pr_number, "error": error_message(e)},
            )
            return StepOutcome.FAILED
        logger.info(
            "Labels copied to PR",
            extra={"repo": self.repository, "pull_number": pr_number, "labels": labels},
        )
        return StepOutcome.SUCCEEDED

    def _assign_author(self, issue: IssueSnapshot, pr_number: int) -> StepOutcome:
        if not issue.author:
            return StepOutcome.SKIPPED
        try:
            resp = self._session.post(
                self._issues_url(issue_number=pr_number, suffix="assignees"),
                json={"assignees": [issue.author]},
                timeout=30,
            )
            resp.raise_for_status()
        except Exception as e:
            logger.warning(
                f"Failed to assign PR #{pr_number} to {issue.author}",
                extra={"repo": self.repository, "pull_number": pr_number, "error": error_message(e)},
            )
            return StepOutcome.FAILED
        logger.info(
            "PR assigned to issue author",
            extra={"repo": self.repository, "pull_number": pr_number, "assignee": issue.author},
        )
        return StepOutcome.SUCCEEDED

    def post_process_pr(self, issue_number: int, branch_prefix: str) -> None:
        """Copy labels and the issue author onto the PR built from the issue's branch."""

        branch_name = f"{branch_prefix}{issue_number}"
        pr_number = self.get_pr_for_branch(branch_name)
        if pr_number is None:
            logger.info(
                "No PR found for branch; skipping post-processing",
                extra={"repo": self.repository, "branch": branch_name},
            )
            return

        try:
            issue = self.get_issue(issue_number)
        except Exception as e:
            logger.warning(
                f"Failed to read issue #{issue_number}; PR #{pr_number} left unchanged",
                extra={"repo": self.repository, "pull_number": pr_number, "error": error_message(e)},
            )
            return

        labels = self._copy_labels(issue, pr_number)
        assignee = self._assign_author(issue, pr_number)
        logger.info(
            "PR post-processing finished",
            extra={
                "repo": self.repository,
                "issue_number": issue_number,
                "pull_number": pr_number,
                "labels": labels.value,
                "assignee": assignee.value,
            },
        )

    def trigger_ci(self, branch_name: str, workflow_file: str | None = None) -> None:
        """Dispatch the CI workflow on a branch. Never raises."""

        workflow = workflow_file or DEFAULT_CI_WORKFLOW
        if not self.branch_exists_on_remote(branch_name):
            logger.info(
                "Branch not found on remote; skipping CI trigger",
                extra={"repo": self.repository, "branch": branch_name},
            )
            return

        try:
            resp = self._session.post(
                self._repo_url(f"actions/workflows/{quote(workflow, safe='')}/dispatches"),
                json={"ref": branch_name},
                timeout=30,
            )
            resp.raise_for_status()
        except Exception as e:
            logger.info(
                "Could not dispatch CI workflow; it may need to be triggered manually",
                extra={
                    "repo": self.repository,
                    "branch": branch_name,
                    "workflow": workflow,
                    "error": error_message(e),
                },
            )
            return
        logger.info(
            "CI workflow dispatched",
            extra={"repo": self.repository, "branch": branch_name, "workflow": workflow},
        )

    def close(self) -> None:
        self._session.close()
        if self._github is not None:
            self._github.close()
