"""Configuration for the post-process commands.

Configuration is loaded from:
- environment variables (as set by the GitHub Actions workflow)
- and a local `.env` file (if present)

The variable names match the ones the workflow already exports (`GH_TOKEN`,
`GITHUB_REPOSITORY`, `ISSUE_NUMBER`, ...), so no extra mapping is needed in YAML.
"""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from leonidas_orchestrator.orchestrator.planning.markers import (
    DEFAULT_BRANCH_PREFIX,
    DEFAULT_CI_WORKFLOW,
    DEFAULT_TRUSTED_AUTHORS,
    TRACKING_LABEL,
)


class LeonidasSettings(BaseSettings):
    """Settings for the post-process commands.

    Environment variables:
    - GH_TOKEN
    - GITHUB_REPOSITORY          ("owner/repo")
    - ISSUE_NUMBER               (optional for settings, required by every command)
    - BRANCH_PREFIX / BASE_BRANCH / RUN_URL / MODE   (optional)
    - GITHUB_BASE_URL / LOG_LEVEL                    (optional)
    - LEONIDAS_TRUSTED_AUTHORS   (optional, comma separated logins)
    - LEONIDAS_TRACKING_LABEL / LEONIDAS_CI_WORKFLOW (optional)
    - GITHUB_OUTPUT              (optional, set by GitHub Actions)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `LeonidasSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="GH_TOKEN",
        description="GitHub token used for API authentication",
    )
    repository: str = Field(
        default="",
        validation_alias="GITHUB_REPOSITORY",
        description="Target repository in the form 'owner/repo'",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    issue_number: int | None = Field(default=None, validation_alias="ISSUE_NUMBER")
    branch_prefix: str = Field(default=DEFAULT_BRANCH_PREFIX, validation_alias="BRANCH_PREFIX")
    base_branch: str = Field(default="main", validation_alias="BASE_BRANCH")
    run_url: str = Field(default="", validation_alias="RUN_URL")
    mode: str = Field(default="execute", validation_alias="MODE")

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    # Kept as a raw string so pydantic-settings does not try to JSON-decode it.
    trusted_authors_raw: str = Field(
        default=",".join(sorted(DEFAULT_TRUSTED_AUTHORS)),
        validation_alias="LEONIDAS_TRUSTED_AUTHORS",
        description="Comma-separated logins whose plan comments are trusted",
    )
    tracking_label: str = Field(default=TRACKING_LABEL, validation_alias="LEONIDAS_TRACKING_LABEL")
    ci_workflow: str = Field(default=DEFAULT_CI_WORKFLOW, validation_alias="LEONIDAS_CI_WORKFLOW")

    github_output: str | None = Field(default=None, validation_alias="GITHUB_OUTPUT")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("repository")
    @classmethod
    def _normalize_repository(cls, value: str) -> str:
        return value.strip().strip("/")

    @field_validator("mode")
    @classmethod
    def _validate_mode(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"plan", "execute"}:
            raise ValueError("MODE must be 'plan' or 'execute'")
        return normalized

    @model_validator(mode="after")
    def _require_github_auth(self) -> LeonidasSettings:
        if not self.github_token.strip():
            raise ValueError("GH_TOKEN is required")
        owner, _, name = self.repository.partition("/")
        if not owner or not name or "/" in name:
            raise ValueError("GITHUB_REPOSITORY must be in the form 'owner/repo'")
        return self

    @property
    def owner(self) -> str:
        return self.repository.partition("/")[0]

    @property
    def repo(self) -> str:
        return self.repository.partition("/")[2]

    @property
    def trusted_authors(self) -> frozenset[str]:
        return frozenset(a.strip() for a in self.trusted_authors_raw.split(",") if a.strip())

    @property
    def branch_name(self) -> str:
        """Branch the coding agent pushes for `issue_number`."""

        if self.issue_number is None:
            raise ValueError("ISSUE_NUMBER is required")
        return f"{self.branch_prefix}{self.issue_number}"
