"""Select the authoritative plan comment on an issue.

Candidates are searched in stages. Each stage pairs an author filter with a
marker; the first stage with any match wins, and within it the last match in
listing order is the plan.

Precedence:
1. trusted author + structural marker
2. trusted author + legacy header
3. any author + structural marker
4. any author + legacy header

Stages 3 and 4 keep installations working when the bot posts under a login
that is not in the trusted set. They accept comments from anyone, so a forged
plan can win there if no trusted plan exists.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

from leonidas_orchestrator.orchestrator.planning.markers import PLAN_HEADER, PLAN_MARKER

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Comment:
    """Minimal issue comment data needed for plan discovery."""

    id: int
    author: str | None
    body: str | None


@dataclass(frozen=True, slots=True)
class DiscoveryStage:
    name: str
    trusted_only: bool
    marker: str

    def matches(self, comment: Comment, trusted_authors: Collection[str]) -> bool:
        if not comment.body or self.marker not in comment.body:
            return False
        if self.trusted_only:
            return comment.author is not None and comment.author in trusted_authors
        return True


def default_stages() -> tuple[DiscoveryStage, ...]:
    return (
        DiscoveryStage(name="trusted-marker", trusted_only=True, marker=PLAN_MARKER),
        DiscoveryStage(name="trusted-header", trusted_only=True, marker=PLAN_HEADER),
        DiscoveryStage(name="any-marker", trusted_only=False, marker=PLAN_MARKER),
        DiscoveryStage(name="any-header", trusted_only=False, marker=PLAN_HEADER),
    )


def select_plan_comment(
    comments: Iterable[Comment],
    *,
    trusted_authors: Collection[str],
    stages: Sequence[DiscoveryStage] | None = None,
) -> Comment | None:
    """Return the plan comment chosen by the first stage with any candidate."""

    listed = list(comments)
    for stage in stages if stages is not None else default_stages():
        candidates = [c for c in listed if stage.matches(c, trusted_authors)]
        if not candidates:
            continue

        selected = candidates[-1]
        if not stage.trusted_only:
            logger.warning(
                "Plan comment selected without a trusted author",
                extra={"stage": stage.name, "comment_id": selected.id, "author": selected.author},
            )
        else:
            logger.debug(
                "Plan comment selected",
                extra={"stage": stage.name, "comment_id": selected.id},
            )
        return selected
    return None
