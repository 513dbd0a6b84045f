"""Parse the hidden metadata the planner writes into sub-issue bodies.

A decomposed plan creates one sub-issue per step. Each sub-issue body carries
HTML comments describing where it sits in the plan:

    <!-- leonidas-parent: #123 -->
    <!-- leonidas-order: 2/5 -->
    <!-- leonidas-depends: #124 -->   (optional)

Tags may appear anywhere and in any order. When a tag is repeated, the first
occurrence wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from leonidas_orchestrator.orchestrator.planning.markers import DECOMPOSED_MARKER

_PARENT_RE = re.compile(r"<!--\s*leonidas-parent:\s*#(\d+)\s*-->")
_ORDER_RE = re.compile(r"<!--\s*leonidas-order:\s*(\d+)/(\d+)\s*-->")
_DEPENDS_RE = re.compile(r"<!--\s*leonidas-depends:\s*#(\d+)\s*-->")

# Checklist items in a decomposed plan: "- [ ] #36 — Implement auth"
_CHECKLIST_ISSUE_RE = re.compile(r"^\s*- \[[ xX]\] #(\d+)", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class SubIssueMetadata:
    """Position of a sub-issue within its parent's plan."""

    parent_issue_number: int
    order: int
    total: int
    depends_on: int | None = None


def parse_sub_issue_metadata(body: str | None) -> SubIssueMetadata | None:
    """Return sub-issue metadata, or None unless both parent and order tags are present."""

    if not body:
        return None

    parent_match = _PARENT_RE.search(body)
    order_match = _ORDER_RE.search(body)
    if parent_match is None or order_match is None:
        return None

    depends_match = _DEPENDS_RE.search(body)
    return SubIssueMetadata(
        parent_issue_number=int(parent_match.group(1)),
        order=int(order_match.group(1)),
        total=int(order_match.group(2)),
        depends_on=int(depends_match.group(1)) if depends_match else None,
    )


def extract_parent_issue_number(body: str | None) -> int | None:
    if not body:
        return None
    match = _PARENT_RE.search(body)
    return int(match.group(1)) if match else None


def extract_sub_issue_numbers(plan_body: str | None) -> list[int]:
    """Return issue numbers referenced by checklist items, in document order.

    Plain `#N` references outside a checklist item are ignored.
    """

    if not plan_body:
        return []
    return [int(m.group(1)) for m in _CHECKLIST_ISSUE_RE.finditer(plan_body)]


def is_decomposed_plan(plan_text: str | None) -> bool:
    """Exact substring check for the decomposition marker."""

    if not plan_text:
        return False
    return DECOMPOSED_MARKER in plan_text
