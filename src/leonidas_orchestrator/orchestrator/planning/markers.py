"""Fixed marker literals shared by the plan/execute workflow.

These strings are written into GitHub comments and issue bodies by the planning
step and matched byte-for-byte afterwards, so they must never be localized.
"""

from __future__ import annotations

# Language-neutral marker embedded in every plan comment.
PLAN_MARKER = "<!-- leonidas-plan -->"

# Header used by plan comments written before PLAN_MARKER existed.
PLAN_HEADER = "## 🏛️ Leonidas Implementation Plan"

DECOMPOSED_MARKER = "<!-- leonidas-decomposed -->"

TRACKING_LABEL = "leonidas"

DEFAULT_BRANCH_PREFIX = "claude/issue-"

DEFAULT_CI_WORKFLOW = "ci.yml"

DEFAULT_TRUSTED_AUTHORS: frozenset[str] = frozenset({"github-actions[bot]"})
