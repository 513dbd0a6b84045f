"""Unit tests for sub-issue metadata parsing and plan classification."""

from __future__ import annotations

import pytest

from leonidas_orchestrator.orchestrator.planning.markers import DECOMPOSED_MARKER
from leonidas_orchestrator.orchestrator.planning.metadata import (
    SubIssueMetadata,
    extract_parent_issue_number,
    extract_sub_issue_numbers,
    is_decomposed_plan,
    parse_sub_issue_metadata,
)


def test_parses_parent_and_order() -> None:
    body = "<!-- leonidas-parent: #123 -->\n<!-- leonidas-order: 2/5 -->"

    assert parse_sub_issue_metadata(body) == SubIssueMetadata(
        parent_issue_number=123, order=2, total=5
    )


def test_parses_optional_dependency() -> None:
    body = (
        "<!-- leonidas-parent: #10 -->\n"
        "<!-- leonidas-order: 3/4 -->\n"
        "<!-- leonidas-depends: #11 -->\n"
        "\n## Task\nDo the thing."
    )

    metadata = parse_sub_issue_metadata(body)

    assert metadata is not None
    assert metadata.depends_on == 11


def test_tag_order_does_not_matter() -> None:
    forward = "<!-- leonidas-parent: #7 -->\ntext\n<!-- leonidas-order: 1/2 -->"
    reverse = "<!-- leonidas-order: 1/2 -->\ntext\n<!-- leonidas-parent: #7 -->"

    assert parse_sub_issue_metadata(forward) == parse_sub_issue_metadata(reverse)


def test_flexible_whitespace_inside_delimiters() -> None:
    body = "<!--leonidas-parent:#42-->\n<!--   leonidas-order:   1/3   -->"

    metadata = parse_sub_issue_metadata(body)

    assert metadata == SubIssueMetadata(parent_issue_number=42, order=1, total=3)


def test_first_occurrence_wins() -> None:
    body = (
        "<!-- leonidas-parent: #100 -->\n"
        "<!-- leonidas-order: 1/4 -->\n"
        "<!-- leonidas-parent: #200 -->\n"
        "<!-- leonidas-order: 3/9 -->\n"
    )

    metadata = parse_sub_issue_metadata(body)

    assert metadata is not None
    assert (metadata.parent_issue_number, metadata.order, metadata.total) == (100, 1, 4)


@pytest.mark.parametrize(
    "body",
    [
        "",
        None,
        "Just a regular issue body",
        "<!-- leonidas-parent: #5 -->",
        "<!-- leonidas-order: 1/2 -->",
        "<!-- leonidas-depends: #3 -->",
        "<!-- leonidas-parent: #abc -->\n<!-- leonidas-order: 1/2 -->",
        "<!-- leonidas-parent: #5 -->\n<!-- leonidas-order: one/2 -->",
        "<!-- leonidas-parent: #5 -->\n<!-- leonidas-order: 1/ -->",
    ],
)
def test_missing_or_invalid_tags_yield_none(body: str | None) -> None:
    assert parse_sub_issue_metadata(body) is None


def test_invalid_dependency_is_ignored() -> None:
    body = (
        "<!-- leonidas-parent: #1 -->\n"
        "<!-- leonidas-order: 1/1 -->\n"
        "<!-- leonidas-depends: #next -->"
    )

    metadata = parse_sub_issue_metadata(body)

    assert metadata is not None
    assert metadata.depends_on is None


def test_extract_parent_issue_number() -> None:
    assert extract_parent_issue_number("<!--   leonidas-parent:   #42   -->") == 42
    assert extract_parent_issue_number("<!-- leonidas-parent: #100 -->\n<!-- leonidas-parent: #200 -->") == 100
    assert extract_parent_issue_number("Just a regular issue body") is None
    assert extract_parent_issue_number("") is None


def test_extract_sub_issue_numbers_reads_checklist_items_only() -> None:
    body = (
        "See #42 for details\n"
        "- [ ] #36 — Implement auth\n"
        "- [x] #37 — Add tests\n"
        "- [X] #38 — Deploy\n"
    )

    assert extract_sub_issue_numbers(body) == [36, 37, 38]
    assert extract_sub_issue_numbers("Some regular text without checklist") == []
    assert extract_sub_issue_numbers("") == []


def test_is_decomposed_plan_exact_marker() -> None:
    assert is_decomposed_plan(f"## Plan\n\n{DECOMPOSED_MARKER}\n")
    assert is_decomposed_plan(f"{DECOMPOSED_MARKER}")
    assert is_decomposed_plan(f"prefix   {DECOMPOSED_MARKER}   suffix")


@pytest.mark.parametrize(
    "text",
    [
        "",
        "## Plan without marker",
        "<!-- leonidas-decomposed-->",
        "<!--leonidas-decomposed -->",
        "<!-- Leonidas-Decomposed -->",
        "<!-- leonidas-decompose -->",
        "leonidas-decomposed",
    ],
)
def test_is_decomposed_plan_rejects_near_misses(text: str) -> None:
    assert is_decomposed_plan(text) is False
