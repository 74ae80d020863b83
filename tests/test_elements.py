from __future__ import annotations

import asyncio

from fakes import FakeElement, FakePage

from mcp_servers.playwright_browser.tools.base import AmbiguousSelectorError
from mcp_servers.playwright_browser.tools.elements import ElementCandidate, ErrorEnricher, suggest_selectors


def test_suggestions_follow_attribute_priority() -> None:
    candidate = ElementCandidate(
        index=0,
        tag="button",
        id="submit",
        classes=["btn", "btn-primary", "wide"],
        test_id="submit-btn",
        aria_label="Submit form",
    )
    assert suggest_selectors(candidate) == ["#submit", '[data-testid="submit-btn"]', "button.btn.btn-primary"]


def test_suggestions_quote_unusual_ids_and_skip_bad_classes() -> None:
    candidate = ElementCandidate(index=1, tag="div", id="1st item", classes=["md:flex"], role="dialog")
    assert suggest_selectors(candidate) == ['[id="1st item"]', 'div[role="dialog"]']


def test_suggestions_use_aria_type_href() -> None:
    link = ElementCandidate(index=0, tag="a", href="/docs")
    assert suggest_selectors(link) == ['a[href="/docs"]']

    field = ElementCandidate(index=0, tag="input", aria_label='Say "hi"', type="text")
    assert suggest_selectors(field) == ['input[aria-label="Say \\"hi\\""]', 'input[type="text"]']


def test_positional_fallback_when_nothing_identifies_the_element() -> None:
    bare = ElementCandidate(index=2, tag="li")
    assert suggest_selectors(bare, selector="ul li") == ["ul li >> nth=2"]
    assert suggest_selectors(bare) == []


def test_candidate_from_info_normalizes_fields() -> None:
    candidate = ElementCandidate.from_info(
        0,
        {"tag": "BUTTON", "text": "  Save  ", "id": "", "classes": ["btn", ""], "testId": None},
    )
    assert candidate.tag == "button"
    assert candidate.text == "Save"
    assert candidate.id is None
    assert candidate.classes == ["btn"]
    assert candidate.label() == '<button.btn> "Save"'
    assert candidate.to_dict() == {"index": 0, "tag": "button", "text": "Save", "classes": ["btn"], "suggestedSelectors": []}


def test_enrich_without_page_still_reports() -> None:
    error = AmbiguousSelectorError(
        tool="click",
        action="click",
        reason="many",
        suggestion="narrow it",
        selector=".item",
        match_count=4,
    )

    result = asyncio.run(ErrorEnricher().enrich(error))

    assert result.is_error is False
    assert result.data["matchCount"] == 4
    assert result.data["candidates"] == []
    assert result.first_text.splitlines()[0] == 'Selector ".item" matched 4 elements; click needs exactly one.'


def test_enrich_caps_candidates_at_ten() -> None:
    page = FakePage()
    page.load("List", {"li": [FakeElement(tag="li", text=f"Item {i}") for i in range(14)]})
    error = AmbiguousSelectorError(
        tool="click", action="click", reason="many", suggestion="", selector="li", match_count=14, page=page
    )

    result = asyncio.run(ErrorEnricher().enrich(error))

    assert result.data["matchCount"] == 14
    assert len(result.data["candidates"]) == 10
    assert result.data["candidates"][9]["suggestedSelectors"] == ["li >> nth=9"]
    assert 'Example: click(selector="li >> nth=0")' in result.first_text


def test_enrich_survives_a_failing_page() -> None:
    page = FakePage()
    page.closed = True
    error = AmbiguousSelectorError(
        tool="type", action="type", reason="many", suggestion="", selector="input", match_count=None, page=page
    )

    result = asyncio.run(ErrorEnricher().enrich(error))

    assert result.data["candidates"] == []
    assert "multiple elements" in result.first_text
