"""Tests for the interactive search result selector."""

from __future__ import annotations

import pytest

from oh_my_skills.sources.models import SearchSkill
from oh_my_skills.tui.search_selector import SearchSelectorApp, installable, result_label


def _results() -> list[SearchSkill]:
    return [
        SearchSkill(name="commit", slug="acme/commit", source="acme/skills", installs=10),
        SearchSkill(name="orphan", slug="x/orphan", source="", installs=0),
        SearchSkill(name="review", slug="acme/review", source="acme/review", installs=3),
    ]


@pytest.mark.asyncio(loop_scope="function")
async def test_every_result_is_listed_unselected() -> None:
    app = SearchSelectorApp("skills", _results())
    async with app.run_test():
        sel = app.query_one("SelectionList")
        assert len(sel._options) == 3
        assert len(sel.selected) == 0


@pytest.mark.asyncio(loop_scope="function")
async def test_select_all_then_none() -> None:
    app = SearchSelectorApp("skills", _results())
    async with app.run_test() as pilot:
        await pilot.press("a")
        sel = app.query_one("SelectionList")
        assert len(sel.selected) == 3
        await pilot.press("n")
        assert len(sel.selected) == 0


@pytest.mark.asyncio(loop_scope="function")
async def test_confirm_returns_sorted_indices() -> None:
    app = SearchSelectorApp("skills", _results())
    async with app.run_test():
        sel = app.query_one("SelectionList")
        sel.select(2)
        sel.select(0)
        app.action_confirm()
    assert app.return_value == [0, 2]


@pytest.mark.asyncio(loop_scope="function")
@pytest.mark.parametrize("key", ["q", "escape"])
async def test_cancel_returns_empty(key: str) -> None:
    app = SearchSelectorApp("skills", _results())
    async with app.run_test() as pilot:
        await pilot.press("a")
        await pilot.press(key)
    assert app.return_value == []


def test_installable_falls_back_to_slug() -> None:
    results = [*_results(), SearchSkill(name="ghost", slug="", source="")]
    picked = installable(results, [0, 1, 2, 3])
    assert [s.name for s in picked] == ["commit", "orphan", "review"]
    assert picked[1].descriptor == "github:x/orphan"
    assert installable(results, []) == []


def test_result_label() -> None:
    commit = _results()[0]
    assert result_label(commit) == "commit - acme/skills (10 installs)"
    assert result_label(SearchSkill(name="big", slug="a/b", source="", installs=12345)) == (
        "big - a/b (12.3k installs)"
    )
    assert "no source" in result_label(SearchSkill(name="ghost", slug="", source=""))
