"""Textual picker for installing skills found in the search index."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, SelectionList, Static
from textual.widgets.selection_list import Selection

from oh_my_skills.sources.models import SearchSkill
from oh_my_skills.tui.tables import format_installs


def result_label(skill: SearchSkill) -> str:
    origin = skill.origin or "no source"
    return f"{skill.name} - {origin} ({format_installs(skill.installs)} installs)"


class SearchSelectorApp(App[list[int]]):
    """Exits with the indices of the results picked for install."""

    TITLE = "Install Skills"
    CSS = """
    #summary {
        dock: top;
        height: 1;
        padding: 0 1;
        background: $boost;
    }
    SelectionList {
        height: 1fr;
        border: round $accent;
    }
    """

    BINDINGS = [
        Binding("a", "select_all", "All"),
        Binding("n", "select_none", "None"),
        Binding("enter,i", "confirm", "Install"),
        Binding("escape,q", "cancel", "Cancel"),
    ]

    def __init__(self, query: str, results: list[SearchSkill]) -> None:
        super().__init__()
        self._query = query
        self._results = results

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(self._summary(0), id="summary")
        picker = SelectionList[int](
            *(
                Selection(result_label(skill), index, False)
                for index, skill in enumerate(self._results)
            )
        )
        picker.border_title = f"search: {self._query}"
        yield picker
        yield Footer()

    def _summary(self, selected: int) -> str:
        return f"{selected} of {len(self._results)} selected"

    def on_selection_list_selected_changed(
        self, event: SelectionList.SelectedChanged
    ) -> None:
        summary = self.query_one("#summary", Static)
        summary.update(self._summary(len(event.selection_list.selected)))

    def action_select_all(self) -> None:
        self.query_one(SelectionList).select_all()

    def action_select_none(self) -> None:
        self.query_one(SelectionList).deselect_all()

    def action_confirm(self) -> None:
        self.exit(sorted(self.query_one(SelectionList).selected))

    def action_cancel(self) -> None:
        self.exit([])


def installable(results: list[SearchSkill], selected_indices: list[int]) -> list[SearchSkill]:
    """Selected results with a repository to install from."""
    selected = set(selected_indices)
    return [skill for i, skill in enumerate(results) if i in selected and skill.origin]
