"""NELF TUI Viewer - Main Textual app with 3-panel layout and nested navigation."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input

from nelf.document import NelfCell
from nelf.reader import NelfReader, validate
from nelf.spec import MAX_FILE_SIZE
from nelf.tui.widgets import CellList, ContentPanel, ListInfoPanel


class NelfViewerApp(App):
    """TUI viewer for NELF lists. Enter opens a cell as a nested list."""

    TITLE = "NELF Viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Search", show=True),
        Binding("escape", "close_search", "Close search", show=False),
        Binding("backspace", "go_up", "Up", show=True),
        Binding("j", "next_cell", "Next", show=True),
        Binding("k", "prev_cell", "Prev", show=True),
    ]

    def __init__(self, data: bytes, name: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self._file_name = name
        # (buffer, index of the cell it came from in its parent)
        self._buffers: list[tuple[bytes, int]] = [(data, -1)]
        self._cells: list[NelfCell] = []
        self._shown: list[int] = []
        self._report = None

    @property
    def _location(self) -> list[int]:
        return [index for _, index in self._buffers[1:]]

    def _load_level(self) -> None:
        buffer, _ = self._buffers[-1]
        report = validate(buffer)
        self._report = report
        self._cells = report.cells
        self._shown = list(range(len(self._cells)))

    def compose(self) -> ComposeResult:
        self._load_level()
        self.title = f"NELF Viewer - {self._file_name}" if self._file_name else "NELF Viewer"

        yield Header()

        with Horizontal(id="main-area"):
            yield self._info_panel()
            yield CellList(cells=self._cells, indices=self._shown, id="cells")
            yield ContentPanel(id="content")

        yield Input(placeholder="Filter cells by content... (Escape to close)", id="search-bar")
        yield Footer()

    def _info_panel(self) -> ListInfoPanel:
        return ListInfoPanel(
            path=self._location,
            cell_count=len(self._cells),
            size=self._report.size,
            ok=self._report.ok,
            canonical=self._report.canonical,
            id="info",
        )

    def on_mount(self) -> None:
        """Auto-select first cell on mount."""
        self._show_first()
        self.query_one("#cells", CellList).focus()

    def _show_first(self) -> None:
        panel = self.query_one("#content", ContentPanel)
        if self._shown:
            first = self._shown[0]
            panel.show_cell(first, self._cells[first])
        else:
            panel.clear()

    def on_cell_list_cell_selected(self, event: CellList.CellSelected) -> None:
        panel = self.query_one("#content", ContentPanel)
        panel.show_cell(event.cell_index, self._cells[event.cell_index])

    async def on_cell_list_cell_opened(self, event: CellList.CellOpened) -> None:
        """Descend into the chosen cell, reading its content as a list."""
        cell = self._cells[event.cell_index]
        self._buffers.append((cell.to_bytes(), event.cell_index))
        await self._rebuild()

    async def action_go_up(self) -> None:
        if len(self._buffers) > 1:
            self._buffers.pop()
            await self._rebuild()

    async def _rebuild(self) -> None:
        """Reload the panels for the buffer on top of the stack."""
        self._load_level()
        await self.query_one("#info", ListInfoPanel).remove()
        await self.query_one("#main-area", Horizontal).mount(self._info_panel(), before="#cells")
        await self._update_cell_list(self._shown)
        self.query_one("#cells", CellList).focus()

    def action_next_cell(self) -> None:
        self.query_one("#cells", CellList).action_cursor_down()

    def action_prev_cell(self) -> None:
        self.query_one("#cells", CellList).action_cursor_up()

    async def action_toggle_search(self) -> None:
        """Show/hide the search bar."""
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            search.value = ""
            await self._update_cell_list(list(range(len(self._cells))))
            self.query_one("#cells", CellList).focus()

    async def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        await self._update_cell_list(list(range(len(self._cells))))
        self.query_one("#cells", CellList).focus()

    async def on_input_changed(self, event: Input.Changed) -> None:
        """Filter cells as the user types."""
        if event.input.id != "search-bar":
            return
        query = event.value.encode("utf-8").lower()
        if not query:
            await self._update_cell_list(list(range(len(self._cells))))
            return
        matches = [
            i for i, cell in enumerate(self._cells)
            if query in bytes(cell.content).lower()
        ]
        await self._update_cell_list(matches)

    async def _update_cell_list(self, indices: list[int]) -> None:
        """Replace the cell list with the given cell indices."""
        self._shown = indices
        old = self.query_one("#cells", CellList)
        new_list = CellList(cells=self._cells, indices=indices, id="cells")
        await old.remove()
        await self.query_one("#main-area", Horizontal).mount(new_list, before="#content")
        self._show_first()


def run_viewer(path: str | Path, max_size: int = MAX_FILE_SIZE) -> None:
    """Launch the NELF TUI viewer."""
    path = Path(path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        data = NelfReader.read_bytes(path, max_size=max_size)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    app = NelfViewerApp(data, name=path.name)
    app.run()
