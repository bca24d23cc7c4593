"""NELF TUI Widgets - Custom panels for the NELF viewer."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Label, ListItem, ListView, Static

from nelf.document import NelfCell, preview


class ListInfoPanel(Static):
    """Sidebar panel showing where we are in the nesting and the list stats."""

    DEFAULT_CSS = """
    ListInfoPanel {
        width: 32;
        border: solid $accent;
        padding: 1;
        overflow-y: auto;
    }
    ListInfoPanel .info-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    ListInfoPanel .info-key {
        color: $text-muted;
    }
    ListInfoPanel .info-val {
        color: $text;
    }
    ListInfoPanel .status-ok {
        color: $success;
        text-style: bold;
    }
    ListInfoPanel .status-bad {
        color: $error;
        text-style: bold;
    }
    """

    def __init__(
        self,
        path: list[int],
        cell_count: int,
        size: int,
        ok: bool,
        canonical: bool,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._path = path
        self._cell_count = cell_count
        self._size = size
        self._ok = ok
        self._canonical = canonical

    def compose(self) -> ComposeResult:
        yield Label("NELF list", classes="info-title")

        if self._ok:
            yield Label("Well-formed", classes="status-ok")
        else:
            yield Label("Malformed (recovered)", classes="status-bad")
        yield Label("Canonical" if self._canonical else "Not canonical", classes="info-val")

        yield Label("")  # spacer

        location = "/" + "/".join(str(i) for i in self._path)
        for key, val in (
            ("path", location),
            ("depth", str(len(self._path))),
            ("cells", str(self._cell_count)),
            ("bytes", str(self._size)),
        ):
            yield Label(f"{key}:", classes="info-key")
            yield Label(Text(f"  {val}"), classes="info-val")


class CellList(ListView):
    """List of cells at the current nesting level."""

    DEFAULT_CSS = """
    CellList {
        width: 36;
        border: solid $accent;
    }
    CellList > ListItem {
        padding: 0 1;
    }
    CellList > ListItem.--highlight {
        background: $accent;
    }
    """

    class CellSelected(Message):
        """Fired when a cell is highlighted."""

        def __init__(self, cell_index: int) -> None:
            self.cell_index = cell_index
            super().__init__()

    class CellOpened(Message):
        """Fired when a cell is chosen with Enter (open as nested list)."""

        def __init__(self, cell_index: int) -> None:
            self.cell_index = cell_index
            super().__init__()

    def __init__(self, cells: list[NelfCell], indices: list[int], **kwargs) -> None:
        self._cells = cells
        self._indices = indices
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for i in self._indices:
            yield ListItem(Label(Text(f"{i:>3d} {preview(self._cells[i].content, 28)}")))

    def _current(self) -> int | None:
        idx = self.index or 0
        if 0 <= idx < len(self._indices):
            return self._indices[idx]
        return None

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        current = self._current()
        if current is not None:
            self.post_message(self.CellOpened(current))

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        current = self._current()
        if current is not None:
            self.post_message(self.CellSelected(current))


class ContentPanel(Static):
    """Main content viewer for the highlighted cell."""

    DEFAULT_CSS = """
    ContentPanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    ContentPanel .content-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    ContentPanel .content-body {
        color: $text;
    }
    """

    current_cell = reactive(-1)

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Select a cell", classes="content-title")
        self._body_widget = Static("", classes="content-body")
        yield self._title_widget
        yield self._body_widget

    def show_cell(self, index: int, cell: NelfCell) -> None:
        """Display a cell's framing details and its content."""
        self.current_cell = index
        if self._title_widget:
            state = "" if cell.closed else ", unclosed"
            self._title_widget.update(
                f"--- cell {index}: {cell.scheme} x{cell.run}, "
                f"offset {cell.offset}, {cell.length} bytes{state} ---"
            )
        if self._body_widget:
            text = bytes(cell.content).decode("utf-8", errors="backslashreplace")
            self._body_widget.update(Text(text))
        self.scroll_home()

    def clear(self) -> None:
        self.current_cell = -1
        if self._title_widget:
            self._title_widget.update("Empty list")
        if self._body_widget:
            self._body_widget.update("")
