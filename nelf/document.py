"""
NELF Document - In-memory representation of a NELF list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from nelf.spec import check_bytes, scheme_name


def preview(content: bytes | memoryview, width: int = 0) -> str:
    """Single-line printable rendering of an item; bad UTF-8 becomes \\xNN."""
    text = bytes(content).decode("utf-8", errors="backslashreplace")
    text = text.replace("\n", "\\n").replace("\r", "\\r")
    if width and len(text) > width:
        text = text[:width - 3] + "..."
    return text


@dataclass(frozen=True)
class NelfCell:
    """A single decoded cell and where it sits in the source buffer."""
    content: memoryview
    offset: int        # byte offset of the content from buffer start
    length: int        # byte length of the content
    opener: int        # opening delimiter byte
    run: int           # length of the opening (and closing) run
    closed: bool = True  # False when the buffer ended before the closing run

    @property
    def scheme(self) -> str:
        return scheme_name(self.opener)

    @property
    def start(self) -> int:
        """Offset of the first byte of the opening run."""
        return self.offset - self.run

    @property
    def end(self) -> int:
        """Offset just past the closing run (or the buffer end if unclosed)."""
        return self.offset + self.length + (self.run if self.closed else 0)

    def to_bytes(self) -> bytes:
        return bytes(self.content)


@dataclass
class NelfList:
    """
    Owned, ordered list of byte strings.

    Usage:
        lst = NelfList()
        lst.add(b"hello")
        lst.add_list(NelfList([b"nested", b"items"]))
        lst.write("output.nelf")
    """

    items: list[bytes] = field(default_factory=list)

    def __post_init__(self) -> None:
        items = []
        for item in self.items:
            check_bytes(item, "item")
            items.append(bytes(item))
        self.items = items

    @classmethod
    def from_bytes(cls, data: bytes, strict: bool = False) -> NelfList:
        """Decode an encoded buffer into an owned NelfList."""
        from nelf.reader import NelfIter
        return cls([bytes(item) for item in NelfIter(data, strict=strict)])

    def add(self, item: bytes) -> bytes:
        """Append a byte string. Returns the stored copy."""
        check_bytes(item, "item")
        stored = bytes(item)
        self.items.append(stored)
        return stored

    def extend(self, items: Iterable[bytes]) -> None:
        for item in items:
            self.add(item)

    def add_list(self, sublist: NelfList | Iterable[bytes]) -> bytes:
        """Append a nested list, stored as its own encoding."""
        from nelf.writer import to_nelf
        items = sublist.items if isinstance(sublist, NelfList) else sublist
        return self.add(to_nelf(items))

    def get(self, index: int) -> bytes | None:
        """Item at index, or None when out of range."""
        if -len(self.items) <= index < len(self.items):
            return self.items[index]
        return None

    def nested(self, index: int) -> NelfList:
        """Parse the item at index as a NELF list of its own."""
        item = self.get(index)
        if item is None:
            raise IndexError(f"No item at index {index} (list has {len(self.items)})")
        return NelfList.from_bytes(item)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.items)

    def to_bytes(self) -> bytes:
        """Serialize this list to bytes."""
        from nelf.writer import NelfWriter
        return NelfWriter.serialize(self)

    def write(self, path: str) -> int:
        """Write this list to a .nelf file. Returns bytes written.

        Raises ValueError if path contains '..' (path traversal prevention).
        """
        from pathlib import Path as _Path
        if ".." in _Path(path).parts:
            raise ValueError("Output path must not contain '..' (path traversal)")
        from nelf.writer import NelfWriter
        return NelfWriter.write(self, path)

    def __repr__(self) -> str:
        head = [item[:16] for item in self.items[:4]]
        more = f", ... +{len(self.items) - 4}" if len(self.items) > 4 else ""
        return f"NelfList({len(self.items)} items: {head}{more})"
