"""
NELF Reader - Lazy, zero-copy decoder for NELF lists.

Speed features:
  - Delimiter and run scanning is done by precompiled regular expressions
  - Items are memoryview slices of the source buffer (nothing is copied)
  - Cells are produced on demand by a single forward cursor

Leniency:
  - Filler bytes between cells are skipped
  - A delimiter run that reaches the end of the buffer is dropped
  - A cell that is never closed takes the rest of the buffer as content
  - strict=True turns the last two cases into NelfFormatError
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from nelf.spec import (
    CLOSERS, DELIMITERS, MAX_FILE_SIZE, MAX_NESTING_DEPTH,
    byte_view,
)
from nelf.document import NelfCell, NelfList

_DELIMITER = re.compile(rb"[|/\\]")

# Maximal run of one delimiter byte, anchored with .match()
_RUNS = {
    byte: re.compile(re.escape(bytes([byte])) + b"+")
    for byte in DELIMITERS
}


@functools.lru_cache(maxsize=256)
def _closing_run(closer: int, run: int) -> re.Pattern:
    """Pattern for exactly ``run`` consecutive closer bytes (leftmost match)."""
    return re.compile(re.escape(bytes([closer]) * run))


class NelfFormatError(ValueError):
    """Raised by strict decoding when the buffer is not well-formed NELF."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} at offset {offset}")
        self.offset = offset


class NelfIter:
    """
    Iterator over the cells of an encoded list.

    Borrows the source buffer and yields memoryview slices of it. Single
    pass: once exhausted it stays exhausted.

    Usage:
        for item in NelfIter(b"|one||two|"):
            print(bytes(item))

        it = NelfIter(data)
        cell = it.next_cell()   # NelfCell with offsets and scheme
    """

    def __init__(self, data: bytes, strict: bool = False) -> None:
        self._data = byte_view(data, "data")
        self._index = 0
        self._strict = strict
        self.dangling: int | None = None  # offset of a dropped trailing run

    @property
    def position(self) -> int:
        return self._index

    def next_cell(self) -> NelfCell | None:
        """Advance past the next cell and return it, or None at the end."""
        data = self._data
        size = len(data)
        if self._index >= size:
            return None

        found = _DELIMITER.search(data, self._index)
        if found is None:
            self._index = size
            return None

        opener_at = found.start()
        opener = data[opener_at]
        start = _RUNS[opener].match(data, opener_at).end()
        if start >= size:
            # Run of delimiters with nothing after it
            self.dangling = opener_at
            self._index = size
            if self._strict:
                raise NelfFormatError("Unterminated delimiter run", opener_at)
            return None

        run = start - opener_at
        closer = CLOSERS[opener]
        close = _closing_run(closer, run).search(data, start)
        if close is not None:
            end = close.start()
            self._index = close.end()
            closed = True
        else:
            if self._strict:
                self._index = size
                raise NelfFormatError(
                    f"Unclosed cell (expected {run} x {chr(closer)!r})", opener_at
                )
            end = size
            self._index = size
            closed = False

        return NelfCell(
            content=data[start:end],
            offset=start,
            length=end - start,
            opener=opener,
            run=run,
            closed=closed,
        )

    def __iter__(self) -> NelfIter:
        return self

    def __next__(self) -> memoryview:
        cell = self.next_cell()
        if cell is None:
            raise StopIteration
        return cell.content


def decode(data: bytes, strict: bool = False) -> NelfIter:
    """Lazily decode an encoded list. Items are views into data."""
    return NelfIter(data, strict=strict)


def iter_cells(data: bytes, strict: bool = False) -> Iterator[NelfCell]:
    """Like decode(), but yields NelfCell records with position metadata."""
    it = NelfIter(data, strict=strict)
    while (cell := it.next_cell()) is not None:
        yield cell


def decode_tree(data: bytes, depth: int = 1, strict: bool = False) -> list:
    """Decode nested lists ``depth`` levels below the top level.

    depth=0 returns a flat list of bytes; depth=1 decodes every item as a
    list of bytes; and so on. NELF is not self-describing about nesting,
    so the caller says how deep to go.
    """
    if depth < 0 or depth > MAX_NESTING_DEPTH:
        raise ValueError(f"depth must be between 0 and {MAX_NESTING_DEPTH}, got {depth}")
    if depth == 0:
        return [bytes(item) for item in NelfIter(data, strict=strict)]
    return [decode_tree(item, depth - 1, strict) for item in NelfIter(data, strict=strict)]


# =============================================================================
# Validation
# =============================================================================

@dataclass
class NelfReport:
    """Result of validate(): what the decoder saw and what it had to forgive."""
    size: int
    cells: list[NelfCell] = field(default_factory=list)
    filler: int = 0                 # bytes outside any cell
    dangling: int | None = None     # offset of a dropped trailing run
    unclosed: int | None = None     # offset of a cell that never closed
    canonical: bool = False

    @property
    def ok(self) -> bool:
        return self.dangling is None and self.unclosed is None


def validate(data: bytes) -> NelfReport:
    """Decode leniently and report filler, dangling runs and unclosed cells."""
    it = NelfIter(data)
    report = NelfReport(size=len(it._data))
    covered = 0
    while (cell := it.next_cell()) is not None:
        report.cells.append(cell)
        covered += cell.end - cell.start
        if not cell.closed:
            report.unclosed = cell.start
    report.dangling = it.dangling
    if report.dangling is not None:
        covered += report.size - report.dangling
    report.filler = report.size - covered
    report.canonical = _reencode(report.cells) == it._data
    return report


def is_canonical(data: bytes) -> bool:
    """True if data is exactly what the encoder produces for its items."""
    view = byte_view(data, "data")
    return _reencode(iter_cells(view)) == view


def _reencode(cells) -> bytes:
    from nelf.writer import to_cell
    return b"".join(to_cell(cell.content) for cell in cells)


# =============================================================================
# File access
# =============================================================================

class NelfReader:
    """
    NELF file reader.

    Usage:
        lst = NelfReader.read("file.nelf")
        lst = NelfReader.parse(b"|a||b|")
    """

    @classmethod
    def read(cls, path: str | Path, max_size: int = MAX_FILE_SIZE,
             strict: bool = False) -> NelfList:
        """Read and decode a .nelf file into a NelfList."""
        data = cls.read_bytes(path, max_size=max_size)
        return cls.parse(data, max_size=max_size, strict=strict)

    @classmethod
    def parse(cls, data: bytes, max_size: int = MAX_FILE_SIZE,
              strict: bool = False) -> NelfList:
        """Decode bytes into a NelfList (items are copied out of data)."""
        data = byte_view(data, "data")
        if len(data) > max_size:
            raise ValueError(
                f"Input size {len(data)} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        return NelfList.from_bytes(data, strict=strict)

    @staticmethod
    def read_bytes(path: str | Path, max_size: int = MAX_FILE_SIZE) -> bytes:
        """Read a file's raw bytes, enforcing the size limit."""
        path = Path(path)
        file_size = path.stat().st_size
        if file_size > max_size:
            raise ValueError(
                f"File size {file_size} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        return path.read_bytes()
