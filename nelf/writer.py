"""
NELF Writer - Encodes byte strings as NELF cells and lists.

Two-pass strategy per cell:
  1. Measure the longest run of each candidate close byte
  2. Assemble the output: open run + content + close run

Cells are self-delimiting, so a list is just its cells concatenated.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable

from nelf.spec import BYTES_TYPES, EMPTY_CELL, SCHEMES, byte_view

if TYPE_CHECKING:
    from nelf.document import NelfList

# One pattern per delimiter byte, matching maximal runs of it
_RUNS = {
    closer: re.compile(re.escape(bytes([closer])) + b"+")
    for _, _, closer in SCHEMES
}


def longest_run(data: bytes, byte: int) -> int:
    """Length of the longest run of ``byte`` in data (0 if absent)."""
    pattern = _RUNS.get(byte)
    if pattern is None:
        pattern = re.compile(re.escape(bytes([byte])) + b"+")
    return max((len(run) for run in pattern.findall(data)), default=0)


def choose_scheme(data: bytes) -> tuple[int, int, int]:
    """Pick the cell framing for data. Returns (opener, closer, run).

    A scheme is skipped when the first byte of data equals its opener or the
    last byte equals its closer. Of the remaining schemes the one with the
    shortest run wins; SCHEMES order breaks ties. The pipe scheme can only
    be ruled out by a "|" at an edge, which never rules out the other two
    at the same time, so a scheme is always found.
    """
    data = byte_view(data, "data")
    if len(data) == 0:
        return EMPTY_CELL[0], EMPTY_CELL[1], 1

    first = data[0]
    last = data[-1]
    best = None
    for _, opener, closer in SCHEMES:
        if first == opener or last == closer:
            continue
        run = longest_run(data, closer) + 1
        if best is None or run < best[2]:
            best = (opener, closer, run)
    return best


def to_cell(data: bytes) -> bytes:
    """Encode one byte string as a NELF cell. Total for any bytes-like input."""
    data = byte_view(data, "data")
    if len(data) == 0:
        return EMPTY_CELL
    opener, closer, run = choose_scheme(data)
    return b"".join((bytes([opener]) * run, data, bytes([closer]) * run))


def to_nelf(items: Iterable[bytes]) -> bytes:
    """Encode an iterable of byte strings as a NELF list."""
    if isinstance(items, BYTES_TYPES) or isinstance(items, str):
        raise TypeError(
            f"items must be an iterable of byte strings, not a single {type(items).__name__}"
        )
    return b"".join(to_cell(item) for item in items)


def encode_tree(tree) -> bytes:
    """Encode arbitrarily nested lists of byte strings.

    A bytes-like value becomes a cell as is; a list (or tuple) becomes a
    NELF list which is then stored as a single cell of its parent.
    The top-level value must be a list.
    """
    if isinstance(tree, BYTES_TYPES):
        raise TypeError("encode_tree expects a list at the top level")
    return to_nelf(_encode_branch(node) for node in tree)


def _encode_branch(node) -> bytes:
    if isinstance(node, BYTES_TYPES):
        return node
    if isinstance(node, (list, tuple)):
        return encode_tree(node)
    raise TypeError(
        f"tree leaves must be bytes, bytearray or memoryview, got {type(node).__name__}"
    )


# Public names used by the wire-format documentation
encode_one = to_cell
encode_list = to_nelf


class NelfWriter:

    @staticmethod
    def serialize(lst: NelfList) -> bytes:
        """Serialize a NelfList to bytes. Pure — does not mutate the input."""
        return to_nelf(lst.items)

    @staticmethod
    def write(lst: NelfList, path: str, mode: int = 0o644) -> int:
        """Write a NelfList to a file atomically. Returns bytes written.

        Uses write-to-temp-then-rename so the target file is never left
        partially written.
        """
        import os
        import tempfile
        data = NelfWriter.serialize(lst)
        dir_name = os.path.dirname(os.path.abspath(path)) or "."
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".nelf.tmp")
        try:
            if hasattr(os, "fchmod"):  # not available on Windows
                os.fchmod(fd, mode)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return len(data)
