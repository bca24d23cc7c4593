"""
NELF Converters - Convert to/from JSON, CSV, TXT.

Every format goes both ways:
  - to_json / from_json
  - to_csv / from_csv
  - to_txt / from_txt

Items are bytes; text formats carry them as UTF-8 strings (or Base64 for
JSON with binary=True).
"""

from __future__ import annotations

import base64
import binascii
import csv
import io
import json
from typing import Any

from nelf.document import NelfList
from nelf.reader import decode_tree
from nelf.spec import MAX_NESTING_DEPTH
from nelf.writer import encode_tree, to_nelf


def _to_text(item: bytes, binary: bool) -> str:
    if binary:
        return base64.b64encode(item).decode("ascii")
    try:
        return item.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(
            f"Item is not valid UTF-8 ({e.reason} at byte {e.start}). "
            f"Use binary=True to export as Base64."
        ) from None


def _from_text(text: str, binary: bool) -> bytes:
    if binary:
        try:
            return base64.b64decode(text, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid Base64 item: {e}") from None
    return text.encode("utf-8")


# =============================================================================
# JSON
# =============================================================================

def to_json(lst: NelfList, indent: int = 2, binary: bool = False, depth: int = 0) -> str:
    """Convert a NELF list to a JSON array.

    depth > 0 expands items as nested lists that many levels down.
    """
    tree = decode_tree(lst.to_bytes(), depth) if depth else list(lst.items)
    return tree_to_json(tree, indent=indent, binary=binary)


def tree_to_json(tree: list, indent: int = 2, binary: bool = False) -> str:
    """JSON for an already decoded tree (nested lists of bytes)."""

    def convert(node: Any) -> Any:
        if isinstance(node, list):
            return [convert(child) for child in node]
        return _to_text(node, binary)

    return json.dumps(convert(tree), indent=indent, ensure_ascii=False)


def from_json(json_str: str, binary: bool = False) -> NelfList:
    """Create a NELF list from a JSON array.

    Nested arrays become nested NELF lists. Anything other than strings and
    arrays is rejected to avoid silently stringifying numbers or objects.
    """
    data = json.loads(json_str)
    if not isinstance(data, list):
        raise ValueError("Invalid NELF JSON: expected a JSON array at top level")

    def convert(node: Any, level: int) -> Any:
        if isinstance(node, str):
            return _from_text(node, binary)
        if isinstance(node, list):
            if level >= MAX_NESTING_DEPTH:
                raise ValueError(f"Invalid NELF JSON: nesting deeper than {MAX_NESTING_DEPTH}")
            return [convert(child, level + 1) for child in node]
        raise ValueError(
            f"Invalid NELF JSON: items must be strings or arrays, got {type(node).__name__}"
        )

    lst = NelfList()
    for node in data:
        converted = convert(node, 1)
        if isinstance(converted, list):
            lst.add(encode_tree(converted))
        else:
            lst.add(converted)
    return lst


# =============================================================================
# CSV
# =============================================================================

def to_csv(lst: NelfList) -> str:
    """Convert a NELF list of rows (each a nested list of fields) to CSV."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    for row in decode_tree(lst.to_bytes(), 1):
        writer.writerow([_to_text(field, False) for field in row])
    return output.getvalue()


def from_csv(csv_str: str) -> NelfList:
    """Create a NELF list from CSV. Each row becomes a nested list of fields."""
    reader = csv.reader(io.StringIO(csv_str))
    lst = NelfList()
    for row in reader:
        lst.add(to_nelf(field.encode("utf-8") for field in row))
    return lst


# =============================================================================
# Plain Text
# =============================================================================

def to_txt(lst: NelfList) -> str:
    """Convert to plain text, one item per line."""
    lines = []
    for i, item in enumerate(lst.items):
        text = _to_text(item, False)
        if "\n" in text or "\r" in text:
            raise ValueError(f"Item {i} contains a line break and cannot be written as text")
        lines.append(text)
    return "".join(line + "\n" for line in lines)


def from_txt(text: str) -> NelfList:
    """Create a NELF list from plain text, one item per line."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    if not text:
        return NelfList()
    if text.endswith("\n"):
        text = text[:-1]
    return NelfList([line.encode("utf-8") for line in text.split("\n")])


# =============================================================================
# Dispatch
# =============================================================================

FORMATS = {
    "json": (to_json, from_json),
    "csv": (to_csv, from_csv),
    "txt": (to_txt, from_txt),
}


def convert_to(lst: NelfList, fmt: str, **kwargs) -> str:
    """Convert a NELF list to the given format."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format: {fmt!r}. Supported: {', '.join(FORMATS)}")
    return FORMATS[fmt][0](lst, **kwargs)


def convert_from(data: str, fmt: str, **kwargs) -> NelfList:
    """Convert from the given format to a NELF list."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format: {fmt!r}. Supported: {', '.join(FORMATS)}")
    return FORMATS[fmt][1](data, **kwargs)
