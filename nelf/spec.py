"""
NELF Format Specification
=========================

Layout:
    |hello|                      <- Cell: open run, content, close run
    \\\\/|//                       <- Cell with run length 2 (content is "/|")
    /\\                          <- Empty string cell (always exactly "/\\")

    A list is zero or more cells written back to back:

    |one||two|/\\|three|          <- ["one", "two", "", "three"]

Delimiter alphabet:
    |   PIPE   opens and closes its own cells
    /   FWD    opens a cell that BACK closes
    \\   BACK   opens a cell that FWD closes

    Every other byte value is plain content. Nothing is ever escaped.

Schemes (tie-break order is part of the wire format):
    1. pipe   "|" * n + content + "|" * n
    2. fwd    "/" * n + content + "\\" * n
    3. back   "\\" * n + content + "/" * n

Choosing a scheme:
    - A scheme is unusable when the content starts with its open byte or
      ends with its close byte (the edge byte would merge into the run)
    - n = 1 + longest run of the close byte inside the content
    - Smallest n wins, ties resolved in the order above

Decoding:
    - Bytes outside any cell are filler and are skipped
    - The opening run length tells how many close bytes end the cell
    - A delimiter run that reaches the end of the buffer is dropped
    - A cell that is never closed takes the rest of the buffer as content

Nesting:
    - An encoded list is a byte string, so it can be a cell of another list
"""

PIPE = 0x7C  # |
FWD = 0x2F   # /
BACK = 0x5C  # backslash

DELIMITERS = frozenset({PIPE, FWD, BACK})

# Opening byte -> closing byte
CLOSERS = {
    PIPE: PIPE,
    FWD: BACK,
    BACK: FWD,
}

# (name, opener, closer) in tie-break order
SCHEMES = (
    ("pipe", PIPE, PIPE),
    ("fwd", FWD, BACK),
    ("back", BACK, FWD),
)

SCHEME_NAMES = {opener: name for name, opener, _ in SCHEMES}

EMPTY_CELL = b"/\\"

# Types accepted wherever a byte string is expected
BYTES_TYPES = (bytes, bytearray, memoryview)

# File extension
EXTENSION = ".nelf"

# Safety limits
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB max file size for reader
MAX_NESTING_DEPTH = 64             # Max depth for decode_tree / from_json


def closer_for(opener: int) -> int:
    """Return the byte that closes a cell opened with ``opener``."""
    return CLOSERS[opener]


def scheme_name(opener: int) -> str:
    return SCHEME_NAMES[opener]


def check_bytes(value: object, what: str = "value") -> None:
    """Raise TypeError unless value is one of the accepted bytes-like types.

    ``str`` is deliberately not accepted: NELF encodes bytes, and picking an
    encoding is the caller's decision.
    """
    if not isinstance(value, BYTES_TYPES):
        raise TypeError(
            f"{what} must be bytes, bytearray or memoryview, "
            f"got {type(value).__name__}"
        )


def byte_view(value: object, what: str = "value") -> memoryview:
    """Flat memoryview of value's raw bytes, one item per byte.

    Views over wider items (e.g. an array of "H") are cast to "B" so that
    indexing and len() count bytes. A non-contiguous view is copied first;
    everything else is borrowed.
    """
    check_bytes(value, what)
    view = memoryview(value)
    if not view.c_contiguous:
        view = memoryview(view.tobytes())
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view
