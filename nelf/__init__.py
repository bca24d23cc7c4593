"""
NELF - No-Escape List Format
Lists of byte strings as text, without escaping anything.

Borrow on read > Shortest delimiter on write > Human readability
"""

__version__ = "0.1.0"

from nelf.spec import PIPE, FWD, BACK, SCHEMES, EMPTY_CELL
from nelf.document import NelfCell, NelfList
from nelf.reader import (
    NelfFormatError, NelfIter, NelfReader, decode, decode_tree, is_canonical,
    iter_cells, validate,
)
from nelf.writer import (
    NelfWriter, choose_scheme, encode_list, encode_one, encode_tree, to_cell, to_nelf,
)
