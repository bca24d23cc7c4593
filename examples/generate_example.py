"""Generate an example .nelf file to see what the format looks like."""

import sys
sys.path.insert(0, str(__import__("pathlib").Path(__file__).parent.parent))

from nelf.document import NelfList
from nelf.reader import iter_cells

lst = NelfList()
lst.add(b"plain text needs the shortest framing")
lst.add(b"a|pipe forces the slash scheme")
lst.add(b"C:\\Windows\\System32")
lst.add(b"/etc/hosts")
lst.add(b"")
lst.add(b"|/\\|")
lst.add_list([b"nested", b"lists", b"are cells too"])

out = "example.nelf"
nbytes = lst.write(out)
print(f"Wrote {out} ({nbytes} bytes)")
print()
print(lst.to_bytes().decode("utf-8"))
print()
for i, cell in enumerate(iter_cells(lst.to_bytes())):
    print(f"  {i}  {cell.scheme:4s} x{cell.run}  {cell.to_bytes()!r}")
