"""
NELF CLI - Command-line interface for No-Escape List Format files.

Commands:
  nelf encode   - Encode items (arguments, lines of a file, or stdin) as a list
  nelf decode   - Print the items of an encoded list, one per line or as JSON
  nelf cell     - Encode a single string as a cell
  nelf inspect  - Show every cell with its scheme, run length and offsets
  nelf validate - Check a file for unclosed cells and dangling delimiter runs
  nelf convert  - Convert to/from JSON, CSV, TXT
  nelf view     - Browse a list (and nested lists) in a TUI
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


def _max_size() -> int:
    """Size limit for input files (NELF_MAX_FILE_SIZE overrides the default)."""
    from nelf.spec import MAX_FILE_SIZE

    raw = os.environ.get("NELF_MAX_FILE_SIZE", "")
    if not raw:
        return MAX_FILE_SIZE
    try:
        value = int(raw)
    except ValueError:
        print(f"Error: NELF_MAX_FILE_SIZE must be an integer, got {raw!r}", file=sys.stderr)
        sys.exit(1)
    if value <= 0:
        print("Error: NELF_MAX_FILE_SIZE must be positive", file=sys.stderr)
        sys.exit(1)
    return value


def _read_input(path: str) -> bytes:
    """Read a whole input file, or stdin when path is '-'."""
    from nelf.reader import NelfReader

    if path == "-":
        data = sys.stdin.buffer.read()
        limit = _max_size()
        if len(data) > limit:
            print(f"Error: Input size {len(data)} exceeds maximum {limit} bytes", file=sys.stderr)
            sys.exit(1)
        return data
    if not Path(path).is_file():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        return NelfReader.read_bytes(path, max_size=_max_size())
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_output(output: str) -> None:
    if ".." in Path(output).parts:
        print("Error: Output path must not contain '..' (path traversal)", file=sys.stderr)
        sys.exit(1)


def cmd_encode(args: argparse.Namespace) -> None:
    """Encode items as a NELF list."""
    from nelf.document import NelfList

    if args.item:
        items = [item.encode("utf-8") for item in args.item]
    elif args.file:
        data = _read_input(args.file)
        items = _split_lines(data)
    elif not sys.stdin.isatty():
        items = _split_lines(sys.stdin.buffer.read())
    else:
        print("Error: Provide items via --item, --file, or stdin", file=sys.stderr)
        sys.exit(1)

    lst = NelfList(items)
    if args.output:
        _check_output(args.output)
        nbytes = lst.write(args.output)
        print(f"Encoded {len(lst)} items -> {args.output} ({nbytes} bytes)")
    else:
        sys.stdout.buffer.write(lst.to_bytes())
        sys.stdout.buffer.write(b"\n")
        sys.stdout.flush()


def _split_lines(data: bytes) -> list[bytes]:
    if not data:
        return []
    data = data.replace(b"\r\n", b"\n")
    if data.endswith(b"\n"):
        data = data[:-1]
    return data.split(b"\n")


def cmd_decode(args: argparse.Namespace) -> None:
    """Print the items of a NELF list."""
    from nelf.reader import decode_tree

    data = _read_input(args.path)
    try:
        # NelfFormatError (strict mode) is a ValueError too
        tree = decode_tree(data, args.depth, strict=args.strict)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        from nelf.converters import tree_to_json

        try:
            print(tree_to_json(tree, binary=args.binary))
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        return

    _print_tree(tree, 0)


def _print_tree(tree: list, level: int) -> None:
    from nelf.document import preview

    indent = "  " * level
    for node in tree:
        if isinstance(node, list):
            print(f"{indent}-")
            _print_tree(node, level + 1)
        else:
            print(f"{indent}{preview(node)}")


def cmd_cell(args: argparse.Namespace) -> None:
    """Encode a single string as a NELF cell."""
    from nelf.writer import to_cell

    sys.stdout.buffer.write(to_cell(args.text.encode("utf-8")) + b"\n")
    sys.stdout.flush()


def cmd_inspect(args: argparse.Namespace) -> None:
    """Inspect a NELF file - list cells with scheme and offsets."""
    from nelf.document import preview
    from nelf.reader import validate

    data = _read_input(args.path)
    report = validate(data)

    print(f"NELF list: {len(report.cells)} cells, {report.size} bytes")
    print()
    print("CELLS:")
    for i, cell in enumerate(report.cells):
        state = "" if cell.closed else "  UNCLOSED"
        print(
            f"  {i:>4d}  {cell.scheme:4s}  run={cell.run:<3d} "
            f"offset={cell.offset:>8d}  length={cell.length:>8d}  "
            f"{preview(cell.content, 40)}{state}"
        )
    print()
    print(f"FILLER:    {report.filler} bytes")
    if report.dangling is not None:
        print(f"DANGLING:  delimiter run at offset {report.dangling}")
    print(f"CANONICAL: {'YES' if report.canonical else 'NO'}")


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a NELF file."""
    from nelf.reader import validate

    path = args.path
    report = validate(_read_input(path))

    if report.unclosed is not None:
        print(f"FAIL: {path} has an unclosed cell at offset {report.unclosed}")
        sys.exit(1)
    if report.dangling is not None:
        print(f"FAIL: {path} ends with a dangling delimiter run at offset {report.dangling}")
        sys.exit(1)

    print(f"OK: {path} is valid NELF ({len(report.cells)} cells)")
    if not report.canonical:
        print(f"    Not canonical ({report.filler} filler bytes)")
    if args.canonical and not report.canonical:
        sys.exit(1)


def _infer_format(filename: str) -> str | None:
    """Infer format from file extension."""
    ext_map = {".json": "json", ".csv": "csv", ".txt": "txt", ".nelf": "nelf"}
    return ext_map.get(Path(filename).suffix.lower())


def cmd_convert(args: argparse.Namespace) -> None:
    """Convert to/from NELF."""
    from nelf.converters import FORMATS, convert_from, convert_to
    from nelf.document import NelfList

    if args.format_or_input in FORMATS and args.input:
        fmt = args.format_or_input
        input_file = args.input
    else:
        input_file = args.format_or_input
        inferred = _infer_format(input_file)
        inferred_from_output = _infer_format(args.output) if args.output else None
        resolved = (inferred_from_output if args.direction == "to" and inferred_from_output
                    and inferred_from_output != "nelf" else inferred)
        if not resolved or resolved == "nelf":
            print("Error: Cannot infer format. Specify explicitly:", file=sys.stderr)
            print(f"  nelf convert {args.direction} <json|csv|txt> {input_file}", file=sys.stderr)
            sys.exit(1)
        fmt = resolved

    kwargs = {"binary": True} if args.binary and fmt == "json" else {}
    data = _read_input(input_file)

    if args.direction == "from":
        try:
            lst = convert_from(data.decode("utf-8"), fmt, **kwargs)
        except (ValueError, UnicodeDecodeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        output = args.output or Path(input_file).stem + ".nelf"
        _check_output(output)
        nbytes = lst.write(output)
        print(f"Converted {input_file} -> {output} ({nbytes} bytes)")

    elif args.direction == "to":
        lst = NelfList.from_bytes(data)
        try:
            result = convert_to(lst, fmt, **kwargs)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if args.output:
            _check_output(args.output)
            Path(args.output).write_text(result, encoding="utf-8")
            print(f"Converted {input_file} -> {args.output}")
        else:
            print(result, end="")


def cmd_view(args: argparse.Namespace) -> None:
    """View a NELF file in the TUI."""
    try:
        from nelf.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"nelf[tui]\"",
            file=sys.stderr,
        )
        sys.exit(1)
    run_viewer(args.path, max_size=_max_size())


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="nelf",
        description="NELF - No-Escape List Format. Lists of byte strings without escaping.",
    )
    from nelf import __version__
    parser.add_argument("--version", action="version", version=f"nelf {__version__}")
    sub = parser.add_subparsers(dest="command")

    # encode
    p_encode = sub.add_parser("encode", help="Encode items as a NELF list")
    p_encode.add_argument("-i", "--item", action="append", help="Item to encode (repeatable)")
    p_encode.add_argument("-f", "--file", help="Read items from a file, one per line")
    p_encode.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # decode
    p_decode = sub.add_parser("decode", help="Print the items of a NELF list")
    p_decode.add_argument("path", help="Path to .nelf file ('-' for stdin)")
    p_decode.add_argument("-d", "--depth", type=int, default=0, help="Nesting levels to expand")
    p_decode.add_argument("--json", action="store_true", help="Print as a JSON array")
    p_decode.add_argument("--binary", action="store_true", help="Base64 items in JSON output")
    p_decode.add_argument("--strict", action="store_true", help="Fail on unclosed cells and dangling runs")

    # cell
    p_cell = sub.add_parser("cell", help="Encode a single string as a cell")
    p_cell.add_argument("text", help="String to encode")

    # inspect
    p_inspect = sub.add_parser("inspect", help="Inspect the cells of a NELF file")
    p_inspect.add_argument("path", help="Path to .nelf file ('-' for stdin)")

    # validate
    p_validate = sub.add_parser("validate", help="Validate a NELF file")
    p_validate.add_argument("path", help="Path to .nelf file ('-' for stdin)")
    p_validate.add_argument("--canonical", action="store_true",
                            help="Also fail when the file is not in canonical form")

    # convert
    p_convert = sub.add_parser("convert", help="Convert to/from NELF")
    p_convert.add_argument("direction", choices=["to", "from"], help="Conversion direction")
    p_convert.add_argument("format_or_input", help="Format (json, csv, txt) or input file")
    p_convert.add_argument("input", nargs="?", default=None, help="Input file path")
    p_convert.add_argument("-o", "--output", help="Output file path")
    p_convert.add_argument("--binary", action="store_true", help="Base64 items (JSON only)")

    # view
    p_view = sub.add_parser("view", help="View a NELF file in the TUI")
    p_view.add_argument("path", help="Path to .nelf file")

    args = parser.parse_args()

    if not args.command:
        print("NELF - No-Escape List Format")
        print("Lists of byte strings without escaping.\n")
        print("Usage:")
        print("  nelf encode -i one -i two -o list.nelf")
        print("  nelf decode list.nelf")
        print("  nelf decode nested.nelf --depth 1 --json")
        print("  nelf cell 'a|b'")
        print("  nelf inspect list.nelf")
        print("  nelf validate list.nelf")
        print("  nelf convert to json list.nelf -o list.json")
        print("  nelf convert from csv table.csv -o table.nelf")
        print("  nelf view list.nelf")
        print()
        print("Pipe from stdin:")
        print("  printf 'one\\ntwo\\n' | nelf encode -o list.nelf")
        print()
        print("Run 'nelf <command> --help' for details on any command.")
        print("Run 'nelf --version' for version info.")
        sys.exit(0)

    commands = {
        "encode": cmd_encode,
        "decode": cmd_decode,
        "cell": cmd_cell,
        "inspect": cmd_inspect,
        "validate": cmd_validate,
        "convert": cmd_convert,
        "view": cmd_view,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
