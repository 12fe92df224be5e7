#!/usr/bin/env python3
"""
cli.py — Command-line front end for protosort

Commands:
  check     Report whether messages already have canonical field order
  sort      Write messages with their fields in canonical order
  hash      Print the SHA-256 of each message's canonical form

Every command takes ``--delimited`` for files holding a stream of
length-prefixed messages, and ``-`` for stdin/stdout.
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import BinaryIO, List

from .canonical_proto import canonical_bytes, canonical_hash, is_message_sorted
from .errors import ProtosortError
from .framing import iter_delimited, write_delimited

logger = logging.getLogger(__name__)


def _report_error(err: ProtosortError, source: str) -> None:
    """Print a structured error message from a ``ProtosortError``.

    Args:
        err: Parse or framing error.
        source: Name of the input being processed.
    """
    print(
        f"ERROR: {source}: {str(err).rstrip('.')}. "
        f"Fix: check that the input is a serialized protobuf message"
        f"{' stream with length prefixes' if err.code == 'PROTOSORT_E100' else ''} and retry.",
        file=sys.stderr,
    )


def _fail_with_error(err: ProtosortError, source: str) -> None:
    """Print a structured error message from a ``ProtosortError`` and exit.

    Returns:
        None: This function terminates the process.
    """
    _report_error(err, source)
    sys.exit(1)


def _cli_error(what: str, why: str, fix: str) -> None:
    """Print a teaching-style CLI error and exit.

    Args:
        what: What failed.
        why: Why it failed.
        fix: Recommended remediation.

    Returns:
        None: This function terminates the process.
    """
    print(f"ERROR: {what}. {why}. Fix: {fix}.", file=sys.stderr)
    sys.exit(1)


def _read_input(source: str) -> bytes:
    if source == "-":
        return sys.stdin.buffer.read()
    path = Path(source)
    if not path.is_file():
        _cli_error(
            f"Input not found: {source}",
            "The path does not exist or is not a regular file",
            "pass the path of a serialized message, or - for stdin",
        )
    return path.read_bytes()


def _emit(stream: BinaryIO, messages: List[bytes], delimited: bool) -> None:
    if delimited:
        write_delimited(stream, messages)
    else:
        for msg in messages:
            stream.write(msg)


def _write_output(target: str, messages: List[bytes], delimited: bool) -> None:
    if target == "-":
        _emit(sys.stdout.buffer, messages, delimited)
        sys.stdout.buffer.flush()
    else:
        with open(target, "wb") as fh:
            _emit(fh, messages, delimited)


def _messages(data: bytes, delimited: bool) -> List[memoryview]:
    if delimited:
        return list(iter_delimited(data))
    return [memoryview(data)]


def _label(source: str, index: int, delimited: bool) -> str:
    return f"{source}[{index}]" if delimited else source


def cmd_check(args: argparse.Namespace) -> None:
    """Handle ``protosort check``.

    Every file is checked even after a failure. Exits with status 1 if any
    message is not in canonical order or any file fails to parse.
    """
    unsorted = 0
    failed = 0
    for source in args.files:
        data = _read_input(source)
        try:
            for i, msg in enumerate(_messages(data, args.delimited)):
                ok = is_message_sorted(msg)
                if not ok:
                    unsorted += 1
                print(f"{_label(source, i, args.delimited)}: {'SORTED' if ok else 'UNSORTED'}")
        except ProtosortError as err:
            failed += 1
            _report_error(err, source)
    if unsorted or failed:
        logger.debug("%d message(s) not in canonical order, %d file(s) unreadable", unsorted, failed)
        sys.exit(1)


def cmd_sort(args: argparse.Namespace) -> None:
    """Handle ``protosort sort``."""
    if args.in_place and args.file == "-":
        _cli_error(
            "Cannot sort stdin in place",
            "--in-place rewrites the input file",
            "pass a file path or drop --in-place",
        )
    if args.in_place and args.output:
        _cli_error(
            "Conflicting options",
            "--in-place and --output both choose where results go",
            "use only one of them",
        )

    data = _read_input(args.file)
    try:
        originals = _messages(data, args.delimited)
        results = [canonical_bytes(msg) for msg in originals]
    except ProtosortError as err:
        _fail_with_error(err, args.file)

    if args.in_place:
        if any(orig.tobytes() != new for orig, new in zip(originals, results)):
            _write_output(args.file, results, args.delimited)
            logger.debug("rewrote %s", args.file)
        return
    _write_output(args.output or "-", results, args.delimited)


def cmd_hash(args: argparse.Namespace) -> None:
    """Handle ``protosort hash``."""
    for source in args.files:
        data = _read_input(source)
        try:
            for i, msg in enumerate(_messages(data, args.delimited)):
                print(f"{canonical_hash(msg)}  {_label(source, i, args.delimited)}")
        except ProtosortError as err:
            _fail_with_error(err, source)


def main() -> None:
    """CLI entrypoint.

    Parses command-line arguments and routes to a subcommand handler.
    """
    parser = argparse.ArgumentParser(prog="protosort", description="Canonical field order for protobuf messages")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # check
    p_check = sub.add_parser("check", help="Check whether messages are in canonical order")
    p_check.add_argument("files", nargs="+", help="Message files (- for stdin)")
    p_check.add_argument("--delimited", action="store_true", help="Files hold length-prefixed message streams")

    # sort
    p_sort = sub.add_parser("sort", help="Write messages in canonical order")
    p_sort.add_argument("file", help="Message file (- for stdin)")
    p_sort.add_argument("-o", "--output", help="Output file (default: stdout)")
    p_sort.add_argument("--in-place", action="store_true", help="Rewrite the input file")
    p_sort.add_argument("--delimited", action="store_true", help="File holds a length-prefixed message stream")

    # hash
    p_hash = sub.add_parser("hash", help="SHA-256 of each message's canonical form")
    p_hash.add_argument("files", nargs="+", help="Message files (- for stdin)")
    p_hash.add_argument("--delimited", action="store_true", help="Files hold length-prefixed message streams")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "check": cmd_check(args)
    elif args.command == "sort": cmd_sort(args)
    elif args.command == "hash": cmd_hash(args)


if __name__ == "__main__":
    main()
