"""Command-line entry point: float one JavaScript file to stdout or in place."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .api import SourceTooLargeError, float_file
from .parser import ParseError
from .run_types import FloatConfig


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="floated-binding",
        description="Float pure bindings and calls of curried JavaScript "
        "into memoized outer-scope thunks",
    )
    parser.add_argument("file", help="JavaScript file to transform")
    parser.add_argument(
        "--in-place",
        "-i",
        action="store_true",
        help="Rewrite the file instead of printing the result",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print floating statistics to stderr",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print a JSON record of every floated binding to stderr",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every candidate decision",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    path = Path(args.file).resolve()
    try:
        code, stats = float_file(path, in_place=args.in_place, config=FloatConfig())
    except (FileNotFoundError, SourceTooLargeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (ParseError, OSError, UnicodeDecodeError) as exc:
        print(f"Error transforming file: {exc}", file=sys.stderr)
        return 1
    except RecursionError:
        print(
            f"Error transforming file: input nested too deeply: {path}", file=sys.stderr
        )
        return 1

    if args.in_place:
        if stats.skipped_reason:
            print(f"Left unchanged ({stats.skipped_reason}): {path}")
        else:
            print(f"Successfully transformed and updated: {path}")
    else:
        print(code)

    if args.stats:
        print(stats.report(), file=sys.stderr)
    if args.report:
        records = [record.model_dump(mode="json") for record in stats.records]
        print(json.dumps(records, indent=2), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
