from __future__ import annotations

import logging
import sys
from typing import Iterable

from .cli import build_parser, run_cli


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command is None:
        parser.print_help()
        return 2
    configure_logging(args.log_level)
    return run_cli(args)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
