import argparse
import logging
import sys
from typing import List, Optional

from . import config
from .default_source import DEFAULT_SOURCE
from .simulate import simulate
from .trace import format_table

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="sh4Sim", description="Cycle-by-cycle SH-4 pipeline timing simulator.")
    ap.add_argument("source", nargs="?", help="Assembly file; the manual's examples are used when omitted")
    ap.add_argument("--max-cycles", type=int, default=None, help=f"Iteration cap per block (default {config.MAX_CYCLES})")
    ap.add_argument("--columns", type=int, default=None, help=f"Cycle columns per chunk (default {config.COLUMNS_PER_GROUP})")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v for progress, -vv for the cycle trace")
    args = ap.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.max_cycles is not None:
        config.set_max_cycles(args.max_cycles)
    if args.columns is not None:
        config.set_columns_per_group(args.columns)

    if args.source:
        with open(args.source, "r", encoding="utf-8") as f:
            source = f.read()
    else:
        source = DEFAULT_SOURCE

    result = simulate(source)
    if result.error:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    for block in result.blocks:
        heading = " / ".join(part for part in (block.title, block.subtitle) if part)
        print(f"=== {heading or block.id} ===")
        status = " (stopped at max cycles)" if block.capped else ""
        print(f"{block.cycle_count} cycles{status}")
        print(format_table(block.table))
        print()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
