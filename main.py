#!/usr/bin/env python3
import argparse
import json
import sys

import config
from engine import ExactMathEngine
from formatting import FormatConfig, NumberFormat
from logging_config import setup_logging
from nodes import LiteralNode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate a calculator line exactly.")
    parser.add_argument("lines", nargs="+", help="expression or equation; several lines form a system")
    parser.add_argument("--format", choices=[f.value for f in NumberFormat], default=None)
    parser.add_argument("--precision", type=int, default=None)
    parser.add_argument("--json", action="store_true", help="print the result as JSON")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    cfg = FormatConfig.from_env()
    cfg = FormatConfig(
        NumberFormat(args.format) if args.format else cfg.number_format,
        cfg.precision if args.precision is None else args.precision,
    )
    engine = ExactMathEngine(cfg)
    result = engine.evaluate([LiteralNode("\n".join(args.lines))])

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False))
    elif result.is_empty:
        print("no solution" if result.unsolvable else "")
    else:
        print(result.text)
        approx = result.approximation(cfg)
        if approx and not result.solutions and approx != result.text:
            print(f"≈ {approx}")
    return 1 if result.is_empty else 0


if __name__ == "__main__":
    sys.exit(main())
