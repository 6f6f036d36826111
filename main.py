from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from cranfield.cli import index_main, search_main
from cranfield.eval import main as eval_main
from cranfield.experiments.model_sweep import main as sweep_main

COMMANDS = {
    "index": index_main,
    "search": search_main,
    "eval": eval_main,
    "sweep": sweep_main,
}


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Cranfield collection runner (Lucene via Pyserini).",
        epilog="Run '<command> --help' for the options of each command.",
    )
    p.add_argument("command", choices=sorted(COMMANDS), help="Which step to run.")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    args, rest = build_arg_parser().parse_known_args(argv[:1])
    return COMMANDS[args.command](rest + argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
