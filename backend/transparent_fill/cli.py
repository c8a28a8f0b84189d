"""
Command line entry point.

Operations run in the order they appear on the command line:

    transparent-fill sprite.png --propagate 8 --preview preview.png \
        --solid-fill "#000" --output sprite.fixed.png
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from transparent_fill.config import FillConfig
from transparent_fill.errors import OperationError
from transparent_fill.kernel import KernelShape
from transparent_fill.operations import Operation
from transparent_fill.pipeline import process_one
from transparent_fill.utils.log import setup_logging

logger = logging.getLogger(__name__)


class _AppendOperation(argparse.Action):
    """Collect operations into one shared, ordered list."""

    def __init__(self, option_strings, dest, factory, **kwargs):
        self.factory = factory
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        ops = list(getattr(namespace, self.dest, None) or [])
        try:
            if values is None:
                ops.append(self.factory())
            else:
                ops.append(self.factory(values))
        except OperationError as e:
            parser.error(f"{option_string}: {e}")
        setattr(namespace, self.dest, ops)


def _rounds(value: str) -> int:
    try:
        rounds = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}") from None
    if rounds < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return rounds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transparent-fill",
        description="Give fully transparent pixels plausible colors taken from nearby opaque pixels.",
    )
    parser.add_argument("input", type=Path, help="Source image (must have an alpha channel)")
    parser.add_argument(
        "--propagate", dest="operations", action=_AppendOperation, factory=Operation.propagate,
        nargs="?", type=_rounds, metavar="ROUNDS",
        help="Spread color outwards, at most ROUNDS pixels (default: until done)",
    )
    parser.add_argument(
        "--solid-fill", dest="operations", action=_AppendOperation, factory=Operation.solid_fill,
        nargs="?", metavar="COLOR",
        help="Fill all remaining transparent pixels with COLOR (default: #000)",
    )
    parser.add_argument(
        "--preview", dest="operations", action=_AppendOperation, factory=Operation.write_preview,
        metavar="PATH", help="Write the current state with alpha forced opaque",
    )
    parser.add_argument(
        "--output", dest="operations", action=_AppendOperation, factory=Operation.write_output,
        metavar="PATH", help="Write the current state",
    )
    parser.add_argument(
        "--shape", choices=[s.value for s in KernelShape], default=None,
        help="Sample kernel shape (default: square)",
    )
    parser.add_argument("--radius", type=int, default=None, help="Sample kernel radius (default: 2)")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--log-jsonl", type=Path, default=None, help="Append run metadata to this JSONL file")
    parser.set_defaults(operations=[])
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if not args.input.is_file():
        logger.error("Could not find input file %s", args.input)
        return 1

    try:
        config = FillConfig.from_env().with_kernel(args.shape, args.radius)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    operations: List[Operation] = args.operations
    try:
        meta = process_one(args.input, operations, config=config, log_jsonl=args.log_jsonl)
    except RuntimeError as e:
        logger.error("Encountered an error during processing - %s", e)
        return 1

    for path in meta["outputs"]:
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
