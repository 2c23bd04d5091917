"""Command-line entry point: run LC-3 object images on the terminal."""

import argparse
import logging
import sys
from typing import Optional, Sequence

from .console import Console, TerminalConsole
from .errors import ImageLoadError, LC3RuntimeError
from .machine import Machine

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_USAGE = 2
EXIT_FAULT = 3
EXIT_INTERRUPTED = 254


def _parse_address(text: str) -> int:
    """Accept 0x3000, x3000 or a decimal address."""
    if text[:1] in ("x", "X"):
        text = "0" + text
    value = int(text, 0)
    if not 0 <= value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"address out of range: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lc3", description="LC-3 virtual machine")
    parser.add_argument("images", nargs="*", metavar="image-file", help="object image(s) to load")
    parser.add_argument("--start", type=_parse_address, default=None,
                        help="initial PC (default: origin of the first image)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="stop with an error after this many instructions")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="log to stderr (-v info, -vv per-instruction trace)")
    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def run(args: argparse.Namespace, console: Console) -> int:
    machine = Machine(console=console)

    origins = []
    for path in args.images:
        try:
            origins.append(machine.load(path))
        except ImageLoadError as e:
            print(f"failed to load image: {path}", file=sys.stderr)
            logger.info("%s", e.message)
            return EXIT_LOAD_FAILED

    machine.cpu.reset(args.start if args.start is not None else origins[0])

    try:
        machine.run(max_steps=args.max_steps)
    except LC3RuntimeError as e:
        console.flush()
        print(f"\nfault at x{e.addr:04X}: {e.message}", file=sys.stderr)
        return EXIT_FAULT
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None, console: Optional[Console] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.images:
        parser.print_usage()
        return EXIT_USAGE

    if console is not None:
        return run(args, console)

    terminal = TerminalConsole()
    try:
        with terminal:
            return run(args, terminal)
    except KeyboardInterrupt:
        print()
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
