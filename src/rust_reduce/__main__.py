"""CLI entry points: `rust-reduce CMD ARGS... FILE` and `cargo-reduce FIND CMD ARGS...`."""

import argparse
import functools
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .utils.config import DEFAULT_LOG_LEVEL, ENV_LOG_LEVEL

RUST_REDUCE_HELP = """\
`rust-reduce` makes the source file smaller by interpreting it as Rust code
and removing parts of it. After each removal CMD is run with ARGS and the path
of the reduced file; it must exit with 0 on the original input and on every
reduction that is still interesting, non-0 otherwise.

The file is overwritten with the smallest interesting version while
`rust-reduce` runs. The original is backed up with the `.orig` suffix and the
final result is copied to `.min`. Modules in other files are inlined first.
Use `--` to separate ARGS from options of `rust-reduce` itself."""

CARGO_REDUCE_HELP = """\
`cargo-reduce` makes the crate entry file (src/main.rs or src/lib.rs) smaller
by removing parts of it. After each removal CMD is run in the current
directory; a reduction is interesting if FIND appears in its output.

The file is overwritten with the smallest interesting version while
`cargo-reduce` runs. The original is backed up with the `.orig` suffix.
Modules in other files are inlined and reduced along with the entry file."""


def _configure_logging(verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            level = logging.getLevelName(DEFAULT_LOG_LEVEL)
    fmt = "%(levelname)s %(name)s: %(message)s" if verbose else "%(message)s"
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr)


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every oracle decision")
    parser.add_argument("--no-format", action="store_true", help="Do not run the formatter on the result")


def _strip_separator(command: List[str]) -> List[str]:
    return command[1:] if command and command[0] == "--" else command


def _report(prog: str, driver) -> int:
    result = driver.run()
    if result.has_errors():
        result.reporter.print_errors()
        return 1

    summary = result.summary
    print(f"{prog}: reduced {summary.path} from {summary.original_size} to {summary.final_size} bytes "
          f"({summary.oracle_calls} oracle runs)")
    for stats in summary.pass_stats:
        print(f"    {stats.name:<20} {stats.accepted} accepted / {stats.attempts} tried")
    if summary.minimised_path is not None:
        print(f"{prog}: minimised copy at {summary.minimised_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    from .compiler.driver import ReductionDriver
    from .runtime.formatter import format_file
    from .runtime.oracle import ExitCodeOracle

    parser = argparse.ArgumentParser(
        prog="rust-reduce",
        description="Reduce a Rust source file while CMD keeps succeeding on it.",
        epilog=RUST_REDUCE_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_options(parser)
    parser.add_argument("command", nargs=argparse.REMAINDER, metavar="CMD ARGS... FILE",
                        help="Command to run; the last argument is the file to reduce")
    args = parser.parse_args(argv)

    command = _strip_separator(args.command)
    if len(command) < 2:
        parser.error("expected CMD [ARGS...] FILE")
    *cmd, file = command

    path = Path(file)
    if not path.is_file():
        sys.stderr.write(f"rust-reduce: error: file not found: {path}\n")
        return 1

    _configure_logging(args.verbose)
    oracle = ExitCodeOracle(cmd, path)
    formatter = None if args.no_format else functools.partial(format_file, path)
    return _report("rust-reduce", ReductionDriver(oracle, formatter=formatter))


def cargo_main(argv: Optional[List[str]] = None) -> int:
    from .compiler.driver import ReductionDriver, find_entry_point
    from .runtime.formatter import format_project
    from .runtime.oracle import MarkerOracle
    from .shared.errors import ErrorReporter, ReduceError

    argv = list(sys.argv[1:] if argv is None else argv)
    # `cargo reduce ...` runs `cargo-reduce reduce ...`
    if argv and argv[0] == "reduce":
        argv = argv[1:]

    parser = argparse.ArgumentParser(
        prog="cargo-reduce",
        description="Reduce a crate's entry file while CMD's output keeps containing FIND.",
        epilog=CARGO_REDUCE_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_options(parser)
    parser.add_argument("--file", type=Path, default=None,
                        help="File to reduce (default: src/main.rs, else src/lib.rs)")
    parser.add_argument("find", metavar="FIND", help="Text indicating success")
    parser.add_argument("command", nargs=argparse.REMAINDER, metavar="CMD ARGS...",
                        help="Command to run, e.g. cargo test")
    args = parser.parse_args(argv)

    command = _strip_separator(args.command)
    if not command:
        parser.error("expected CMD [ARGS...]")

    _configure_logging(args.verbose)
    root = Path.cwd()
    try:
        path = args.file if args.file is not None else find_entry_point(root)
    except ReduceError as e:
        reporter = ErrorReporter()
        reporter.report_exception(e)
        reporter.print_errors()
        return 1

    oracle = MarkerOracle(command, args.find, path, root=root)
    formatter = None if args.no_format else functools.partial(format_project, root)
    return _report("cargo-reduce", ReductionDriver(oracle, formatter=formatter))


if __name__ == "__main__":
    sys.exit(main())
