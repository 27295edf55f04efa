"""cli.py — Command-line front end: parse targets and NAME=value overrides, run, map errors to exit codes."""

import argparse
import signal
import sys

from rich.markup import escape

from builder import executor
from builder.config import OVERRIDE_KEYS, _err_console, resolve_context, set_verbose
from builder.diagnostics import save_failure_report
from builder.dryrun import dry_run
from builder.errors import BuildError
from builder.targets import build_graph

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="micropub",
        description="Compile an .smd micropublication with Stencila.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Overrides may also be given make-style, e.g. `micropub compile SMD=paper.smd`.\n"
            f"Recognised names: {', '.join(OVERRIDE_KEYS)}.\n"
            "Exit 0 = success, 1 = validation or pipeline failure, 130 = interrupted."
        ),
    )
    parser.add_argument(
        "items",
        nargs="*",
        metavar="TARGET|NAME=value",
        help="Targets to build (default: help) and configuration overrides",
    )
    parser.add_argument("--smd", help="Template file (default: first *.smd here)")
    parser.add_argument("--data", help="Data file read by the template (default: data.json)")
    parser.add_argument("--build-dir", help="Build artifacts directory (default: build)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds allowed per external command (default: no limit)",
    )
    parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Show what would run without running it"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Report every target decision")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    return parser


def parse_items(items: list[str]) -> tuple[list[str], dict[str, str]]:
    """Split positional *items* into target names and ``NAME=value`` overrides."""
    targets: list[str] = []
    overrides: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if sep and key in OVERRIDE_KEYS:
            overrides[key] = value
        else:
            targets.append(item)
    return targets, overrides


def _report_error(exc: BuildError) -> None:
    _err_console.print(f"[red bold]Error:[/] {escape(str(exc))}", highlight=False)
    for line in exc.hint.splitlines():
        _err_console.print(f"  {escape(line)}", highlight=False)


def _raise_interrupt(signum, frame) -> None:  # noqa: ARG001
    raise KeyboardInterrupt


def main(argv: list[str] | None = None) -> int:
    """Run the requested targets and return the process exit code."""
    args = _build_parser().parse_args(argv)
    targets, overrides = parse_items(args.items)
    for key, value in (("SMD", args.smd), ("DATA", args.data), ("BUILD_DIR", args.build_dir)):
        if value is not None:
            overrides.setdefault(key, value)

    set_verbose(args.verbose)
    ctx = resolve_context(overrides, timeout=args.timeout, assume_yes=args.yes)

    # SIGTERM takes the same path as Ctrl-C; subprocess.run kills the child.
    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        graph = build_graph(ctx)
        for name in targets or ["help"]:
            if args.dry_run:
                dry_run(name, graph, ctx)
            else:
                executor.run(name, graph, ctx)
    except BuildError as exc:
        _report_error(exc)
        try:
            save_failure_report(exc, ctx)
        except OSError as report_exc:
            _err_console.print(
                f"[yellow]Could not save failure report: {escape(str(report_exc))}[/]",
                highlight=False,
            )
        return EXIT_FAILED
    except KeyboardInterrupt:
        _err_console.print("\n[yellow]Interrupted, pipeline aborted.[/]")
        return EXIT_INTERRUPTED
    finally:
        signal.signal(signal.SIGTERM, previous)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
