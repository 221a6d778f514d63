"""Trill CLI — serve a project directory with on-request compilation.

Entry point registered as ``trill`` in ``pyproject.toml``::

    [project.scripts]
    trill = "trill.cli:main"

Flags override ``TRILL_*`` environment variables, which override the
``ServerConfig`` defaults.
"""

import argparse
import sys


def build_parser() -> argparse.ArgumentParser:
    """The ``trill`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="trill",
        description="Trill — a dev server that compiles modules on request and live-reloads.",
    )
    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Content root directory (default: $TRILL_ROOT or .)",
    )
    parser.add_argument("--host", default=None, help="Bind host address")
    parser.add_argument("--port", type=int, default=None, help="Bind port number")
    parser.add_argument(
        "--ext",
        dest="extensions",
        action="append",
        default=None,
        metavar="EXT",
        help="Compiled extension, in preference order (repeatable, e.g. --ext .js --ext .ts)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=None,
        metavar="PREFIX",
        help="Path prefix served raw, never compiled (repeatable)",
    )
    parser.add_argument(
        "--no-watch",
        dest="watch",
        action="store_false",
        default=None,
        help="Disable the file watcher, change stream and reload script",
    )
    parser.add_argument(
        "--esbuild",
        default=None,
        metavar="PATH",
        help="esbuild executable used to strip types",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Log every request",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``trill`` command."""
    args = build_parser().parse_args(argv)

    from trill.cli._run import run_server
    from trill.errors import ConfigurationError

    try:
        run_server(args)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc
