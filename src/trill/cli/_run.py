"""``trill`` — build the configuration and start the dev server."""

import argparse
import logging
import sys

from trill.app import DevServer
from trill.config import ServerConfig
from trill.errors import ConfigurationError


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Merge CLI flags over the ``TRILL_*`` environment."""
    return ServerConfig.from_env(
        root=args.root,
        host=args.host,
        port=args.port,
        extensions=tuple(args.extensions) if args.extensions else None,
        ignore=tuple(args.ignore) if args.ignore else None,
        watch=args.watch,
        esbuild=args.esbuild,
        verbose=args.verbose,
    )


def run_server(args: argparse.Namespace) -> None:
    """Start the dev server for the parsed CLI arguments.

    Raises:
        ConfigurationError: Invalid flags or environment, or a root
            that is not a directory.
    """
    config = config_from_args(args)
    if not config.root_path.is_dir():
        msg = f"Content root {config.root_path} is not a directory"
        raise ConfigurationError(msg)

    level = logging.INFO if config.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    print(f"Server running at http://{config.host}:{config.port}", file=sys.stderr)
    DevServer(config).run()
