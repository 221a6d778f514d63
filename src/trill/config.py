"""Server configuration.

ServerConfig is a frozen dataclass — built once at startup, passed by
reference into every component, never read from the environment again.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from trill.errors import ConfigurationError

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServerConfig(root="site", port=3000, extensions=(".js", ".ts"))
    """

    # Content
    root: str | Path = "."
    index: str = "index.html"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    verbose: bool = False

    # Compilation; extensions are in fallback preference order
    extensions: tuple[str, ...] = (".js", ".mjs", ".ts", ".tsx", ".jsx")
    ignore: tuple[str, ...] = ("node_modules",)
    esbuild: str = "esbuild"

    # Change notification (watcher, event stream, reload script)
    watch: bool = True
    events_path: str = "/_events"
    ping_interval: float = 10.0
    reload_delay_ms: int = 200

    def __post_init__(self) -> None:
        for ext in self.extensions:
            if not ext.startswith(".") or len(ext) < 2:
                msg = f"Invalid extension {ext!r}: extensions must look like '.js'"
                raise ConfigurationError(msg)
        if not 0 <= self.port <= 65535:
            msg = f"Invalid port {self.port}: must be between 0 and 65535"
            raise ConfigurationError(msg)
        if not self.events_path.startswith("/"):
            msg = f"Invalid events_path {self.events_path!r}: must start with '/'"
            raise ConfigurationError(msg)
        if self.ping_interval <= 0:
            raise ConfigurationError("ping_interval must be positive")

    @property
    def root_path(self) -> Path:
        """The content root, resolved to an absolute path."""
        return Path(self.root).resolve()

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> ServerConfig:
        """Build a config from ``TRILL_*`` environment variables.

        Explicit keyword *overrides* win over the environment; ``None``
        overrides are ignored so argparse defaults can be passed through.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if "TRILL_ROOT" in env:
            values["root"] = env["TRILL_ROOT"]
        if "TRILL_HOST" in env:
            values["host"] = env["TRILL_HOST"]
        if "TRILL_PORT" in env:
            try:
                values["port"] = int(env["TRILL_PORT"])
            except ValueError as exc:
                msg = f"TRILL_PORT must be an integer, got {env['TRILL_PORT']!r}"
                raise ConfigurationError(msg) from exc
        if "TRILL_VERBOSE" in env:
            values["verbose"] = env["TRILL_VERBOSE"].lower() in _TRUTHY
        if "TRILL_WATCH" in env:
            values["watch"] = env["TRILL_WATCH"].lower() in _TRUTHY
        if "TRILL_EXTS" in env:
            values["extensions"] = _split_list(env["TRILL_EXTS"])
        if "TRILL_IGNORE" in env:
            values["ignore"] = _split_list(env["TRILL_IGNORE"])
        if "TRILL_ESBUILD" in env:
            values["esbuild"] = env["TRILL_ESBUILD"]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]
