"""Source module compiler.

Turns one source file into module code a browser can load directly:

1. Typed and JSX sources are piped through ``esbuild`` to strip types
   and lower JSX, keeping ES module syntax.
2. Import specifiers are rewritten to explicit URLs (see ``imports``).

The compiler is the transformer injected into ``TransformCache``.
"""

from __future__ import annotations

import logging
import subprocess
from functools import partial
from pathlib import Path

import anyio
import anyio.to_thread

from trill.config import ServerConfig
from trill.errors import CompileError
from trill.transform.imports import rewrite_imports

logger = logging.getLogger("trill.server")

# Source suffix → esbuild loader. Anything else is already JavaScript.
ESBUILD_LOADERS: dict[str, str] = {
    ".ts": "ts",
    ".mts": "ts",
    ".cts": "ts",
    ".tsx": "tsx",
    ".jsx": "jsx",
}


class Compiler:
    """Compile source modules for the dev server.

    Usage::

        compiler = Compiler(config)
        code = await compiler(Path("/srv/app/app.ts"))
    """

    __slots__ = ("_esbuild", "_extensions", "_root")

    def __init__(self, config: ServerConfig) -> None:
        self._root = config.root_path
        self._extensions = config.extensions
        self._esbuild = config.esbuild

    async def __call__(self, file: Path) -> str:
        source = await anyio.Path(file).read_text(encoding="utf-8")
        loader = ESBUILD_LOADERS.get(file.suffix)
        if loader is not None:
            source = await self.strip_types(source, file, loader)
        return await anyio.to_thread.run_sync(
            partial(
                rewrite_imports,
                source,
                importer=file,
                root=self._root,
                extensions=self._extensions,
            )
        )

    async def strip_types(self, source: str, file: Path, loader: str) -> str:
        """Run esbuild over *source* and return plain ES module code.

        Raises:
            CompileError: esbuild is missing or rejected the source. The
                message carries esbuild's diagnostics.
        """
        command = [
            self._esbuild,
            f"--loader={loader}",
            "--format=esm",
            "--target=esnext",
            f"--sourcefile={file.name}",
        ]
        try:
            result = await anyio.run_process(
                command,
                input=source.encode("utf-8"),
                check=False,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            msg = (
                f"Cannot compile {file.name}: esbuild executable {self._esbuild!r} "
                "not found (install esbuild or set TRILL_ESBUILD)"
            )
            raise CompileError(msg) from exc

        if result.returncode != 0:
            diagnostics = result.stderr.decode("utf-8", errors="replace").strip()
            logger.debug("esbuild exited with %d for %s", result.returncode, file)
            raise CompileError(diagnostics or f"esbuild failed on {file.name}")
        return result.stdout.decode("utf-8")
