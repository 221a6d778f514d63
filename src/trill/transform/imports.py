"""Import specifier rewriting for bundler-free browser loading.

Browsers only load ES modules from explicit URLs. This module rewrites the
specifiers in compiled module code so that:

- relative specifiers without an extension (``./util``) get one of the
  configured extensions (``./util.js``), preferring a file that exists;
- bare specifiers (``lodash-es``, ``@scope/pkg/sub``) point into
  ``/node_modules`` using the package's ``module``/``main`` entry.

Matching is lexical (regex over the source), covering ``import … from``,
``export … from``, side-effect ``import "x"`` and literal ``import("x")``.
Filesystem checks are synchronous; the compiler runs this in a worker
thread.
"""

import json
import mimetypes
import posixpath
import re
from collections.abc import Sequence
from pathlib import Path

_IMPORT = re.compile(
    r"""(?P<prefix>\bfrom\s*|\bimport\s*(?:\(\s*)?)"""
    r"""(?P<quote>["'])(?P<spec>[^"'\n]+)(?P=quote)"""
)

_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def rewrite_imports(
    code: str,
    *,
    importer: Path,
    root: Path,
    extensions: Sequence[str],
) -> str:
    """Rewrite every import specifier in *code*.

    Args:
        code: Module source (plain JavaScript).
        importer: Absolute path of the file *code* came from; relative
            specifiers are resolved against its directory.
        root: Content root; ``/``-absolute specifiers and
            ``node_modules`` lookups start here.
        extensions: Configured extensions in preference order.
    """

    def replace(match: re.Match[str]) -> str:
        spec = match["spec"]
        rewritten = resolve_specifier(spec, importer=importer, root=root, extensions=extensions)
        if rewritten == spec:
            return match[0]
        quote = match["quote"]
        return f"{match['prefix']}{quote}{rewritten}{quote}"

    return _IMPORT.sub(replace, code)


def resolve_specifier(
    spec: str,
    *,
    importer: Path,
    root: Path,
    extensions: Sequence[str],
) -> str:
    """Return the browser-loadable form of a single specifier."""
    if _URL_SCHEME.match(spec):
        return spec
    if spec.startswith("/"):
        return _with_extension(spec, root / spec.lstrip("/"), extensions)
    if spec in (".", "..") or spec.startswith(("./", "../")):
        return _with_extension(spec, importer.parent / spec, extensions)
    return _resolve_bare(spec, root, extensions)


def _has_extension(spec: str, extensions: Sequence[str]) -> bool:
    suffix = posixpath.splitext(spec.rstrip("/"))[1]
    if not suffix:
        return False
    return suffix in extensions or mimetypes.guess_type("x" + suffix)[0] is not None


def _with_extension(spec: str, target: Path, extensions: Sequence[str]) -> str:
    """Append an extension to *spec*, whose on-disk location is *target*."""
    if not extensions or _has_extension(spec, extensions):
        return spec

    base = spec.rstrip("/")
    for ext in extensions:
        if target.with_name(target.name + ext).is_file():
            return base + ext
    for ext in extensions:
        if (target / f"index{ext}").is_file():
            return f"{base}/index{ext}"
    # Nothing on disk yet; the resolver handles the extension fallback
    return base + extensions[0]


def _split_package(spec: str) -> tuple[str, str]:
    """``"@scope/pkg/a/b"`` → ``("@scope/pkg", "a/b")``."""
    parts = spec.split("/")
    count = 2 if spec.startswith("@") else 1
    return "/".join(parts[:count]), "/".join(parts[count:])


def _package_entry(package_dir: Path) -> str:
    manifest = package_dir / "package.json"
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        data = {}
    for field in ("module", "main"):
        entry = data.get(field) if isinstance(data, dict) else None
        if isinstance(entry, str) and entry:
            return posixpath.normpath(entry)
    return "index.js"


def _resolve_bare(spec: str, root: Path, extensions: Sequence[str]) -> str:
    name, subpath = _split_package(spec)
    package_dir = root / "node_modules" / name
    if not name or not package_dir.is_dir():
        # Unknown package: leave it for an import map
        return spec

    relative = subpath or _package_entry(package_dir)
    url = f"/node_modules/{name}/{relative}"
    return _with_extension(url, package_dir / relative, extensions)
