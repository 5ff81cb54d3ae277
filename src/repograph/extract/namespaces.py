"""Monorepo module detection.

Detection is a cascade; the first rule that yields anything wins:

1. ``pnpm-workspace.yaml`` package globs
2. ``package.json`` workspaces (flat list or ``{"packages": [...]}``)
3. subdirectories of conventional folders (apps, packages, services, libs, modules)
4. top-level directories, else a single ``root`` namespace
"""

from __future__ import annotations

import json
import re
from collections import Counter
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath
from typing import Any

import structlog
import yaml

from repograph.extract.models import CodeNamespace

logger = structlog.get_logger()

CONVENTIONAL_DIRS = ("apps", "packages", "services", "libs", "modules")
TOP_LEVEL_SKIP = frozenset({"node_modules", "dist", "build", "out", ".git", "coverage"})

_TRAILING_STARS_RE = re.compile(r"/\*+$")


def _manifest_name(directory: Path) -> str | None:
    manifest = directory / "package.json"
    if not manifest.is_file():
        return None
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    name = data.get("name") if isinstance(data, dict) else None
    return name if isinstance(name, str) and name else None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _pnpm_globs(checkout: Path) -> list[str]:
    path = checkout / "pnpm-workspace.yaml"
    if not path.is_file():
        return []
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("workspace_manifest_invalid", path=path.name, error=str(e))
        return []
    return _string_list(data.get("packages")) if isinstance(data, dict) else []


def _npm_globs(checkout: Path) -> list[str]:
    path = checkout / "package.json"
    if not path.is_file():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("workspace_manifest_invalid", path=path.name, error=str(e))
        return []
    if not isinstance(data, dict):
        return []
    workspaces = data.get("workspaces")
    if isinstance(workspaces, dict):
        return _string_list(workspaces.get("packages"))
    return _string_list(workspaces)


def resolve_workspace_globs(checkout: Path, patterns: Iterable[str]) -> list[CodeNamespace]:
    """Expand workspace globs to directory namespaces, in pattern order."""
    namespaces: list[CodeNamespace] = []
    seen: set[str] = set()
    for pattern in patterns:
        if pattern.startswith("!"):
            continue
        clean = _TRAILING_STARS_RE.sub("/*", pattern.strip().removeprefix("./"))
        try:
            matches = sorted(checkout.glob(clean))
        except (ValueError, NotImplementedError) as e:
            logger.warning("workspace_glob_invalid", pattern=pattern, error=str(e))
            continue
        for match in matches:
            rel = match.relative_to(checkout)
            if "node_modules" in rel.parts or not match.is_dir():
                continue
            root_path = rel.as_posix()
            if root_path in seen:
                continue
            seen.add(root_path)
            namespaces.append(
                CodeNamespace(name=_manifest_name(match) or root_path, root_path=root_path)
            )
    return namespaces


def _conventional(checkout: Path) -> list[CodeNamespace]:
    namespaces = []
    for folder in CONVENTIONAL_DIRS:
        base = checkout / folder
        if not base.is_dir():
            continue
        for child in sorted(base.iterdir()):
            if not child.is_dir() or child.name.startswith("."):
                continue
            root_path = f"{folder}/{child.name}"
            namespaces.append(
                CodeNamespace(name=_manifest_name(child) or root_path, root_path=root_path)
            )
    return namespaces


def _top_level(checkout: Path) -> list[CodeNamespace]:
    namespaces = [
        CodeNamespace(name=child.name, root_path=child.name)
        for child in sorted(checkout.iterdir())
        if child.is_dir() and not child.name.startswith(".") and child.name not in TOP_LEVEL_SKIP
    ]
    return namespaces or [CodeNamespace.root()]


def _unique_names(namespaces: list[CodeNamespace]) -> list[CodeNamespace]:
    """Qualify repeated manifest names with their root path.

    Graph ids are ``<repo>:<name>``, so two directories sharing a
    ``package.json`` name would otherwise collapse into one node.
    """
    counts = Counter(ns.name for ns in namespaces)
    return [
        CodeNamespace(name=f"{ns.name} ({ns.root_path})", root_path=ns.root_path)
        if counts[ns.name] > 1
        else ns
        for ns in namespaces
    ]


def detect_namespaces(checkout: Path) -> list[CodeNamespace]:
    """Infer the code modules of a checkout. Never returns an empty list."""
    if namespaces := resolve_workspace_globs(checkout, _pnpm_globs(checkout)):
        rule = "pnpm_workspace"
    elif namespaces := resolve_workspace_globs(checkout, _npm_globs(checkout)):
        rule = "package_workspaces"
    elif namespaces := _conventional(checkout):
        rule = "conventional_dirs"
    else:
        namespaces = _top_level(checkout)
        rule = "top_level"
    namespaces = _unique_names(namespaces)
    logger.info("namespaces_detected", rule=rule, count=len(namespaces))
    return namespaces


def _normalize(path: str) -> str:
    posix = path.replace("\\", "/")
    normalized = PurePosixPath(posix).as_posix()
    return "." if normalized in ("", ".") else normalized.removeprefix("./")


def resolve_file_namespace(path: str, namespaces: Sequence[CodeNamespace]) -> CodeNamespace:
    """Namespace whose root is the longest path-segment-aligned prefix of ``path``.

    ``apps/web`` owns ``apps/web/x.ts`` but not ``apps/website/x.ts``. A
    ``"."`` root matches everything with zero length. Unmatched paths fall
    back to the first namespace, or a synthetic root when there is none.
    """
    file_path = _normalize(path)
    best: CodeNamespace | None = None
    best_len = -1
    for ns in namespaces:
        root = _normalize(ns.root_path)
        if root == ".":
            length = 0
        elif file_path == root or file_path.startswith(root + "/"):
            length = len(root)
        else:
            continue
        if length > best_len:
            best, best_len = ns, length
    if best is not None:
        return best
    return namespaces[0] if namespaces else CodeNamespace.root()
