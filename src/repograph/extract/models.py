"""Intermediate representation produced by extraction and consumed by the graph writer."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum

ROOT_NAMESPACE = "root"


class SymbolKind(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    INTERFACE = "interface"
    ENUM = "enum"
    TYPE = "type"
    VARIABLE = "variable"
    CONSTANT = "constant"
    MODULE = "module"
    PROPERTY = "property"


@dataclass(frozen=True, slots=True)
class CodeNamespace:
    """A logical module of a (mono)repository.

    ``root_path`` is POSIX and relative to the checkout; ``"."`` covers the
    whole checkout.
    """

    name: str
    root_path: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "rootPath": self.root_path}

    @classmethod
    def root(cls) -> CodeNamespace:
        return cls(name=ROOT_NAMESPACE, root_path=".")


@dataclass(frozen=True, slots=True)
class FileIR:
    path: str
    language: str
    content_hash: str
    namespace: str


@dataclass(frozen=True, slots=True)
class SymbolIR:
    stable_id: str
    file_path: str
    namespace: str
    kind: SymbolKind
    name: str
    start_line: int
    end_line: int
    signature: str | None = None


@dataclass(slots=True)
class ParseResult:
    files: list[FileIR] = field(default_factory=list)
    symbols: list[SymbolIR] = field(default_factory=list)
    skipped: int = 0


def stable_symbol_id(repo_id: str, file_path: str, kind: str, name: str, start_line: int) -> str:
    """Deterministic join key: sha1 of ``repo:path:kind:name:line``."""
    key = f"{repo_id}:{file_path}:{kind}:{name}:{start_line}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def content_hash(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()
