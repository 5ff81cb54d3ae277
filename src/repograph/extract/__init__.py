"""Module detection and symbol extraction."""

from repograph.extract.models import (
    CodeNamespace,
    FileIR,
    ParseResult,
    SymbolIR,
    SymbolKind,
    stable_symbol_id,
)
from repograph.extract.namespaces import detect_namespaces, resolve_file_namespace
from repograph.extract.parser import parse_repository
from repograph.extract.symbols import extract_symbols

__all__ = [
    "CodeNamespace",
    "FileIR",
    "ParseResult",
    "SymbolIR",
    "SymbolKind",
    "detect_namespaces",
    "extract_symbols",
    "parse_repository",
    "resolve_file_namespace",
    "stable_symbol_id",
]
