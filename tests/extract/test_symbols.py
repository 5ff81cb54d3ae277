"""Tests for pattern-based symbol extraction."""

import hashlib

import pytest

from repograph.extract.models import SymbolKind, stable_symbol_id
from repograph.extract.symbols import extract_symbols, find_brace_end, find_indent_end

TS_SOURCE = """import { x } from "y";

export function greet(name: string): string {
  return `hi ${name}`;
}

export const add = (a: number, b: number): number => {
  return a + b;
};

export type Id = string;

export interface User {
  id: Id;
}

export class Service {
  run() {
    return 1;
  }
}
export enum Color { Red, Green }
"""

PY_SOURCE = '''import os


def top(a, b):
    total = a + b

    return total


class Greeter:
    """Says hello."""

    def greet(self, name):
        return f"hi {name}"

    async def wait(self):
        pass


async def fetch():
    return None
'''

JAVA_SOURCE = """package com.acme;

public class OrderService {
    private final Repo repo;

    public Order find(String id) throws NotFound {
        if (id == null) {
            return null;
        }
        else if (cached) {
            return null;
        }
        return repo.get(id);
    }
}
"""

GO_SOURCE = """package main

type Server struct {
    addr string
}

type Handler interface {
    Serve() error
}

func (s *Server) Start() error {
    return nil
}

func main() {
    s := &Server{}
    _ = s
}
"""

RUST_SOURCE = """pub struct Config {
    name: String,
}

pub enum Mode { Fast, Slow }

pub trait Runner { fn run(&self); }

impl Runner for Config {
    fn run(&self) {
        println!("run");
    }
}

pub(crate) async fn boot() -> Config {
    Config { name: String::new() }
}
"""

CSHARP_SOURCE = """namespace Acme.Billing
{
    public sealed class Invoice
    {
        public decimal Total { get; set; }
    }

    internal interface IPayable { }

    public enum Status { Open, Paid }
}
"""


def _summary(source: str, language: str) -> list[tuple[str, SymbolKind, int, int]]:
    symbols = extract_symbols("repo", "file", source, language, "ns")
    return [(s.name, s.kind, s.start_line, s.end_line) for s in symbols]


class TestExtractSymbols:
    """Per-language extraction tests."""

    def test_given_typescript_when_extracted_then_declarations_with_end_lines(self) -> None:
        """Functions, arrow constants, types, interfaces, classes and enums."""
        assert _summary(TS_SOURCE, "typescript") == [
            ("greet", SymbolKind.FUNCTION, 3, 5),
            ("add", SymbolKind.FUNCTION, 7, 9),
            ("Id", SymbolKind.TYPE, 11, 11),
            ("User", SymbolKind.INTERFACE, 13, 15),
            ("Service", SymbolKind.CLASS, 17, 21),
            ("Color", SymbolKind.ENUM, 22, 22),
        ]

    def test_given_python_when_extracted_then_indentation_blocks(self) -> None:
        """Python blocks end at the last line indented deeper than the declaration."""
        assert _summary(PY_SOURCE, "python") == [
            ("top", SymbolKind.FUNCTION, 4, 7),
            ("Greeter", SymbolKind.CLASS, 10, 17),
            ("greet", SymbolKind.METHOD, 13, 14),
            ("wait", SymbolKind.METHOD, 16, 17),
            ("fetch", SymbolKind.FUNCTION, 20, 21),
        ]

    def test_given_java_when_extracted_then_control_flow_not_reported(self) -> None:
        """``else if (...) {`` looks like a method but is dropped."""
        summary = _summary(JAVA_SOURCE, "java")
        assert summary == [
            ("OrderService", SymbolKind.CLASS, 3, 15),
            ("find", SymbolKind.METHOD, 6, 14),
        ]

    def test_given_go_when_extracted_then_functions_methods_and_types(self) -> None:
        """Receivers make methods; struct and interface types are reported."""
        assert _summary(GO_SOURCE, "go") == [
            ("Server", SymbolKind.CLASS, 3, 5),
            ("Handler", SymbolKind.INTERFACE, 7, 9),
            ("Start", SymbolKind.METHOD, 11, 13),
            ("main", SymbolKind.FUNCTION, 15, 18),
        ]

    def test_given_rust_when_extracted_then_items_reported(self) -> None:
        """Structs, enums, traits and functions including restricted visibility."""
        assert _summary(RUST_SOURCE, "rust") == [
            ("Config", SymbolKind.CLASS, 1, 3),
            ("Mode", SymbolKind.ENUM, 5, 5),
            ("Runner", SymbolKind.INTERFACE, 7, 7),
            ("run", SymbolKind.FUNCTION, 10, 12),
            ("boot", SymbolKind.FUNCTION, 15, 17),
        ]

    def test_given_csharp_when_extracted_then_types_reported(self) -> None:
        """Allman-style braces still close the declaration."""
        assert _summary(CSHARP_SOURCE, "csharp") == [
            ("Invoice", SymbolKind.CLASS, 3, 6),
            ("IPayable", SymbolKind.INTERFACE, 8, 8),
            ("Status", SymbolKind.ENUM, 10, 10),
        ]

    @pytest.mark.parametrize("language", ["markdown", "yaml", "ruby"])
    def test_given_language_without_patterns_when_extracted_then_empty(self, language: str) -> None:
        """Unsupported languages yield no symbols."""
        assert extract_symbols("r", "f", "def x():\n  pass\n", language, "ns") == []

    def test_given_symbols_when_extracted_then_attributes_carried(self) -> None:
        """File path, namespace and signature are set on each symbol."""
        symbols = extract_symbols("r1", "src/app.ts", TS_SOURCE, "typescript", "apps/web")
        greet = symbols[0]
        assert greet.file_path == "src/app.ts"
        assert greet.namespace == "apps/web"
        assert greet.signature == "export function greet(name: string): string {"

    def test_given_long_declaration_when_extracted_then_signature_truncated(self) -> None:
        """Signatures are capped with an ellipsis."""
        params = ", ".join(f"p{i}: number" for i in range(40))
        source = f"function wide({params}) {{\n}}\n"
        (symbol,) = extract_symbols("r", "f.ts", source, "typescript", "ns")
        assert symbol.signature is not None
        assert len(symbol.signature) == 200
        assert symbol.signature.endswith("...")


class TestStableIds:
    """Determinism of symbol ids."""

    def test_given_same_input_when_extracted_twice_then_identical_ids(self) -> None:
        """Repeated extraction of identical content yields byte-identical ids."""
        first = [s.stable_id for s in extract_symbols("r", "a.py", PY_SOURCE, "python", "ns")]
        second = [s.stable_id for s in extract_symbols("r", "a.py", PY_SOURCE, "python", "ns")]
        assert first == second
        assert len(set(first)) == len(first)

    def test_given_fields_when_hashed_then_sha1_of_joined_key(self) -> None:
        """The id is the sha1 of ``repo:path:kind:name:line``."""
        expected = hashlib.sha1(b"r:a.ts:function:greet:3").hexdigest()
        assert stable_symbol_id("r", "a.ts", "function", "greet", 3) == expected

    def test_given_different_repo_when_extracted_then_ids_differ(self) -> None:
        """Ids are scoped to the repository."""
        a = extract_symbols("r1", "a.ts", TS_SOURCE, "typescript", "ns")[0].stable_id
        b = extract_symbols("r2", "a.ts", TS_SOURCE, "typescript", "ns")[0].stable_id
        assert a != b


class TestBlockEnds:
    """End-line heuristics."""

    def test_given_no_braces_when_brace_end_then_fallback_span(self) -> None:
        """Without an opening brace the end is start plus the fallback span."""
        lines = ["function f()"] + ["  x"] * 30
        assert find_brace_end(lines, 1, SymbolKind.FUNCTION) == 11

    def test_given_short_file_when_brace_end_falls_back_then_clamped(self) -> None:
        """The fallback never exceeds the file length."""
        assert find_brace_end(["fn f()", "x"], 1, SymbolKind.FUNCTION) == 2

    def test_given_multiline_type_when_type_end_then_ends_on_later_line(self) -> None:
        """A union type spanning lines ends at the first line back at depth zero."""
        lines = ["type U =", "  | A", "  | B;"]
        assert find_brace_end(lines, 1, SymbolKind.TYPE) == 2

    def test_given_trailing_blank_lines_when_indent_end_then_last_body_line(self) -> None:
        """Blank lines after the block are not included."""
        lines = ["def f():", "    return 1", "", "", "x = 2"]
        assert find_indent_end(lines, 1) == 2
