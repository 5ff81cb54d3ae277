"""Tests for the checkout walk and repository parse."""

from pathlib import Path

import pytest

from repograph.extract.models import CodeNamespace, content_hash
from repograph.extract.parser import iter_source_files, parse_repository


def _write(root: Path, rel: str, content: str | bytes) -> None:
    target = root / rel
    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        target.write_bytes(content)
    else:
        target.write_text(content)


@pytest.fixture
def checkout(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    _write(root, "apps/web/src/app.ts", "export class App {\n}\n")
    _write(root, "apps/api/main.py", "def handler(event):\n    return event\n")
    _write(root, "apps/web/node_modules/dep/index.js", "function dep() {}\n")
    _write(root, "apps/web/dist/bundle.js", "function bundled() {}\n")
    _write(root, "package-lock.json", "{}")
    _write(root, "logo.png", b"\x89PNG")
    _write(root, "docs/guide.md", "# Guide\n")
    return root


class TestIterSourceFiles:
    """Walk filtering tests."""

    def test_given_checkout_when_walked_then_ignored_paths_pruned_and_sorted(
        self, checkout: Path
    ) -> None:
        """Dependency and build dirs, lock files and unknown extensions are skipped."""
        assert list(iter_source_files(checkout)) == [
            ("apps/api/main.py", "python"),
            ("apps/web/src/app.ts", "typescript"),
            ("docs/guide.md", "markdown"),
        ]

    def test_given_symlinked_dir_when_walked_then_not_followed(
        self, checkout: Path, tmp_path: Path
    ) -> None:
        """Symlinks never pull files from outside the checkout."""
        outside = tmp_path / "outside"
        _write(outside, "secret.py", "def leak():\n    pass\n")
        (checkout / "linked").symlink_to(outside, target_is_directory=True)
        (checkout / "alias.py").symlink_to(outside / "secret.py")
        paths = [p for p, _ in iter_source_files(checkout)]
        assert not any("secret" in p or p == "alias.py" for p in paths)


class TestParseRepository:
    """parse_repository tests."""

    NAMESPACES = [
        CodeNamespace(name="apps/api", root_path="apps/api"),
        CodeNamespace(name="@acme/web", root_path="apps/web"),
    ]

    def test_given_checkout_when_parsed_then_files_and_symbols_attributed(
        self, checkout: Path
    ) -> None:
        """Every source file is recorded with its namespace and symbols."""
        # When
        result = parse_repository("r1", checkout, self.NAMESPACES)

        # Then
        files = {f.path: f for f in result.files}
        assert set(files) == {"apps/api/main.py", "apps/web/src/app.ts", "docs/guide.md"}
        assert files["apps/web/src/app.ts"].namespace == "@acme/web"
        assert files["docs/guide.md"].namespace == "apps/api"
        assert files["apps/api/main.py"].content_hash == content_hash(
            b"def handler(event):\n    return event\n"
        )
        assert sorted((s.name, s.namespace) for s in result.symbols) == [
            ("App", "@acme/web"),
            ("handler", "apps/api"),
        ]
        assert result.skipped == 0

    def test_given_undecodable_file_when_parsed_then_skipped_and_counted(
        self, checkout: Path
    ) -> None:
        """Binary content under a source extension does not abort the parse."""
        _write(checkout, "apps/api/broken.py", b"\xff\xfe\x00def x():\n")
        result = parse_repository("r1", checkout, self.NAMESPACES)
        assert result.skipped == 1
        assert "apps/api/broken.py" not in {f.path for f in result.files}
        assert len(result.files) == 3

    def test_given_oversized_file_when_parsed_then_recorded_without_symbols(
        self, checkout: Path
    ) -> None:
        """Large files keep their file node but are not scanned."""
        result = parse_repository("r1", checkout, self.NAMESPACES, max_file_size=10)
        assert len(result.files) == 3
        assert result.symbols == []

    def test_given_same_checkout_when_parsed_twice_then_identical_output(
        self, checkout: Path
    ) -> None:
        """Parsing is deterministic."""
        first = parse_repository("r1", checkout, self.NAMESPACES)
        second = parse_repository("r1", checkout, self.NAMESPACES)
        assert first.files == second.files
        assert first.symbols == second.symbols
