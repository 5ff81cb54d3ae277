"""File-extension language map and walk exclusions."""

from __future__ import annotations

from pathlib import PurePosixPath

LANGUAGE_EXTENSIONS: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".go": "go",
    ".rb": "ruby",
    ".php": "php",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".swift": "swift",
    ".scala": "scala",
    ".sql": "sql",
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
    ".xml": "xml",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    ".md": "markdown",
    ".graphql": "graphql",
    ".gql": "graphql",
    ".proto": "protobuf",
    ".tf": "terraform",
    ".vue": "vue",
    ".svelte": "svelte",
}

IGNORED_DIRECTORIES: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        "dist",
        "build",
        "target",
        ".next",
        ".gradle",
        "vendor",
        "out",
        ".idea",
        ".vscode",
        "__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        "coverage",
        ".nyc_output",
        "bin",
        "obj",
        ".cache",
        ".turbo",
        ".vercel",
        ".netlify",
    }
)

IGNORED_FILES: frozenset[str] = frozenset(
    {
        "package-lock.json",
        "pnpm-lock.yaml",
        "yarn.lock",
        ".DS_Store",
        "Thumbs.db",
    }
)


def detect_language(path: str) -> str | None:
    """Language for a file path, or None when the extension is unknown."""
    return LANGUAGE_EXTENSIONS.get(PurePosixPath(path).suffix.lower())
