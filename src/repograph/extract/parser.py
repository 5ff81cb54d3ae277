"""Checkout walk: one FileIR per source file plus its symbols.

Synchronous and CPU-bound; the pipeline runs it in a worker thread.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from pathlib import Path

import structlog

from repograph.config.constants import MAX_FILE_SIZE_BYTES
from repograph.extract.languages import IGNORED_DIRECTORIES, IGNORED_FILES, detect_language
from repograph.extract.models import CodeNamespace, FileIR, ParseResult, content_hash
from repograph.extract.namespaces import resolve_file_namespace
from repograph.extract.symbols import extract_symbols

logger = structlog.get_logger()


def iter_source_files(checkout: Path) -> Iterator[tuple[str, str]]:
    """Yield ``(relative_posix_path, language)`` in sorted walk order.

    Ignored directories are pruned, symlinks are not followed, and files
    with unknown extensions are skipped.
    """
    for dirpath, dirnames, filenames in os.walk(checkout):
        dirnames[:] = sorted(
            d for d in dirnames if d not in IGNORED_DIRECTORIES and not os.path.islink(os.path.join(dirpath, d))
        )
        rel_dir = Path(dirpath).relative_to(checkout)
        for filename in sorted(filenames):
            if filename in IGNORED_FILES:
                continue
            language = detect_language(filename)
            if language is None:
                continue
            full = os.path.join(dirpath, filename)
            if os.path.islink(full) or not os.path.isfile(full):
                continue
            yield (rel_dir / filename).as_posix(), language


def parse_repository(
    repo_id: str,
    checkout: Path,
    namespaces: Sequence[CodeNamespace],
    *,
    max_file_size: int = MAX_FILE_SIZE_BYTES,
) -> ParseResult:
    """Walk ``checkout`` and extract files and symbols.

    A file that cannot be read or decoded is skipped and counted; it never
    aborts the parse. Oversized files are recorded without symbols.
    """
    result = ParseResult()
    for rel_path, language in iter_source_files(checkout):
        try:
            data = (checkout / rel_path).read_bytes()
            text = data.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("file_skipped", path=rel_path, error=str(e))
            result.skipped += 1
            continue

        namespace = resolve_file_namespace(rel_path, namespaces).name
        result.files.append(
            FileIR(
                path=rel_path,
                language=language,
                content_hash=content_hash(data),
                namespace=namespace,
            )
        )
        if len(data) > max_file_size:
            logger.debug("file_too_large_for_symbols", path=rel_path, size=len(data))
            continue

        try:
            result.symbols.extend(extract_symbols(repo_id, rel_path, text, language, namespace))
        except Exception as e:  # noqa: BLE001
            logger.debug("symbol_extraction_failed", path=rel_path, error=str(e))
            result.skipped += 1

    logger.info(
        "repository_parsed",
        repo_id=repo_id,
        files=len(result.files),
        symbols=len(result.symbols),
        skipped=result.skipped,
    )
    return result
