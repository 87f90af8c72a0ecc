"""Codebase discovery.

Walks the root directory and classifies page templates, static HTML and
Java sources, honouring include/exclude glob patterns. Patterns are matched
against the root-relative forward-slash path, with and without a leading
slash, so ``**/target/**`` also matches a top-level ``target`` directory.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from typing import List, Sequence

from .config import ConfigurationError
from .constants import HTML_EXTENSIONS, JAVA_EXTENSIONS, PAGE_EXTENSIONS, SKIP_DIRECTORIES

logger = logging.getLogger(__name__)


@dataclass
class CodebaseIndex:
    root_dir: str
    page_files: List[str] = field(default_factory=list)
    html_files: List[str] = field(default_factory=list)
    java_files: List[str] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.page_files) + len(self.html_files) + len(self.java_files)


def matches_any(rel_path: str, patterns: Sequence[str]) -> bool:
    candidates = (rel_path, "/" + rel_path)
    return any(fnmatch.fnmatchcase(c, p) for p in patterns for c in candidates)


def should_skip_directory(rel_dir: str, name: str, exclude_patterns: Sequence[str]) -> bool:
    if name in SKIP_DIRECTORIES:
        return True
    return bool(exclude_patterns) and matches_any(rel_dir + "/", exclude_patterns)


def scan_codebase(
    root_dir: str,
    include_patterns: Sequence[str] = (),
    exclude_patterns: Sequence[str] = (),
) -> CodebaseIndex:
    """Discover analyzable files under ``root_dir``.

    Args:
        root_dir: Codebase root
        include_patterns: When non-empty, a file must match at least one
        exclude_patterns: A matching file or directory is skipped

    Returns:
        CodebaseIndex with sorted absolute paths per category

    Raises:
        ConfigurationError: if the root is missing or not a directory
    """
    root = os.path.abspath(root_dir)
    if not os.path.isdir(root):
        raise ConfigurationError(f"Root directory does not exist or is not a directory: {root}")

    index = CodebaseIndex(root_dir=root)
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root).replace(os.sep, "/")
        rel_dir = "" if rel_dir == "." else rel_dir
        dirnames[:] = sorted(
            d for d in dirnames
            if not should_skip_directory(f"{rel_dir}/{d}" if rel_dir else d, d, exclude_patterns)
        )
        for filename in filenames:
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if include_patterns and not matches_any(rel_path, include_patterns):
                continue
            if exclude_patterns and matches_any(rel_path, exclude_patterns):
                continue
            full_path = os.path.join(dirpath, filename)
            lowered = filename.lower()
            if lowered.endswith(PAGE_EXTENSIONS):
                index.page_files.append(full_path)
            elif lowered.endswith(HTML_EXTENSIONS):
                index.html_files.append(full_path)
            elif lowered.endswith(JAVA_EXTENSIONS):
                index.java_files.append(full_path)

    index.page_files.sort()
    index.html_files.sort()
    index.java_files.sort()
    logger.info(
        f"Scanned {root}: {len(index.page_files)} pages, "
        f"{len(index.html_files)} html, {len(index.java_files)} java"
    )
    return index
