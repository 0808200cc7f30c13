"""
File system traversal: walk directories and collect JavaScript/TypeScript sources.

This module recursively walks a project tree to find the files the analyzer
understands (.ts, .tsx, .js, .jsx and friends, plus package.json manifests on
request). Dependency folders, build output, version-control and hidden
directories are pruned at directory level so their subtrees are never entered.

Typical usage:
    from pathlib import Path
    from archguard.traversal import find_source_files

    # All sources under the project
    files = find_source_files(Path("./my-app"))

    # Sources and package.json, skipping tests and generated code
    files = find_source_files(
        Path("./my-app"),
        include_manifests=True,
        ignore_patterns=("*.test.tsx", "generated/*"),
    )
"""

import fnmatch
import logging
from pathlib import Path
from typing import Callable, Collection, Iterable, Optional, Set

from archguard.analyzer import MANIFEST_NAME, SOURCE_SUFFIXES

logger = logging.getLogger(__name__)

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Dependency directories
    "node_modules",
    "bower_components",
    "jspm_packages",

    # Build output
    ".next",
    "out",
    "dist",
    "build",
    "coverage",
    "storybook-static",

    # Tool caches
    ".turbo",
    ".vercel",
    ".cache",

    # Version control
    ".git",
    ".svn",
    ".hg",
}

# Bounds recursion on pathological trees; deeper branches are skipped silently.
DEFAULT_MAX_DEPTH = 10


def is_source_file(path: Path, extensions: Collection[str] = SOURCE_SUFFIXES) -> bool:
    """
    Check if a file has one of the analyzable extensions (case-insensitive).

    Examples:
        >>> is_source_file(Path("app/page.tsx"))
        True
        >>> is_source_file(Path("styles.css"))
        False
        >>> is_source_file(Path("types.d.ts"))
        True
    """
    return path.suffix.lower() in extensions


def is_manifest_file(path: Path) -> bool:
    """Check if a file is a package.json manifest."""
    return path.name == MANIFEST_NAME


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """
    Check if a directory should be skipped during traversal.

    Args:
        dir_path: Path to the directory to check.
        ignore_dirs: Set of directory names to ignore (case-sensitive).

    Returns:
        True if the directory name is in ignore_dirs or is hidden (starts with '.').

    Examples:
        >>> should_ignore_directory(Path("node_modules"), {"node_modules"})
        True
        >>> should_ignore_directory(Path(".idea"), set())
        True
        >>> should_ignore_directory(Path("components"), {"node_modules"})
        False
    """
    return dir_path.name in ignore_dirs or dir_path.name.startswith(".")


def matches_ignore_pattern(relative: str, patterns: Iterable[str]) -> bool:
    """
    Check a root-relative POSIX path against fnmatch-style ignore globs.

    A pattern matches either the whole relative path or just the final name,
    so "*.test.tsx" and "app/legacy/*" both work.
    """
    name = relative.rsplit("/", 1)[-1]
    return any(fnmatch.fnmatch(relative, p) or fnmatch.fnmatch(name, p) for p in patterns)


def find_source_files(
    root: Path,
    extensions: Collection[str] = SOURCE_SUFFIXES,
    ignore_dirs: Optional[Set[str]] = None,
    ignore_patterns: Iterable[str] = (),
    max_depth: int = DEFAULT_MAX_DEPTH,
    follow_symlinks: bool = False,
    include_manifests: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find all analyzable files in a directory tree.

    This is the main entry point for file traversal. It walks the tree
    depth-first from `root`, collecting files whose extension is in
    `extensions` (and package.json files when include_manifests=True) while
    pruning ignored directories.

    Args:
        root: Root directory to start traversal from.
        extensions: Allowed file extensions (lowercase, with leading dot).
        ignore_dirs: Directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
            Hidden directories are always skipped.
        ignore_patterns: fnmatch globs tested against root-relative paths.
        max_depth: Maximum directory depth below root to descend into.
        follow_symlinks: If True, follow symbolic links (with loop protection).
            If False (default), symlinks are skipped.
        include_manifests: Also collect package.json files.
        filter_fn: Optional extra predicate; only files for which it returns
            True are included.

    Returns:
        Absolute paths of all matching files, sorted for deterministic reports.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If root is not a directory.

    Notes:
        - Permission errors on subdirectories are logged but do not stop traversal.
        - Branches deeper than max_depth are skipped without error.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS
    patterns = tuple(ignore_patterns)

    # Resolve to absolute path
    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)
    logger.debug(
        "Traversal config: extensions=%s, max_depth=%d, follow_symlinks=%s, ignore_dirs=%s, ignore_patterns=%s",
        sorted(extensions),
        max_depth,
        follow_symlinks,
        sorted(ignore_dirs),
        patterns,
    )

    collected_files: list[Path] = []
    visited: set[Path] = {root}

    def _relative(entry: Path) -> str:
        return entry.relative_to(root).as_posix()

    def _walk_directory(current_dir: Path, depth: int) -> None:
        """Recursive helper to walk directory tree."""
        try:
            for entry in current_dir.iterdir():
                # Skip symlinks unless explicitly following them
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    if patterns and matches_ignore_pattern(_relative(entry), patterns):
                        logger.debug("Ignoring directory by pattern: %s", entry)
                        continue
                    if depth + 1 > max_depth:
                        logger.debug("Max depth %d reached, not descending into %s", max_depth, entry)
                        continue
                    if follow_symlinks:
                        real = entry.resolve()
                        if real in visited:
                            logger.debug("Already visited (symlink loop?): %s", entry)
                            continue
                        visited.add(real)
                    _walk_directory(entry, depth + 1)

                elif entry.is_file():
                    if not (is_source_file(entry, extensions) or (include_manifests and is_manifest_file(entry))):
                        continue
                    if patterns and matches_ignore_pattern(_relative(entry), patterns):
                        logger.debug("Ignoring file by pattern: %s", entry)
                        continue
                    if filter_fn is not None and not filter_fn(entry):
                        logger.debug("Filtered out by custom filter: %s", entry)
                        continue
                    logger.debug("Found source file: %s", entry)
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root, 0)

    # Sort for deterministic ordering
    collected_files.sort()

    logger.info(
        "Traversal complete: found %d file(s) in %s",
        len(collected_files),
        root,
    )

    return collected_files
