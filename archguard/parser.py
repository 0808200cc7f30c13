# Tree-sitter setup and AST parsing: parse TypeScript / TSX / JavaScript source into AST trees.

import logging
from pathlib import Path
from typing import Optional

import tree_sitter
from tree_sitter import Language
from tree_sitter_typescript import language_tsx as _tsx_language_capsule
from tree_sitter_typescript import language_typescript as _ts_language_capsule

logger = logging.getLogger(__name__)

# Plain .ts files use the TypeScript grammar (angle-bracket casts are legal there);
# everything that may contain JSX goes through the TSX grammar.
_TS_LANGUAGE = Language(_ts_language_capsule())
_TSX_LANGUAGE = Language(_tsx_language_capsule())

TYPESCRIPT_SUFFIXES = frozenset({".ts", ".mts", ".cts"})


def get_language(path: Optional[Path] = None) -> Language:
    """Return the Tree-sitter Language object for the given file (TSX when unknown)."""
    if path is not None and path.suffix.lower() in TYPESCRIPT_SUFFIXES:
        return _TS_LANGUAGE
    return _TSX_LANGUAGE


def create_parser(path: Optional[Path] = None) -> tree_sitter.Parser:
    """Create and return a Tree-sitter Parser configured for the file's grammar."""
    parser = tree_sitter.Parser(get_language(path))
    return parser


def parse_bytes(
    source: bytes,
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse source bytes into an AST.

    Args:
        source: UTF-8 encoded TypeScript/JavaScript source code.
        parser: Optional parser instance; if None, a TSX parser is created.

    Returns:
        The parse tree. Check tree.root_node.has_error for syntax errors.
    """
    if parser is None:
        parser = create_parser()
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.warning(
            "Parse completed with errors: root=%s",
            tree.root_node.type,
        )
    else:
        logger.debug(
            "Parse succeeded: root=%s",
            tree.root_node.type,
        )
    return tree
