# Per-file analysis context: store file path, source code, AST, and helper methods.
# Parses already-read source (malformed files still yield a context with
# has_parse_errors set) and logs node/function counts before fact extraction.

import logging
from pathlib import Path
from typing import Iterator, Optional

from tree_sitter import Node as TSNode
from tree_sitter import Parser, Tree

from archguard.parser import create_parser, parse_bytes

logger = logging.getLogger(__name__)

FUNCTION_NODE_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "method_definition",
    }
)


def iter_nodes(node: TSNode) -> Iterator[TSNode]:
    """Yield node and all of its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def count_tree_stats(root: TSNode) -> tuple[int, int]:
    """
    Return (total node count, function count) for the tree.

    Useful for logging how much was parsed (nodes and functions).
    """
    nodes = 0
    functions = 0
    for node in iter_nodes(root):
        nodes += 1
        if node.type in FUNCTION_NODE_TYPES:
            functions += 1
    return nodes, functions


def first_error_line(root: TSNode) -> Optional[int]:
    """Return the 1-based line of the first ERROR or missing node, or None."""
    if not root.has_error:
        return None
    for node in iter_nodes(root):
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
    return root.start_point[0] + 1


class FileContext:
    """
    Per-file state for analysis: path, raw source bytes, and AST.

    The analyzer uses context.path, context.source, and context.tree. Use
    get_source_span(context, node) and get_line_col(node) for locations/snippets.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        tree: Tree,
        *,
        has_parse_errors: bool = False,
    ) -> None:
        self.path = path
        self.source = source
        self.tree = tree
        self.has_parse_errors = has_parse_errors

    @property
    def root_node(self) -> TSNode:
        """Convenience access to the AST root."""
        return self.tree.root_node


def get_source_span(context: FileContext, node: TSNode) -> str:
    """
    Return the substring of context.source for the given node's byte range.

    Decodes with errors="replace" so bad UTF-8 does not crash.
    """
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_line_col(node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """
    Return (line, column) for the node's start position.

    Tree-sitter uses 0-based (row, col). If one_based=True (default),
    returns 1-based line and column for reports.
    """
    row, col = node.start_point
    if one_based:
        return row + 1, col + 1
    return row, col


def context_from_source(
    path: Path,
    source: bytes,
    parser: Optional[Parser] = None,
) -> FileContext:
    """Parse already-read source bytes into a FileContext."""
    if parser is None:
        parser = create_parser(path)

    tree = parse_bytes(source, parser=parser)
    has_errors = tree.root_node.has_error
    if has_errors:
        logger.warning("File %s parsed with syntax errors; AST may be incomplete", path)

    node_count, func_count = count_tree_stats(tree.root_node)
    logger.debug(
        "Parsed %s: %d nodes, %d function(s)%s",
        path,
        node_count,
        func_count,
        " (with parse errors)" if has_errors else "",
    )

    return FileContext(
        path=path,
        source=source,
        tree=tree,
        has_parse_errors=has_errors,
    )


def source_lines(text: str) -> list[str]:
    """
    Split text into lines the way tree-sitter counts rows: on "\\n" only.

    str.splitlines() also breaks on U+2028, form feeds and other separators that
    can sit inside string literals, which would shift every line number after them.
    A trailing "\\r" is dropped from each line and a final newline does not start
    an extra empty line.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
