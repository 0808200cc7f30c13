"""Tests for archguard.context: FileContext, node/function counts, line splitting."""

from pathlib import Path

import pytest

from archguard.context import (
    FileContext,
    context_from_source,
    count_tree_stats,
    first_error_line,
    get_line_col,
    get_source_span,
    iter_nodes,
    source_lines,
)
from archguard.parser import create_parser, parse_bytes


def test_count_tree_stats():
    parser = create_parser(Path("a.ts"))
    tree = parse_bytes(b"function outer() { return () => 1; }\n", parser=parser)
    nodes, funcs = count_tree_stats(tree.root_node)
    assert nodes > 1
    assert funcs == 2


def test_iter_nodes_document_order():
    tree = parse_bytes(b"const a = 1;\nconst b = 2;\n", parser=create_parser(Path("x.ts")))
    names = [n for n in iter_nodes(tree.root_node) if n.type == "identifier"]
    assert [n.start_point[0] for n in names] == [0, 1]


def test_context_from_source_component():
    source = b"export default function Page() { return <main />; }\n"
    ctx = context_from_source(Path("page.tsx"), source)
    assert ctx.path == Path("page.tsx")
    assert ctx.source == source
    assert ctx.root_node.type == "program"
    assert ctx.has_parse_errors is False


def test_context_from_source_malformed_still_returns_context():
    ctx = context_from_source(Path("bad.tsx"), b"export function Bad( { return 0; }\n")
    assert ctx.has_parse_errors is True


def test_first_error_line():
    ctx = context_from_source(Path("x.ts"), b"const ok = 1;\nconst broken = ;\n")
    assert ctx.has_parse_errors
    assert first_error_line(ctx.root_node) == 2


def test_first_error_line_clean_tree():
    ctx = context_from_source(Path("x.ts"), b"const ok = 1;\n")
    assert first_error_line(ctx.root_node) is None


def test_get_source_span():
    source = b"const answer = 42;"
    tree = parse_bytes(source, parser=create_parser(Path("x.ts")))
    ctx = FileContext(path=Path("x.ts"), source=source, tree=tree)
    assert get_source_span(ctx, ctx.root_node) == "const answer = 42;"


def test_get_line_col_one_based():
    tree = parse_bytes(b"let x;\nlet y;", parser=create_parser(Path("x.ts")))
    second = tree.root_node.named_children[1]
    assert get_line_col(second, one_based=True) == (2, 1)
    assert get_line_col(second, one_based=False) == (1, 0)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", []),
        ("a", ["a"]),
        ("a\n", ["a"]),
        ("a\n\n", ["a", ""]),
        ("a\r\nb\r\n", ["a", "b"]),
        ("const s = 'a\u2028b';\nnext\n", ["const s = 'a\u2028b';", "next"]),
        ("x\x0cy\x85z\n", ["x\x0cy\x85z"]),
    ],
)
def test_source_lines_split_on_newline_only(text, expected):
    assert source_lines(text) == expected


def test_source_lines_match_tree_rows():
    source = "const s = 'a\u2028b';\nconst t = 1;\n"
    tree = parse_bytes(source.encode("utf-8"), parser=create_parser(Path("x.ts")))
    second = tree.root_node.named_children[1]
    assert source_lines(source)[second.start_point[0]] == "const t = 1;"
