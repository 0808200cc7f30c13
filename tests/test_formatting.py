"""Unit tests for the text-level formatting rules."""

from pathlib import Path

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.formatting import RULES

RULES_BY_ID = {rule.id: rule for rule in RULES}


def _run_rule(rule_id: str, source: str) -> list:
    path = Path("lib/format.ts")
    return RULES_BY_ID[rule_id].run(analyze(path, source), source, get_default_config("style"))


def _long_line(n: int) -> str:
    return f"export const value{n} = '{'x' * 110}';\n"


def test_long_lines_over_tolerance():
    source = "".join(_long_line(n) for n in range(6))
    findings = _run_rule("long-lines", source)
    assert len(findings) == 1
    assert findings[0].location.line == 1
    assert findings[0].message == "6 lines exceed 100 characters (first at line 1)"


def test_long_lines_within_tolerance():
    source = "".join(_long_line(n) for n in range(5))
    assert _run_rule("long-lines", source) == []


def test_long_url_lines_ignored():
    url = "https://example.com/" + "a" * 120
    source = "".join(f"export const link{n} = '{url}';\n" for n in range(8))
    assert _run_rule("long-lines", source) == []


def test_mixed_indentation():
    source = "export function f() {\n  const a = 1;\n  const b = 2;\n\treturn a + b;\n}\n"
    findings = _run_rule("mixed-indentation", source)
    assert len(findings) == 1
    assert findings[0].location.line == 4
    assert findings[0].message == "File mixes tab indentation (1 lines) and space indentation (2 lines)"


def test_consistent_indentation():
    source = "export function f() {\n  const a = 1;\n  return a;\n}\n"
    assert _run_rule("mixed-indentation", source) == []


def test_semicolon_consistency():
    source = "const a = 1;\nconst b = 2;\nconst c = 3\nexport const sum = a + b + c;\n"
    findings = _run_rule("semicolon-consistency", source)
    assert len(findings) == 1
    assert findings[0].location.line == 3
    assert "3 statements end with ';' and 1 do not" in findings[0].message
    assert findings[0].message.endswith("line 3 omits one")


def test_no_semicolon_style_is_consistent():
    source = "const a = 1\nconst b = 2\nexport const sum = a + b\n"
    assert _run_rule("semicolon-consistency", source) == []
