"""Unit tests for the file size rules."""

from pathlib import Path

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.file_size import RULES

RULES_BY_ID = {rule.id: rule for rule in RULES}


def _lines(count: int) -> str:
    return "// filler\n" * count


def _run_rule(rule_id: str, source: str, **overrides) -> list:
    path = Path("components/big.tsx")
    facts = analyze(path, source)
    return RULES_BY_ID[rule_id].run(facts, source, get_default_config(**overrides))


def test_one_line_over_the_limit_is_an_error():
    findings = _run_rule("file-size-limit", _lines(501))
    assert len(findings) == 1
    f = findings[0]
    assert f.severity == "error"
    assert f.location.line == 501
    assert f.message == "File has 501 lines, exceeding the 500-line limit by 1"


def test_exactly_at_the_limit_is_not_an_error():
    assert _run_rule("file-size-limit", _lines(500)) == []


def test_warning_band():
    findings = _run_rule("file-size-warning", _lines(450))
    assert len(findings) == 1
    assert findings[0].severity == "warning"
    assert "50 short of the 500-line limit" in findings[0].message
    assert _run_rule("file-size-warning", _lines(399)) == []
    assert _run_rule("file-size-warning", _lines(501)) == []


def test_custom_limit():
    findings = _run_rule("file-size-limit", _lines(120), max_lines=100)
    assert findings[0].message == "File has 120 lines, exceeding the 100-line limit by 20"
    assert findings[0].location.line == 101


def test_line_separator_inside_string_is_not_a_line_break():
    source = "export const s = 'a\u2028b';\n" + _lines(499)
    assert analyze(Path("copy.ts"), source).line_count == 500
    assert _run_rule("file-size-limit", source) == []
