"""Unit tests for the unused_variable rule."""

from pathlib import Path

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.unused_variables import RULES

RULE = RULES[0]


def _run_rule(source: str, path: Path | None = None) -> list:
    """Analyze source, run the unused-variable rule, return findings."""
    if path is None:
        path = Path("lib/math.ts")
    facts = analyze(path, source)
    return RULE.run(facts, source, get_default_config("style"))


def test_unused_variable_reported():
    source = "const unused = 1;\nconst used = 2;\nexport const total = used + 1;\n"
    findings = _run_rule(source)
    assert len(findings) == 1
    f = findings[0]
    assert f.rule_id == "unused-variable"
    assert f.location.line == 1
    assert f.message == "Variable 'unused' is declared but never used"
    assert f.fix == "Remove it or rename to '_unused'"


def test_unused_function_reported():
    findings = _run_rule("function helper() {\n  return 1;\n}\nexport const x = 2;\n")
    assert [f.message for f in findings] == ["Function 'helper' is declared but never used"]


def test_underscore_prefix_and_exports_are_exempt():
    source = "const _legacy = 1;\nexport const visible = 2;\nexport function run() {}\n"
    assert _run_rule(source) == []


def test_parameters_are_not_reported():
    source = "export function handler(req: Request, ctx: unknown) {\n  return req.url;\n}\n"
    assert _run_rule(source) == []


def test_unused_destructured_setter():
    source = (
        "import { useState } from 'react';\n"
        "export function Toggle() {\n"
        "  const [on, setOn] = useState(false);\n"
        "  return <span>{on ? 'on' : 'off'}</span>;\n"
        "}\n"
    )
    findings = _run_rule(source, Path("components/toggle.tsx"))
    assert [f.message for f in findings] == ["Variable 'setOn' is declared but never used"]


def test_declaration_files_are_skipped():
    assert _run_rule("declare const unusedGlobal: string;\ninterface Shape { a: number }\n", Path("types/global.d.ts")) == []
