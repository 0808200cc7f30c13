"""Unit tests for the naming-convention rules."""

from pathlib import Path

import pytest

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.naming import RULES, to_camel_case, to_pascal_case

RULES_BY_ID = {rule.id: rule for rule in RULES}


def _run_rule(rule_id: str, source: str, path: Path | None = None) -> list:
    """Analyze source, run one naming rule, return findings."""
    if path is None:
        path = Path("components/user-card.tsx")
    facts = analyze(path, source)
    return RULES_BY_ID[rule_id].run(facts, source, get_default_config("style"))


@pytest.mark.parametrize(
    "name,pascal,camel",
    [
        ("user-card", "UserCard", "userCard"),
        ("user_name", "UserName", "userName"),
        ("userCard", "UserCard", "userCard"),
        ("MAX_RETRIES", "MaxRetries", "maxRetries"),
    ],
)
def test_case_conversion(name, pascal, camel):
    assert to_pascal_case(name) == pascal
    assert to_camel_case(name) == camel


def test_component_naming_requires_pascal_case():
    findings = _run_rule("component-naming", "export const userCard = () => <div />;\n")
    assert len(findings) == 1
    assert findings[0].location.line == 1
    assert "userCard" in findings[0].message
    assert findings[0].fix == "Rename to 'UserCard'"


def test_component_naming_accepts_pascal_case():
    assert _run_rule("component-naming", "export function UserCard() { return <div />; }\n") == []


def test_variable_naming_snake_case():
    findings = _run_rule("variable-naming", "const user_name = 'Ada';\nexport default user_name;\n", Path("lib/user.ts"))
    assert len(findings) == 1
    assert findings[0].message.startswith("Variable 'user_name' should use camelCase")
    assert findings[0].fix == "Rename to 'userName'"


def test_variable_naming_allows_constants_and_private_prefix():
    source = "export const MAX_RETRIES = 3;\nconst _cache = new Map();\nexport const retryDelay = _cache.size;\n"
    assert _run_rule("variable-naming", source, Path("lib/retry.ts")) == []


def test_pascal_case_variable_in_component_file_is_allowed():
    """Contexts and styled wrappers are PascalCase by convention."""
    source = "import { createContext } from 'react';\nexport const ThemeContext = createContext(null);\n"
    assert _run_rule("variable-naming", source, Path("components/theme.tsx")) == []


def test_type_naming():
    source = "interface userProps { name: string }\ntype Size = 'sm' | 'lg';\n"
    findings = _run_rule("type-naming", source, Path("types/user.ts"))
    assert len(findings) == 1
    assert findings[0].message == "Interface 'userProps' should use PascalCase (e.g. 'UserProps')"


def test_component_filename_mismatch():
    source = "export default function Profile() {\n  return <div />;\n}\n"
    findings = _run_rule("component-filename-mismatch", source)
    assert len(findings) == 1
    assert "'Profile'" in findings[0].message
    assert "expected 'UserCard'" in findings[0].message


def test_component_filename_match():
    source = "export default function UserCard() {\n  return <div />;\n}\n"
    assert _run_rule("component-filename-mismatch", source) == []


@pytest.mark.parametrize("name", ["page.tsx", "layout.tsx", "counter-client.tsx", "[slug].tsx"])
def test_framework_file_names_are_exempt(name):
    source = "export default function Dashboard() {\n  return <div />;\n}\n"
    assert _run_rule("component-filename-mismatch", source, Path("app") / name) == []
