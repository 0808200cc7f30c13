"""Unit tests for the Server/Client boundary rules."""

from pathlib import Path

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.boundaries import RULES

RULES_BY_ID = {rule.id: rule for rule in RULES}


def _run_rule(rule_id: str, source: str, path: Path | None = None) -> list:
    """Analyze source, run one boundary rule, return findings."""
    if path is None:
        path = Path("component.tsx")
    facts = analyze(path, source)
    return RULES_BY_ID[rule_id].run(facts, source, get_default_config())


HOOK_WITHOUT_DIRECTIVE = """import { useState } from 'react';

export default function Counter() {
  const [count, setCount] = useState(0);
  return <button onClick={() => setCount(count + 1)}>{count}</button>;
}
"""


def test_missing_use_client_reported_once():
    """Hooks plus handlers without the directive yield exactly one error."""
    findings = _run_rule("missing-use-client", HOOK_WITHOUT_DIRECTIVE, Path("counter.tsx"))
    assert len(findings) == 1
    f = findings[0]
    assert f.rule_id == "missing-use-client"
    assert f.severity == "error"
    assert f.location.path == Path("counter.tsx")
    assert f.location.line == 4
    assert "useState" in f.message
    assert "onClick" in f.message
    assert f.fix is not None and "use client" in f.fix


def test_missing_use_client_not_reported_with_directive():
    source = '"use client";\n' + HOOK_WITHOUT_DIRECTIVE
    assert _run_rule("missing-use-client", source) == []


def test_missing_use_client_ignores_plain_modules():
    """A .ts helper without React imports is not a component file."""
    source = "export function width() { return window.innerWidth; }\n"
    assert _run_rule("missing-use-client", source, Path("lib/viewport.ts")) == []


def test_unnecessary_use_client():
    source = "'use client';\n\nexport function Title() {\n  return <h1>Hello</h1>;\n}\n"
    findings = _run_rule("unnecessary-use-client", source)
    assert len(findings) == 1
    assert findings[0].severity == "warning"
    assert findings[0].location.line == 1
    assert _run_rule("missing-use-client", source) == []


def test_directive_with_features_is_necessary():
    source = '"use client";\n' + HOOK_WITHOUT_DIRECTIVE
    assert _run_rule("unnecessary-use-client", source) == []


def test_browser_api_in_server_one_per_api():
    source = (
        "export default function Page() {\n"
        "  const a = window.location.href;\n"
        "  const b = window.innerWidth;\n"
        "  const c = document.title;\n"
        "  return <p>{a}{b}{c}</p>;\n"
        "}\n"
    )
    findings = _run_rule("browser-api-in-server", source, Path("app/page.tsx"))
    assert [f.message.split("'")[1] for f in findings] == ["window", "document"]
    assert all(f.severity == "warning" for f in findings)


def test_browser_api_guarded_by_typeof_is_fine():
    source = "export const isBrowser = () => typeof window !== 'undefined';\n"
    assert _run_rule("browser-api-in-server", source, Path("lib/env.ts")) == []


def test_browser_api_allowed_in_client_component():
    source = "'use client';\nexport function W() { return <i>{window.innerWidth}</i>; }\n"
    assert _run_rule("browser-api-in-server", source) == []


def test_local_binding_shadows_global():
    source = "export function F({ document }: { document: string }) { return <p>{document}</p>; }\n"
    facts = analyze(Path("f.tsx"), source)
    assert "document" not in facts.used_browser_apis


def test_finding_context_follows_tree_rows_past_line_separators():
    source = "const banner = 'x\u2028y';\n" + HOOK_WITHOUT_DIRECTIVE
    findings = _run_rule("missing-use-client", source, Path("counter.tsx"))
    assert [f.location.line for f in findings] == [5]
    assert findings[0].context == "const [count, setCount] = useState(0);"
