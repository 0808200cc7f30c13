"""Unit tests for the client_env_exposure rule."""

from pathlib import Path

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.env_exposure import RULES

RULE = RULES[0]


def _run_rule(source: str) -> list:
    path = Path("components/checkout.tsx")
    return RULE.run(analyze(path, source), source, get_default_config())


def test_server_secret_in_client_component():
    source = (
        "'use client';\n"
        "export function Checkout() {\n"
        "  const key = process.env.STRIPE_SECRET_KEY;\n"
        "  const pk = process.env.NEXT_PUBLIC_STRIPE_KEY;\n"
        "  const mode = process.env.NODE_ENV;\n"
        "  return <form data-key={key} data-pk={pk} data-mode={mode} />;\n"
        "}\n"
    )
    findings = _run_rule(source)
    assert len(findings) == 1
    f = findings[0]
    assert f.rule_id == "client-env-exposure"
    assert f.severity == "error"
    assert f.location.line == 3
    assert f.message.startswith("process.env.STRIPE_SECRET_KEY is read in a client component")


def test_bracket_access_detected():
    source = "'use client';\nexport const region = process.env['AWS_REGION'];\n"
    findings = _run_rule(source)
    assert [f.location.line for f in findings] == [2]
    assert "AWS_REGION" in findings[0].message


def test_server_component_may_read_any_variable():
    source = "export default async function Checkout() {\n  return <p>{process.env.STRIPE_SECRET_KEY}</p>;\n}\n"
    assert _run_rule(source) == []
