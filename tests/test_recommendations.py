"""Tests for the remediation catalog."""

from pathlib import Path

from archguard.config import FAMILIES
from archguard.findings.models import Finding, Location
from archguard.recommendations import CATALOG, FALLBACK, recommend, recommendations_for


def _finding(rule_id: str, fix: str | None = None) -> Finding:
    return Finding(rule_id=rule_id, message="m", location=Location(path=Path("a.tsx"), line=1), fix=fix)


def test_every_rule_has_a_recommendation():
    for rule in FAMILIES["all"]:
        assert rule.id in CATALOG, rule.id
    assert "parse-error" in CATALOG
    assert "policy-load-error" in CATALOG


def test_doc_links_are_absolute():
    for entry in CATALOG.values():
        for link in entry.doc_links:
            assert link.url.startswith("https://")


def test_catalog_entry():
    rec = recommend(_finding("missing-use-client"))
    assert rec.title == "Client Component directive"
    assert "use client" in rec.fix_text
    assert any("client-components" in link.url for link in rec.doc_links)


def test_finding_fix_overrides_catalog_text():
    rec = recommend(_finding("variable-naming", fix="Rename to 'userName'"))
    assert rec.fix_text == "Rename to 'userName'"
    assert CATALOG["variable-naming"].fix_text != "Rename to 'userName'"


def test_unknown_rule_falls_back():
    rec = recommend(_finding("something-new"))
    assert rec == FALLBACK
    assert rec.title == "Style issue"


def test_recommendations_for_keeps_first_seen_order():
    recs = recommendations_for([_finding("any-type"), _finding("long-lines"), _finding("any-type")])
    assert list(recs) == ["any-type", "long-lines"]


def test_wire_format_is_camel_case():
    data = recommend(_finding("raw-img-element")).model_dump(by_alias=True)
    assert set(data) == {"title", "message", "fixText", "docLinks"}
