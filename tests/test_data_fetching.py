"""Unit tests for the data-fetching rules."""

from pathlib import Path

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.data_fetching import RULES

RULES_BY_ID = {rule.id: rule for rule in RULES}


def _run_rule(rule_id: str, source: str, path: Path | None = None) -> list:
    """Analyze source, run one data-fetching rule, return findings."""
    if path is None:
        path = Path("lib/data.ts")
    facts = analyze(path, source)
    return RULES_BY_ID[rule_id].run(facts, source, get_default_config())


WATERFALL = """export async function loadDashboard() {
  const user = await fetch('/api/user', { cache: 'no-store' });
  const posts = await fetch('/api/posts', { cache: 'no-store' });
  return [user, posts];
}
"""


def test_sequential_fetches_detected():
    """Two awaited fetches in one function form a waterfall."""
    findings = _run_rule("sequential-fetches", WATERFALL)
    assert len(findings) == 1
    f = findings[0]
    assert f.severity == "warning"
    assert f.location.line == 3
    assert "2 sequential awaited fetch() calls (lines 2, 3)" in f.message
    assert "Promise.all" in f.fix


def test_promise_all_is_not_a_waterfall():
    source = (
        "export async function loadDashboard() {\n"
        "  const [user, posts] = await Promise.all([fetch('/api/user'), fetch('/api/posts')]);\n"
        "  return [user, posts];\n"
        "}\n"
    )
    assert _run_rule("sequential-fetches", source) == []


def test_awaits_in_separate_functions_are_independent():
    source = (
        "export async function loadUser() {\n"
        "  return await fetch('/api/user');\n"
        "}\n"
        "export async function loadPosts() {\n"
        "  return await fetch('/api/posts');\n"
        "}\n"
    )
    assert _run_rule("sequential-fetches", source) == []


def test_chained_fetches_are_waterfall_steps():
    source = (
        "export async function loadDashboard() {\n"
        "  const user = await fetch('/api/user').then((r) => r.json());\n"
        "  const posts = await fetch(`/api/posts?u=${user.id}`).then((r) => r.json());\n"
        "  return [user, posts];\n"
        "}\n"
    )
    findings = _run_rule("sequential-fetches", source)
    assert [f.location.line for f in findings] == [3]


def test_promise_all_only_covers_its_own_function():
    source = (
        "export async function loadTeam() {\n"
        "  return Promise.all([fetch('/api/a'), fetch('/api/b')]);\n"
        "}\n"
        "\n" + WATERFALL.replace("loadDashboard", "loadProfile")
    )
    findings = _run_rule("sequential-fetches", source)
    assert len(findings) == 1
    assert "(lines 6, 7)" in findings[0].message


def test_client_fetch_without_cache():
    source = (
        "'use client';\n"
        "import { useEffect } from 'react';\n"
        "export function Feed() {\n"
        "  useEffect(() => { fetch('/api/feed'); }, []);\n"
        "  return <ul />;\n"
        "}\n"
    )
    findings = _run_rule("client-fetch-without-cache", source, Path("components/feed.tsx"))
    assert len(findings) == 1
    assert findings[0].location.line == 4
    assert "feed.tsx" in findings[0].message


def test_client_fetch_with_data_library_is_fine():
    source = (
        "'use client';\n"
        "import useSWR from 'swr';\n"
        "const fetcher = (url: string) => fetch(url).then((r) => r.json());\n"
        "export function Feed() {\n"
        "  const { data } = useSWR('/api/feed', fetcher);\n"
        "  return <ul>{data}</ul>;\n"
        "}\n"
    )
    assert _run_rule("client-fetch-without-cache", source, Path("components/feed.tsx")) == []


def test_missing_fetch_options():
    source = (
        "export async function getProducts() {\n"
        "  const res = await fetch('https://api.example.com/products');\n"
        "  return res.json();\n"
        "}\n"
    )
    findings = _run_rule("missing-fetch-options", source)
    assert len(findings) == 1
    assert findings[0].location.line == 2
    assert "revalidation" in findings[0].message


def test_fetch_options_present():
    source = "export const load = () => fetch('/api/a', { next: { revalidate: 60 } });\n"
    assert _run_rule("missing-fetch-options", source) == []


def test_fetch_options_variable_assumed_configured():
    source = "const opts = { cache: 'force-cache' };\nexport const load = () => fetch('/api/a', opts);\n"
    assert _run_rule("missing-fetch-options", source) == []


def test_route_segment_config_covers_fetches():
    source = (
        "export const revalidate = 3600;\n"
        "export default async function Page() {\n"
        "  const res = await fetch('https://api.example.com/products');\n"
        "  return <main>{res.status}</main>;\n"
        "}\n"
    )
    assert _run_rule("missing-fetch-options", source, Path("app/page.tsx")) == []


def test_missing_cache_usage():
    findings = _run_rule("missing-cache-usage", WATERFALL)
    assert len(findings) == 1
    assert findings[0].location.line == 2
    assert "2 fetch() calls in server module data.ts" in findings[0].message


def test_cache_wrapper_satisfies_missing_cache_usage():
    source = "import { cache } from 'react';\n" + WATERFALL.replace(
        "export async function loadDashboard() {", "export const loadDashboard = cache(async () => {"
    ).replace("\n}\n", "\n});\n")
    assert _run_rule("missing-cache-usage", source) == []
