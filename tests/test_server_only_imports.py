"""Unit tests for the server_only_import rule."""

from pathlib import Path

from archguard.analyzer import analyze
from archguard.config import get_default_config
from archguard.rules.server_only_imports import RULES

RULE = RULES[0]


def _run_rule(source: str) -> list:
    path = Path("components/uploader.tsx")
    return RULE.run(analyze(path, source), source, get_default_config())


def test_node_modules_in_client_component():
    source = (
        "'use client';\n"
        "import fs from 'fs';\n"
        "import { join } from 'node:path';\n"
        "import { useState } from 'react';\n"
        "export function Uploader() {\n"
        "  const [name] = useState(join('a', 'b'));\n"
        "  return <p>{fs ? name : ''}</p>;\n"
        "}\n"
    )
    findings = _run_rule(source)
    assert [f.location.line for f in findings] == [2, 3]
    assert findings[0].message == "Client component imports server-only module 'fs'"
    assert findings[1].message == "Client component imports server-only module 'node:path'"
    assert all(f.severity == "error" for f in findings)


def test_server_only_marker_package():
    source = "'use client';\nimport 'server-only';\nexport const x = 1;\n"
    findings = _run_rule(source)
    assert len(findings) == 1
    assert "'server-only'" in findings[0].message


def test_server_component_may_import_node_modules():
    source = "import { readFile } from 'fs/promises';\nexport default async function Page() {\n  return <p>{String(readFile)}</p>;\n}\n"
    assert _run_rule(source) == []
