# Client components must not import Node-only modules.

from __future__ import annotations

from typing import Any

from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule, source_files

SERVER_ONLY_MODULES = frozenset(
    {
        "fs",
        "fs/promises",
        "path",
        "crypto",
        "querystring",
        "child_process",
        "worker_threads",
        "os",
        "net",
        "tls",
        "dns",
        "cluster",
        "server-only",
    }
)


def _module_name(target: str) -> str:
    return target[len("node:") :] if target.startswith("node:") else target


def _server_only_import(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if not facts.has_client_directive:
        return []
    return [
        Hit(line=ref.line, message=f"Client component imports server-only module '{ref.target}'")
        for ref in facts.imports
        if _module_name(ref.target) in SERVER_ONLY_MODULES
    ]


RULES = (
    Rule(
        id="server-only-import",
        name="Server-only import in client component",
        category="security",
        severity="error",
        evaluate=_server_only_import,
        applies_to=source_files,
        fix="Move the server-side logic into a Server Component, Route Handler or Server Action",
    ),
)
