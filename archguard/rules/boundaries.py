# Server/Client component boundary rules: "use client" directive required, unnecessary,
# and browser globals referenced from server modules.

from __future__ import annotations

from typing import Any

from archguard.facts import ClientFeature, FileFacts
from archguard.rules.base import Hit, Rule, source_files

CATEGORY = "boundaries"

USE_CLIENT_FIX = 'Add "use client" directive at the top of the file, before any imports'


def _describe_features(features: tuple[ClientFeature, ...], limit: int = 4) -> str:
    first_seen: dict[str, int] = {}
    for feature in features:
        first_seen.setdefault(feature.name, feature.line)
    parts = [f"{name} (line {line})" for name, line in first_seen.items()]
    if len(parts) > limit:
        parts = parts[:limit] + [f"+{len(parts) - limit} more"]
    return ", ".join(parts)


def _missing_use_client(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if facts.has_client_directive or not facts.client_features:
        return []
    first = facts.client_features[0]
    return [
        Hit(
            line=first.line,
            column=first.column,
            message=(
                f"{facts.path.name} uses client-only features "
                f"({_describe_features(facts.client_features)}) but is missing the \"use client\" directive"
            ),
        )
    ]


def _unnecessary_use_client(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if not facts.has_client_directive or facts.client_features:
        return []
    return [
        Hit(
            line=facts.client_directive_line or 1,
            column=1,
            message=(
                f"{facts.path.name} has a \"use client\" directive but uses no hooks, "
                "browser APIs or event handlers; it can likely be a Server Component"
            ),
        )
    ]


def _browser_api_in_server(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if facts.has_client_directive:
        return []
    hits: list[Hit] = []
    seen: set[str] = set()
    for feature in facts.client_features:
        if feature.kind != "browser-api" or feature.name in seen:
            continue
        seen.add(feature.name)
        hits.append(
            Hit(
                line=feature.line,
                column=feature.column,
                message=(
                    f"Browser API '{feature.name}' is referenced in a server module; "
                    "it is undefined during server rendering"
                ),
            )
        )
    return hits


RULES = (
    Rule(
        id="missing-use-client",
        name="Missing \"use client\" directive",
        category=CATEGORY,
        severity="error",
        evaluate=_missing_use_client,
        applies_to=lambda facts: facts.is_component_file and not facts.is_manifest,
        fix=USE_CLIENT_FIX,
    ),
    Rule(
        id="unnecessary-use-client",
        name="Unnecessary \"use client\" directive",
        category=CATEGORY,
        severity="warning",
        evaluate=_unnecessary_use_client,
        applies_to=source_files,
        fix='Remove the "use client" directive so the component renders on the server',
    ),
    Rule(
        id="browser-api-in-server",
        name="Browser API in server module",
        category=CATEGORY,
        severity="warning",
        evaluate=_browser_api_in_server,
        applies_to=source_files,
        fix=(
            "Move the browser-only code into a separate 'use client' component, "
            "or guard it with typeof window !== 'undefined'"
        ),
    ),
)
