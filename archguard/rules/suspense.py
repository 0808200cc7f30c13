# Suspense boundary rules: async Server Components that fetch without any Suspense
# boundary around them, and <Suspense> elements with no usable fallback UI.

from __future__ import annotations

from typing import Any

from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule, components

CATEGORY = "suspense"


def _suspense_missing(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if facts.has_client_directive or facts.uses_suspense or facts.has_loading_file:
        return []
    fetching = [call for call in facts.fetch_calls if call.scope in facts.async_component_scopes]
    if not fetching:
        return []
    first = fetching[0]
    return [
        Hit(
            line=first.line,
            column=first.column,
            message=(
                f"Async Server Component in {facts.path.name} fetches data but no <Suspense> "
                "boundary or loading file streams it"
            ),
        )
    ]


def _suspense_without_fallback(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    hits = []
    for boundary in facts.suspense_boundaries:
        if not boundary.has_fallback:
            message = "<Suspense> has no fallback prop; nothing renders while its children load"
        elif boundary.empty_fallback:
            message = "<Suspense> fallback is empty; render a loading skeleton instead"
        else:
            continue
        hits.append(Hit(line=boundary.line, column=boundary.column, message=message))
    return hits


RULES = (
    Rule(
        id="suspense-missing",
        name="Async component without Suspense",
        category=CATEGORY,
        severity="warning",
        evaluate=_suspense_missing,
        applies_to=components,
        fix="Wrap the data-fetching component in <Suspense fallback={<Skeleton />}> or add a loading.tsx to the route",
    ),
    Rule(
        id="suspense-without-fallback",
        name="Suspense without fallback",
        category=CATEGORY,
        severity="warning",
        evaluate=_suspense_without_fallback,
        applies_to=components,
        fix="Pass a meaningful loading UI to the fallback prop",
    ),
)
