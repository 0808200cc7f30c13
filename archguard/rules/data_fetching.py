# Data-fetching rules: request waterfalls, uncached client fetches, fetch() calls
# without cache/revalidation options, and repeated server fetches without cache().

from __future__ import annotations

from collections import defaultdict
from typing import Any

from archguard.facts import FetchCall, FileFacts
from archguard.rules.base import Hit, Rule, describe_lines, source_files

CATEGORY = "data-fetching"


def _sequential_fetches(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    by_scope: dict[int, list[FetchCall]] = defaultdict(list)
    for call in facts.fetch_calls:
        if call.awaited and call.scope not in facts.promise_all_scopes:
            by_scope[call.scope].append(call)
    hits: list[Hit] = []
    for scope in sorted(by_scope):
        calls = by_scope[scope]
        if len(calls) < 2:
            continue
        hits.append(
            Hit(
                line=calls[1].line,
                column=calls[1].column,
                message=(
                    f"{len(calls)} sequential awaited fetch() calls "
                    f"(lines {describe_lines([c.line for c in calls])}) "
                    "create a request waterfall"
                ),
            )
        )
    return hits


def _client_fetch_without_cache(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if not facts.has_client_directive or not facts.fetch_calls:
        return []
    if facts.uses_data_library or facts.uses_cache_wrapper:
        return []
    first = facts.fetch_calls[0]
    return [
        Hit(
            line=first.line,
            column=first.column,
            message=(
                f"fetch() in client component {facts.path.name} without SWR, React Query or cache(); "
                "requests are not deduplicated or cached"
            ),
        )
    ]


def _missing_fetch_options(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if facts.has_client_directive or facts.has_server_directive or facts.has_route_segment_config:
        return []
    return [
        Hit(
            line=call.line,
            column=call.column,
            message="fetch() call has no caching or revalidation option (cache, next.revalidate or next.tags)",
        )
        for call in facts.fetch_calls
        if not call.has_cache_options
    ]


def _missing_cache_usage(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if facts.has_client_directive or facts.uses_cache_wrapper or facts.fetch_call_count < 2:
        return []
    first = facts.fetch_calls[0]
    return [
        Hit(
            line=first.line,
            column=first.column,
            message=(
                f"{facts.fetch_call_count} fetch() calls in server module {facts.path.name} "
                "without a cache() wrapper"
            ),
        )
    ]


RULES = (
    Rule(
        id="sequential-fetches",
        name="Sequential data fetching",
        category=CATEGORY,
        severity="warning",
        evaluate=_sequential_fetches,
        applies_to=source_files,
        fix="Start independent requests together and await them with Promise.all([...])",
    ),
    Rule(
        id="client-fetch-without-cache",
        name="Client fetch without caching",
        category=CATEGORY,
        severity="warning",
        evaluate=_client_fetch_without_cache,
        applies_to=source_files,
        fix="Fetch in a Server Component, or use SWR / React Query in the client component",
    ),
    Rule(
        id="missing-fetch-options",
        name="fetch() without cache options",
        category=CATEGORY,
        severity="warning",
        evaluate=_missing_fetch_options,
        applies_to=source_files,
        fix="Pass { next: { revalidate: <seconds> } } or { cache: 'force-cache' | 'no-store' } to fetch()",
    ),
    Rule(
        id="missing-cache-usage",
        name="Server fetches without cache()",
        category=CATEGORY,
        severity="warning",
        evaluate=_missing_cache_usage,
        applies_to=source_files,
        fix="Wrap shared data loaders in React cache() so repeated calls during a render are deduplicated",
    ),
)
