# Environment variables read in client components must carry the NEXT_PUBLIC_ prefix.

from __future__ import annotations

from typing import Any

from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule, source_files

CLIENT_SAFE_PREFIX = "NEXT_PUBLIC_"
# inlined by the bundler for every build
ALWAYS_AVAILABLE = frozenset({"NODE_ENV"})


def _client_env_exposure(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if not facts.has_client_directive:
        return []
    return [
        Hit(
            line=access.line,
            column=access.column,
            message=(
                f"process.env.{access.name} is read in a client component; only "
                f"{CLIENT_SAFE_PREFIX}* variables are exposed to the browser"
            ),
        )
        for access in facts.env_accesses
        if not access.name.startswith(CLIENT_SAFE_PREFIX) and access.name not in ALWAYS_AVAILABLE
    ]


RULES = (
    Rule(
        id="client-env-exposure",
        name="Server environment variable in client code",
        category="security",
        severity="error",
        evaluate=_client_env_exposure,
        applies_to=source_files,
        fix="Read the variable in a Server Component and pass the value down, or rename it with NEXT_PUBLIC_ if it is not secret",
    ),
)
