# Explicit `any` annotations.

from __future__ import annotations

from typing import Any

from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule, source_files


def _any_type(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    return [
        Hit(
            line=found.line,
            column=found.column,
            message=f"'any' type detected in {found.owner}" if found.owner else "'any' type detected",
        )
        for found in facts.any_types
    ]


RULES = (
    Rule(
        id="any-type",
        name="Explicit any",
        category="types",
        severity="error",
        evaluate=_any_type,
        applies_to=source_files,
        fix="Replace 'any' with a specific type, a generic, or 'unknown' plus a type guard",
    ),
)
