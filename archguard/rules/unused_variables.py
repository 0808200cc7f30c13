# Unused declarations must be removed or carry the "_" prefix.

from __future__ import annotations

from typing import Any

from archguard.analyzer import CLIENT_HOOKS, DATA_LIBRARY_HOOKS
from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule

CATEGORY = "unused"

EXEMPT_NAMES = frozenset({"props", "state", "ref", "key", "children"})


def _unused_variable(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    hits = []
    for decl in facts.declared_identifiers:
        name = decl.name
        if decl.kind == "parameter" or decl.exported or decl.references > 0:
            continue
        if name.startswith("_") or name in EXEMPT_NAMES:
            continue
        if name in CLIENT_HOOKS or name in DATA_LIBRARY_HOOKS:
            continue
        hits.append(
            Hit(
                line=decl.line,
                column=decl.column,
                message=f"{decl.kind.capitalize()} '{name}' is declared but never used",
                fix=f"Remove it or rename to '_{name}'",
            )
        )
    return hits


RULES = (
    Rule(
        id="unused-variable",
        name="Unused variable",
        category=CATEGORY,
        severity="warning",
        evaluate=_unused_variable,
        # declaration files only describe shapes
        applies_to=lambda facts: not facts.is_manifest and not facts.path.name.endswith(".d.ts"),
    ),
)
