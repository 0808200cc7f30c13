# Naming conventions: PascalCase components and types, camelCase variables and
# functions, and exported component names that match their file name.

from __future__ import annotations

import re
from typing import Any, Optional

from archguard.facts import Declaration, FileFacts
from archguard.rules.base import Hit, Rule, source_files

CATEGORY = "naming"

PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
UPPER_SNAKE_CASE = re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*$")

# Route files whose names are fixed by the framework.
FRAMEWORK_FILE_STEMS = frozenset(
    {
        "page",
        "layout",
        "loading",
        "error",
        "global-error",
        "not-found",
        "template",
        "default",
        "route",
        "index",
        "middleware",
        "instrumentation",
        "opengraph-image",
        "twitter-image",
        "icon",
        "apple-icon",
        "sitemap",
        "robots",
        "manifest",
    }
)
CLIENT_SUFFIXES = ("-client", "_client")

_WORD_SPLIT = re.compile(r"[-_.\s]+|(?<=[a-z0-9])(?=[A-Z])")


def _words(name: str) -> list[str]:
    return [w for w in _WORD_SPLIT.split(name) if w]


def to_pascal_case(name: str) -> str:
    return "".join(w[:1].upper() + w[1:].lower() for w in _words(name))


def to_camel_case(name: str) -> str:
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def _normalize(name: str) -> str:
    return re.sub(r"[-_.]", "", name).lower()


def _bare(name: str) -> str:
    # _unused and $store prefixes are conventions of their own
    return name.lstrip("_$")


def _component_naming(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    hits = []
    for decl in facts.declared_identifiers:
        if not decl.returns_markup:
            continue
        name = _bare(decl.name)
        if name and not PASCAL_CASE.match(name):
            hits.append(
                Hit(
                    line=decl.line,
                    column=decl.column,
                    message=f"Component '{decl.name}' should use PascalCase (e.g. '{to_pascal_case(name)}')",
                    fix=f"Rename to '{to_pascal_case(name)}'",
                )
            )
    return hits


def _variable_naming(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    hits = []
    for decl in facts.declared_identifiers:
        if decl.kind not in ("variable", "function") or decl.returns_markup:
            continue
        name = _bare(decl.name)
        if not name or CAMEL_CASE.match(name) or UPPER_SNAKE_CASE.match(name):
            continue
        if PASCAL_CASE.match(name) and (decl.kind == "function" or facts.is_component_file):
            # components, contexts and styled wrappers
            continue
        hits.append(
            Hit(
                line=decl.line,
                column=decl.column,
                message=f"{decl.kind.capitalize()} '{decl.name}' should use camelCase (e.g. '{to_camel_case(name)}')",
                fix=f"Rename to '{to_camel_case(name)}'",
            )
        )
    return hits


def _type_naming(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    hits = []
    for decl in facts.declared_identifiers:
        if decl.kind not in ("class", "interface", "type"):
            continue
        name = _bare(decl.name)
        if name and not PASCAL_CASE.match(name):
            hits.append(
                Hit(
                    line=decl.line,
                    column=decl.column,
                    message=f"{decl.kind.capitalize()} '{decl.name}' should use PascalCase (e.g. '{to_pascal_case(name)}')",
                    fix=f"Rename to '{to_pascal_case(name)}'",
                )
            )
    return hits


def _exported_component(facts: FileFacts) -> Optional[Declaration]:
    components = [d for d in facts.declared_identifiers if d.returns_markup and d.exported]
    default = next((d for d in components if d.default_export), None)
    if default is not None:
        return default
    return components[0] if len(components) == 1 else None


def _filename_exempt(facts: FileFacts) -> bool:
    stem = facts.stem.lower()
    return (
        stem in FRAMEWORK_FILE_STEMS
        or stem.endswith(CLIENT_SUFFIXES)
        or stem.startswith(("[", "("))
    )


def _component_filename_mismatch(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    if _filename_exempt(facts):
        return []
    component = _exported_component(facts)
    if component is None or _normalize(component.name) == _normalize(facts.stem):
        return []
    return [
        Hit(
            line=component.line,
            column=component.column,
            message=(
                f"Exported component '{component.name}' does not match file name "
                f"'{facts.path.name}' (expected '{to_pascal_case(facts.stem)}')"
            ),
        )
    ]


RULES = (
    Rule(
        id="component-naming",
        name="Component naming",
        category=CATEGORY,
        severity="warning",
        evaluate=_component_naming,
        applies_to=source_files,
    ),
    Rule(
        id="variable-naming",
        name="Variable and function naming",
        category=CATEGORY,
        severity="warning",
        evaluate=_variable_naming,
        applies_to=source_files,
    ),
    Rule(
        id="type-naming",
        name="Type naming",
        category=CATEGORY,
        severity="warning",
        evaluate=_type_naming,
        applies_to=source_files,
    ),
    Rule(
        id="component-filename-mismatch",
        name="Component / file name mismatch",
        category=CATEGORY,
        severity="warning",
        evaluate=_component_filename_mismatch,
        applies_to=lambda facts: facts.is_component_file and not facts.is_manifest,
        fix="Rename the file to the kebab-case form of the component name, or rename the component",
    ),
)
