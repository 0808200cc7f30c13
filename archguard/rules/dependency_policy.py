# Dependency-policy rules over package.json: denied packages, packages missing from
# the allow-list, and installed versions outside the policy's range.

from __future__ import annotations

from typing import Any, Optional

from archguard.facts import FileFacts
from archguard.policy import DependencyPolicy, coerce, satisfies
from archguard.rules.base import Hit, Rule, manifests

CATEGORY = "dependency"


def _policy(config: Any) -> DependencyPolicy:
    return getattr(config, "policy", None) or DependencyPolicy()


def _disallowed_dependency(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    policy = _policy(config)
    hits = []
    for name in sorted(facts.dependencies):
        if policy.status(name) != "denied":
            continue
        note = policy.disallowed.get(name)
        hits.append(
            Hit(
                line=facts.dependency_lines.get(name, 1),
                message=f"Disallowed dependency: {name} - {note}" if note else f"Disallowed dependency: {name}",
            )
        )
    return hits


def _unapproved_dependency(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    policy = _policy(config)
    if not policy.has_allow_list:
        return []
    return [
        Hit(
            line=facts.dependency_lines.get(name, 1),
            message=f"Dependency '{name}' is not in the approved list",
        )
        for name in sorted(facts.dependencies)
        if policy.status(name) == "unlisted"
    ]


def _effective_version(facts: FileFacts, name: str) -> Optional[str]:
    installed = facts.installed_versions.get(name)
    if installed:
        return installed
    declared = facts.dependencies.get(name, "")
    if declared.startswith(("workspace:", "file:", "link:", "git", "http")) or coerce(declared) is None:
        return None
    major, minor, patch = coerce(declared)  # type: ignore[misc]
    return f"{major}.{minor}.{patch}"


def _dependency_version(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    policy = _policy(config)
    hits = []
    for name in sorted(facts.dependencies):
        if policy.status(name) != "approved":
            continue
        constraint = policy.constraint(name)
        version = _effective_version(facts, name)
        if constraint is None or version is None or satisfies(version, constraint):
            continue
        origin = "installed" if name in facts.installed_versions else "declared"
        hits.append(
            Hit(
                line=facts.dependency_lines.get(name, 1),
                message=(
                    f"Dependency '{name}' {origin} version {version} does not satisfy "
                    f"policy version {constraint}"
                ),
                fix=f"Install a version of {name} matching {constraint}",
            )
        )
    return hits


RULES = (
    Rule(
        id="disallowed-dependency",
        name="Disallowed dependency",
        category=CATEGORY,
        severity="error",
        evaluate=_disallowed_dependency,
        applies_to=manifests,
        fix="Remove the package and use the alternative named in the dependency policy",
    ),
    Rule(
        id="unapproved-dependency",
        name="Unapproved dependency",
        category=CATEGORY,
        severity="warning",
        evaluate=_unapproved_dependency,
        applies_to=manifests,
        fix="Get the package approved and add it to the dependency policy, or remove it",
    ),
    Rule(
        id="dependency-version",
        name="Dependency version outside policy",
        category=CATEGORY,
        severity="warning",
        evaluate=_dependency_version,
        applies_to=manifests,
    ),
)
