from __future__ import annotations

"""
Checker configuration: which rules are enabled and the thresholds they read.

Rules are grouped into families. Each tool call and CLI run picks one family
and gets its own Config; the dependency policy for the request is attached to a
copy of that Config by the aggregator, so concurrent requests never share it.
"""

from dataclasses import dataclass, field
from typing import Sequence

from archguard.analyzer import SOURCE_SUFFIXES
from archguard.policy import DEFAULT_POLICY_FILE, DependencyPolicy
from archguard.rules import (
    assets,
    boundaries,
    data_fetching,
    dependency_policy,
    env_exposure,
    file_size,
    formatting,
    hardcoded_secrets,
    naming,
    server_only_imports,
    suspense,
    type_safety,
    unused_variables,
)
from archguard.rules.base import Rule
from archguard.traversal import DEFAULT_IGNORE_DIRS, DEFAULT_MAX_DEPTH


def _unique(*groups: Sequence[Rule]) -> tuple[Rule, ...]:
    seen: dict[str, Rule] = {}
    for group in groups:
        for rule in group:
            seen.setdefault(rule.id, rule)
    return tuple(seen.values())


ARCHITECTURE_RULES = _unique(
    boundaries.RULES,
    data_fetching.RULES,
    suspense.RULES,
    file_size.RULES,
    assets.RULES,
    hardcoded_secrets.RULES,
    env_exposure.RULES,
    server_only_imports.RULES,
)
STYLE_RULES = _unique(
    naming.RULES,
    unused_variables.RULES,
    type_safety.RULES,
    formatting.RULES,
    file_size.RULES,
)
DEPENDENCY_RULES = _unique(
    dependency_policy.RULES,
    server_only_imports.RULES,
)

FAMILIES: dict[str, tuple[Rule, ...]] = {
    "architecture": ARCHITECTURE_RULES,
    "style": STYLE_RULES,
    "dependency": DEPENDENCY_RULES,
    "all": _unique(ARCHITECTURE_RULES, STYLE_RULES, DEPENDENCY_RULES),
}


@dataclass
class Config:
    """
    Checker configuration for one run.

    rules decides what is reported; everything else tunes scanning and thresholds.
    """

    rules: Sequence[Rule] = field(default_factory=list)
    family: str = "architecture"

    # scanning
    extensions: frozenset[str] = SOURCE_SUFFIXES
    include_manifests: bool = False
    ignore_dirs: frozenset[str] = frozenset(DEFAULT_IGNORE_DIRS)
    ignore_patterns: tuple[str, ...] = ()
    max_depth: int = DEFAULT_MAX_DEPTH
    follow_symlinks: bool = False
    jobs: int = 1

    # thresholds
    max_lines: int = file_size.DEFAULT_MAX_LINES
    size_warning_ratio: float = file_size.DEFAULT_WARNING_RATIO
    max_line_length: int = formatting.DEFAULT_MAX_LINE_LENGTH
    long_line_tolerance: int = formatting.DEFAULT_LONG_LINE_TOLERANCE

    # reporting
    ci_strict: bool = False

    # dependency policy
    policy_file: str = DEFAULT_POLICY_FILE
    policy: DependencyPolicy = field(default_factory=DependencyPolicy)

    @property
    def uses_policy(self) -> bool:
        return any(rule.category == dependency_policy.CATEGORY for rule in self.rules)


def get_default_config(family: str = "architecture", **overrides) -> Config:
    """
    Return the configuration for a rule family ("architecture", "style",
    "dependency" or "all"), with keyword overrides applied.

    Raises:
        KeyError: unknown family.
    """
    rules = FAMILIES[family]
    config = Config(rules=list(rules), family=family)
    config.include_manifests = config.uses_policy
    for name, value in overrides.items():
        if not hasattr(config, name):
            raise TypeError(f"Unknown config option: {name}")
        setattr(config, name, value)
    return config
