# Rule contract: every rule is plain data (id, severity, applicability, evaluator),
# not a subclass. Rule modules expose a RULES tuple; config.py groups them into families.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from archguard.context import source_lines
from archguard.facts import FileFacts
from archguard.findings.models import Finding, Location, Severity


@dataclass(frozen=True)
class Hit:
    """What an evaluator reports; Rule.run() turns it into a Finding."""

    line: int
    message: str
    column: Optional[int] = None
    fix: Optional[str] = None


def _always(facts: FileFacts) -> bool:
    return True


def source_files(facts: FileFacts) -> bool:
    """Applicability for everything except package.json manifests."""
    return not facts.is_manifest


def manifests(facts: FileFacts) -> bool:
    return facts.is_manifest


def components(facts: FileFacts) -> bool:
    """Applicability for .tsx / .jsx files, the only ones that can render JSX."""
    return facts.extension in (".tsx", ".jsx")


Evaluator = Callable[[FileFacts, str, Any], list[Hit]]


@dataclass(frozen=True)
class Rule:
    """
    One named check.

    - id: stable identifier reported in findings (e.g. "missing-use-client")
    - name: human-readable rule name
    - category: rule family the finding is grouped under
    - severity: "error" | "warning" | "info"
    - evaluate(facts, source, config) -> list[Hit]: pure, must not mutate facts
    - applies_to(facts) -> bool: cheap pre-filter
    - fix: default remediation text when a Hit carries none
    """

    id: str
    name: str
    category: str
    severity: Severity
    evaluate: Evaluator
    applies_to: Callable[[FileFacts], bool] = _always
    fix: Optional[str] = None

    def run(self, facts: FileFacts, source: str, config: Any) -> list[Finding]:
        """Evaluate the rule on one file and wrap its hits into Findings."""
        if not self.applies_to(facts):
            return []
        lines = source_lines(source)
        findings: list[Finding] = []
        for hit in self.evaluate(facts, source, config):
            line = max(hit.line, 1)
            context = lines[line - 1].strip() if line <= len(lines) else ""
            findings.append(
                Finding(
                    rule_id=self.id,
                    severity=self.severity,
                    category=self.category,
                    message=hit.message,
                    location=Location(path=facts.path, line=line, column=hit.column),
                    context=context,
                    fix=hit.fix or self.fix,
                )
            )
        return findings


def describe_lines(lines: list[int], limit: int = 5) -> str:
    """'3, 7, 9' (or '3, 7, 9, ... (+4 more)') for messages."""
    shown = ", ".join(str(n) for n in lines[:limit])
    if len(lines) > limit:
        shown += f", ... (+{len(lines) - limit} more)"
    return shown
