# Pydantic data models for findings and reports: Finding, Location, ValidationReport.

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

Severity = Literal["error", "warning", "info"]

SEVERITY_ORDER: dict[str, int] = {"error": 0, "warning": 1, "info": 2}

# Wire format is camelCase; Python code uses snake_case names.
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, arbitrary_types_allowed=True)


class Location(BaseModel):
    """Where in the source a finding was reported (file, line, optional column)."""

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: Optional[int] = Field(None, ge=1, description="1-based column; None for text heuristics")

    model_config = {"arbitrary_types_allowed": True}


class Finding(BaseModel):
    """A single rule violation (e.g. missing "use client" at line 3)."""

    rule_id: str
    severity: Severity = "warning"
    category: str = "general"
    message: str
    location: Location
    context: str = Field(default="", description="Trimmed source line the finding points at")
    fix: Optional[str] = None

    model_config = _CAMEL

    def format(self) -> str:
        """Grep-like one-liner: path:line[:col]: SEVERITY [rule] message."""
        loc = self.location
        position = f"{loc.line}:{loc.column}" if loc.column is not None else f"{loc.line}"
        return f"{loc.path}:{position}: {self.severity.upper()} [{self.rule_id}] {self.message}"

    def sort_key(self) -> tuple:
        loc = self.location
        return (str(loc.path), loc.line, loc.column or 0, self.rule_id, self.message)


class ComponentStats(BaseModel):
    """Counts re-derived from FileFacts, independent of which rules fired."""

    total: int = 0
    client: int = 0
    server: int = 0
    with_cache: int = 0
    with_fetch: int = 0
    with_suspense: int = 0
    size_violations: int = 0
    parse_failures: int = 0

    model_config = _CAMEL


class IssueCount(BaseModel):
    rule_id: str
    count: int
    severity: Severity
    example: str

    model_config = _CAMEL


class ValidationReport(BaseModel):
    """Aggregate result for one file or one directory."""

    target: Path
    family: str
    errors: list[Finding] = Field(default_factory=list)
    warnings: list[Finding] = Field(default_factory=list)
    info: list[Finding] = Field(default_factory=list)
    files_checked: int = 0
    files: list[Path] = Field(default_factory=list)
    component_stats: ComponentStats = Field(default_factory=ComponentStats)
    most_common_issues: list[IssueCount] = Field(default_factory=list)
    summary: str = ""

    model_config = _CAMEL

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def findings(self) -> list[Finding]:
        return [*self.errors, *self.warnings, *self.info]
