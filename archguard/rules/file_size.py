# File size limits: hard ceiling (error) and an approach warning.

from __future__ import annotations

from typing import Any

from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule, source_files

CATEGORY = "size"

DEFAULT_MAX_LINES = 500
DEFAULT_WARNING_RATIO = 0.8


def _limits(config: Any) -> tuple[int, int]:
    limit = getattr(config, "max_lines", DEFAULT_MAX_LINES)
    ratio = getattr(config, "size_warning_ratio", DEFAULT_WARNING_RATIO)
    return limit, int(limit * ratio)


def _file_size_limit(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    limit, _ = _limits(config)
    if facts.line_count <= limit:
        return []
    return [
        Hit(
            line=limit + 1,
            message=(
                f"File has {facts.line_count} lines, exceeding the {limit}-line limit "
                f"by {facts.line_count - limit}"
            ),
        )
    ]


def _file_size_warning(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    limit, warn_at = _limits(config)
    if not warn_at <= facts.line_count <= limit:
        return []
    return [
        Hit(
            line=1,
            message=(
                f"File has {facts.line_count} lines, {limit - facts.line_count} short of "
                f"the {limit}-line limit"
            ),
        )
    ]


RULES = (
    Rule(
        id="file-size-limit",
        name="File size limit",
        category=CATEGORY,
        severity="error",
        evaluate=_file_size_limit,
        applies_to=source_files,
        fix="Split the file: move sub-components, hooks or helpers into their own modules",
    ),
    Rule(
        id="file-size-warning",
        name="File size approaching limit",
        category=CATEGORY,
        severity="warning",
        evaluate=_file_size_warning,
        applies_to=source_files,
        fix="Consider extracting sub-components or helpers before the file hits the limit",
    ),
)
