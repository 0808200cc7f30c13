"""
Text-level formatting heuristics: long lines, mixed indentation, semicolon consistency.

These checks read raw lines on purpose. A formatter would be exact; these are
cheap, tolerate false positives, and work on files that do not parse at all.
Semicolon checks only look at single-line statements that start with a
declaration/import/return keyword, since JSX and multi-line expressions make
"line ends with ;" meaningless elsewhere.
"""

from __future__ import annotations

import re
from typing import Any

from archguard.context import source_lines
from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule, source_files

CATEGORY = "formatting"

DEFAULT_MAX_LINE_LENGTH = 100
DEFAULT_LONG_LINE_TOLERANCE = 5

_URL = re.compile(r"https?://")
_TAB_INDENT = re.compile(r"^\t+\S")
_SPACE_INDENT = re.compile(r"^ {2,}\S")
_STATEMENT = re.compile(r"^(?:import|export|const|let|var|return|throw)\b")
_CONTINUES = ("{", "(", "[", ",", "=", "=>", "?", ":", "&&", "||", "+", "`")


def _long_lines(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    limit = getattr(config, "max_line_length", DEFAULT_MAX_LINE_LENGTH)
    tolerance = getattr(config, "long_line_tolerance", DEFAULT_LONG_LINE_TOLERANCE)
    long_lines = [
        lineno
        for lineno, line in enumerate(source_lines(source), start=1)
        if len(line) > limit and not _URL.search(line)
    ]
    if len(long_lines) <= tolerance:
        return []
    return [
        Hit(
            line=long_lines[0],
            message=f"{len(long_lines)} lines exceed {limit} characters (first at line {long_lines[0]})",
        )
    ]


def _mixed_indentation(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    tabs: list[int] = []
    spaces: list[int] = []
    for lineno, line in enumerate(source_lines(source), start=1):
        if _TAB_INDENT.match(line):
            tabs.append(lineno)
        elif _SPACE_INDENT.match(line):
            spaces.append(lineno)
    if not tabs or not spaces:
        return []
    minority = tabs if len(tabs) <= len(spaces) else spaces
    return [
        Hit(
            line=minority[0],
            column=1,
            message=(
                f"File mixes tab indentation ({len(tabs)} lines) and space indentation "
                f"({len(spaces)} lines)"
            ),
        )
    ]


def _semicolon_consistency(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    with_semicolon: list[int] = []
    without: list[int] = []
    for lineno, line in enumerate(source_lines(source), start=1):
        stripped = line.strip()
        if not _STATEMENT.match(stripped) or stripped.endswith(_CONTINUES):
            continue
        if stripped.endswith(";"):
            with_semicolon.append(lineno)
        elif not stripped.endswith(("}", ")", "]", ">")):
            without.append(lineno)
    if not with_semicolon or not without:
        return []
    minority = without if len(without) <= len(with_semicolon) else with_semicolon
    style = "omits" if minority is without else "uses"
    return [
        Hit(
            line=minority[0],
            message=(
                f"Inconsistent semicolons: {len(with_semicolon)} statements end with ';' and "
                f"{len(without)} do not; line {minority[0]} {style} one"
            ),
        )
    ]


RULES = (
    Rule(
        id="long-lines",
        name="Long lines",
        category=CATEGORY,
        severity="warning",
        evaluate=_long_lines,
        applies_to=source_files,
        fix="Let the formatter wrap long lines, or extract long expressions into variables",
    ),
    Rule(
        id="mixed-indentation",
        name="Mixed indentation",
        category=CATEGORY,
        severity="warning",
        evaluate=_mixed_indentation,
        applies_to=source_files,
        fix="Pick spaces or tabs for the whole project and run the formatter",
    ),
    Rule(
        id="semicolon-consistency",
        name="Semicolon consistency",
        category=CATEGORY,
        severity="warning",
        evaluate=_semicolon_consistency,
        applies_to=source_files,
        fix="Run the formatter so every statement follows the same semicolon style",
    ),
)
