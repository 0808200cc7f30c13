# Raw <img> elements bypass the framework's optimized Image component.

from __future__ import annotations

from typing import Any

from archguard.facts import FileFacts
from archguard.rules.base import Hit, Rule, source_files


def _raw_img_element(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    return [
        Hit(
            line=img.line,
            column=img.column,
            message="Raw <img> element used instead of the optimized Image component from next/image",
        )
        for img in facts.raw_img_elements
    ]


RULES = (
    Rule(
        id="raw-img-element",
        name="Raw image element",
        category="assets",
        severity="error",
        evaluate=_raw_img_element,
        applies_to=source_files,
        fix="import Image from 'next/image' and render <Image src=... width=... height=... alt=... />",
    ),
)
