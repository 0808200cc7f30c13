# Hardcoded secrets detection: API keys, tokens and passwords bound to string literals.

from __future__ import annotations

import math
import re
from typing import Any, Optional

from archguard.facts import FileFacts, StringBinding
from archguard.rules.base import Hit, Rule, source_files

# suspicious variable / property names (case-insensitive)
_NAME_HINTS = re.compile(
    r"(?:"
    r"pass(word)?|pwd|secret|token|api[_-]?key|apikey|bearer|"
    r"private[_-]?key|ssh[_-]?key|access[_-]?key|client[_-]?secret|"
    r"auth[_-]?key|credentials?|signing[_-]?key|jwt|"
    r"db[_-]?pass|conn(ection)?[_-]?string|dsn"
    r")",
    re.IGNORECASE,
)

# token-like shapes
_HEX_LONG = re.compile(r"\b[0-9a-fA-F]{32,}\b")
_BASE64ISH = re.compile(r"\b[A-Za-z0-9+/_-]{32,}={0,2}")
_JWT = re.compile(r"\beyJ[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\b")

# common provider prefixes (best-effort)
_AWS_AKIA = re.compile(r"\bAKIA[0-9A-Z]{16}\b")
_GCP_APIKEY = re.compile(r"\bAIza[0-9A-Za-z\-_]{35}\b")
_STRIPE_KEY = re.compile(r"\b(?:sk|rk)_(?:live|test)_[0-9A-Za-z]{16,}\b")
_GITHUB_TOKEN = re.compile(r"\bgh[pousr]_[0-9A-Za-z]{30,}\b")

_PEM_BEGIN = re.compile(r"-----BEGIN [A-Z ]+-----")

# values that are obviously not real credentials
_PLACEHOLDER = re.compile(r"^(?:x+|\*+|changeme|your[_-].*|<.*>|\$\{.*\}|example.*|test|dummy|todo)$", re.IGNORECASE)

# endpoints, routes, header names and form labels named after what they carry
_KEBAB_IDENTIFIER = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)+$")
_URL_CREDENTIALS = re.compile(r"://[^/@\s:]+:[^/@\s]+@")


def _shannon_entropy(s: str) -> float:
    if not s:
        return 0.0
    freq: dict[str, int] = {}
    for ch in s:
        freq[ch] = freq.get(ch, 0) + 1
    ent = 0.0
    n = len(s)
    for c in freq.values():
        p = c / n
        ent -= p * math.log2(p)
    return ent


def _classify(binding: StringBinding) -> Optional[str]:
    """Return a message when the binding looks like a secret, else None."""
    value = binding.value
    if len(value) < 8:
        return None

    if _PEM_BEGIN.search(value):
        return f"Embedded PEM material assigned to '{binding.name}' (possible certificate or private key)"
    if _JWT.search(value):
        return f"JWT-like token hardcoded in '{binding.name}'"
    if _AWS_AKIA.search(value) or _GCP_APIKEY.search(value) or _STRIPE_KEY.search(value) or _GITHUB_TOKEN.search(value):
        return f"Cloud/provider API key pattern hardcoded in '{binding.name}'"

    if not _NAME_HINTS.search(binding.name):
        return None
    stripped = value.strip()
    if " " in stripped or _PLACEHOLDER.match(stripped):
        # labels and placeholders, not credentials
        return None
    if _URL_CREDENTIALS.search(stripped):
        return f"Credentials embedded in URL assigned to '{binding.name}'"

    ent = _shannon_entropy(value)
    looks_tokenish = bool(_HEX_LONG.search(value) or _BASE64ISH.search(value))
    if not looks_tokenish and (
        "/" in stripped or stripped.endswith(":") or _KEBAB_IDENTIFIER.match(stripped)
    ):
        return None
    if looks_tokenish and ent >= 3.5:
        return f"High-entropy token-like string hardcoded in '{binding.name}'"
    if ent >= 2.5:
        return f"String literal assigned to suspicious identifier '{binding.name}' (possible hardcoded secret)"
    return None


def _hardcoded_secret(facts: FileFacts, source: str, config: Any) -> list[Hit]:
    hits = []
    for binding in facts.string_bindings:
        message = _classify(binding)
        if message is not None:
            hits.append(Hit(line=binding.line, column=binding.column, message=message))
    return hits


RULES = (
    Rule(
        id="hardcoded-secret",
        name="Hardcoded secret",
        category="security",
        severity="error",
        evaluate=_hardcoded_secret,
        applies_to=source_files,
        fix="Move the value to a server-side environment variable or secret manager and rotate it if it was real",
    ),
)
