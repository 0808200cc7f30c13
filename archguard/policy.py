"""
Dependency policy: parse the project's allow/deny document and answer
"may this project use that package?".

The policy lives in a markdown file at the project root (by default
`.dependency-policy.md`):

    ## Approved Dependencies
    | Package | Version | Notes |
    |---------|---------|-------|
    | next    | ^15.0.0 | Framework |

    ## Disallowed Dependencies
    | Package | Version | Notes |
    |---------|---------|-------|
    | moment  | (disallowed) | Use date-fns |

    ## Dependency Guidelines
    - Prefer packages with first-party TypeScript types

A package listed in both sections is denied. Policies are parsed, never written.

Loaded policies are kept in a PolicyCache keyed by the resolved project root
and policy file name; an entry is reused only while the file's mtime is
unchanged.
"""

from __future__ import annotations

import logging
import posixpath
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

logger = logging.getLogger(__name__)

DEFAULT_POLICY_FILE = ".dependency-policy.md"

PackageStatus = Literal["denied", "approved", "unlisted"]

_HEADING = re.compile(r"^#{2,6}\s+(.+?)\s*#*\s*$")
_SEPARATOR_ROW = re.compile(r"^\|?[\s:|-]+\|?$")
_NO_CONSTRAINT = frozenset({"", "*", "x", "-", "any", "latest"})
_DISALLOWED_MARKER = "(disallowed)"


class PolicyError(Exception):
    """The policy document is missing, unreadable or has no recognizable content."""


@dataclass(frozen=True)
class DependencyPolicy:
    approved: dict[str, str] = field(default_factory=dict)
    disallowed: dict[str, str] = field(default_factory=dict)
    notes: dict[str, str] = field(default_factory=dict)
    guidelines: tuple[str, ...] = ()
    source: Optional[Path] = None

    @property
    def has_allow_list(self) -> bool:
        return bool(self.approved)

    @property
    def is_empty(self) -> bool:
        return not self.approved and not self.disallowed

    def status(self, package: str) -> PackageStatus:
        # deny wins when a package is listed in both sections
        if package in self.disallowed:
            return "denied"
        if package in self.approved:
            return "approved"
        return "unlisted"

    def constraint(self, package: str) -> Optional[str]:
        value = self.approved.get(package, "").strip()
        return None if value.lower() in _NO_CONSTRAINT else value


def _section_kind(heading: str) -> Optional[str]:
    lowered = heading.lower()
    if "disallowed" in lowered or "denied" in lowered or "banned" in lowered:
        return "disallowed"
    if "approved" in lowered or "allowed" in lowered:
        return "approved"
    if "guideline" in lowered:
        return "guidelines"
    return None


def _cells(row: str) -> list[str]:
    cells = [cell.strip().strip("`").strip() for cell in row.strip().strip("|").split("|")]
    return cells


def parse_policy(text: str, source: Optional[Path] = None) -> DependencyPolicy:
    """
    Parse a policy document.

    Raises:
        PolicyError: when the document has neither dependency tables nor guidelines.
    """
    approved: dict[str, str] = {}
    disallowed: dict[str, str] = {}
    notes: dict[str, str] = {}
    guidelines: list[str] = []
    section: Optional[str] = None

    for line in text.splitlines():
        stripped = line.strip()
        heading = _HEADING.match(stripped)
        if heading:
            section = _section_kind(heading.group(1))
            continue
        if section is None or not stripped:
            continue

        if section == "guidelines":
            if stripped.startswith(("-", "*")):
                guidelines.append(stripped.lstrip("-* ").strip())
            continue

        if not stripped.startswith("|") or _SEPARATOR_ROW.match(stripped):
            continue
        cells = _cells(stripped)
        name = cells[0] if cells else ""
        if not name or name.lower() == "package":
            continue
        version = cells[1] if len(cells) > 1 else ""
        note = cells[2] if len(cells) > 2 else ""
        if note:
            notes.setdefault(name, note)
        if section == "disallowed" or version.lower() == _DISALLOWED_MARKER:
            disallowed[name] = note
        else:
            approved[name] = version

    if not approved and not disallowed and not guidelines:
        raise PolicyError("no Approved/Disallowed dependency tables found")

    both = sorted(set(approved) & set(disallowed))
    if both:
        logger.warning("Packages listed as both approved and disallowed (treated as disallowed): %s", ", ".join(both))

    return DependencyPolicy(
        approved=approved,
        disallowed=disallowed,
        notes=notes,
        guidelines=tuple(guidelines),
        source=source,
    )


class PolicyCache:
    """
    Thread-safe cache of parsed policies.

    Key: (resolved project root, policy file name). Each entry remembers the
    file's mtime and is re-parsed when it changes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[Path, str], tuple[int, DependencyPolicy]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def load(self, project_root: Path, filename: str = DEFAULT_POLICY_FILE) -> DependencyPolicy:
        """
        Return the policy for project_root, parsing it only when new or modified.

        Raises:
            PolicyError: missing, unreadable or malformed policy document.
        """
        root = project_root.resolve()
        path = root / filename
        key = (root, filename)
        try:
            mtime = path.stat().st_mtime_ns
        except FileNotFoundError:
            with self._lock:
                self._entries.pop(key, None)
            raise PolicyError(f"{filename} not found at {root}") from None
        except OSError as e:
            raise PolicyError(f"cannot access {path}: {e}") from e

        with self._lock:
            cached = self._entries.get(key)
        if cached is not None and cached[0] == mtime:
            logger.debug("Policy cache hit for %s", path)
            return cached[1]

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PolicyError(f"cannot read {path}: {e}") from e
        policy = parse_policy(text, source=path)
        logger.info(
            "Loaded dependency policy %s: %d approved, %d disallowed",
            path,
            len(policy.approved),
            len(policy.disallowed),
        )
        with self._lock:
            self._entries[key] = (mtime, policy)
        return policy

    def invalidate(self, project_root: Optional[Path] = None) -> None:
        """Drop one project's entries, or everything when project_root is None."""
        with self._lock:
            if project_root is None:
                self._entries.clear()
                return
            root = project_root.resolve()
            for key in [k for k in self._entries if k[0] == root]:
                del self._entries[key]


policy_cache = PolicyCache()


def find_project_root(target: Path, filename: str = DEFAULT_POLICY_FILE) -> Path:
    """
    Nearest directory at or above target holding the policy file or a package.json.

    Falls back to the target directory itself (or a file target's parent).
    """
    start = target if target.is_dir() else target.parent
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / filename).is_file() or (candidate / "package.json").is_file():
            return candidate
    return start


# --- semver ranges -------------------------------------------------------------

Version = tuple[int, int, int]

_LOOSE_VERSION = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_COMPARATOR = re.compile(
    r"^(\^|~>?|>=|<=|>|<|=)?v?(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?(?:[-+][0-9A-Za-z.-]*)?$"
)
_HYPHEN_RANGE = re.compile(r"^(\S+)\s+-\s+(\S+)$")
_INFINITY: Version = (1 << 31, 0, 0)


def coerce(text: str) -> Optional[Version]:
    """First x[.y[.z]] found in text as a full version, e.g. '^15.1' -> (15, 1, 0)."""
    match = _LOOSE_VERSION.search(text)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor or 0), int(patch or 0)


def _parts(match: re.Match) -> list[int]:
    numbers: list[int] = []
    for part in match.groups()[1:]:
        if part is None or part in ("x", "X", "*"):
            break
        numbers.append(int(part))
    return numbers


def _bump(numbers: list[int]) -> Version:
    """Exclusive upper bound of a partial version: 1 -> 2.0.0, 1.2 -> 1.3.0."""
    if not numbers:
        return _INFINITY
    if len(numbers) == 1:
        return numbers[0] + 1, 0, 0
    if len(numbers) == 2:
        return numbers[0], numbers[1] + 1, 0
    return numbers[0], numbers[1], numbers[2] + 1


def _satisfies_comparator(version: Version, comparator: str) -> bool:
    match = _COMPARATOR.match(comparator)
    if match is None:
        return False
    op = match.group(1) or "="
    numbers = _parts(match)
    base: Version = tuple(numbers + [0] * (3 - len(numbers)))  # type: ignore[assignment]

    if op == "=":
        return base <= version < _bump(numbers) if len(numbers) < 3 else version == base
    if op == ">=":
        return version >= base
    if op == ">":
        return version >= _bump(numbers) if len(numbers) < 3 else version > base
    if op == "<":
        return version < base
    if op == "<=":
        return version < _bump(numbers) if len(numbers) < 3 else version <= base
    if op.startswith("~"):
        upper = (base[0], base[1] + 1, 0) if len(numbers) >= 2 else (base[0] + 1, 0, 0)
        return base <= version < upper
    # caret: lock the left-most non-zero component
    major, minor, patch = base
    if major > 0 or len(numbers) == 1:
        upper = (major + 1, 0, 0)
    elif minor > 0 or len(numbers) == 2:
        upper = (0, minor + 1, 0)
    else:
        upper = (0, 0, patch + 1)
    return base <= version < upper


def _satisfies_set(version: Version, comparators: str) -> bool:
    comparators = re.sub(r"(>=|<=|>|<|=|\^|~>?)\s+", r"\1", comparators.strip())
    hyphen = _HYPHEN_RANGE.match(comparators)
    if hyphen:
        return _satisfies_comparator(version, ">=" + hyphen.group(1)) and _satisfies_comparator(
            version, "<=" + hyphen.group(2)
        )
    return all(_satisfies_comparator(version, part) for part in comparators.split())


def satisfies(version: str, constraint: str) -> bool:
    """
    npm-style range check for the common forms: exact, x-ranges, ^, ~,
    comparators, hyphen ranges and || unions. Unparseable versions never satisfy.
    """
    parsed = coerce(version)
    if parsed is None:
        return False
    constraint = constraint.strip()
    if constraint.lower() in _NO_CONSTRAINT:
        return True
    return any(_satisfies_set(parsed, alternative) for alternative in constraint.split("||") if alternative.strip())


# --- import permission -------------------------------------------------------------

_PROJECT_ALIASES = ("@/", "~/")


@dataclass(frozen=True)
class ImportDecision:
    allowed: bool
    reason: str
    source: str
    target: str


def package_name(target: str) -> str:
    """Root package of a bare specifier: 'lodash/fp' -> 'lodash', '@scope/pkg/x' -> '@scope/pkg'."""
    parts = target.split("/")
    if target.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2])
    return parts[0]


def _segments(path: str) -> list[str]:
    return [s for s in path.replace("\\", "/").split("/") if s and s != "."]


def check_import(source: str, target: str, policy: DependencyPolicy) -> ImportDecision:
    """
    Decide whether module `source` may import `target`.

    Bare package specifiers are checked against the policy. Relative and
    project-alias specifiers are checked against two boundaries: shared
    components must not reach into app/ route code, and server-only modules
    must not pull in client components.
    """
    if target.startswith("node:"):
        return ImportDecision(True, f"'{target}' is a Node.js built-in module", source, target)

    is_relative = target.startswith((".", "/"))
    if not is_relative and not target.startswith(_PROJECT_ALIASES):
        name = package_name(target)
        status = policy.status(name)
        if status == "denied":
            note = policy.disallowed.get(name) or "listed as disallowed"
            return ImportDecision(False, f"Import of '{name}' is disallowed: {note}", source, target)
        if status == "approved":
            return ImportDecision(True, f"Import of '{name}' is allowed", source, target)
        if policy.has_allow_list:
            return ImportDecision(
                False, f"Import of '{name}' is not in the approved dependencies list", source, target
            )
        return ImportDecision(True, f"No dependency policy restricts '{name}'", source, target)

    source_posix = source.replace("\\", "/")
    if is_relative:
        resolved = posixpath.normpath(posixpath.join(posixpath.dirname(source_posix), target))
    else:
        resolved = target[2:]
    source_parts = _segments(posixpath.dirname(source_posix))
    target_parts = _segments(resolved)

    if "components" in source_parts and "app" in target_parts and "components" not in target_parts:
        return ImportDecision(
            False, "Components cannot import from the app/ directory per architecture rules", source, target
        )

    source_name = posixpath.basename(source_posix).lower()
    target_name = target_parts[-1].lower() if target_parts else ""
    source_is_server = "server" in source_parts or re.search(r"[.\-_]server\b", source_name) is not None
    target_is_client = "client" in target_parts or re.search(r"[\-_]client\b", target_name) is not None
    if source_is_server and target_is_client:
        return ImportDecision(
            False, "Server modules cannot import client components per architecture rules", source, target
        )

    return ImportDecision(True, f"Import from '{source}' to '{target}' is allowed", source, target)
