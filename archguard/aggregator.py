"""
Aggregator: run a rule family over one file or a whole tree and build the report.

Per-file work (read, analyze, evaluate rules) is isolated: an unreadable file,
a syntax error or a crashing rule only affects that file's contribution. Only a
missing target aborts the call (InputError). A scan can be cancelled between
files through a threading.Event (ScanCancelled).
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from archguard.analyzer import analyze
from archguard.config import Config, get_default_config
from archguard.context import source_lines
from archguard.facts import FileFacts
from archguard.findings.models import ComponentStats, Finding, IssueCount, Location, ValidationReport
from archguard.policy import DependencyPolicy, PolicyCache, PolicyError, find_project_root, policy_cache
from archguard.traversal import find_source_files

logger = logging.getLogger(__name__)

MOST_COMMON_LIMIT = 5

ProgressCallback = Callable[[int, int, Path], None]


class InputError(Exception):
    """The requested path does not exist or cannot be checked in the requested mode."""


class ScanCancelled(Exception):
    """The caller abandoned the scan; raised between files."""


@dataclass
class FileResult:
    path: Path
    facts: Optional[FileFacts]
    findings: list[Finding] = field(default_factory=list)


def _dedupe(findings: Sequence[Finding]) -> list[Finding]:
    """Drop exact (rule, line, message) repeats within one file and sort the rest."""
    seen: set[tuple[str, int, str]] = set()
    unique: list[Finding] = []
    for finding in sorted(findings, key=Finding.sort_key):
        key = (finding.rule_id, finding.location.line, finding.message)
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)
    return unique


def evaluate_file(path: Path, config: Config) -> FileResult:
    """Read, analyze and run every enabled rule on one file. Never raises for file content."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.warning("Failed to read file %s: %s", path, e)
        return FileResult(
            path=path,
            facts=None,
            findings=[
                Finding(
                    rule_id="file-read-error",
                    severity="warning",
                    category="input",
                    message=f"Could not read {path.name}: {e.strerror or e}",
                    location=Location(path=path, line=1),
                )
            ],
        )

    text = raw.decode("utf-8", errors="replace")
    facts = analyze(path, raw)
    findings: list[Finding] = []

    if facts.parse_degraded:
        line = facts.parse_error_line or 1
        lines = source_lines(text)
        findings.append(
            Finding(
                rule_id="parse-error",
                severity="warning",
                category="parser",
                message=(
                    f"{path.name} could not be parsed (syntax error near line {line}); "
                    "results for this file come from text heuristics"
                ),
                location=Location(path=path, line=line),
                context=lines[line - 1].strip() if line <= len(lines) else "",
            )
        )

    for rule in config.rules:
        try:
            findings.extend(rule.run(facts, text, config))
        except Exception as exc:
            logger.exception("Rule %s failed on %s: %s", rule.id, path, exc)
            continue

    return FileResult(path=path, facts=facts, findings=_dedupe(findings))


def _check_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise ScanCancelled("scan cancelled by caller")


def _evaluate_all(
    files: Sequence[Path],
    config: Config,
    cancel: Optional[threading.Event],
    on_file: Optional[ProgressCallback],
) -> list[FileResult]:
    total = len(files)
    results: list[FileResult] = []

    if config.jobs <= 1 or total <= 1:
        for index, path in enumerate(files, start=1):
            _check_cancelled(cancel)
            results.append(evaluate_file(path, config))
            if on_file is not None:
                on_file(index, total, path)
        return results

    pool = ThreadPoolExecutor(max_workers=config.jobs, thread_name_prefix="archguard")
    try:
        futures = [pool.submit(evaluate_file, path, config) for path in files]
        for index, future in enumerate(as_completed(futures), start=1):
            _check_cancelled(cancel)
            result = future.result()
            results.append(result)
            if on_file is not None:
                on_file(index, total, result.path)
    finally:
        pool.shutdown(wait=True, cancel_futures=True)
    results.sort(key=lambda r: r.path)
    return results


def _with_policy(config: Config, target: Path, cache: PolicyCache) -> tuple[Config, Optional[Finding]]:
    """Attach this request's dependency policy to a copy of config."""
    root = find_project_root(target, config.policy_file)
    try:
        policy = cache.load(root, config.policy_file)
    except PolicyError as e:
        logger.warning("Dependency policy unavailable, continuing without it: %s", e)
        warning = Finding(
            rule_id="policy-load-error",
            severity="warning",
            category="dependency",
            message=f"Dependency policy not loaded ({e}); checking without an allow/deny list",
            location=Location(path=root / config.policy_file, line=1),
        )
        return dataclasses.replace(config, policy=DependencyPolicy()), warning
    return dataclasses.replace(config, policy=policy), None


def _component_stats(results: Sequence[FileResult], config: Config) -> ComponentStats:
    stats = ComponentStats()
    for result in results:
        facts = result.facts
        if facts is None:
            stats.parse_failures += 1
            continue
        if facts.is_manifest:
            if facts.parse_degraded:
                stats.parse_failures += 1
            continue
        stats.total += 1
        if facts.has_client_directive:
            stats.client += 1
        elif facts.is_component_file:
            stats.server += 1
        if facts.uses_cache_wrapper:
            stats.with_cache += 1
        if facts.fetch_calls:
            stats.with_fetch += 1
        if facts.uses_suspense:
            stats.with_suspense += 1
        if facts.line_count > config.max_lines:
            stats.size_violations += 1
        if facts.parse_degraded:
            stats.parse_failures += 1
    return stats


def _most_common(findings: Sequence[Finding]) -> list[IssueCount]:
    counts = Counter(f.rule_id for f in findings)
    first: dict[str, Finding] = {}
    for finding in findings:
        first.setdefault(finding.rule_id, finding)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:MOST_COMMON_LIMIT]
    return [
        IssueCount(rule_id=rule_id, count=count, severity=first[rule_id].severity, example=first[rule_id].message)
        for rule_id, count in ranked
    ]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _summary(report: ValidationReport, config: Config) -> str:
    if report.files_checked == 0:
        return f"No matching files found under {report.target}."
    stats = report.component_stats
    parts = [
        f"Analyzed {_plural(report.files_checked, 'file')} "
        f"({stats.server} Server, {stats.client} Client components).",
        f"Found {_plural(len(report.errors), 'error')} and {_plural(len(report.warnings), 'warning')}.",
    ]
    if report.most_common_issues:
        top = report.most_common_issues[0]
        parts.append(f"Most common issue: {top.rule_id} ({top.count}).")
    if stats.parse_failures:
        parts.append(f"{_plural(stats.parse_failures, 'file')} fell back to text heuristics.")
    if config.ci_strict and report.errors:
        parts.append("CI-strict mode: warnings were promoted to errors.")
    return " ".join(parts)


def build_report(
    target: Path,
    config: Config,
    results: Sequence[FileResult],
    extra: Sequence[Finding] = (),
) -> ValidationReport:
    """Merge per-file results into a report. Runs only after every file is evaluated."""
    findings: list[Finding] = list(extra)
    for result in results:
        findings.extend(result.findings)

    if config.ci_strict:
        findings = [f.model_copy(update={"severity": "error"}) if f.severity == "warning" else f for f in findings]

    findings.sort(key=Finding.sort_key)
    report = ValidationReport(
        target=target,
        family=config.family,
        errors=[f for f in findings if f.severity == "error"],
        warnings=[f for f in findings if f.severity == "warning"],
        info=[f for f in findings if f.severity == "info"],
        files_checked=len(results),
        files=[r.path for r in results],
        component_stats=_component_stats(results, config),
        most_common_issues=_most_common(findings),
    )
    report.summary = _summary(report, config)
    return report


def validate(
    target: Path,
    config: Optional[Config] = None,
    *,
    single_file: bool = False,
    cancel: Optional[threading.Event] = None,
    on_file: Optional[ProgressCallback] = None,
    cache: Optional[PolicyCache] = None,
) -> ValidationReport:
    """
    Check a file or directory and return a ValidationReport.

    Args:
        target: File or directory to check.
        config: Rule family and thresholds; defaults to the architecture family.
        single_file: Require target to be a file and check only that file.
        cancel: Set it to abandon the scan; checked between files.
        on_file: Progress callback (index, total, path) after each file.
        cache: Policy cache; the process-wide one by default.

    Raises:
        InputError: target does not exist, or single_file with a directory.
        ScanCancelled: cancel was set before all files were evaluated.
    """
    if config is None:
        config = get_default_config()
    target = Path(target)
    if not target.exists():
        raise InputError(f"Path not found: {target}")
    target = target.resolve()
    if single_file and not target.is_file():
        raise InputError(f"Single-file mode requires a file, got a directory: {target}")

    extra: list[Finding] = []
    if config.uses_policy:
        config, warning = _with_policy(config, target, cache or policy_cache)
        if warning is not None:
            extra.append(warning)

    if target.is_file():
        files = [target]
    else:
        try:
            files = find_source_files(
                target,
                extensions=config.extensions,
                ignore_dirs=set(config.ignore_dirs),
                ignore_patterns=config.ignore_patterns,
                max_depth=config.max_depth,
                follow_symlinks=config.follow_symlinks,
                include_manifests=config.include_manifests,
            )
        except OSError as e:
            raise InputError(str(e)) from e

    logger.info("Checking %d file(s) under %s with the %s rules", len(files), target, config.family)
    results = _evaluate_all(files, config, cancel, on_file)
    report = build_report(target, config, results, extra)
    logger.info(report.summary)
    return report
