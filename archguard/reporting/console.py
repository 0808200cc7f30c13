# Rich console output: render a ValidationReport for the terminal.

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from archguard.findings.models import Finding, ValidationReport
from archguard.recommendations import recommend

# Severity → Rich style
SEVERITY_STYLE = {
    "error": "bold red",
    "warning": "bold yellow",
    "info": "bold blue",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: str) -> str:
    return SEVERITY_STYLE.get(severity.lower(), DEFAULT_SEVERITY_STYLE)


def _shorten_path(path: str | Path, root: Optional[Path] = None) -> str:
    """Path relative to the checked root when possible."""
    if root is not None:
        base = root if root.is_dir() else root.parent
        try:
            return Path(path).relative_to(base).as_posix()
        except ValueError:
            pass
    return str(path).replace("\\", "/")


def print_report(report: ValidationReport, verbose: bool = False, console: Optional[Console] = None) -> None:
    """
    Print a report grouped by file, colored by severity, with the offending
    source line under each table. With verbose, each rule's recommendation is
    shown once per file. Ends with a file summary table and the report summary.
    """
    console = console or Console()
    findings = report.findings

    if not findings and not report.files:
        console.print(
            Panel(
                f"[green]{report.summary or 'No issues found.'}[/green]",
                title="archguard",
                border_style="green",
                box=box.ROUNDED,
            )
        )
        return

    by_file: dict[str, list[Finding]] = {}
    for f in findings:
        by_file.setdefault(str(f.location.path), []).append(f)

    for path in sorted(by_file):
        file_findings = sorted(by_file[path], key=Finding.sort_key)

        console.print()
        console.print(Panel(
            f"[bold cyan]{_shorten_path(path, report.target)}[/bold cyan]",
            box=box.SIMPLE_HEAD,
            border_style="blue",
            padding=(0, 1),
        ))

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Severity", width=10)
        table.add_column("Rule", width=30)
        table.add_column("Message", style="white")

        for f in file_findings:
            table.add_row(
                str(f.location.line),
                Text(f.severity.upper(), style=_severity_style(f.severity)),
                Text(f"[{f.rule_id}]", style="dim"),
                f.message,
            )

        console.print(table)

        snippets = [f for f in file_findings if f.context]
        for f in snippets:
            console.print(f"  [dim]{f.location.line:>4} |[/dim] {f.context}", highlight=False)
        if snippets:
            console.print()

        if verbose:
            seen_rules: set[str] = set()
            for f in file_findings:
                if f.rule_id in seen_rules:
                    continue
                seen_rules.add(f.rule_id)
                rec = recommend(f)
                console.print(f"  [dim][Fix][/dim] [{f.rule_id}] {rec.fix_text}", highlight=False)
                for link in rec.doc_links:
                    console.print(f"        [dim]{link.name}: {link.url}[/dim]", highlight=False)
            if seen_rules:
                console.print()

    if report.files:
        _print_file_summary_table(findings, report.files, report.target, console)

    _print_summary(report, console)


def _print_file_summary_table(
    findings: Sequence[Finding],
    files: Sequence[Path],
    root: Path,
    console: Console,
) -> None:
    """One row per checked file: FAIL (errors), WARN (warnings only) or OK."""
    errors: dict[str, int] = {}
    others: dict[str, int] = {}
    for f in findings:
        counts = errors if f.severity == "error" else others
        counts[str(f.location.path)] = counts.get(str(f.location.path), 0) + 1

    table = Table(
        title="Files Summary",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Status", width=8)
    table.add_column("Findings", justify="right", width=8)

    def _rank(p: Path) -> tuple[int, str]:
        key = str(p)
        return (0 if key in errors else 1 if key in others else 2, key)

    for p in sorted(files, key=_rank):
        key = str(p)
        total = errors.get(key, 0) + others.get(key, 0)
        if key in errors:
            status = Text("FAIL", style="bold red")
        elif key in others:
            status = Text("WARN", style="bold yellow")
        else:
            status = Text("OK", style="bold green")
        table.add_row(_shorten_path(p, root), status, str(total))

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_summary(report: ValidationReport, console: Console) -> None:
    """Counts by severity, the most common issues and the one-line summary."""
    counts = [
        ("error", len(report.errors)),
        ("warning", len(report.warnings)),
        ("info", len(report.info)),
    ]
    total = sum(n for _, n in counts)
    parts = [f"[bold]{total} finding{'s' if total != 1 else ''}[/bold]"]
    parts += [f"[{_severity_style(sev)}]{n} {sev}[/]" for sev, n in counts if n]

    body = " | ".join(parts)
    if report.most_common_issues:
        top = ", ".join(f"{i.rule_id} ({i.count})" for i in report.most_common_issues)
        body += f"\n[dim]Most common:[/dim] {top}"
    body += f"\n{report.summary}"

    console.print()
    console.print(
        Panel(
            body,
            title="Summary",
            border_style="red" if report.errors else "yellow" if total else "green",
            box=box.ROUNDED,
        )
    )
