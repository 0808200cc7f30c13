from __future__ import annotations

"""
Typer CLI entry point.

- `check` runs a rule family over a file or directory and prints a rich
  report (or the protocol JSON payload with --json); exit code 1 when the
  report has errors, 2 when the path cannot be checked.
- `import-allowed` answers the import-permission question for one pair.
- `serve-stdio` / `serve-http` expose the same tools over JSON-RPC on stdio
  or HTTP.

Logs always go to stderr so stdout stays clean for reports and protocol traffic.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from archguard.aggregator import InputError
from archguard.config import FAMILIES
from archguard.reporting.console import print_report
from archguard.server.tools import (
    CheckOptions,
    ImportArguments,
    VERSION,
    check,
    check_import_allowed,
    report_payload,
)
from archguard.settings import get_settings

logger = logging.getLogger(__name__)

app = typer.Typer(help="archguard - architecture and style checks for Next.js / React TypeScript projects.")


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=debug)],
        force=True,
    )


@app.callback()
def cli(
    debug: bool = typer.Option(False, "--debug", help="Verbose logging on stderr."),
) -> None:
    _configure_logging(debug or get_settings().debug)


@app.command("check")
def check_command(
    target: Path = typer.Argument(..., help="Project directory or file to check."),
    family: str = typer.Option("all", "--family", "-f", help="architecture, style, dependency or all."),
    single_file: bool = typer.Option(False, "--single-file", help="Require TARGET to be a file."),
    ci_strict: bool = typer.Option(False, "--ci-strict", help="Treat warnings as errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show recommendations and doc links."),
    as_json: bool = typer.Option(False, "--json", help="Print the tool payload as JSON."),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", help="Glob of files to skip (repeatable)."),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Files to check in parallel."),
) -> None:
    """
    Check a file or all JavaScript/TypeScript sources under a directory.
    """
    if family not in FAMILIES:
        raise typer.BadParameter(f"Unknown family '{family}', expected one of: {', '.join(FAMILIES)}")

    options = CheckOptions(
        single_file=single_file,
        ignore_patterns=list(ignore or []),
        verbose=verbose,
        ci_strict=ci_strict or None,
    )
    try:
        report = check(str(target), options, family, jobs=jobs)
    except InputError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    if as_json:
        typer.echo(json.dumps(report_payload(report, options), indent=2))
    else:
        print_report(report, verbose=verbose)

    if not report.success:
        raise typer.Exit(code=1)


@app.command("import-allowed")
def import_allowed(
    source: str = typer.Argument(..., help="Importing file, relative to the project root."),
    target: str = typer.Argument(..., help="Module specifier being imported."),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root (defaults to the current directory)."),
) -> None:
    """Check whether SOURCE may import TARGET."""
    result = check_import_allowed(
        ImportArguments(source=source, target=target, path=str(root) if root else None)
    )
    verdict = "allowed" if result["allowed"] else "not allowed"
    typer.echo(f"{verdict}: {result['reason']}")
    if not result["allowed"]:
        raise typer.Exit(code=1)


@app.command("serve-stdio")
def serve_stdio() -> None:
    """Serve the tools as newline-delimited JSON-RPC on stdin/stdout."""
    from archguard.server import stdio

    stdio.serve()


@app.command("serve-http")
def serve_http(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (ARCHGUARD_HOST)."),
    port: Optional[int] = typer.Option(None, "--port", help="Port (ARCHGUARD_PORT)."),
) -> None:
    """Serve the tools over HTTP (health check, tool calls, JSON-RPC, event streams)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "archguard.server.http:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level="debug" if settings.debug else "info",
    )


@app.command("version")
def show_version() -> None:
    """Print the installed version."""
    typer.echo(VERSION)


def main() -> None:
    """Entry point for `python -m archguard.main`."""
    app()


if __name__ == "__main__":
    main()
