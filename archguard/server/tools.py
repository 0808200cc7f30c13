"""
Protocol adapter: the six tools, their argument models and response payloads.

Both transports (stdio JSON-RPC and HTTP) go through call_tool(); it is
stateless per call apart from the process-wide policy cache. A report with
errors is still a successful call: pass/fail is the payload's `success`.
Transport-level faults are raised as ToolError and rendered as
{"error": {"code", "message"}} by the transport.
"""

from __future__ import annotations

import logging
import threading
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from archguard.aggregator import InputError, ProgressCallback, ScanCancelled, validate
from archguard.config import get_default_config
from archguard.findings.models import ValidationReport
from archguard.policy import DependencyPolicy, PolicyError, check_import, find_project_root, policy_cache
from archguard.recommendations import recommendations_for
from archguard.settings import get_settings

logger = logging.getLogger(__name__)

try:
    VERSION = version("archguard")
except PackageNotFoundError:
    VERSION = "0.0.0+local"

SERVER_NAME = "archguard"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000


class ToolError(Exception):
    """A transport-level failure with a JSON-RPC error code."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


_ARGS = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CheckOptions(BaseModel):
    single_file: bool = False
    ignore_patterns: list[str] = Field(default_factory=list)
    verbose: bool = False
    fix: bool = False
    # None means "use ARCHGUARD_CI_STRICT"
    ci_strict: Optional[bool] = None

    model_config = _ARGS


class CheckArguments(BaseModel):
    path: Optional[str] = None
    options: CheckOptions = Field(default_factory=CheckOptions)

    model_config = _ARGS


class ImportArguments(BaseModel):
    source: str
    target: str
    path: Optional[str] = None

    model_config = _ARGS


def _resolve_path(path: Optional[str]) -> Path:
    if path:
        return Path(path).expanduser()
    return get_settings().default_root()


def check(
    path: Optional[str],
    options: CheckOptions,
    family: str,
    *,
    jobs: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
    on_file: Optional[ProgressCallback] = None,
) -> ValidationReport:
    """Check a project directory (or a file) with one rule family."""
    settings = get_settings()
    config = get_default_config(
        family,
        ignore_patterns=tuple(options.ignore_patterns),
        ci_strict=settings.ci_strict if options.ci_strict is None else options.ci_strict,
        policy_file=settings.policy_file,
        jobs=jobs or settings.jobs,
    )
    return validate(
        _resolve_path(path),
        config,
        single_file=options.single_file,
        cancel=cancel,
        on_file=on_file,
    )


def check_file(
    path: Optional[str],
    options: CheckOptions,
    family: str,
    *,
    cancel: Optional[threading.Event] = None,
    on_file: Optional[ProgressCallback] = None,
) -> ValidationReport:
    """Same as check() with single-file mode forced."""
    forced = options.model_copy(update={"single_file": True})
    return check(path, forced, family, cancel=cancel, on_file=on_file)


def report_payload(report: ValidationReport, options: CheckOptions) -> dict[str, Any]:
    """Wire body: {success, errors, warnings, summary, ...detail}."""
    payload: dict[str, Any] = {
        "success": report.success,
        "errors": [f.format() for f in report.errors],
        "warnings": [f.format() for f in report.warnings],
        "summary": report.summary,
        "filesChecked": report.files_checked,
        "componentStats": report.component_stats.model_dump(mode="json", by_alias=True),
        "mostCommonIssues": [i.model_dump(mode="json", by_alias=True) for i in report.most_common_issues],
        "findings": [f.model_dump(mode="json", by_alias=True) for f in report.findings],
    }
    if report.info:
        payload["info"] = [f.format() for f in report.info]
    if options.verbose:
        payload["recommendations"] = {
            rule_id: rec.model_dump(mode="json", by_alias=True)
            for rule_id, rec in recommendations_for(report.findings).items()
        }
    if options.fix:
        payload["fixes"] = [
            {"ruleId": f.rule_id, "location": f"{f.location.path}:{f.location.line}", "fix": f.fix}
            for f in report.findings
            if f.fix
        ]
    return payload


def _input_error_payload(error: InputError) -> dict[str, Any]:
    return {
        "success": False,
        "errors": [str(error)],
        "warnings": [],
        "summary": f"Check failed: {error}",
    }


def check_import_allowed(arguments: ImportArguments) -> dict[str, Any]:
    """Whether `source` may import `target` under the project's policy and boundaries."""
    root = _resolve_path(arguments.path)
    root = find_project_root(root, get_settings().policy_file)
    try:
        policy = policy_cache.load(root, get_settings().policy_file)
    except PolicyError as e:
        logger.info("No dependency policy for %s: %s", root, e)
        policy = DependencyPolicy()

    source = Path(arguments.source)
    if source.is_absolute():
        try:
            source = source.resolve().relative_to(root)
        except ValueError:
            pass
    decision = check_import(source.as_posix(), arguments.target, policy)
    return {
        "success": True,
        "allowed": decision.allowed,
        "reason": decision.reason,
        "source": arguments.source,
        "target": decision.target,
        "errors": [],
        "warnings": [],
        "summary": decision.reason,
    }


def _check_tool(family: str, *, single_file: bool = False) -> Callable[..., dict[str, Any]]:
    def run(
        arguments: dict[str, Any],
        cancel: Optional[threading.Event] = None,
        on_file: Optional[ProgressCallback] = None,
    ) -> dict[str, Any]:
        args = CheckArguments.model_validate(arguments)
        runner = check_file if single_file else check
        try:
            report = runner(args.path, args.options, family, cancel=cancel, on_file=on_file)
        except InputError as e:
            logger.warning("Input error: %s", e)
            return _input_error_payload(e)
        return report_payload(report, args.options)

    return run


def _import_tool(
    arguments: dict[str, Any],
    cancel: Optional[threading.Event] = None,
    on_file: Optional[ProgressCallback] = None,
) -> dict[str, Any]:
    return check_import_allowed(ImportArguments.model_validate(arguments))


_PATH_PROPERTY = {"type": "string", "description": "Project root or file to check"}
_OPTIONS_PROPERTY = {
    "type": "object",
    "properties": {
        "singleFile": {"type": "boolean"},
        "ignorePatterns": {"type": "array", "items": {"type": "string"}},
        "verbose": {"type": "boolean"},
        "fix": {"type": "boolean"},
        "ciStrict": {"type": "boolean"},
    },
}
_CHECK_SCHEMA = {"type": "object", "properties": {"path": _PATH_PROPERTY, "options": _OPTIONS_PROPERTY}}
_FILE_SCHEMA = {**_CHECK_SCHEMA, "required": ["path"]}
_IMPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "source": {"type": "string", "description": "Importing file, relative to the project root"},
        "target": {"type": "string", "description": "Module specifier being imported"},
        "path": {"type": "string", "description": "Project root"},
    },
    "required": ["source", "target"],
}

# name -> (description, input schema, handler)
TOOLS: dict[str, tuple[str, dict[str, Any], Callable[..., dict[str, Any]]]] = {
    "architecture_check": (
        "Check Server/Client Component boundaries, data fetching, file size and security rules",
        _CHECK_SCHEMA,
        _check_tool("architecture"),
    ),
    "check_component_architecture": (
        "Run the architecture rules on a single component file",
        _FILE_SCHEMA,
        _check_tool("architecture", single_file=True),
    ),
    "dependency_check": (
        "Check package.json dependencies against the project's dependency policy",
        _CHECK_SCHEMA,
        _check_tool("dependency"),
    ),
    "check_import_allowed": (
        "Decide whether one module may import another",
        _IMPORT_SCHEMA,
        _import_tool,
    ),
    "style_check": (
        "Check naming, unused variables, explicit any and formatting",
        _CHECK_SCHEMA,
        _check_tool("style"),
    ),
    "check_file_style": (
        "Run the style rules on a single file",
        _FILE_SCHEMA,
        _check_tool("style", single_file=True),
    ),
}


def list_tools() -> list[dict[str, Any]]:
    return [
        {"name": name, "description": description, "inputSchema": schema}
        for name, (description, schema, _) in TOOLS.items()
    ]


def call_tool(
    name: str,
    arguments: Optional[dict[str, Any]] = None,
    *,
    cancel: Optional[threading.Event] = None,
    on_file: Optional[ProgressCallback] = None,
) -> dict[str, Any]:
    """
    Run one tool and return its payload.

    Raises:
        ToolError: unknown tool, invalid arguments, or an unexpected failure.
        ScanCancelled: cancel was set mid-scan (the caller has gone away).
    """
    if name not in TOOLS:
        raise ToolError(METHOD_NOT_FOUND, f"Unknown tool: {name}")
    if arguments is not None and not isinstance(arguments, dict):
        raise ToolError(INVALID_PARAMS, "Tool arguments must be an object")
    _, _, handler = TOOLS[name]
    logger.debug("Calling tool %s with %s", name, arguments)
    try:
        return handler(arguments or {}, cancel=cancel, on_file=on_file)
    except ValidationError as e:
        raise ToolError(INVALID_PARAMS, f"Invalid arguments for {name}: {e.errors()[0]['msg']}") from e
    except (ToolError, ScanCancelled):
        raise
    except Exception as e:
        logger.exception("Tool %s failed: %s", name, e)
        raise ToolError(SERVER_ERROR, f"Internal error in {name}: {e}") from e
