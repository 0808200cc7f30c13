# FileFacts: the immutable per-file summary the analyzer extracts and every rule reads.

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DeclarationKind = Literal["variable", "function", "class", "interface", "type", "parameter"]
FeatureKind = Literal["hook", "browser-api", "event-handler"]

_FROZEN = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class ClientFeature(BaseModel):
    """One occurrence of something that only works in the browser runtime."""

    model_config = _FROZEN

    name: str
    kind: FeatureKind
    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)


class ImportRef(BaseModel):
    model_config = _FROZEN

    target: str
    line: int = Field(..., ge=1)


class Declaration(BaseModel):
    """A named declaration plus how often the name is used elsewhere in the file."""

    model_config = _FROZEN

    name: str
    kind: DeclarationKind
    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)
    exported: bool = False
    default_export: bool = False
    references: int = 0
    returns_markup: bool = False


class FetchCall(BaseModel):
    model_config = _FROZEN

    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)
    awaited: bool = False
    has_cache_options: bool = False
    # Start line of the enclosing function, 0 for module level.
    scope: int = 0


class AnyType(BaseModel):
    model_config = _FROZEN

    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)
    owner: Optional[str] = None


class Position(BaseModel):
    model_config = _FROZEN

    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)


class EnvAccess(BaseModel):
    model_config = _FROZEN

    name: str
    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)


class StringBinding(BaseModel):
    """A string literal bound to a name (variable, property or assignment target)."""

    model_config = _FROZEN

    name: str
    value: str
    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)


class SuspenseBoundary(BaseModel):
    """A <Suspense> element and what its fallback prop renders."""

    model_config = _FROZEN

    line: int = Field(..., ge=1)
    column: Optional[int] = Field(None, ge=1)
    has_fallback: bool = False
    # fallback={null}, fallback={<></>}, fallback=""
    empty_fallback: bool = False


class FileFacts(BaseModel):
    """
    Everything the rules know about one file.

    Built fresh by archguard.analyzer.analyze() for every scan; rules only read it.
    """

    model_config = _FROZEN

    path: Path
    extension: str
    line_count: int = 0
    is_component_file: bool = False
    is_manifest: bool = False

    has_client_directive: bool = False
    client_directive_line: Optional[int] = None
    has_server_directive: bool = False

    client_features: tuple[ClientFeature, ...] = ()
    used_hooks: frozenset[str] = frozenset()
    used_browser_apis: frozenset[str] = frozenset()
    event_handler_names: frozenset[str] = frozenset()

    imports: tuple[ImportRef, ...] = ()
    import_targets: tuple[str, ...] = ()
    declared_identifiers: tuple[Declaration, ...] = ()

    fetch_calls: tuple[FetchCall, ...] = ()
    uses_cache_wrapper: bool = False
    # Start lines of the functions (0 for module level) that call Promise.all.
    promise_all_scopes: frozenset[int] = frozenset()
    # Start lines of async functions that return markup.
    async_component_scopes: frozenset[int] = frozenset()
    suspense_boundaries: tuple[SuspenseBoundary, ...] = ()
    has_loading_file: bool = False
    uses_data_library: bool = False
    has_route_segment_config: bool = False

    any_types: tuple[AnyType, ...] = ()
    raw_img_elements: tuple[Position, ...] = ()
    env_accesses: tuple[EnvAccess, ...] = ()
    string_bindings: tuple[StringBinding, ...] = ()

    # package.json only
    dependencies: dict[str, str] = Field(default_factory=dict)
    dependency_lines: dict[str, int] = Field(default_factory=dict)
    installed_versions: dict[str, str] = Field(default_factory=dict)

    parse_degraded: bool = False
    parse_error_line: Optional[int] = None

    @property
    def uses_promise_all(self) -> bool:
        return bool(self.promise_all_scopes)

    @property
    def uses_suspense(self) -> bool:
        return bool(self.suspense_boundaries)

    @property
    def fetch_call_count(self) -> int:
        return len(self.fetch_calls)

    @property
    def has_client_features(self) -> bool:
        return bool(self.client_features)

    @property
    def is_client(self) -> bool:
        return self.has_client_directive

    @property
    def is_server_action(self) -> bool:
        return self.has_server_directive

    @property
    def stem(self) -> str:
        return self.path.name[: -len(self.extension)] if self.extension else self.path.name
