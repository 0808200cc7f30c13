"""
Source analyzer: turn one file's content into FileFacts.

Two extraction paths produce the same facts:

- Syntax tree (tree-sitter TypeScript/TSX). Used whenever the file parses
  cleanly; handles nested scopes, comments and string literals that merely
  contain keyword-like text.
- Text heuristics. Used when the tree has ERROR/missing nodes (or the parser
  blows up). Regexes are word-boundary safe but otherwise imprecise; the
  resulting facts carry parse_degraded=True so the aggregator can say so.

package.json files are read as manifests (dependency names, declared ranges,
installed versions from node_modules).

Typical usage:
    from archguard.analyzer import analyze

    facts = analyze(Path("app/page.tsx"), source_text)
    if facts.used_hooks and not facts.has_client_directive:
        ...
"""

import json
import logging
import re
from collections import Counter
from pathlib import Path
from typing import Iterator, Optional, Union

from tree_sitter import Node as TSNode

from archguard.context import (
    FUNCTION_NODE_TYPES,
    FileContext,
    context_from_source,
    first_error_line,
    get_line_col,
    get_source_span,
    iter_nodes,
    source_lines,
)
from archguard.facts import (
    AnyType,
    ClientFeature,
    Declaration,
    EnvAccess,
    FetchCall,
    FileFacts,
    ImportRef,
    Position,
    StringBinding,
    SuspenseBoundary,
)

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".mts", ".cts"})
COMPONENT_SUFFIXES = frozenset({".tsx", ".jsx"})
MANIFEST_NAME = "package.json"
UI_FRAMEWORK_MODULES = frozenset({"react", "react-dom"})

# Hooks that only run in the browser runtime.
CLIENT_HOOKS = frozenset(
    {
        "useState",
        "useEffect",
        "useRef",
        "useCallback",
        "useReducer",
        "useMemo",
        "useImperativeHandle",
        "useLayoutEffect",
        "useInsertionEffect",
        "useTransition",
        "useDeferredValue",
        "useId",
        "useContext",
        "useSyncExternalStore",
        "useOptimistic",
        "useActionState",
        "useFormStatus",
        # next/navigation
        "useRouter",
        "usePathname",
        "useSearchParams",
        "useParams",
        "useSelectedLayoutSegment",
        "useSelectedLayoutSegments",
    }
)

DATA_LIBRARY_HOOKS = frozenset(
    {
        "useSWR",
        "useSWRInfinite",
        "useSWRMutation",
        "useQuery",
        "useQueries",
        "useInfiniteQuery",
        "useSuspenseQuery",
        "useMutation",
    }
)
DATA_LIBRARY_MODULES = frozenset({"swr", "swr/infinite", "swr/mutation", "@tanstack/react-query", "react-query"})

BROWSER_GLOBALS = frozenset(
    {
        "window",
        "document",
        "navigator",
        "localStorage",
        "sessionStorage",
        "indexedDB",
        "requestAnimationFrame",
        "cancelAnimationFrame",
        "matchMedia",
        "IntersectionObserver",
        "ResizeObserver",
        "MutationObserver",
    }
)

CACHE_WRAPPERS = frozenset({"cache", "unstable_cache"})
CACHE_OPTION_KEYS = frozenset({"cache", "next", "revalidate"})
ROUTE_SEGMENT_EXPORTS = frozenset({"revalidate", "dynamic", "fetchCache"})
SUSPENSE_ELEMENTS = frozenset({"Suspense", "React.Suspense"})
# A route segment's loading file wraps its page in a Suspense boundary.
LOADING_FILES = ("loading.tsx", "loading.jsx", "loading.js")

_EVENT_HANDLER = re.compile(r"^on[A-Z]\w*$")
_COMPONENT_TYPE = re.compile(r"\b(?:FC|FunctionComponent|VFC)\b")
_REFERENCE_NODE_TYPES = frozenset({"identifier", "type_identifier", "shorthand_property_identifier"})
_MARKUP_NODE_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})
_PARAMETER_NODE_TYPES = frozenset({"required_parameter", "optional_parameter"})
_STRING_NODE_TYPES = frozenset({"string", "template_string"})
# fetch(u).then(...).json() still resolves inside the surrounding await.
_AWAIT_CHAIN_NODE_TYPES = frozenset(
    {"call_expression", "member_expression", "parenthesized_expression", "non_null_expression", "as_expression"}
)
_EMPTY_FALLBACKS = frozenset({"", "null", "undefined", "false", "<></>", '""', "''", "``"})


def _is_ui_framework_import(target: str) -> bool:
    return target in UI_FRAMEWORK_MODULES or target.startswith("react/")


def _base_fields(path: Path, text: str) -> dict:
    return {
        "path": path,
        "extension": path.suffix.lower(),
        "line_count": len(source_lines(text)),
    }


def analyze(path: Path, content: Union[str, bytes]) -> FileFacts:
    """
    Extract FileFacts from one file's content.

    Never raises for malformed input: syntax errors degrade to heuristic facts
    (parse_degraded=True, parse_error_line set) and broken manifests come back
    with empty dependency maps.
    """
    if isinstance(content, str):
        source = content.encode("utf-8")
        text = content
    else:
        source = content
        text = content.decode("utf-8", errors="replace")

    if path.name == MANIFEST_NAME:
        return _analyze_manifest(path, text)

    try:
        context = context_from_source(path, source)
    except Exception:
        logger.exception("Parser failed on %s; falling back to text heuristics", path)
        return _heuristic_facts(path, text, error_line=None)

    if context.has_parse_errors:
        return _heuristic_facts(path, text, error_line=first_error_line(context.root_node))

    facts = _TreeExtractor(context).extract(text)
    logger.debug(
        "Analyzed %s: client=%s hooks=%d browser=%d handlers=%d declarations=%d fetches=%d",
        path,
        facts.has_client_directive,
        len(facts.used_hooks),
        len(facts.used_browser_apis),
        len(facts.event_handler_names),
        len(facts.declared_identifiers),
        facts.fetch_call_count,
    )
    return facts


# --- syntax tree extraction ------------------------------------------------


def _unwrap(node: TSNode) -> TSNode:
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def _is_markup(node: Optional[TSNode]) -> bool:
    if node is None:
        return False
    node = _unwrap(node)
    if node.type in _MARKUP_NODE_TYPES:
        return True
    if node.type in ("ternary_expression", "binary_expression"):
        return any(_is_markup(child) for child in node.named_children[1:])
    return False


def _walk_same_function(body: TSNode) -> Iterator[TSNode]:
    """Walk body without descending into nested functions."""
    stack = [body]
    while stack:
        current = stack.pop()
        yield current
        for child in reversed(current.children):
            if child.type not in FUNCTION_NODE_TYPES:
                stack.append(child)


def _returns_markup(function: TSNode) -> bool:
    body = function.child_by_field_name("body")
    if body is None:
        return False
    if body.type != "statement_block":
        return _is_markup(body)
    for node in _walk_same_function(body):
        if node.type == "return_statement" and node.named_children:
            if _is_markup(node.named_children[0]):
                return True
    return False


def _is_async(function: TSNode) -> bool:
    return any(child.type == "async" for child in function.children)


def _has_loading_file(path: Path) -> bool:
    return path.suffix.lower() in COMPONENT_SUFFIXES and any(
        (path.parent / name).is_file() for name in LOADING_FILES
    )


def _enclosing_function_line(node: TSNode) -> int:
    parent = node.parent
    while parent is not None:
        if parent.type in FUNCTION_NODE_TYPES:
            return parent.start_point[0] + 1
        parent = parent.parent
    return 0


def _string_value(raw: str) -> str:
    if len(raw) >= 2 and raw[0] in "'\"`" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


class _TreeExtractor:
    """One pass over a clean syntax tree collecting every fact the rules need."""

    def __init__(self, context: FileContext) -> None:
        self.context = context
        self.features: list[ClientFeature] = []
        self.browser_candidates: list[ClientFeature] = []
        self.imports: list[ImportRef] = []
        self.bound_names: set[str] = set()
        self.declarations: list[tuple[TSNode, dict]] = []
        self.exported_names: set[str] = set()
        self.default_names: set[str] = set()
        self.references: Counter = Counter()
        self.fetch_calls: list[FetchCall] = []
        self.any_types: list[AnyType] = []
        self.images: list[Position] = []
        self.env_accesses: list[EnvAccess] = []
        self.strings: list[StringBinding] = []
        self.uses_cache_wrapper = False
        self.promise_all_scopes: set[int] = set()
        self.async_component_scopes: set[int] = set()
        self.suspense_boundaries: list[SuspenseBoundary] = []
        self.uses_data_library = False
        self.has_route_segment_config = False

    def text(self, node: TSNode) -> str:
        return get_source_span(self.context, node)

    def extract(self, text: str) -> FileFacts:
        root = self.context.root_node
        directives = self._directives(root)

        for node in iter_nodes(root):
            handler = getattr(self, "_visit_" + node.type, None)
            if handler is not None:
                handler(node)
            if node.type in FUNCTION_NODE_TYPES and _is_async(node) and _returns_markup(node):
                self.async_component_scopes.add(node.start_point[0] + 1)
            if node.type in _REFERENCE_NODE_TYPES:
                self.references[self.text(node)] += 1

        declared = self._finish_declarations()
        local_names = self.bound_names | {d.name for d in declared}
        for candidate in self.browser_candidates:
            # A local binding named like a browser global shadows it.
            if candidate.name not in local_names:
                self.features.append(candidate)
        self.features.sort(key=lambda f: (f.line, f.column or 0, f.name))

        targets = tuple(ref.target for ref in self.imports)
        path = self.context.path
        client_line = next((line for value, line in directives if value == "use client"), None)
        return FileFacts(
            **_base_fields(path, text),
            is_component_file=path.suffix.lower() in COMPONENT_SUFFIXES
            or any(_is_ui_framework_import(t) for t in targets),
            has_client_directive=client_line is not None,
            client_directive_line=client_line,
            has_server_directive=any(value == "use server" for value, _ in directives),
            client_features=tuple(self.features),
            used_hooks=frozenset(f.name for f in self.features if f.kind == "hook"),
            used_browser_apis=frozenset(f.name for f in self.features if f.kind == "browser-api"),
            event_handler_names=frozenset(f.name for f in self.features if f.kind == "event-handler"),
            imports=tuple(self.imports),
            import_targets=targets,
            declared_identifiers=tuple(declared),
            fetch_calls=tuple(self.fetch_calls),
            uses_cache_wrapper=self.uses_cache_wrapper,
            promise_all_scopes=frozenset(self.promise_all_scopes),
            async_component_scopes=frozenset(self.async_component_scopes),
            suspense_boundaries=tuple(self.suspense_boundaries),
            has_loading_file=_has_loading_file(path),
            uses_data_library=self.uses_data_library
            or any(t in DATA_LIBRARY_MODULES for t in targets),
            has_route_segment_config=self.has_route_segment_config,
            any_types=tuple(self.any_types),
            raw_img_elements=tuple(self.images),
            env_accesses=tuple(self.env_accesses),
            string_bindings=tuple(self.strings),
        )

    # -- directives ----------------------------------------------------------

    def _directives(self, root: TSNode) -> list[tuple[str, int]]:
        """Directive prologue: leading string-expression statements only."""
        found: list[tuple[str, int]] = []
        for child in root.named_children:
            if child.type in ("comment", "hash_bang_line"):
                continue
            if child.type != "expression_statement" or not child.named_children:
                break
            expr = child.named_children[0]
            if expr.type != "string":
                break
            found.append((_string_value(self.text(expr)).strip(), child.start_point[0] + 1))
        return found

    # -- calls ---------------------------------------------------------------

    def _visit_call_expression(self, node: TSNode) -> None:
        function = node.child_by_field_name("function")
        if function is None:
            return
        if function.type == "import":
            self._record_import_argument(node)
            return
        if function.type == "identifier":
            name = self.text(function)
            if name in CLIENT_HOOKS or name in DATA_LIBRARY_HOOKS:
                self._add_feature(name, "hook", function)
            if name in DATA_LIBRARY_HOOKS:
                self.uses_data_library = True
            if name in CACHE_WRAPPERS:
                self.uses_cache_wrapper = True
            if name == "fetch":
                self._record_fetch(node)
            if name == "require":
                self._record_import_argument(node)
            return
        if function.type == "member_expression":
            obj = function.child_by_field_name("object")
            prop = function.child_by_field_name("property")
            if obj is None or prop is None:
                return
            obj_name, prop_name = self.text(obj), self.text(prop)
            if obj_name == "React" and prop_name in CLIENT_HOOKS:
                self._add_feature(prop_name, "hook", prop)
            elif obj_name == "React" and prop_name == "cache":
                self.uses_cache_wrapper = True
            elif obj_name == "Promise" and prop_name in ("all", "allSettled"):
                self.promise_all_scopes.add(_enclosing_function_line(node))

    def _record_import_argument(self, call: TSNode) -> None:
        arguments = call.child_by_field_name("arguments")
        if arguments is None or not arguments.named_children:
            return
        first = arguments.named_children[0]
        if first.type == "string":
            self.imports.append(ImportRef(target=_string_value(self.text(first)), line=call.start_point[0] + 1))

    def _record_fetch(self, call: TSNode) -> None:
        has_options = False
        arguments = call.child_by_field_name("arguments")
        if arguments is not None and len(arguments.named_children) >= 2:
            options = arguments.named_children[1]
            if options.type == "object":
                for prop in options.named_children:
                    key = prop.child_by_field_name("key") if prop.type == "pair" else prop
                    if key is not None and _string_value(self.text(key)) in CACHE_OPTION_KEYS:
                        has_options = True
            else:
                # An options variable: contents unknown, assume configured.
                has_options = True
        line, col = get_line_col(call)
        parent = call.parent
        while parent is not None and parent.type in _AWAIT_CHAIN_NODE_TYPES:
            parent = parent.parent
        self.fetch_calls.append(
            FetchCall(
                line=line,
                column=col,
                awaited=parent is not None and parent.type == "await_expression",
                has_cache_options=has_options,
                scope=_enclosing_function_line(call),
            )
        )

    # -- client features -----------------------------------------------------

    def _add_feature(self, name: str, kind: str, node: TSNode) -> None:
        line, col = get_line_col(node)
        self.features.append(ClientFeature(name=name, kind=kind, line=line, column=col))

    def _visit_identifier(self, node: TSNode) -> None:
        name = self.text(node)
        if name not in BROWSER_GLOBALS:
            return
        parent = node.parent
        if parent is not None and parent.type == "unary_expression":
            operator = parent.child_by_field_name("operator")
            if operator is not None and operator.type == "typeof":
                return
        if parent is not None and parent.type in ("variable_declarator", "function_declaration") and (
            parent.child_by_field_name("name") == node
        ):
            return
        line, col = get_line_col(node)
        self.browser_candidates.append(ClientFeature(name=name, kind="browser-api", line=line, column=col))

    def _visit_jsx_attribute(self, node: TSNode) -> None:
        if not node.named_children:
            return
        name_node = node.named_children[0]
        if name_node.type == "property_identifier" and _EVENT_HANDLER.match(self.text(name_node)):
            self._add_feature(self.text(name_node), "event-handler", name_node)

    def _visit_jsx_opening_element(self, node: TSNode) -> None:
        name = node.child_by_field_name("name")
        if name is None:
            return
        tag = self.text(name)
        if tag == "img":
            line, col = get_line_col(node)
            self.images.append(Position(line=line, column=col))
        elif tag in SUSPENSE_ELEMENTS:
            self._record_suspense(node)

    _visit_jsx_self_closing_element = _visit_jsx_opening_element

    def _record_suspense(self, element: TSNode) -> None:
        fallback = None
        for attribute in element.named_children:
            if attribute.type != "jsx_attribute" or not attribute.named_children:
                continue
            if self.text(attribute.named_children[0]) == "fallback":
                fallback = attribute
        empty = False
        if fallback is not None:
            value = fallback.named_children[1] if len(fallback.named_children) > 1 else None
            if value is None:
                empty = True
            else:
                raw = self.text(value).strip()
                if value.type == "jsx_expression":
                    raw = raw[1:-1].strip()
                empty = "".join(raw.split()) in _EMPTY_FALLBACKS
        line, col = get_line_col(element)
        self.suspense_boundaries.append(
            SuspenseBoundary(line=line, column=col, has_fallback=fallback is not None, empty_fallback=empty)
        )

    # -- imports / exports ---------------------------------------------------

    def _visit_import_statement(self, node: TSNode) -> None:
        source = node.child_by_field_name("source")
        if source is not None:
            self.imports.append(ImportRef(target=_string_value(self.text(source)), line=node.start_point[0] + 1))
        for child in node.named_children:
            if child.type == "import_clause":
                for sub in iter_nodes(child):
                    if sub.type == "identifier":
                        self.bound_names.add(self.text(sub))

    def _visit_export_statement(self, node: TSNode) -> None:
        source = node.child_by_field_name("source")
        if source is not None:
            self.imports.append(ImportRef(target=_string_value(self.text(source)), line=node.start_point[0] + 1))
        is_default = any(child.type == "default" for child in node.children)
        value = node.child_by_field_name("value")
        if is_default and value is not None and value.type == "identifier":
            self.default_names.add(self.text(value))
        for child in node.named_children:
            if child.type != "export_clause":
                continue
            for spec in child.named_children:
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                if name is None:
                    continue
                self.exported_names.add(self.text(name))
                if alias is not None and self.text(alias) == "default":
                    self.default_names.add(self.text(name))

    # -- declarations --------------------------------------------------------

    def _export_flags(self, node: TSNode) -> tuple[bool, bool]:
        parent = node.parent
        if parent is not None and parent.type in ("lexical_declaration", "variable_declaration"):
            parent = parent.parent
        if parent is not None and parent.type == "export_statement":
            return True, any(child.type == "default" for child in parent.children)
        return False, False

    def _declare(self, name_node: TSNode, kind: str, owner: TSNode, returns_markup: bool = False) -> None:
        exported, default = self._export_flags(owner)
        line, col = get_line_col(name_node)
        self.declarations.append(
            (
                name_node,
                {
                    "name": self.text(name_node),
                    "kind": kind,
                    "line": line,
                    "column": col,
                    "exported": exported,
                    "default_export": default,
                    "returns_markup": returns_markup,
                },
            )
        )

    def _visit_variable_declarator(self, node: TSNode) -> None:
        name = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name is None:
            return
        if name.type in ("array_pattern", "object_pattern"):
            for sub in self._pattern_names(name):
                self._declare(sub, "variable", node)
            return
        if name.type != "identifier":
            return

        function = value
        if function is not None and function.type == "call_expression":
            # memo(() => ...), forwardRef(function X() {...})
            arguments = function.child_by_field_name("arguments")
            function = next(
                (arg for arg in (arguments.named_children if arguments else []) if arg.type in FUNCTION_NODE_TYPES),
                None,
            )
        if function is not None and function.type in FUNCTION_NODE_TYPES:
            annotation = node.child_by_field_name("type")
            markup = _returns_markup(function) or (
                annotation is not None and bool(_COMPONENT_TYPE.search(self.text(annotation)))
            )
            self._declare(name, "function", node, returns_markup=markup)
        else:
            self._declare(name, "variable", node)

        if value is not None and value.type in _STRING_NODE_TYPES:
            self._add_string(self.text(name), value)
        if self.text(name) in ROUTE_SEGMENT_EXPORTS and self._export_flags(node)[0]:
            self.has_route_segment_config = True

    def _pattern_names(self, pattern: TSNode) -> Iterator[TSNode]:
        """Names bound by a destructuring pattern."""
        for sub in iter_nodes(pattern):
            if sub.type in ("identifier", "shorthand_property_identifier_pattern") and not self._is_pattern_default(sub):
                yield sub

    def _is_pattern_default(self, node: TSNode) -> bool:
        """True for the default-value side of `[a = b]` or `{ a = b }`."""
        parent = node.parent
        if parent is None or parent.type not in ("assignment_pattern", "object_assignment_pattern"):
            return False
        return parent.child_by_field_name("right") == node

    def _visit_function_declaration(self, node: TSNode) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, "function", node, returns_markup=_returns_markup(node))

    _visit_generator_function_declaration = _visit_function_declaration

    def _visit_class_declaration(self, node: TSNode) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, "class", node)

    _visit_abstract_class_declaration = _visit_class_declaration

    def _visit_interface_declaration(self, node: TSNode) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, "interface", node)

    def _visit_type_alias_declaration(self, node: TSNode) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, "type", node)

    _visit_enum_declaration = _visit_type_alias_declaration

    def _visit_required_parameter(self, node: TSNode) -> None:
        pattern = node.child_by_field_name("pattern")
        if pattern is None:
            return
        if pattern.type == "identifier":
            self._declare(pattern, "parameter", node)
        elif pattern.type in ("array_pattern", "object_pattern"):
            for sub in self._pattern_names(pattern):
                self._declare(sub, "parameter", node)

    _visit_optional_parameter = _visit_required_parameter

    def _visit_arrow_function(self, node: TSNode) -> None:
        parameter = node.child_by_field_name("parameter")
        if parameter is not None and parameter.type == "identifier":
            self._declare(parameter, "parameter", node)

    def _finish_declarations(self) -> list[Declaration]:
        declared = []
        for name_node, fields in self.declarations:
            name = fields["name"]
            uses = self.references[name]
            if name_node.type in _REFERENCE_NODE_TYPES:
                uses -= 1
            if name in self.exported_names:
                fields["exported"] = True
            if name in self.default_names:
                fields["exported"] = True
                fields["default_export"] = True
            declared.append(Declaration(references=max(uses, 0), **fields))
        declared.sort(key=lambda d: (d.line, d.column or 0))
        return declared

    # -- types, env, strings, images -----------------------------------------

    def _visit_predefined_type(self, node: TSNode) -> None:
        if self.text(node) != "any":
            return
        line, col = get_line_col(node)
        self.any_types.append(AnyType(line=line, column=col, owner=self._any_owner(node)))

    def _any_owner(self, node: TSNode) -> Optional[str]:
        parent = node.parent
        while parent is not None:
            if parent.type == "variable_declarator":
                name = parent.child_by_field_name("name")
                return f"variable '{self.text(name)}'" if name is not None else None
            if parent.type in _PARAMETER_NODE_TYPES:
                pattern = parent.child_by_field_name("pattern")
                return f"parameter '{self.text(pattern)}'" if pattern is not None else None
            if parent.type in ("property_signature", "public_field_definition"):
                name = parent.child_by_field_name("name")
                return f"property '{self.text(name)}'" if name is not None else None
            if parent.type in ("type_alias_declaration", "interface_declaration"):
                name = parent.child_by_field_name("name")
                return f"type '{self.text(name)}'" if name is not None else None
            if parent.type in FUNCTION_NODE_TYPES or parent.type == "method_signature":
                name = parent.child_by_field_name("name")
                return f"function '{self.text(name)}'" if name is not None else "function"
            parent = parent.parent
        return None

    def _visit_member_expression(self, node: TSNode) -> None:
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "member_expression":
            return
        if self.text(obj).replace(" ", "") == "process.env":
            line, col = get_line_col(node)
            self.env_accesses.append(EnvAccess(name=self.text(prop), line=line, column=col))

    def _visit_subscript_expression(self, node: TSNode) -> None:
        obj = node.child_by_field_name("object")
        index = node.child_by_field_name("index")
        if obj is None or index is None or index.type != "string":
            return
        if self.text(obj).replace(" ", "") == "process.env":
            line, col = get_line_col(node)
            self.env_accesses.append(EnvAccess(name=_string_value(self.text(index)), line=line, column=col))

    def _add_string(self, name: str, value: TSNode) -> None:
        if value.type == "template_string" and any(c.type == "template_substitution" for c in value.named_children):
            return
        line, col = get_line_col(value)
        self.strings.append(StringBinding(name=name, value=_string_value(self.text(value)), line=line, column=col))

    def _visit_pair(self, node: TSNode) -> None:
        key = node.child_by_field_name("key")
        value = node.child_by_field_name("value")
        if key is not None and value is not None and value.type in _STRING_NODE_TYPES:
            self._add_string(_string_value(self.text(key)), value)

    def _visit_assignment_expression(self, node: TSNode) -> None:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or right.type not in _STRING_NODE_TYPES:
            return
        if left.type == "member_expression":
            left = left.child_by_field_name("property") or left
        self._add_string(self.text(left), right)


# --- text heuristics (degraded mode) ----------------------------------------

_H_DIRECTIVE = re.compile(r"""^(['"])use (client|server)\1\s*;?$""")
_H_HOOK = re.compile(r"(?:(?<![\w$.])|(?<=React\.))(use[A-Z]\w*)\s*\(")
_H_BROWSER = re.compile(r"(?<![\w$.])(" + "|".join(sorted(BROWSER_GLOBALS)) + r")(?![\w$])")
_H_TYPEOF = re.compile(r"typeof\s*$")
_H_HANDLER = re.compile(r"(?<![\w$.])(on[A-Z]\w*)\s*=\s*\{")
_H_IMPORT = re.compile(
    r"""(?:^\s*import\s+(?:[\w*{}\s,$]+\s+from\s+)?|^\s*export\s+[\w*{}\s,$]+\s+from\s+|^\s*\}\s*from\s+|(?<![\w$.])require\s*\(\s*|(?<![\w$.])import\s*\(\s*)(['"])([^'"]+)\1"""
)
_H_DECLARATIONS = (
    (re.compile(r"\b(?:const|let|var)\s+([A-Za-z_$][\w$]*)"), "variable"),
    (re.compile(r"\bfunction\s*\*?\s*([A-Za-z_$][\w$]*)"), "function"),
    (re.compile(r"\bclass\s+([A-Za-z_$][\w$]*)"), "class"),
    (re.compile(r"\binterface\s+([A-Za-z_$][\w$]*)"), "interface"),
    (re.compile(r"\btype\s+([A-Za-z_$][\w$]*)\s*(?:<[^=]*>)?\s*="), "type"),
)
_H_EXPORT = re.compile(r"^\s*export\s+(default\s+)?")
_H_FETCH = re.compile(r"(?<![\w$.])fetch\s*\(")
_H_AWAIT = re.compile(r"await\s*$")
_H_FETCH_OPTIONS = re.compile(r"\b(?:cache|next|revalidate)\s*:")
_H_CACHE = re.compile(r"(?:(?<![\w$.])(?:cache|unstable_cache)|React\.cache)\s*\(")
_H_PROMISE_ALL = re.compile(r"\bPromise\.all(?:Settled)?\s*\(")
_H_SEGMENT = re.compile(r"^\s*export\s+const\s+(?:revalidate|dynamic|fetchCache)\b")
_H_ANY = re.compile(r"(?::\s*any\b|<any>|\bas\s+any\b|\bany\[\])")
_H_IMG = re.compile(r"<img\b")
_H_SUSPENSE = re.compile(r"<(?:React\.)?Suspense\b")
_H_FALLBACK = re.compile(r"""\bfallback\s*=\s*(\{\s*(?:null|undefined|false|<>\s*</>)\s*\}|""|'')?""")
_H_ASYNC_COMPONENT = re.compile(r"\basync\s+(?:function\b|\([^)]*\)\s*=>|\w+\s*=>)")
_H_ENV = re.compile(r"\bprocess\.env\.([A-Za-z_]\w*)")
_H_STRING = re.compile(r"""\b(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*(?::[^=]+)?=\s*(['"`])(.*?)\2""")


def _code_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (line number, line) pairs, skipping comment-only lines."""
    in_block = False
    for lineno, line in enumerate(source_lines(text), start=1):
        stripped = line.strip()
        if in_block:
            if "*/" in stripped:
                in_block = False
            continue
        if stripped.startswith("/*"):
            in_block = "*/" not in stripped
            continue
        if stripped.startswith("//") or stripped.startswith("*"):
            continue
        yield lineno, line


def _heuristic_directives(text: str) -> list[tuple[str, int]]:
    found: list[tuple[str, int]] = []
    for lineno, line in _code_lines(text):
        stripped = line.strip()
        if not stripped or stripped.startswith("#!"):
            continue
        match = _H_DIRECTIVE.match(stripped)
        if match is None:
            break
        found.append((f"use {match.group(2)}", lineno))
    return found


def _heuristic_facts(path: Path, text: str, error_line: Optional[int]) -> FileFacts:
    logger.info("Using text heuristics for %s (parse error near line %s)", path, error_line)
    directives = _heuristic_directives(text)
    lines = list(_code_lines(text))

    features: list[ClientFeature] = []
    imports: list[ImportRef] = []
    raw_declarations: list[dict] = []
    fetch_calls: list[FetchCall] = []
    any_types: list[AnyType] = []
    images: list[Position] = []
    env_accesses: list[EnvAccess] = []
    strings: list[StringBinding] = []
    suspense: list[SuspenseBoundary] = []

    for lineno, line in lines:
        for m in _H_HOOK.finditer(line):
            if m.group(1) in CLIENT_HOOKS or m.group(1) in DATA_LIBRARY_HOOKS:
                features.append(ClientFeature(name=m.group(1), kind="hook", line=lineno, column=m.start(1) + 1))
        for m in _H_BROWSER.finditer(line):
            if not _H_TYPEOF.search(line[: m.start()]):
                features.append(ClientFeature(name=m.group(1), kind="browser-api", line=lineno, column=m.start() + 1))
        for m in _H_HANDLER.finditer(line):
            features.append(ClientFeature(name=m.group(1), kind="event-handler", line=lineno, column=m.start(1) + 1))
        for m in _H_IMPORT.finditer(line):
            imports.append(ImportRef(target=m.group(2), line=lineno))

        export = _H_EXPORT.match(line)
        for pattern, kind in _H_DECLARATIONS:
            for m in pattern.finditer(line):
                raw_declarations.append(
                    {
                        "name": m.group(1),
                        "kind": kind,
                        "line": lineno,
                        "column": m.start(1) + 1,
                        "exported": export is not None,
                        "default_export": bool(export and export.group(1)),
                    }
                )

        for m in _H_FETCH.finditer(line):
            fetch_calls.append(
                FetchCall(
                    line=lineno,
                    column=m.start() + 1,
                    awaited=bool(_H_AWAIT.search(line[: m.start()])),
                    has_cache_options=bool(_H_FETCH_OPTIONS.search(line[m.end() :])),
                )
            )
        for m in _H_ANY.finditer(line):
            any_types.append(AnyType(line=lineno, column=m.start() + 1))
        for m in _H_IMG.finditer(line):
            images.append(Position(line=lineno, column=m.start() + 1))
        for m in _H_SUSPENSE.finditer(line):
            fallback = _H_FALLBACK.search(line, m.end())
            suspense.append(
                SuspenseBoundary(
                    line=lineno,
                    column=m.start() + 1,
                    has_fallback=fallback is not None,
                    empty_fallback=fallback is not None and fallback.group(1) is not None,
                )
            )
        for m in _H_ENV.finditer(line):
            env_accesses.append(EnvAccess(name=m.group(1), line=lineno, column=m.start() + 1))
        for m in _H_STRING.finditer(line):
            strings.append(StringBinding(name=m.group(1), value=m.group(3), line=lineno, column=m.start(2) + 1))

    features.sort(key=lambda f: (f.line, f.column or 0, f.name))
    declared = []
    for fields in raw_declarations:
        uses = len(re.findall(r"(?<![\w$])" + re.escape(fields["name"]) + r"(?![\w$])", text)) - 1
        declared.append(Declaration(references=max(uses, 0), **fields))

    targets = tuple(ref.target for ref in imports)
    client_line = next((line for value, line in directives if value == "use client"), None)
    code = "\n".join(line for _, line in lines)
    return FileFacts(
        **_base_fields(path, text),
        is_component_file=path.suffix.lower() in COMPONENT_SUFFIXES
        or any(_is_ui_framework_import(t) for t in targets),
        has_client_directive=client_line is not None,
        client_directive_line=client_line,
        has_server_directive=any(value == "use server" for value, _ in directives),
        client_features=tuple(features),
        used_hooks=frozenset(f.name for f in features if f.kind == "hook"),
        used_browser_apis=frozenset(f.name for f in features if f.kind == "browser-api"),
        event_handler_names=frozenset(f.name for f in features if f.kind == "event-handler"),
        imports=tuple(imports),
        import_targets=targets,
        declared_identifiers=tuple(declared),
        fetch_calls=tuple(fetch_calls),
        uses_cache_wrapper=bool(_H_CACHE.search(code)),
        # heuristic fetches are all module scope (0)
        promise_all_scopes=frozenset({0}) if _H_PROMISE_ALL.search(code) else frozenset(),
        async_component_scopes=frozenset({0})
        if path.suffix.lower() in COMPONENT_SUFFIXES and _H_ASYNC_COMPONENT.search(code)
        else frozenset(),
        suspense_boundaries=tuple(suspense),
        has_loading_file=_has_loading_file(path),
        uses_data_library=any(f.name in DATA_LIBRARY_HOOKS for f in features)
        or any(t in DATA_LIBRARY_MODULES for t in targets),
        has_route_segment_config=any(_H_SEGMENT.match(line) for _, line in lines),
        any_types=tuple(any_types),
        raw_img_elements=tuple(images),
        env_accesses=tuple(env_accesses),
        string_bindings=tuple(strings),
        parse_degraded=True,
        parse_error_line=error_line,
    )


# --- manifests ---------------------------------------------------------------


def _line_of_key(text: str, key: str) -> int:
    match = re.search(r'"' + re.escape(key) + r'"\s*:', text)
    if match is None:
        return 1
    return text.count("\n", 0, match.start()) + 1


def _installed_versions(project_dir: Path, names: list[str]) -> dict[str, str]:
    versions: dict[str, str] = {}
    for name in names:
        manifest = project_dir / "node_modules" / name / MANIFEST_NAME
        if not manifest.is_file():
            continue
        try:
            version = json.loads(manifest.read_text(encoding="utf-8")).get("version")
        except (OSError, ValueError, AttributeError) as e:
            logger.debug("Could not read installed version of %s: %s", name, e)
            continue
        if isinstance(version, str):
            versions[name] = version
    return versions


def _analyze_manifest(path: Path, text: str) -> FileFacts:
    base = _base_fields(path, text)
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.warning("Malformed manifest %s: %s", path, e)
        return FileFacts(**base, is_manifest=True, parse_degraded=True, parse_error_line=getattr(e, "lineno", 1))

    dependencies: dict[str, str] = {}
    if isinstance(data, dict):
        for section in ("dependencies", "devDependencies"):
            block = data.get(section)
            if isinstance(block, dict):
                dependencies.update({str(name): str(spec) for name, spec in block.items()})

    return FileFacts(
        **base,
        is_manifest=True,
        dependencies=dependencies,
        dependency_lines={name: _line_of_key(text, name) for name in dependencies},
        installed_versions=_installed_versions(path.parent, sorted(dependencies)),
    )
