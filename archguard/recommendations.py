# Remediation lookup: rule id -> Recommendation (title, message, fix text, doc links).

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from archguard.findings.models import Finding

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

NEXT_DOCS = "https://nextjs.org/docs/app"

DOC_URLS: dict[str, str] = {
    "server-components": f"{NEXT_DOCS}/building-your-application/rendering/server-components",
    "client-components": f"{NEXT_DOCS}/building-your-application/rendering/client-components",
    "composition": f"{NEXT_DOCS}/building-your-application/rendering/composition-patterns",
    "data-fetching": f"{NEXT_DOCS}/building-your-application/data-fetching/fetching",
    "caching": f"{NEXT_DOCS}/building-your-application/caching",
    "streaming": f"{NEXT_DOCS}/building-your-application/routing/loading-ui-and-streaming",
    "image": f"{NEXT_DOCS}/api-reference/components/image",
    "env": f"{NEXT_DOCS}/building-your-application/configuring/environment-variables",
    "server-only": f"{NEXT_DOCS}/building-your-application/rendering/composition-patterns"
    "#keeping-server-only-code-out-of-the-client-environment",
    "hooks": "https://react.dev/reference/react/hooks",
    "react-naming": "https://react.dev/learn/your-first-component#naming-a-component",
    "any": "https://www.typescriptlang.org/docs/handbook/2/everyday-types.html#any",
    "typescript": f"{NEXT_DOCS}/building-your-application/configuring/typescript",
    "npm-semver": "https://docs.npmjs.com/cli/using-npm/semver",
    "secrets": "https://owasp.org/Top10/A07_2021-Identification_and_Authentication_Failures/",
}


class DocLink(BaseModel):
    name: str
    url: str

    model_config = _CAMEL


class Recommendation(BaseModel):
    """How to fix one kind of finding."""

    title: str
    message: str
    fix_text: str
    doc_links: list[DocLink] = Field(default_factory=list)

    model_config = _CAMEL


def _entry(title: str, message: str, fix_text: str, *docs: tuple[str, str]) -> Recommendation:
    return Recommendation(
        title=title,
        message=message,
        fix_text=fix_text,
        doc_links=[DocLink(name=name, url=DOC_URLS[key]) for name, key in docs],
    )


CATALOG: dict[str, Recommendation] = {
    "missing-use-client": _entry(
        "Client Component directive",
        "Hooks, browser APIs and event handlers only work in Client Components.",
        'Add "use client" as the first statement, or move the interactive part into a *-client.tsx child.',
        ("Client Components", "client-components"),
        ("React hooks", "hooks"),
    ),
    "unnecessary-use-client": _entry(
        "Unneeded Client Component",
        "This file uses no client-only features; as a Server Component it ships no JavaScript to the browser.",
        'Remove the "use client" directive.',
        ("Server Components", "server-components"),
    ),
    "browser-api-in-server": _entry(
        "Browser API in a Server Component",
        "window, document and friends do not exist while rendering on the server.",
        "Move the browser-dependent code into a Client Component and render it from here.",
        ("Composition patterns", "composition"),
    ),
    "sequential-fetches": _entry(
        "Request waterfall",
        "Awaiting independent requests one after another adds their latencies together.",
        "Start the requests together and await them with Promise.all([...]).",
        ("Data fetching", "data-fetching"),
        ("Streaming", "streaming"),
    ),
    "client-fetch-without-cache": _entry(
        "Uncached client fetch",
        "fetch() in a Client Component runs on every render without deduplication.",
        "Fetch in a Server Component and pass data down, or use SWR / React Query.",
        ("Data fetching", "data-fetching"),
    ),
    "missing-fetch-options": _entry(
        "fetch() without caching options",
        "Without cache or next.revalidate the request's caching behaviour is implicit.",
        "Pass { cache: 'force-cache' } or { next: { revalidate: N } }, or export a route segment config.",
        ("Caching", "caching"),
    ),
    "missing-cache-usage": _entry(
        "Shared data not memoized",
        "Several fetches in one server module can repeat work across a single render.",
        "Wrap the data loader in React cache() so repeated calls are deduplicated.",
        ("Caching", "caching"),
    ),
    "suspense-missing": _entry(
        "Streaming without Suspense",
        "An async Server Component blocks the whole route until its data arrives unless a Suspense boundary streams it.",
        "Wrap the component in <Suspense fallback={...}> where it is rendered, or add a loading.tsx to the route.",
        ("Streaming", "streaming"),
    ),
    "suspense-without-fallback": _entry(
        "Suspense fallback",
        "A Suspense boundary without fallback UI shows nothing while its children load.",
        "Pass a loading skeleton to the fallback prop.",
        ("Streaming", "streaming"),
    ),
    "component-naming": _entry(
        "Component naming",
        "React treats lowercase JSX tags as HTML elements, so components must be PascalCase.",
        "Rename the component to PascalCase.",
        ("Naming a component", "react-naming"),
    ),
    "variable-naming": _entry(
        "Variable naming",
        "Variables and functions use camelCase; constants may use UPPER_SNAKE_CASE.",
        "Rename the identifier to camelCase.",
    ),
    "type-naming": _entry(
        "Type naming",
        "Classes, interfaces and type aliases use PascalCase.",
        "Rename the type to PascalCase.",
        ("TypeScript in Next.js", "typescript"),
    ),
    "component-filename-mismatch": _entry(
        "Component and file name differ",
        "Matching names make components easy to find and import.",
        "Rename the component or the file so they match.",
    ),
    "unused-variable": _entry(
        "Unused variable",
        "Unused declarations are dead code and often hide a mistake.",
        "Remove the declaration, or prefix it with '_' if it must stay.",
    ),
    "file-size-limit": _entry(
        "File too large",
        "Very large files are hard to review and usually mix several responsibilities.",
        "Split the file into smaller components or modules.",
        ("Composition patterns", "composition"),
    ),
    "file-size-warning": _entry(
        "File approaching size limit",
        "This file is close to the maximum allowed size.",
        "Consider extracting parts before it crosses the limit.",
    ),
    "raw-img-element": _entry(
        "Unoptimized image",
        "Raw <img> elements skip Next.js image optimization and lazy loading.",
        "Use the Image component from next/image.",
        ("Image component", "image"),
    ),
    "hardcoded-secret": _entry(
        "Hardcoded secret",
        "Secrets in source code end up in version control and possibly in the browser bundle.",
        "Load the value from an environment variable or a secrets manager.",
        ("Environment variables", "env"),
        ("OWASP", "secrets"),
    ),
    "client-env-exposure": _entry(
        "Server environment variable in client code",
        "Only NEXT_PUBLIC_ variables are inlined into the browser bundle; others are undefined there.",
        "Read the variable in a Server Component, or rename it with the NEXT_PUBLIC_ prefix if it is public.",
        ("Environment variables", "env"),
    ),
    "server-only-import": _entry(
        "Server-only module in client code",
        "Node.js modules cannot be bundled for the browser.",
        "Move this logic to a Server Component, route handler or server action.",
        ("Keeping server-only code out of the client", "server-only"),
    ),
    "any-type": _entry(
        "Explicit any",
        "any disables type checking for everything it touches.",
        "Use a specific type, a generic, or unknown with narrowing.",
        ("The any type", "any"),
    ),
    "long-lines": _entry(
        "Long lines",
        "Long lines are hard to read in reviews and side-by-side diffs.",
        "Break long expressions and JSX props over several lines.",
    ),
    "mixed-indentation": _entry(
        "Mixed indentation",
        "Mixing tabs and spaces renders differently across editors.",
        "Use one indentation style (spaces) throughout the file.",
    ),
    "semicolon-consistency": _entry(
        "Inconsistent semicolons",
        "Mixing statements with and without semicolons makes diffs noisy.",
        "Pick one style and apply it to the whole file (a formatter can do this).",
    ),
    "disallowed-dependency": _entry(
        "Disallowed dependency",
        "The dependency policy forbids this package.",
        "Remove it and use the alternative named in the policy notes.",
    ),
    "unapproved-dependency": _entry(
        "Unapproved dependency",
        "Only packages listed in the dependency policy are approved for use.",
        "Request approval and add the package to the policy, or remove it.",
    ),
    "dependency-version": _entry(
        "Dependency version outside policy",
        "The installed version does not satisfy the range approved by the policy.",
        "Install a version within the approved range.",
        ("npm semver ranges", "npm-semver"),
    ),
    "parse-error": _entry(
        "File could not be parsed",
        "Results for this file come from text heuristics and may be incomplete.",
        "Fix the syntax error so the file can be analyzed precisely.",
    ),
    "policy-load-error": _entry(
        "Dependency policy not loaded",
        "No allow or deny list was applied to this check.",
        "Add a .dependency-policy.md with Approved and Disallowed Dependencies tables.",
    ),
}

FALLBACK = Recommendation(
    title="Style issue",
    message="Review the code for potential improvements.",
    fix_text="Review the code for potential improvements.",
)


def recommend(finding: Finding) -> Recommendation:
    """
    Recommendation for a finding; unknown rule ids get the generic fallback.

    A rule-specific fix carried by the finding overrides the catalog's fix text.
    """
    entry = CATALOG.get(finding.rule_id, FALLBACK)
    if finding.fix:
        return entry.model_copy(update={"fix_text": finding.fix})
    return entry


def recommendations_for(findings: Iterable[Finding]) -> dict[str, Recommendation]:
    """One recommendation per rule id, in first-seen order."""
    result: dict[str, Recommendation] = {}
    for finding in findings:
        if finding.rule_id not in result:
            result[finding.rule_id] = recommend(finding)
    return result
