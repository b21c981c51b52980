#!/usr/bin/env python3
"""
LayerChart Docs MCP Server

A lightweight MCP server that gives agents access to the LayerChart documentation.
Routes from www.layerchart.com are mapped onto the Svelte sources in the
techniq/layerchart GitHub repository, which are fetched, cleaned and searched on demand.

Original source: https://github.com/Unlock-MCP/mcp-docs-server
Copyright (c) 2025 UnlockMCP
Licensed under MIT License (see LICENSE file)
"""

import asyncio
import json
import os
import re
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

try:
    from mcp.server.fastmcp import FastMCP
except ImportError:
    print(
        "FATAL ERROR: 'mcp' library not found. Install with: pip install mcp[cli]>=1.2.0",
        file=sys.stderr
    )
    sys.exit(1)

SITE_ORIGIN = "https://www.layerchart.com"
GITHUB_REPO = "techniq/layerchart"
GITHUB_BRANCH = "main"
PACKAGE_PATH = "packages/layerchart"
GITHUB_RAW_BASE = f"https://raw.githubusercontent.com/{GITHUB_REPO}/{GITHUB_BRANCH}/{PACKAGE_PATH}"
GITHUB_API = "https://api.github.com"
GITHUB_ACCEPT = "application/vnd.github+json"
USER_AGENT = "LayerChart-Docs-MCP-Server"

SOURCE_EXTENSION = ".svelte"
PAGE_SOURCE = f"+page{SOURCE_EXTENSION}"
GETTING_STARTED_ROUTE = "/getting-started"
RELATED_PAGE = f"{SITE_ORIGIN}/docs/components/BarChart"

# Directory listed on GitHub -> route prefix of its entries
ROUTE_SUBTREES = (
    ("components", "/docs/components/"),
    ("examples", "/docs/examples/"),
)

MAX_GITHUB_RESULTS = 10
MAX_SCAN_RESULTS = 20
PREVIEW_RADIUS = 150


def _env_choice(name: str, default: str, allowed: tuple) -> str:
    value = os.environ.get(name, default).strip().lower()
    if value not in allowed:
        print(f"WARNING: {name}={value!r} is not one of {allowed}, using {default!r}", file=sys.stderr)
        return default
    return value


def _env_number(name: str, default, convert=float):
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = convert(raw.strip())
    except ValueError:
        print(f"WARNING: {name}={raw!r} is not a valid number, using {default!r}", file=sys.stderr)
        return default
    if not value > 0:
        print(f"WARNING: {name}={raw!r} must be positive, using {default!r}", file=sys.stderr)
        return default
    return value


# Configuration - environment variables only affect server wiring
HTTP_TIMEOUT = _env_number('LAYERCHART_HTTP_TIMEOUT', 15.0)
LIST_STRATEGY = _env_choice('LAYERCHART_LIST_STRATEGY', 'github', ('github', 'site'))
SEARCH_STRATEGY = _env_choice('LAYERCHART_SEARCH_STRATEGY', 'scan', ('scan', 'github'))
SCAN_CONCURRENCY = _env_number('LAYERCHART_SCAN_CONCURRENCY', 5, int)

# Initialize FastMCP server
mcp = FastMCP(
    "layerchart-docs",
    instructions=(
        "Discover, fetch and search LayerChart documentation. Routes look like "
        "/docs/components/BarChart; use list_docs to enumerate them."
    ),
)

_TRAILING_SLASH = re.compile(r"/$")
_WHITESPACE = re.compile(r"\s+")


class SourceError(Exception):
    """Raised when a listing or search endpoint cannot be used."""


# ---------------------------------------------------------------------------
# Route mapping
# ---------------------------------------------------------------------------

def normalize_route(route: str) -> str:
    """Strip the site origin and a trailing slash from a route or page URL."""
    return _TRAILING_SLASH.sub("", route.replace(SITE_ORIGIN, "", 1))


def resolve_source_url(route: str, variant: str) -> Optional[str]:
    """
    Map a documentation route to the raw GitHub URL of its Svelte source.

    Args:
        route: Documentation route, e.g. /docs/components/BarChart
        variant: "usage" for the docs page itself, "implementation" for the component

    Returns:
        The raw source URL, or None when the route has no source of that kind
    """
    clean_route = normalize_route(route)

    if variant == "usage":
        if clean_route == GETTING_STARTED_ROUTE:
            return f"{GITHUB_RAW_BASE}/src/routes/docs/getting-started/{PAGE_SOURCE}"
        return f"{GITHUB_RAW_BASE}/src/routes{clean_route}/{PAGE_SOURCE}"

    if variant == "implementation":
        if "/components/" not in clean_route:
            return None
        component = clean_route.split("/")[-1]
        if not component:
            return None
        return f"{GITHUB_RAW_BASE}/src/lib/components/{component}{SOURCE_EXTENSION}"

    return None


def route_from_repo_path(path: str) -> Optional[str]:
    """Map a repository file path back to the documentation route it renders."""
    if "src/routes/docs" in path:
        return path.replace(f"{PACKAGE_PATH}/src/routes", "").replace(f"/{PAGE_SOURCE}", "")
    if "src/lib/components" in path:
        name = path.split("/")[-1]
        if name.endswith(SOURCE_EXTENSION):
            name = name[:-len(SOURCE_EXTENSION)]
        return f"/docs/components/{name}"
    return None


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------

def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_text(markup: str) -> str:
    """Return the readable text of a page or Svelte source, without scripts and styles."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return collapse_whitespace(soup.get_text(separator=" "))


def extract_main_text(html: str) -> str:
    """Return the text of the <main> region of a rendered page (or <body> as fallback)."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    for selector in ("main", "body"):
        region = soup.find(selector)
        if region is not None:
            text = collapse_whitespace(region.get_text(separator=" "))
            if text:
                return text
    return collapse_whitespace(soup.get_text(separator=" "))


def extract_related_routes(html: str) -> List[str]:
    """Collect the component and example links listed under a page's "Related" heading."""
    soup = BeautifulSoup(html, "html.parser")
    heading = next((h for h in soup.find_all("h1") if "Related" in h.get_text()), None)
    if heading is None:
        return []

    routes: List[str] = []
    in_section = False
    for element in heading.find_next_siblings():
        if element.name == "h2":
            in_section = element.get_text(strip=True) in ("COMPONENTS", "EXAMPLES")
        elif in_section and element.name == "p":
            for link in element.select('a[href^="/docs"]'):
                href = link.get("href")
                if href:
                    routes.append(_TRAILING_SLASH.sub("", href))
    return routes


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@dataclass
class FetchOutcome:
    """Result of a single GET: ok, not_found, http_error or network_error."""

    kind: str
    url: str
    status: Optional[int] = None
    body: str = ""
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind == "ok"


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=HTTP_TIMEOUT,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


async def fetch_text(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FetchOutcome:
    """GET a URL and classify the response instead of raising."""
    if client is None:
        async with _http_client() as owned:
            return await fetch_text(url, headers=headers, client=owned)

    try:
        response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        return FetchOutcome("network_error", url, detail=str(e) or type(e).__name__)

    if response.status_code == 404:
        return FetchOutcome("not_found", url, status=404, body=response.text, detail="Not Found")
    if not response.is_success:
        return FetchOutcome(
            "http_error", url,
            status=response.status_code,
            body=response.text,
            detail=response.reason_phrase or f"HTTP {response.status_code}",
        )
    return FetchOutcome("ok", url, status=response.status_code, body=response.text)


def _fetch_error(message: str, outcome: FetchOutcome) -> Dict[str, Any]:
    """Turn a failed FetchOutcome into a tool error result."""
    if outcome.kind == "not_found":
        return {"error": message, "url": outcome.url, "status": 404}
    result: Dict[str, Any] = {"error": message, "url": outcome.url, "details": outcome.detail}
    if outcome.status is not None:
        result["status"] = outcome.status
    return result


# ---------------------------------------------------------------------------
# Route listing
# ---------------------------------------------------------------------------

def _contents_url(subtree: str) -> str:
    return (
        f"{GITHUB_API}/repos/{GITHUB_REPO}/contents/{PACKAGE_PATH}/src/routes/docs/{subtree}"
        f"?ref={GITHUB_BRANCH}"
    )


async def list_routes_from_github(client: httpx.AsyncClient) -> List[str]:
    """Enumerate component and example routes from the repository's docs directories."""
    routes = set()
    for subtree, prefix in ROUTE_SUBTREES:
        outcome = await fetch_text(_contents_url(subtree), headers={"Accept": GITHUB_ACCEPT}, client=client)
        if not outcome.ok:
            raise SourceError(f"Listing {subtree} failed ({outcome.kind}): {outcome.detail}")
        try:
            entries = json.loads(outcome.body)
        except ValueError as e:
            raise SourceError(f"Listing {subtree} returned invalid JSON: {e}")
        if not isinstance(entries, list):
            raise SourceError(f"Listing {subtree} did not return a directory")
        for entry in entries:
            if isinstance(entry, dict) and entry.get("type") == "dir" and entry.get("name"):
                routes.add(f"{prefix}{entry['name']}")
    return sorted(routes)


async def list_routes_from_site(client: httpx.AsyncClient) -> List[str]:
    """Enumerate routes from the "Related" navigation of a rendered component page."""
    outcome = await fetch_text(RELATED_PAGE, client=client)
    if not outcome.ok:
        raise SourceError(f"Fetching {RELATED_PAGE} failed ({outcome.kind}): {outcome.detail}")
    return sorted(set(extract_related_routes(outcome.body)))


# ---------------------------------------------------------------------------
# Search strategies
# ---------------------------------------------------------------------------

async def search_github(query: str) -> Dict[str, Any]:
    """Delegate to the GitHub code search API, scoped to the LayerChart package."""
    q = quote(f"{query} repo:{GITHUB_REPO} path:{PACKAGE_PATH}", safe="")
    outcome = await fetch_text(
        f"{GITHUB_API}/search/code?q={q}",
        headers={"Accept": GITHUB_ACCEPT, "User-Agent": USER_AGENT},
    )

    if outcome.kind == "network_error":
        return {"error": "Failed to search documentation", "details": outcome.detail}
    if not outcome.ok:
        details = outcome.detail
        try:
            details = json.loads(outcome.body).get("message") or details
        except (ValueError, AttributeError):
            pass
        return {"error": "GitHub Search API error", "status": outcome.status, "details": details}

    data = json.loads(outcome.body)
    items = sorted(data.get("items", []), key=lambda item: item.get("score") or 0, reverse=True)
    results = [
        {
            "name": item.get("name"),
            "path": item.get("path"),
            "route": route_from_repo_path(item.get("path") or ""),
            "github_url": item.get("html_url"),
            "score": item.get("score"),
        }
        for item in items[:MAX_GITHUB_RESULTS]
    ]
    return {
        "query": query,
        "strategy": "github",
        "total_count": data.get("total_count", len(items)),
        "results": results,
    }


async def search_scan(query: str) -> Dict[str, Any]:
    """Match the query against route names, then against each page's source."""
    needle = query.lower()
    pattern = re.compile(re.escape(query), re.IGNORECASE)

    async with _http_client() as client:
        routes = await list_routes_from_github(client)
        semaphore = asyncio.Semaphore(SCAN_CONCURRENCY)

        async def match_route(route: str) -> Optional[Dict[str, Any]]:
            name = route.split("/")[-1]
            if needle in name.lower():
                return {"route": route, "name": name, "relevance": "high", "match": "route_name"}

            url = resolve_source_url(route, "usage")
            if url is None:
                return None
            async with semaphore:
                outcome = await fetch_text(url, client=client)
            if not outcome.ok:
                print(f"Skipping {route}: {outcome.kind} {outcome.detail}", file=sys.stderr)
                return None

            found = pattern.search(outcome.body)
            if found is None:
                return None
            start = max(0, found.start() - PREVIEW_RADIUS)
            end = min(len(outcome.body), found.end() + PREVIEW_RADIUS)
            return {
                "route": route,
                "name": name,
                "relevance": "medium",
                "match": "content",
                "preview": collapse_whitespace(outcome.body[start:end]),
                "github_url": url,
            }

        async def scan(route: str) -> Optional[Dict[str, Any]]:
            try:
                return await match_route(route)
            except Exception as e:
                print(f"Skipping {route}: {e}", file=sys.stderr)
                return None

        hits = [hit for hit in await asyncio.gather(*(scan(r) for r in routes)) if hit]

    # sort is stable: high before medium, route order otherwise
    hits.sort(key=lambda hit: hit["relevance"] != "high")
    results = hits[:MAX_SCAN_RESULTS]
    return {"query": query, "strategy": "scan", "count": len(results), "results": results}


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@mcp.tool()
async def list_docs() -> Dict[str, Any]:
    """
    List all available documentation pages and component routes from LayerChart.

    Returns:
        The sorted routes and their count
    """
    print(f"Listing documentation routes ({LIST_STRATEGY})", file=sys.stderr)
    try:
        async with _http_client() as client:
            if LIST_STRATEGY == "site":
                routes = await list_routes_from_site(client)
            else:
                routes = await list_routes_from_github(client)
    except Exception as e:
        print(f"ERROR listing routes: {e}", file=sys.stderr)
        return {"error": "Failed to fetch documentation list", "details": str(e)}

    return {"strategy": LIST_STRATEGY, "count": len(routes), "routes": routes}


@mcp.tool()
async def get_source(route: str, variant: Literal["usage", "implementation"]) -> Dict[str, Any]:
    """
    Fetch raw source code for a documentation page or component implementation.

    Args:
        route: The documentation route (e.g. /docs/components/BarChart)
        variant: 'usage' for the docs page code, 'implementation' for the component source code

    Returns:
        The unmodified Svelte source and the GitHub URL it came from
    """
    print(f"Fetching {variant} source for: {route}", file=sys.stderr)
    url = resolve_source_url(route, variant)
    if url is None:
        return {"error": "Could not map route to a GitHub URL", "route": route, "variant": variant}

    try:
        outcome = await fetch_text(url)
        if outcome.kind == "not_found":
            return _fetch_error("File not found in GitHub repo", outcome)
        if outcome.kind == "http_error":
            return _fetch_error("GitHub returned an error status", outcome)
        if not outcome.ok:
            return _fetch_error("Failed to fetch source code", outcome)

        return {
            "route": route,
            "variant": variant,
            "github_url": url,
            "content": outcome.body,
            "language": "svelte",
        }
    except Exception as e:
        print(f"ERROR fetching {url}: {e}", file=sys.stderr)
        return {"error": "Failed to fetch source code", "details": str(e)}


@mcp.tool()
async def get_doc(route: str, include_rendered: bool = False) -> Dict[str, Any]:
    """
    Get the documentation content for a specific route.

    Args:
        route: The documentation route (e.g. /docs/components/BarChart)
        include_rendered: Also fetch the rendered page from the website and return its main text

    Returns:
        Cleaned text of the page source, the raw source, and the GitHub URL
    """
    print(f"Getting documentation for: {route}", file=sys.stderr)
    url = resolve_source_url(route, "usage")
    if url is None:
        return {"error": "Could not map route to a GitHub URL", "route": route}

    try:
        outcome = await fetch_text(url)
        if outcome.kind == "not_found":
            return _fetch_error("Documentation page not found in GitHub repo", outcome)
        if not outcome.ok:
            return _fetch_error("Failed to fetch documentation", outcome)

        result: Dict[str, Any] = {
            "route": route,
            "github_url": url,
            "text": extract_text(outcome.body),
            "code": outcome.body,
        }

        if include_rendered:
            page_url = route if route.startswith("http") else f"{SITE_ORIGIN}{route}"
            page = await fetch_text(page_url)
            if page.ok:
                result["rendered_text"] = extract_main_text(page.body)
            else:
                print(f"Rendered page unavailable for {route}: {page.kind} {page.detail}", file=sys.stderr)

        return result
    except Exception as e:
        print(f"ERROR getting documentation for {route}: {e}", file=sys.stderr)
        return {"error": "Failed to fetch documentation", "details": str(e)}


@mcp.tool()
async def search_docs(query: str) -> Dict[str, Any]:
    """
    Search LayerChart documentation and components.

    Args:
        query: The search query (e.g. 'BarChart', 'tooltip')

    Returns:
        Matching routes, most relevant first
    """
    print(f"Searching for: {query} ({SEARCH_STRATEGY})", file=sys.stderr)
    if not query.strip():
        return {"error": "Query must not be empty"}

    try:
        if SEARCH_STRATEGY == "github":
            return await search_github(query)
        return await search_scan(query)
    except Exception as e:
        print(f"ERROR searching for {query!r}: {e}", file=sys.stderr)
        return {"error": "Failed to search documentation", "details": str(e)}


def main() -> None:
    print("Starting LayerChart docs MCP server...", file=sys.stderr)
    print(f"Serving sources from: {GITHUB_RAW_BASE}", file=sys.stderr)
    mcp.run()


if __name__ == "__main__":
    main()
