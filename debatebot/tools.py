"""Research tools the model can call mid-turn: web search, page fetch, encyclopedia lookup.

The remote services are black boxes reached over HTTP. Every failure is turned
into a ``ToolResult`` carrying an error string so one broken lookup never stops
the rest of a tool round-trip.
"""

import json
import logging
import os
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from config.config_loader import ToolsConfig
from debatebot.models import Source, ToolResult
from debatebot.providers.base import TransportFailure

logger = logging.getLogger(__name__)

_USER_AGENT = "debatebot/0.1 (chat debate bot)"


class ParseFailure(Exception):
    """Malformed tool arguments or an upstream payload we cannot read."""


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


class ToolKind(str, Enum):
    WEB_SEARCH = "web_search"
    WEB_FETCH = "web_fetch"
    ENCYCLOPEDIA_LOOKUP = "encyclopedia_lookup"


# Required argument per tool
_ARGUMENT_NAMES: dict[ToolKind, str] = {
    ToolKind.WEB_SEARCH: "query",
    ToolKind.WEB_FETCH: "url",
    ToolKind.ENCYCLOPEDIA_LOOKUP: "query",
}


def _function_tool(kind: ToolKind, description: str, argument_description: str) -> dict[str, Any]:
    argument = _ARGUMENT_NAMES[kind]
    return {
        "type": "function",
        "function": {
            "name": kind.value,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {
                    argument: {"type": "string", "description": argument_description},
                },
                "required": [argument],
            },
        },
    }


TOOL_CATALOG: list[dict[str, Any]] = [
    _function_tool(
        ToolKind.WEB_SEARCH,
        "Search the web for current information, facts, and statistics on a topic",
        "The search query to find relevant information",
    ),
    _function_tool(
        ToolKind.WEB_FETCH,
        "Fetch and read the content from a specific webpage URL",
        "The URL of the webpage to fetch",
    ),
    _function_tool(
        ToolKind.ENCYCLOPEDIA_LOOKUP,
        "Look up a topic in Wikipedia for factual information, definitions, and encyclopedic knowledge",
        "The topic to look up",
    ),
]


def _parse_arguments(kind: ToolKind, arguments: str | dict[str, Any]) -> str:
    """Return the single required argument, raising ParseFailure if unusable."""
    if isinstance(arguments, str):
        try:
            parsed = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as exc:
            raise ParseFailure(f"Invalid arguments for {kind.value}: {exc.msg}") from exc
    else:
        parsed = arguments

    if not isinstance(parsed, dict):
        raise ParseFailure(f"Arguments for {kind.value} must be a JSON object")

    name = _ARGUMENT_NAMES[kind]
    value = parsed.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ParseFailure(f"Missing required argument '{name}' for {kind.value}")
    return value.strip()


class ResearchBackend:
    """Async HTTP client for the search/fetch API and the Wikipedia API."""

    def __init__(self, config: ToolsConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._api_key = os.environ.get(config.api_key_env, "").strip()
        if not self._api_key:
            logger.warning("%s not set - web search/fetch will fail", config.api_key_env)
        self._client = client or httpx.AsyncClient(
            timeout=float(config.timeout_sec),
            headers={"User-Agent": _USER_AGENT},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, service: str, url: str, **kwargs: Any) -> Any:
        return await self._request_json(service, "GET", url, **kwargs)

    async def _post_json(self, service: str, url: str, body: dict[str, Any]) -> Any:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        return await self._request_json(service, "POST", url, json=body, headers=headers)

    async def _request_json(self, service: str, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportFailure(
                service, f"{exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(service, str(exc) or type(exc).__name__) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ParseFailure(f"{service} returned invalid JSON") from exc

    async def web_search(self, query: str, max_results: int) -> list[dict[str, Any]]:
        """Return ranked {title, url, content} entries; empty list on no results."""
        data = await self._post_json(
            "web_search",
            f"{self._config.api_base}/web_search",
            {"query": query, "max_results": max_results},
        )
        if not isinstance(data, dict):
            raise ParseFailure("web_search returned a non-object payload")
        results = data.get("results") or []
        if not isinstance(results, list):
            raise ParseFailure("web_search results is not a list")
        return [
            {
                "title": _text(r.get("title")),
                "url": _text(r.get("url")),
                "content": _text(r.get("content")) or _text(r.get("snippet")) or _text(r.get("description")),
            }
            for r in results
            if isinstance(r, dict)
        ]

    async def web_fetch(self, url: str) -> dict[str, Any]:
        """Return {title, content} for a page; missing or non-string fields come back empty."""
        data = await self._post_json("web_fetch", f"{self._config.api_base}/web_fetch", {"url": url})
        if not isinstance(data, dict):
            raise ParseFailure("web_fetch returned a non-object payload")
        return {"title": _text(data.get("title")), "content": _text(data.get("content"))}

    async def encyclopedia(self, query: str) -> dict[str, Any] | None:
        """Return {title, extract, url} for the best match, or None if nothing matches."""
        base = self._config.encyclopedia_base
        search = await self._get_json(
            "encyclopedia_lookup",
            f"{base}/w/api.php",
            params={
                "action": "query",
                "list": "search",
                "srsearch": query,
                "format": "json",
                "srlimit": 1,
            },
        )
        if not isinstance(search, dict):
            raise ParseFailure("encyclopedia search returned a non-object payload")
        block = search.get("query") or {}
        if not isinstance(block, dict):
            raise ParseFailure("encyclopedia search 'query' is not an object")
        hits = block.get("search")
        if not hits:
            return None
        if not isinstance(hits, list) or not isinstance(hits[0], dict):
            raise ParseFailure("encyclopedia search hits are malformed")

        title = _text(hits[0].get("title")).strip()
        if not title:
            raise ParseFailure("encyclopedia search hit has no title")
        summary = await self._get_json(
            "encyclopedia_lookup",
            f"{base}/api/rest_v1/page/summary/{quote(title.replace(' ', '_'), safe='')}",
        )
        if not isinstance(summary, dict):
            raise ParseFailure("encyclopedia summary is not an object")
        urls = summary.get("content_urls")
        desktop = urls.get("desktop") if isinstance(urls, dict) else None
        page_url = _text(desktop.get("page")) if isinstance(desktop, dict) else ""
        return {
            "title": _text(summary.get("title")) or title,
            "extract": _text(summary.get("extract")),
            "url": page_url or None,
        }


class ToolExecutor:
    """Runs one requested tool and normalizes its output into a ToolResult."""

    def __init__(self, backend: ResearchBackend, config: ToolsConfig) -> None:
        self._backend = backend
        self._config = config
        self._handlers = {
            ToolKind.WEB_SEARCH: self._web_search,
            ToolKind.WEB_FETCH: self._web_fetch,
            ToolKind.ENCYCLOPEDIA_LOOKUP: self._encyclopedia_lookup,
        }
        missing = set(ToolKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for tools: {sorted(k.value for k in missing)}")

    async def execute(self, tool_name: str, arguments: str | dict[str, Any]) -> ToolResult:
        """Execute a tool call. Never raises; failures come back as error results."""
        try:
            kind = ToolKind(tool_name)
        except ValueError:
            logger.warning("Model requested unknown tool: %s", tool_name)
            return ToolResult(tool_name=tool_name, error=f"Unknown tool: {tool_name}")

        try:
            argument = _parse_arguments(kind, arguments)
        except ParseFailure as exc:
            logger.error("Tool %s: %s (raw=%r)", tool_name, exc, arguments)
            return ToolResult(tool_name=tool_name, error=str(exc))

        logger.info("Tool %s: %s", tool_name, argument)

        try:
            return await self._handlers[kind](argument)
        except (TransportFailure, ParseFailure) as exc:
            logger.error("Tool %s failed: %s", tool_name, exc)
            return ToolResult(tool_name=tool_name, error=f"{tool_name} failed: {exc}")

    async def _web_search(self, query: str) -> ToolResult:
        results = await self._backend.web_search(query, self._config.max_results)
        if not results:
            return ToolResult(tool_name=ToolKind.WEB_SEARCH.value, error="No search results found")

        entries = [
            {
                "title": r["title"],
                "url": r["url"],
                "snippet": r["content"][: self._config.snippet_length],
            }
            for r in results
        ]
        sources = [Source(title=e["title"] or "Source", url=e["url"]) for e in entries if e["url"]]
        return ToolResult(
            tool_name=ToolKind.WEB_SEARCH.value,
            payload={"results": entries},
            sources=sources,
        )

    async def _web_fetch(self, url: str) -> ToolResult:
        data = await self._backend.web_fetch(url)
        title = data["title"] or "Source"
        content = data["content"][: self._config.fetch_content_cap]
        return ToolResult(
            tool_name=ToolKind.WEB_FETCH.value,
            payload={"title": title, "content": content, "url": url},
            sources=[Source(title=title, url=url)],
        )

    async def _encyclopedia_lookup(self, query: str) -> ToolResult:
        article = await self._backend.encyclopedia(query)
        if article is None:
            return ToolResult(tool_name=ToolKind.ENCYCLOPEDIA_LOOKUP.value, error="No Wikipedia article found")

        sources = [Source(title=article["title"], url=article["url"])] if article.get("url") else []
        return ToolResult(
            tool_name=ToolKind.ENCYCLOPEDIA_LOOKUP.value,
            payload=article,
            sources=sources,
        )
