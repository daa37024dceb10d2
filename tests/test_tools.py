"""Tests for debatebot/tools.py, with HTTP served by httpx.MockTransport."""

import json

import httpx
import pytest

from debatebot.models import Source
from debatebot.tools import TOOL_CATALOG, ResearchBackend, ToolExecutor, ToolKind


def _executor(tools_config, handler) -> ToolExecutor:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ToolExecutor(ResearchBackend(tools_config, client=client), tools_config)


def test_catalog_covers_every_tool_kind():
    names = {tool["function"]["name"] for tool in TOOL_CATALOG}
    assert names == {kind.value for kind in ToolKind}


def test_catalog_arguments_are_single_required_strings():
    for tool in TOOL_CATALOG:
        params = tool["function"]["parameters"]
        assert len(params["required"]) == 1
        (arg,) = params["required"]
        assert params["properties"][arg]["type"] == "string"


async def test_web_search_truncates_snippets_and_collects_sources(tools_config, monkeypatch):
    monkeypatch.setenv("TEST_SEARCH_KEY", "secret")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"results": [
            {"title": "Study A", "url": "https://a.test", "content": "x" * 900},
            {"title": "Study B", "url": "https://b.test", "content": "short"},
        ]})

    result = await _executor(tools_config, handler).execute("web_search", '{"query": "coffee health"}')

    assert result.ok
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {"query": "coffee health", "max_results": 5}
    snippets = [r["snippet"] for r in result.payload["results"]]
    assert len(snippets[0]) == 500
    assert snippets[1] == "short"
    assert result.sources == [Source("Study A", "https://a.test"), Source("Study B", "https://b.test")]


async def test_web_search_no_results_is_error_result(tools_config):
    result = await _executor(tools_config, lambda r: httpx.Response(200, json={"results": []})).execute(
        "web_search", '{"query": "nothing"}'
    )
    assert not result.ok
    assert result.error == "No search results found"
    assert result.sources == []


async def test_web_fetch_caps_content(tools_config):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/web_fetch"
        return httpx.Response(200, json={"title": "Page", "content": "y" * 5000})

    result = await _executor(tools_config, handler).execute("web_fetch", {"url": "https://page.test"})

    assert result.payload["title"] == "Page"
    assert len(result.payload["content"]) == 2000
    assert result.sources == [Source("Page", "https://page.test")]


async def test_encyclopedia_lookup_found(tools_config):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/w/api.php":
            assert request.url.params["srsearch"] == "stoicism"
            return httpx.Response(200, json={"query": {"search": [{"title": "Stoic philosophy"}]}})
        assert request.url.path == "/api/rest_v1/page/summary/Stoic_philosophy"
        return httpx.Response(200, json={
            "title": "Stoicism",
            "extract": "Stoicism is a school of Hellenistic philosophy.",
            "content_urls": {"desktop": {"page": "https://wiki.test/wiki/Stoicism"}},
        })

    result = await _executor(tools_config, handler).execute("encyclopedia_lookup", '{"query": "stoicism"}')

    assert result.ok
    assert result.payload["extract"].startswith("Stoicism is")
    assert result.sources == [Source("Stoicism", "https://wiki.test/wiki/Stoicism")]


async def test_encyclopedia_lookup_not_found(tools_config):
    handler = lambda r: httpx.Response(200, json={"query": {"search": []}})  # noqa: E731
    result = await _executor(tools_config, handler).execute("encyclopedia_lookup", '{"query": "zzqx"}')
    assert result.error == "No Wikipedia article found"


@pytest.mark.parametrize("arguments", ['{"query": ', "[1, 2]", "{}", '{"query": "   "}'])
async def test_malformed_arguments_give_error_result(tools_config, arguments):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no HTTP call expected")

    result = await _executor(tools_config, handler).execute("web_search", arguments)
    assert not result.ok
    assert "web_search" in result.error


async def test_unknown_tool_is_error_result(tools_config):
    result = await _executor(tools_config, lambda r: httpx.Response(200)).execute("calculator", "{}")
    assert result.error == "Unknown tool: calculator"


async def test_http_error_is_tagged_error_result(tools_config):
    result = await _executor(tools_config, lambda r: httpx.Response(503)).execute(
        "web_search", '{"query": "x"}'
    )
    assert not result.ok
    assert result.error.startswith("web_search failed:")
    assert "503" in result.error


async def test_connection_error_is_error_result(tools_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _executor(tools_config, handler).execute("web_fetch", '{"url": "https://x.test"}')
    assert result.error.startswith("web_fetch failed:")


async def test_invalid_json_payload_is_error_result(tools_config):
    result = await _executor(tools_config, lambda r: httpx.Response(200, text="<html>")).execute(
        "web_fetch", '{"url": "https://x.test"}'
    )
    assert result.error.startswith("web_fetch failed:")


@pytest.mark.parametrize("payload", [
    {"query": {"search": [{"pageid": 1}]}},
    {"query": {"search": [{"title": 42}]}},
    {"query": {"search": ["Stoicism"]}},
    {"query": ["Stoicism"]},
    ["Stoicism"],
])
async def test_encyclopedia_malformed_search_payload_is_error_result(tools_config, payload):
    result = await _executor(tools_config, lambda r: httpx.Response(200, json=payload)).execute(
        "encyclopedia_lookup", '{"query": "stoicism"}'
    )
    assert not result.ok
    assert result.error.startswith("encyclopedia_lookup failed:")


async def test_encyclopedia_empty_query_block_is_not_found(tools_config):
    result = await _executor(tools_config, lambda r: httpx.Response(200, json={"query": []})).execute(
        "encyclopedia_lookup", '{"query": "stoicism"}'
    )
    assert result.error == "No Wikipedia article found"


async def test_encyclopedia_summary_with_odd_fields(tools_config):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/w/api.php":
            return httpx.Response(200, json={"query": {"search": [{"title": "Stoicism"}]}})
        return httpx.Response(200, json={"title": None, "extract": ["x"], "content_urls": "nope"})

    result = await _executor(tools_config, handler).execute("encyclopedia_lookup", '{"query": "stoicism"}')

    assert result.ok
    assert result.payload == {"title": "Stoicism", "extract": "", "url": None}
    assert result.sources == []


async def test_web_search_non_string_fields_are_coerced(tools_config):
    handler = lambda r: httpx.Response(200, json={"results": [  # noqa: E731
        {"title": 7, "url": "https://a.test", "content": 42, "snippet": "fallback snippet"},
        {"title": "B", "url": None, "content": None},
        "junk",
    ]})

    result = await _executor(tools_config, handler).execute("web_search", '{"query": "x"}')

    assert result.ok
    assert result.payload["results"] == [
        {"title": "", "url": "https://a.test", "snippet": "fallback snippet"},
        {"title": "B", "url": "", "snippet": ""},
    ]
    assert result.sources == [Source("Source", "https://a.test")]


@pytest.mark.parametrize("payload", [{"results": "many"}, ["a", "b"]])
async def test_web_search_malformed_payload_is_error_result(tools_config, payload):
    result = await _executor(tools_config, lambda r: httpx.Response(200, json=payload)).execute(
        "web_search", '{"query": "x"}'
    )
    assert result.error.startswith("web_search failed:")


async def test_web_fetch_non_string_content(tools_config):
    handler = lambda r: httpx.Response(200, json={"title": ["Page"], "content": 42})  # noqa: E731
    result = await _executor(tools_config, handler).execute("web_fetch", '{"url": "https://page.test"}')

    assert result.payload == {"title": "Source", "content": "", "url": "https://page.test"}


def test_error_result_message_content_names_tool():
    from debatebot.models import ToolResult

    content = json.loads(ToolResult(tool_name="web_fetch", error="boom").to_message_content())
    assert content == {"tool": "web_fetch", "error": "boom"}
