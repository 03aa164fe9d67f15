import contextlib

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from toolchat.websearch import (
    USER_AGENT,
    NetworkError,
    SearchResult,
    WebSearchClient,
    WebSearchError,
    extract_page_content,
    parse_duckduckgo_results,
)


def _entry(title, href, snippet):
    link = f'<a class="result__a" href="{href}">{title}</a>' if href is not None else f"<a>{title}</a>"
    snippet_html = f'<a class="result__snippet">{snippet}</a>' if snippet is not None else ""
    return (
        '<div class="result">'
        f'<h2 class="result__title">{link}</h2>'
        f"{snippet_html}"
        "</div>"
    )


PAGE = (
    "<html><body>"
    + _entry("  First <b>Title</b> ", "https://example.com/1", " snippet <b>one</b> ")
    + _entry("Second", "https://example.com/2", "snippet two")
    + _entry("Third", "https://example.com/3", "snippet three")
    + "</body></html>"
)


@contextlib.asynccontextmanager
async def serve(handler, path):
    app = web.Application()
    app.router.add_route("GET", path, handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url(path))
    finally:
        await server.close()


def test_parse_extracts_and_trims():
    results = parse_duckduckgo_results(PAGE, 5)
    assert results[0] == SearchResult("First Title", "snippet one", "https://example.com/1")
    assert [r.url for r in results] == [
        "https://example.com/1",
        "https://example.com/2",
        "https://example.com/3",
    ]


def test_parse_limits_count():
    results = parse_duckduckgo_results(PAGE, 2)
    assert len(results) == 2


def test_parse_count_applies_before_filtering():
    html = _entry("No link", None, "s") + _entry("Ok", "https://example.com/ok", "s")
    assert parse_duckduckgo_results(html, 1) == []
    assert [r.url for r in parse_duckduckgo_results(html, 2)] == ["https://example.com/ok"]


def test_parse_skips_entries_without_snippet_or_href():
    html = (
        _entry("No snippet", "https://example.com/a", None)
        + _entry("Empty href", "", "s")
    )
    assert parse_duckduckgo_results(html, 10) == []


def test_search_result_to_dict():
    result = SearchResult("t", "c", "u")
    assert result.to_dict() == {"title": "t", "content": "c", "url": "u"}


def test_extract_page_content_joins_in_document_order():
    html = "<h1> Head </h1><div>skip</div><p>Para one</p><p>Para two</p>"
    assert extract_page_content(html) == "Head \n\nPara one\n\nPara two"


def test_extract_page_content_empty():
    assert extract_page_content("<div>nothing</div>") == ""


@pytest.mark.asyncio
async def test_search_sends_encoded_query_and_user_agent():
    seen = {}

    async def handler(request):
        seen["q"] = request.query["q"]
        seen["raw"] = request.raw_path
        seen["ua"] = request.headers["User-Agent"]
        return web.Response(text=PAGE, content_type="text/html")

    async with serve(handler, "/html/") as url:
        client = WebSearchClient(search_url=url)
        results = await client.search("rust & python", 2)

    assert seen["q"] == "rust & python"
    assert "q=rust%20%26%20python" in seen["raw"]
    assert seen["ua"] == USER_AGENT
    assert [r.title for r in results] == ["First Title", "Second"]


@pytest.mark.asyncio
async def test_fetch_page_content():
    async def handler(request):
        return web.Response(text="<p>Hello</p><p>World</p>", content_type="text/html")

    async with serve(handler, "/page") as url:
        content = await WebSearchClient().fetch_page_content(url)
    assert content == "Hello\n\nWorld"


@pytest.mark.asyncio
async def test_connection_failure_raises_network_error():
    async def handler(request):
        return web.Response(text="")

    async with serve(handler, "/html/") as url:
        closed_url = url
    with pytest.raises(NetworkError) as info:
        await WebSearchClient(search_url=closed_url).search("query", 5)
    assert isinstance(info.value, WebSearchError)
    assert str(info.value).startswith("Network error: ")