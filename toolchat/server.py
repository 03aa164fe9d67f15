"""HTTP server exposing the chat and search endpoints."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Sequence

from aiohttp import web

from toolchat.query_handler import ChatRequest, QueryHandler
from toolchat.websearch import WebSearchClient, WebSearchError

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_SEARCH_COUNT = 5


async def _read_json(request: web.Request) -> object:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise web.HTTPBadRequest(text=f"Invalid JSON body: {exc}") from exc


def create_app(
    query_handler: QueryHandler | None = None,
    search_client: WebSearchClient | None = None,
) -> web.Application:
    """Build the application with POST /chat and POST /search routes."""
    handler = query_handler if query_handler is not None else QueryHandler()
    searcher = search_client if search_client is not None else WebSearchClient()

    async def chat(request: web.Request) -> web.Response:
        try:
            chat_request = ChatRequest.from_dict(await _read_json(request))
        except ValueError as exc:
            raise web.HTTPBadRequest(text=str(exc)) from exc
        reply = await handler.handle_chat(chat_request)
        return web.json_response(reply.to_dict(), status=reply.status)

    async def search(request: web.Request) -> web.Response:
        data = await _read_json(request)
        if not isinstance(data, dict) or not isinstance(data.get("query"), str):
            raise web.HTTPBadRequest(text="field 'query' must be a string")
        count = data.get("count")
        if count is None:
            count = DEFAULT_SEARCH_COUNT
        elif isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise web.HTTPBadRequest(text="field 'count' must be a non-negative integer")
        query = data["query"]
        log.info("Received search request with query: %s", query)
        try:
            results = await searcher.search(query, count)
        except WebSearchError as exc:
            log.error("Web search error: %r", exc)
            return web.Response(status=500, text=str(exc))
        log.info("Found %d search results", len(results))
        return web.json_response([result.to_dict() for result in results])

    app = web.Application()
    app.router.add_post("/chat", chat)
    app.router.add_post("/search", search)
    return app


def main(argv: Sequence[str] | None = None) -> None:
    """Start the chat server."""
    parser = argparse.ArgumentParser(description="Chat server with tool-using models.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    options = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    log.info("Starting chat server...")
    app = create_app()
    log.info("Server will be available at http://%s:%d", options.host, options.port)
    web.run_app(app, host=options.host, port=options.port)


if __name__ == "__main__":
    main()