"""Web search through DuckDuckGo's HTML interface, and page text extraction."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import asdict, dataclass
from urllib.parse import quote

import aiohttp
from bs4 import BeautifulSoup

log = logging.getLogger(__name__)

DUCKDUCKGO_HTML_URL = "https://html.duckduckgo.com/html/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
_CONTENT_SELECTOR = "p, h1, h2, h3, h4, h5, h6, article, section"


class SearchEngine(enum.Enum):
    DUCKDUCKGO = "duckduckgo"


@dataclass
class SearchResult:
    """One search hit."""

    title: str
    content: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class WebSearchError(Exception):
    """Base error for web search failures."""


class NetworkError(WebSearchError):
    """The HTTP request failed."""

    def __init__(self, reason: object) -> None:
        super().__init__(f"Network error: {reason}")
        self.reason = reason


class SearchError(WebSearchError):
    """The search itself could not be carried out."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Search error: {detail}")
        self.detail = detail


def parse_duckduckgo_results(html: str, count: int) -> list[SearchResult]:
    """Extract results from a DuckDuckGo HTML page, looking at the first `count` entries."""
    document = BeautifulSoup(html, "html.parser")
    results = []
    for entry in document.select(".result")[:count]:
        title_elem = entry.select_one(".result__title a")
        snippet_elem = entry.select_one(".result__snippet")
        if title_elem is None or snippet_elem is None:
            continue
        url = title_elem.get("href") or ""
        if url:
            results.append(
                SearchResult(
                    title=title_elem.get_text().strip(),
                    content=snippet_elem.get_text().strip(),
                    url=url,
                )
            )
    return results


def extract_page_content(html: str) -> str:
    """Join the text of paragraphs, headings, articles and sections of a page."""
    document = BeautifulSoup(html, "html.parser")
    texts = (element.get_text() for element in document.select(_CONTENT_SELECTOR))
    return "\n\n".join(texts).strip()


class WebSearchClient:
    """Runs web searches and fetches pages."""

    def __init__(
        self,
        engine: SearchEngine = SearchEngine.DUCKDUCKGO,
        search_url: str = DUCKDUCKGO_HTML_URL,
    ) -> None:
        self.engine = engine
        self.search_url = search_url

    async def _get_text(self, url: str) -> str:
        try:
            async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}) as session:
                async with session.get(url) as response:
                    return await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise NetworkError(exc) from exc

    async def search(self, query: str, count: int = 5) -> list[SearchResult]:
        """Search the web and return up to `count` results."""
        if self.engine is SearchEngine.DUCKDUCKGO:
            return await self._search_duckduckgo(query, count)
        raise SearchError(f"unsupported search engine: {self.engine}")

    async def _search_duckduckgo(self, query: str, count: int) -> list[SearchResult]:
        log.info("Performing DuckDuckGo search for query: %s", query)
        url = f"{self.search_url}?q={quote(query, safe='')}"
        html = await self._get_text(url)
        results = parse_duckduckgo_results(html, count)
        log.info("Found %d DuckDuckGo search results", len(results))
        return results

    async def fetch_page_content(self, url: str) -> str:
        """Fetch a page and return its readable text."""
        return extract_page_content(await self._get_text(url))