"""
Fact lookup collaborators.

A lookup turns a query into an optional text snippet for the reply
generator. Lookups never raise: any network or payload failure is logged
and degrades to ``None`` so a chat turn is never blocked by search.
"""

import logging
from typing import Optional, Protocol

import requests

from pump_advisor.config import settings

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

# Snippets shorter than this, or with this many words or fewer, are skipped
MIN_SNIPPET_CHARS = 40
MIN_SNIPPET_WORDS = 8
SNIPPET_BLOCKLIST = ("weather",)
SNIPPET_CANDIDATES = 3


class FactLookup(Protocol):
    def lookup_fact(self, query: str) -> Optional[str]:
        ...


class NullFactLookup:
    """Offline lookup that never finds anything."""

    def lookup_fact(self, query: str) -> Optional[str]:
        return None


def solar_insolation_query(location: str) -> str:
    return f"NREL solar insolation data for {location}"


def local_fact_query(location: str) -> str:
    return f"interesting historical fact about {location}"


def pump_info_query(message: str) -> str:
    return f"solar water pump for {message}"


def is_informative(snippet: str) -> bool:
    """True for snippets worth showing: long enough and not a weather page."""
    if any(term in snippet for term in SNIPPET_BLOCKLIST):
        return False
    return len(snippet) > MIN_SNIPPET_CHARS and len(snippet.split()) > MIN_SNIPPET_WORDS


def pick_snippets(snippets: list[str], limit: int) -> Optional[str]:
    """Join the first informative snippets, falling back to the top result."""
    candidates = [s for s in snippets[:SNIPPET_CANDIDATES] if s]
    if not candidates:
        return None
    informative = [s for s in candidates if is_informative(s)]
    if informative:
        return " ".join(informative[:limit])
    return candidates[0]


class GoogleSearchFactLookup:
    """Fact lookup backed by the Google Custom Search JSON API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        engine_id: Optional[str] = None,
        timeout: Optional[float] = None,
        result_limit: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.search.api_key
        self.engine_id = engine_id if engine_id is not None else settings.search.engine_id
        self.timeout = timeout or settings.search.timeout_sec
        self.result_limit = result_limit or settings.search.result_limit
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.engine_id)

    def lookup_fact(self, query: str) -> Optional[str]:
        if not self.configured:
            logger.debug("Search credentials missing, skipping lookup: %s", query)
            return None

        params = {"key": self.api_key, "cx": self.engine_id, "q": query}
        try:
            resp = self.session.get(GOOGLE_SEARCH_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Fact lookup failed for %r: %s", query, e)
            return None

        items = (payload.get("items") or []) if isinstance(payload, dict) else []
        snippets = [item.get("snippet", "") for item in items if isinstance(item, dict)]
        result = pick_snippets(snippets, self.result_limit)
        logger.debug("Fact lookup %r -> %d items, found=%s", query, len(items), result is not None)
        return result
