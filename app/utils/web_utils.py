import json
import math
import hashlib
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from functools import partial
from itertools import cycle
from typing import Callable, Dict, List, NamedTuple, Optional

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter

from app.config import (
    API_KEYS,
    SEARCH_ENGINE_IDS,
    MAX_QUERIES_PER_SUBMISSION,
    RESULTS_PER_QUERY,
    FETCH_WORKER_CAP,
    REQUEST_TIMEOUT,
    SEARCH_TIMEOUT,
    MAX_SOURCE_CHARS,
    MAX_QUERY_CHARS,
    MIN_PAGE_CHARS,
)
from app.schemas.sources_schemas import ReferenceSource
from app.utils.lexical_utils import (
    extract_keywords,
    get_meaningful_sentences,
    salient_words,
)

from app.logger import logger

GOOGLE_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
GOOGLE_MAX_NUM = 10
FALLBACK_QUERY_WORDS = 30
MIN_TEXT_LENGTH = 200
# Extra wait on top of the per-fetch timeouts before in-flight fetches are abandoned.
FETCH_GRACE_SECONDS = 1.0
POLL_INTERVAL = 0.2

DOC_EXTENSIONS = (".pdf", ".doc", ".docx", ".odf", ".xls", ".xlsx", ".ppt", ".pptx")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class SearchHit(NamedTuple):
    url: str
    title: str = ""
    snippet: str = ""


class FetchedDocument(NamedTuple):
    title: str
    content: str


class DocumentFetchError(Exception):
    """A candidate page could not be fetched or had no usable text."""


SearchFn = Callable[[str, int], List[SearchHit]]
FetchFn = Callable[[str], FetchedDocument]


# ---- Session ----
def _make_session() -> requests.Session:
    s = requests.Session()
    # No retries: a failed fetch is dropped, not repeated.
    adapter = HTTPAdapter(max_retries=0, pool_connections=20, pool_maxsize=20)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    })
    return s

_SESSION = _make_session()


# ---- Helpers ----
def _normalize_whitespace(s: str) -> str:
    return " ".join(s.split())

def _clean(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return _normalize_whitespace(value) or None

def url_key(url: str) -> str:
    return url.strip().lower()

def source_id_for(url: str) -> str:
    return "web-" + hashlib.sha256(url_key(url).encode("utf-8")).hexdigest()[:12]

def _trim_query(q: str, max_len: int = MAX_QUERY_CHARS) -> str:
    q = _normalize_whitespace(q)
    if len(q) > max_len:
        q = q[:max_len].rsplit(" ", 1)[0]
    return q

def _clean_soup(soup: BeautifulSoup, prefer_main: bool = True, max_chars: Optional[int] = None) -> str:
    for junk in soup(["script", "style", "nav", "footer", "noscript", "header"]):
        junk.decompose()
    parts = []
    main = soup.find(["main", "article"]) if prefer_main else None
    if main:
        elems = main.find_all(["p", "h1", "h2", "h3", "li"])
    else:
        elems = soup.find_all(["p", "h1", "h2", "h3", "li"])
    for el in elems:
        t = el.get_text(separator=" ", strip=True)
        if t and len(t) > 30:
            parts.append(t)
    text = _normalize_whitespace(" ".join(parts))
    if max_chars and len(text) > max_chars:
        return text[:max_chars]
    return text

def _meta(soup: BeautifulSoup, attr: str, value: str) -> Optional[str]:
    tag = soup.find("meta", attrs={attr: value})
    return _clean(tag.get("content")) if tag else None

def _json_ld_title(soup: BeautifulSoup) -> Optional[str]:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            parsed = json.loads(script.string or "")
        except ValueError:
            continue  # malformed JSON-LD block
        nodes = parsed if isinstance(parsed, list) else [parsed]
        for node in nodes:
            if isinstance(node, dict):
                title = _clean(node.get("headline") or node.get("name"))
                if title:
                    return title
    return None

def extract_title(soup: BeautifulSoup) -> Optional[str]:
    title_tag = soup.find("title")
    return (
        _meta(soup, "property", "og:title")
        or _meta(soup, "name", "twitter:title")
        or _meta(soup, "name", "citation_title")
        or (_clean(title_tag.get_text()) if title_tag else None)
        or _json_ld_title(soup)
    )


# ---- Query derivation ----
def derive_queries(text: str, max_queries: int = MAX_QUERIES_PER_SUBMISSION) -> List[str]:
    """
    Pick up to `max_queries` search queries from the text.

    Sentences are ranked by how many of the document's top keywords they carry,
    then by how many distinct salient words they hold; ties keep document order.
    Same input, same queries.
    """
    if not text or not text.strip():
        raise ValueError("Cannot derive search queries from empty text")
    if max_queries < 1:
        return []

    candidates = get_meaningful_sentences(text)
    if not candidates:
        words = text.split()
        candidates = [
            " ".join(words[i:i + FALLBACK_QUERY_WORDS])
            for i in range(0, len(words), FALLBACK_QUERY_WORDS)
        ]

    keywords = set(extract_keywords(text, max_keywords=10))

    def _rank(item):
        idx, sentence = item
        words = set(salient_words(sentence))
        return (-len(words & keywords), -len(words), idx)

    queries: List[str] = []
    seen = set()
    for _, sentence in sorted(enumerate(candidates), key=_rank):
        q = _trim_query(sentence)
        if not q or q.lower() in seen:
            continue
        seen.add(q.lower())
        queries.append(q)
        if len(queries) >= max_queries:
            break

    logger.info(f"Built {len(queries)} queries from document")
    return queries


# ---- Google Search ----
class GoogleSearchBackend:
    """Google Custom Search JSON API, rotating through the configured key/engine pairs."""

    def __init__(self, api_keys: List[str] = None, engine_ids: List[str] = None,
                 session: requests.Session = None, timeout: float = SEARCH_TIMEOUT):
        keys = API_KEYS if api_keys is None else api_keys
        engines = SEARCH_ENGINE_IDS if engine_ids is None else engine_ids
        self._pairs = list(zip(keys, engines))
        self._rotation = cycle(self._pairs) if self._pairs else None
        self._lock = threading.Lock()
        self.session = session or _SESSION
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._pairs)

    def _next_pair(self):
        with self._lock:
            return next(self._rotation)

    def __call__(self, query: str, num_results: int = RESULTS_PER_QUERY) -> List[SearchHit]:
        if not self.configured:
            logger.warning("Missing API_KEYS or SEARCH_ENGINE_IDS; web search disabled")
            return []

        key, cx = self._next_pair()
        params = {"key": key, "cx": cx, "q": query, "num": max(1, min(num_results, GOOGLE_MAX_NUM))}
        try:
            r = self.session.get(GOOGLE_ENDPOINT, params=params, timeout=self.timeout)
            r.raise_for_status()
            items = r.json().get("items", []) or []
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"google_search failed: {e}")
            return []

        out = [
            SearchHit(url=i["link"], title=i.get("title", ""), snippet=i.get("snippet", ""))
            for i in items if i.get("link")
        ]
        logger.info(f"google_search: got {len(out)} items for '{query[:60]}'")
        return out[:num_results]


# ---- Page fetch ----
def fetch_document(url: str, timeout: float = REQUEST_TIMEOUT,
                   session: requests.Session = None) -> FetchedDocument:
    """Download a page and pull out its title and readable body text."""
    session = session or _SESSION
    try:
        r = session.get(url, timeout=timeout, allow_redirects=True)
        r.raise_for_status()
    except requests.RequestException as e:
        raise DocumentFetchError(f"{url}: {e}") from e

    content_type = r.headers.get("Content-Type", "").lower()
    if "html" in content_type or not content_type:
        soup = BeautifulSoup(r.text, "html.parser")
        title = extract_title(soup) or ""
        text = _clean_soup(soup, prefer_main=True, max_chars=MAX_SOURCE_CHARS)
        if len(text) < MIN_TEXT_LENGTH:
            text = _clean_soup(soup, prefer_main=False, max_chars=MAX_SOURCE_CHARS)
    elif content_type.startswith("text/"):
        title = ""
        text = _normalize_whitespace(r.text)[:MAX_SOURCE_CHARS]
    else:
        raise DocumentFetchError(f"{url}: unsupported content type '{content_type}'")

    if not text:
        raise DocumentFetchError(f"{url}: no text extracted")
    logger.info(f"   ✅ Scraped {len(text)} chars for {url}")
    return FetchedDocument(title=title, content=text)


# ---- Gathering ----
def _collect_urls(queries: List[str], search: SearchFn, results_per_query: int,
                  cancel_event: Optional[threading.Event]) -> Dict[str, SearchHit]:
    hits: Dict[str, SearchHit] = {}
    for qi, q in enumerate(queries, 1):
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Gather cancelled before search")
            break
        logger.info(f"Query {qi}/{len(queries)}: '{q[:60]}'")
        try:
            results = search(q, results_per_query) or []
        except Exception as e:
            logger.warning(f"Search failed for query {qi}: {e}")
            continue
        for hit in results[:results_per_query]:
            if not hit.url:
                continue
            if hit.url.lower().split("?", 1)[0].endswith(DOC_EXTENSIONS):
                logger.info(f"Skipping document URL: {hit.url}")
                continue
            hits.setdefault(url_key(hit.url), hit)
    return hits


def gather_web_sources(
    text: str,
    max_queries: int = MAX_QUERIES_PER_SUBMISSION,
    results_per_query: int = RESULTS_PER_QUERY,
    search: Optional[SearchFn] = None,
    fetch: Optional[FetchFn] = None,
    cancel_event: Optional[threading.Event] = None,
    fetch_timeout: float = REQUEST_TIMEOUT,
    min_page_chars: int = MIN_PAGE_CHARS,
) -> List[ReferenceSource]:
    """
    Search the web for pages resembling `text` and return them as reference sources.

    A page that fails or times out is dropped, and so is a page with less than
    `min_page_chars` of text. The call itself only fails when no queries can be
    derived (empty text).
    """
    queries = derive_queries(text, max_queries)
    search = search or GoogleSearchBackend()
    fetch = fetch or partial(fetch_document, timeout=fetch_timeout)

    hits = _collect_urls(queries, search, results_per_query, cancel_event)
    if not hits:
        logger.info("No candidate URLs found")
        return []

    workers = max(1, min(FETCH_WORKER_CAP, max_queries * results_per_query, len(hits)))
    waves = math.ceil(len(hits) / workers)
    deadline = fetch_timeout * waves + FETCH_GRACE_SECONDS

    def _fetch_task(u: str) -> Optional[FetchedDocument]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        logger.info(f"Scraping URL: {u}")
        return fetch(u)

    ex = ThreadPoolExecutor(max_workers=workers)
    try:
        futures = {key: ex.submit(_fetch_task, hit.url) for key, hit in hits.items()}
        pending = set(futures.values())
        give_up_at = time.monotonic() + deadline
        while pending:
            remaining = give_up_at - time.monotonic()
            if remaining <= 0 or (cancel_event is not None and cancel_event.is_set()):
                break
            _, pending = wait(pending, timeout=min(remaining, POLL_INTERVAL))
        for fut in pending:
            fut.cancel()
        if pending:
            logger.warning(f"Abandoned {len(pending)} fetch(es) still in flight")
    finally:
        ex.shutdown(wait=False, cancel_futures=True)

    sources: List[ReferenceSource] = []
    for key, fut in futures.items():
        hit = hits[key]
        if not fut.done() or fut.cancelled():
            continue
        try:
            doc = fut.result()
        except Exception as e:
            logger.warning(f"Error scraping {hit.url}: {e}")
            continue
        if doc is None or not doc.content:
            continue
        if len(doc.content) < min_page_chars:
            logger.info(f"Skipping thin page ({len(doc.content)} chars): {hit.url}")
            continue
        sources.append(ReferenceSource(
            id=source_id_for(hit.url),
            title=doc.title or hit.title or hit.url,
            url=hit.url,
            content=doc.content[:MAX_SOURCE_CHARS],
        ))

    logger.info(f"Total unique sources from web: {len(sources)} of {len(hits)} URLs")
    return sources
