import logging
import threading
from datetime import datetime
from typing import List, Optional, Sequence

from app.config import (
    MAX_TEXT_CHARS,
    MAX_SOURCES,
    WEB_SEARCH_ENABLED,
    MAX_QUERIES_PER_SUBMISSION,
    RESULTS_PER_QUERY,
    SHINGLE_SIZE,
    HIGH_RISK_THRESHOLD,
    MEDIUM_RISK_THRESHOLD,
)
from app.data.sources import PLAGIARISM_SOURCES
from app.schemas.plagiarism_schemas import DetectionResult
from app.schemas.sources_schemas import ReferenceSource
from app.utils.matcher_utils import detect_matches
from app.utils.scoring_utils import build_detection_result
from app.utils.web_utils import FetchFn, SearchFn, gather_web_sources

logger = logging.getLogger("detection")


class EmptyTextError(ValueError):
    pass


class TextTooLongError(ValueError):
    pass


def validate_text(text: Optional[str], max_chars: int = MAX_TEXT_CHARS) -> str:
    if text is None or not isinstance(text, str) or not text.strip():
        raise EmptyTextError("Text is required")
    if len(text) > max_chars:
        raise TextTooLongError(f"Text exceeds {max_chars} characters (found {len(text)}).")
    return text


def run_detection(
    text: str,
    include_web: bool = WEB_SEARCH_ENABLED,
    corpus: Sequence[ReferenceSource] = PLAGIARISM_SOURCES,
    search: Optional[SearchFn] = None,
    fetch: Optional[FetchFn] = None,
    cancel_event: Optional[threading.Event] = None,
    shingle_size: int = SHINGLE_SIZE,
    min_match_chars: Optional[int] = None,
    high_threshold: int = HIGH_RISK_THRESHOLD,
    medium_threshold: int = MEDIUM_RISK_THRESHOLD,
    max_sources: int = MAX_SOURCES,
) -> DetectionResult:
    """
    Check `text` against the static corpus and, optionally, pages found on the web.

    Raises EmptyTextError / TextTooLongError before any work is done.
    """
    text = validate_text(text)
    t0 = datetime.utcnow()

    sources: List[ReferenceSource] = list(corpus)
    if include_web:
        web_sources = gather_web_sources(
            text,
            max_queries=MAX_QUERIES_PER_SUBMISSION,
            results_per_query=RESULTS_PER_QUERY,
            search=search,
            fetch=fetch,
            cancel_event=cancel_event,
        )
        sources.extend(web_sources)

    if len(sources) > max_sources:
        logger.warning(f"Considering only the first {max_sources} of {len(sources)} sources")
        sources = sources[:max_sources]

    outcome = detect_matches(text, sources, shingle_size=shingle_size, min_match_chars=min_match_chars)
    result = build_detection_result(
        len(text),
        outcome,
        high=high_threshold,
        medium=medium_threshold,
    )

    elapsed = (datetime.utcnow() - t0).total_seconds()
    logger.info(
        f"Detection finished in {elapsed:.2f}s: similarity={result.similarity}% "
        f"risk={result.risk.value} matches={len(result.matches)} sources_checked={len(sources)}"
    )
    return result
