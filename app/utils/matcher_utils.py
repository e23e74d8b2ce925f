"""
Fingerprint matcher: finds spans of the submitted text that recur in reference sources.

Each source is compared independently through a fingerprint lookup, so the cost
stays linear in the total amount of text rather than pairwise. Fingerprints of
the static corpus are computed once, at import.
"""
import logging
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from app.config import SHINGLE_SIZE, MIN_MATCH_CHARS, SNIPPET_PADDING
from app.data.sources import PLAGIARISM_SOURCES
from app.schemas.plagiarism_schemas import MatchSegment, SourceSummary
from app.schemas.sources_schemas import ReferenceSource
from app.utils.lexical_utils import Shingle, ShingleIndex, SubmittedText

logger = logging.getLogger("matcher")

Span = Tuple[int, int]


class MatchOutcome(NamedTuple):
    matches: List[MatchSegment]
    summary: List[SourceSummary]


class SourceIndex(NamedTuple):
    source: ReferenceSource
    shingle_size: int
    occurrences: Dict[str, Span]   # fingerprint -> first char span in source.content


class SourceMatch(NamedTuple):
    span: Span          # in the submitted text
    source_span: Span   # in source.content


def build_source_index(source: ReferenceSource, shingle_size: int = SHINGLE_SIZE) -> SourceIndex:
    occurrences = ShingleIndex(source.content, k=shingle_size).occurrences()
    return SourceIndex(source=source, shingle_size=shingle_size, occurrences=occurrences)


def build_corpus_index(
    sources: Iterable[ReferenceSource],
    shingle_size: int = SHINGLE_SIZE,
) -> Dict[str, SourceIndex]:
    index: Dict[str, SourceIndex] = {}
    for src in sources:
        if src.id not in index:
            index[src.id] = build_source_index(src, shingle_size)
    return index


CORPUS_INDEX = build_corpus_index(PLAGIARISM_SOURCES)


def index_for(source: ReferenceSource, shingle_size: int = SHINGLE_SIZE) -> SourceIndex:
    """Cached index for unchanged corpus sources, a fresh one otherwise."""
    cached = CORPUS_INDEX.get(source.id)
    if cached is not None and cached.shingle_size == shingle_size and cached.source == source:
        return cached
    return build_source_index(source, shingle_size)


def _hit_runs(shingles: Sequence[Shingle], occurrences: Dict[str, Span]) -> List[SourceMatch]:
    """Merge hits with consecutive start tokens into char spans."""
    runs: List[SourceMatch] = []
    prev_tok = None
    for sh in shingles:
        src_span = occurrences.get(sh.hash)
        if src_span is None:
            continue
        tok_start = sh.token_span[0]
        if prev_tok is not None and tok_start == prev_tok + 1:
            (start, end), (src_start, src_end) = runs[-1]
            if src_span[0] >= src_start:
                src_end = max(src_end, src_span[1])
            runs[-1] = SourceMatch((start, max(end, sh.char_span[1])), (src_start, src_end))
        else:
            runs.append(SourceMatch(sh.char_span, src_span))
        prev_tok = tok_start
    return runs


def coalesce_spans(spans: Iterable[Span]) -> List[Span]:
    """Interval union: [a,b) and [c,d) merge when c <= b."""
    merged: List[Span] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def _coalesce_runs(runs: Sequence[SourceMatch]) -> List[SourceMatch]:
    # Source context follows the earliest run of each merged span.
    merged: List[SourceMatch] = []
    for run in sorted(runs):
        if merged and run.span[0] <= merged[-1].span[1]:
            (start, end), (src_start, src_end) = merged[-1]
            if run.source_span[0] >= src_start:
                src_end = max(src_end, run.source_span[1])
            merged[-1] = SourceMatch((start, max(end, run.span[1])), (src_start, src_end))
        else:
            merged.append(run)
    return merged


def match_source(
    shingles: Sequence[Shingle],
    source: ReferenceSource,
    shingle_size: int = SHINGLE_SIZE,
    min_match_chars: int = MIN_MATCH_CHARS,
) -> List[SourceMatch]:
    index = index_for(source, shingle_size)
    if not index.occurrences:
        return []
    runs = [
        run for run in _hit_runs(shingles, index.occurrences)
        if run.span[1] - run.span[0] >= min_match_chars
    ]
    return _coalesce_runs(runs)


def extract_snippet(content: str, span: Span, padding: int = SNIPPET_PADDING) -> str:
    start = max(0, span[0] - padding)
    end = min(len(content), span[1] + padding)
    return re.sub(r"\s+", " ", content[start:end]).strip()


def _segment(text: str, src: ReferenceSource, match: SourceMatch) -> MatchSegment:
    start, end = match.span
    return MatchSegment(
        start=start,
        end=end,
        source_id=src.id,
        source_title=src.title,
        matched_text=text[start:end],
        snippet=extract_snippet(src.content, match.source_span),
        overlap_ratio=round((end - start) / max(1, len(text)), 4),
    )


def detect_matches(
    text: str,
    sources: Iterable[ReferenceSource],
    shingle_size: int = SHINGLE_SIZE,
    min_match_chars: Optional[int] = None,
) -> MatchOutcome:
    if min_match_chars is None:
        min_match_chars = MIN_MATCH_CHARS

    submitted = SubmittedText(text)
    shingles = list(ShingleIndex(text, k=shingle_size, tokens=submitted.tokens))

    segments: List[MatchSegment] = []
    per_source: List[SourceSummary] = []
    seen_ids: Dict[str, str] = {}

    for src in sources:
        if src.id in seen_ids:
            logger.warning(f"Skipping duplicate source id '{src.id}' ({src.url})")
            continue
        seen_ids[src.id] = src.url

        found = match_source(shingles, src, shingle_size, min_match_chars)
        if not found:
            continue

        segments.extend(_segment(text, src, m) for m in found)
        per_source.append(SourceSummary(
            source_id=src.id,
            title=src.title,
            url=src.url,
            matched_segment_count=len(found),
            matched_chars=sum(e - s for s, e in (m.span for m in found)),
        ))
        logger.debug(f"{src.id}: {len(found)} span(s), {per_source[-1].matched_chars} chars")

    segments.sort(key=lambda m: (m.start, m.source_id))
    # stable sort keeps insertion order for equal coverage
    per_source.sort(key=lambda s: -s.matched_chars)

    logger.info(f"Matched {len(segments)} segment(s) across {len(per_source)} of {len(seen_ids)} sources")
    return MatchOutcome(matches=segments, summary=per_source)
