import math
from typing import List, Sequence

from app.config import HIGH_RISK_THRESHOLD, MEDIUM_RISK_THRESHOLD
from app.schemas.plagiarism_schemas import (
    DetectionResult,
    MatchSegment,
    RiskLevel,
)
from app.utils.matcher_utils import MatchOutcome

NO_OVERLAP_SUMMARY = "No overlapping passages were found in the checked sources."
NO_OVERLAP_RECOMMENDATION = "No overlap detected. Keep citing your sources as you continue drafting."
REPHRASE_RECOMMENDATION = "Rephrase or cite the highlighted sections that overlap with existing sources."


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _distinct_titles(matches: Sequence[MatchSegment]) -> List[str]:
    return list(dict.fromkeys(m.source_title for m in matches))


def compute_similarity(matches: Sequence[MatchSegment], text_length: int) -> int:
    # Overlap across sources is counted once per source.
    covered = sum(m.length for m in matches)
    pct = min(100.0, 100.0 * covered / max(1, text_length))
    return int(math.floor(pct + 0.5))


def classify_risk(
    similarity: int,
    high: int = HIGH_RISK_THRESHOLD,
    medium: int = MEDIUM_RISK_THRESHOLD,
) -> RiskLevel:
    if similarity > high:
        return RiskLevel.HIGH
    if similarity > medium:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def build_recommendations(matches: Sequence[MatchSegment]) -> List[str]:
    if not matches:
        return [NO_OVERLAP_RECOMMENDATION]
    titles = _distinct_titles(matches)
    return [
        REPHRASE_RECOMMENDATION,
        f"Review overlapping content from: {', '.join(titles)}.",
    ]


def build_summary(matches: Sequence[MatchSegment]) -> str:
    if not matches:
        return NO_OVERLAP_SUMMARY
    n_sources = len({m.source_id for m in matches})
    return (
        f"Found {_plural(len(matches), 'matching passage')} "
        f"across {_plural(n_sources, 'source')}."
    )


def build_detection_result(
    text_length: int,
    outcome: MatchOutcome,
    high: int = HIGH_RISK_THRESHOLD,
    medium: int = MEDIUM_RISK_THRESHOLD,
) -> DetectionResult:
    similarity = compute_similarity(outcome.matches, text_length)
    return DetectionResult(
        similarity=similarity,
        risk=classify_risk(similarity, high=high, medium=medium),
        matches=list(outcome.matches),
        sources=list(outcome.summary),
        recommendations=build_recommendations(outcome.matches),
        summary=build_summary(outcome.matches),
    )
