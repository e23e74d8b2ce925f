"""
Unit tests for app/utils/scoring_utils.py and the detection pipeline.
"""
import threading

import pytest

from app.data.sources import PLAGIARISM_SOURCES, get_source
from app.schemas.plagiarism_schemas import MatchSegment, RiskLevel
from app.utils.detection import EmptyTextError, TextTooLongError, run_detection
from app.utils.matcher_utils import MatchOutcome
from app.utils.scoring_utils import (
    NO_OVERLAP_RECOMMENDATION,
    NO_OVERLAP_SUMMARY,
    REPHRASE_RECOMMENDATION,
    build_detection_result,
    build_recommendations,
    build_summary,
    classify_risk,
    compute_similarity,
)

HEAT_SENTENCE = (
    "Prolonged heat waves reduce agricultural yields, undermine food security, "
    "and increase vector-borne diseases."
)


def _seg(start, end, source_id="s1", title="Source One"):
    return MatchSegment(start=start, end=end, source_id=source_id, source_title=title)


class TestSimilarity:

    def test_zero_when_no_matches(self):
        assert compute_similarity([], 500) == 0

    def test_overlapping_sources_double_count(self):
        matches = [_seg(0, 30, "a"), _seg(0, 30, "b")]
        assert compute_similarity(matches, 100) == 60

    def test_capped_at_100(self):
        matches = [_seg(0, 90, "a"), _seg(0, 90, "b")]
        assert compute_similarity(matches, 100) == 100

    def test_rounds_half_up(self):
        assert compute_similarity([_seg(0, 1)], 200) == 1

    def test_zero_length_guard(self):
        assert compute_similarity([_seg(0, 1)], 0) == 100


class TestRisk:

    @pytest.mark.parametrize("similarity,expected", [
        (0, RiskLevel.LOW),
        (20, RiskLevel.LOW),
        (21, RiskLevel.MEDIUM),
        (45, RiskLevel.MEDIUM),
        (46, RiskLevel.HIGH),
        (100, RiskLevel.HIGH),
    ])
    def test_default_thresholds(self, similarity, expected):
        assert classify_risk(similarity) == expected

    def test_custom_thresholds(self):
        assert classify_risk(15, high=30, medium=10) == RiskLevel.MEDIUM
        assert classify_risk(31, high=30, medium=10) == RiskLevel.HIGH


class TestMessages:

    def test_no_matches(self):
        assert build_recommendations([]) == [NO_OVERLAP_RECOMMENDATION]
        assert build_summary([]) == NO_OVERLAP_SUMMARY

    def test_recommendations_list_titles_once_in_order(self):
        matches = [
            _seg(0, 10, "b", "Beta"),
            _seg(5, 15, "a", "Alpha"),
            _seg(20, 40, "b", "Beta"),
        ]
        recs = build_recommendations(matches)
        assert recs == [REPHRASE_RECOMMENDATION, "Review overlapping content from: Beta, Alpha."]

    def test_summary_singular(self):
        assert build_summary([_seg(0, 10)]) == "Found 1 matching passage across 1 source."

    def test_summary_plural(self):
        matches = [_seg(0, 10, "a"), _seg(0, 10, "b"), _seg(20, 30, "a")]
        assert build_summary(matches) == "Found 3 matching passages across 2 sources."

    def test_result_is_frozen(self):
        result = build_detection_result(100, MatchOutcome(matches=[], summary=[]))
        with pytest.raises(Exception):
            result.similarity = 50


class TestRunDetection:

    def test_identical_copy_is_high_risk(self):
        source = get_source("ai-education-feedback")
        result = run_detection(source.content, include_web=False)
        assert result.similarity == 100
        assert result.risk == RiskLevel.HIGH
        assert result.sources[0].source_id == source.id

    def test_short_source_copy_scores_100(self, make_source):
        content = "Tidal flats shelter migrating birds, and volunteers count them."
        result = run_detection(content, include_web=False, corpus=[make_source("flats", content)])
        assert result.similarity == 100
        assert result.matches[0].overlap_ratio == 1.0

    def test_quoted_source_copy_scores_100(self, make_source):
        content = "\"" + HEAT_SENTENCE + "\" That warning opened the annual review of clinic budgets."
        result = run_detection(content, include_web=False, corpus=[make_source("quoted", content)])
        assert result.similarity == 100

    def test_similarity_counts_surrounding_whitespace(self):
        source = get_source("ai-education-feedback")
        padded = source.content + " " * len(source.content)
        result = run_detection(padded, include_web=False)
        assert result.similarity == 50

    def test_original_text_is_clean(self, original_prose):
        result = run_detection(original_prose, include_web=False)
        assert result.matches == []
        assert result.similarity == 0
        assert result.risk == RiskLevel.LOW
        assert result.summary == NO_OVERLAP_SUMMARY

    def test_single_sentence_reuse_scenario(self):
        prefix = (
            "My field notes from the coastal village describe how fishermen adapted their routes "
            "after the storms. "
        )
        suffix = (
            " Elders told me the old tide tables no longer help, so families now share radio updates "
            "each dawn and store dried fish in raised wooden lofts built by neighbors."
        )
        text = (prefix + HEAT_SENTENCE + suffix)[:400].rstrip().ljust(400, ".")
        assert len(text) == 400

        result = run_detection(text, include_web=False)

        assert len(result.matches) == 1
        seg = result.matches[0]
        assert seg.source_title == "Climate Pressure on Global Health Systems"
        assert text[seg.start:seg.end] == HEAT_SENTENCE
        assert seg.end - seg.start == 110
        # 110 / 400 = 27.5, rounded half up
        assert result.similarity == 28
        assert result.risk == RiskLevel.MEDIUM
        assert len(result.sources) == 1
        assert len(result.recommendations) == 2

    def test_web_sources_join_the_corpus(self, original_prose):
        from app.utils.web_utils import FetchedDocument, SearchHit

        def search(query, n):
            return [SearchHit(url="https://blog.example.com/hike", title="Hike blog")]

        def fetch(url):
            return FetchedDocument(title="", content="Archive copy. " + original_prose + " Reposted: " + original_prose)

        result = run_detection(original_prose, include_web=True, search=search, fetch=fetch)

        assert result.risk == RiskLevel.HIGH
        assert [s.title for s in result.sources] == ["Hike blog"]
        assert result.sources[0].source_id.startswith("web-")

    def test_source_cap(self):
        source = get_source("renewable-transition")
        result = run_detection(source.content, include_web=False, max_sources=1)
        assert result.matches == []
        assert PLAGIARISM_SOURCES[0].id != source.id

    def test_cancelled_request_skips_web(self, original_prose):
        calls = []
        cancel = threading.Event()
        cancel.set()

        def search(query, n):
            calls.append(query)
            return []

        run_detection(original_prose, include_web=True, search=search, cancel_event=cancel)
        assert calls == []

    @pytest.mark.parametrize("text", ["", "   \n\t", None])
    def test_rejects_blank_text(self, text):
        with pytest.raises(EmptyTextError):
            run_detection(text, include_web=False)

    def test_rejects_oversized_text(self):
        with pytest.raises(TextTooLongError):
            run_detection("word " * 10000, include_web=False)
