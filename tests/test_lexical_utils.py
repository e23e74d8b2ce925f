"""
Unit tests for app/utils/lexical_utils.py
"""
import pytest

from app.utils.lexical_utils import (
    ShingleIndex,
    SubmittedText,
    fingerprint,
    get_meaningful_sentences,
    normalize_text,
    tokenize,
)


class TestTokenize:

    def test_offsets_cover_whole_runs(self):
        text = "Hello,   World! Vector-borne"
        tokens = tokenize(text)
        assert [t.text for t in tokens] == ["hello", "world", "vectorborne"]
        assert [text[t.start:t.end] for t in tokens] == ["Hello,", "World!", "Vector-borne"]

    def test_quotes_and_full_stops_inside_span(self):
        text = '"Tides turn."'
        (tok_a, tok_b) = tokenize(text)
        assert (tok_a.text, tok_b.text) == ("tides", "turn")
        assert tok_a.start == 0
        assert tok_b.end == len(text)

    def test_punctuation_only_runs_dropped(self):
        assert [t.text for t in tokenize("wait -- what ... now")] == ["wait", "what", "now"]

    def test_empty(self):
        assert tokenize("") == []
        assert tokenize("  ...  ") == []

    def test_normalize_collapses_case_and_punctuation(self):
        assert normalize_text("  The  QUICK, brown\nfox. ") == "the quick brown fox"


class TestFingerprint:

    def test_fixed_width_and_deterministic(self):
        a = fingerprint(["in", "this", "paper"])
        b = fingerprint(["in", "this", "paper"])
        assert a == b
        assert len(a) == 16

    def test_different_words_differ(self):
        assert fingerprint(["a", "b"]) != fingerprint(["a", "c"])


class TestShingleIndex:

    def test_window_count_and_spans(self):
        text = "one two three four five six seven eight nine ten"
        index = ShingleIndex(text, k=8)
        shingles = list(index)
        assert len(shingles) == 3
        assert len(index) == 3
        assert shingles[0].token_span == (0, 8)
        assert shingles[2].token_span == (2, 10)
        assert shingles[0].char_span == (0, text.index("eight") + len("eight"))
        assert shingles[2].char_span[1] == len(text)

    def test_short_document_single_shingle(self):
        text = "just three words"
        shingles = list(ShingleIndex(text, k=8))
        assert len(shingles) == 1
        assert shingles[0].token_span == (0, 3)
        assert shingles[0].char_span == (0, len(text))

    def test_empty_document(self):
        assert list(ShingleIndex("", k=8)) == []
        assert ShingleIndex("", k=8).fingerprints() == set()

    def test_restartable(self):
        index = ShingleIndex("alpha beta gamma delta epsilon zeta eta theta iota", k=4)
        assert list(index) == list(index)

    def test_occurrences_keep_first_span(self):
        text = "red fox runs. red fox runs."
        occ = ShingleIndex(text, k=3).occurrences()
        first = list(ShingleIndex(text, k=3))[0]
        assert occ[first.hash] == (0, len("red fox runs."))
        assert len(occ) == 3

    def test_case_and_punctuation_do_not_change_hashes(self):
        a = ShingleIndex("Rivers carry silt, far beyond the bridge.", k=3).fingerprints()
        b = ShingleIndex("rivers CARRY silt far beyond -- the bridge", k=3).fingerprints()
        assert a == b

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            ShingleIndex("text", k=0)


class TestSubmittedText:

    def test_normalized_and_length(self):
        sub = SubmittedText("  Some Text, here.  ")
        assert sub.normalized == "some text here"
        assert sub.length == len("  Some Text, here.  ")


class TestSentences:

    def test_meaningful_sentences_filter_short_ones(self):
        text = "Too short. This sentence is long enough to be kept for searching. Ok."
        assert get_meaningful_sentences(text) == [
            "This sentence is long enough to be kept for searching."
        ]
