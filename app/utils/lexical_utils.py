import re
import hashlib
from typing import Dict, Iterator, List, NamedTuple, Set, Tuple

import nltk
from nltk.tokenize import RegexpTokenizer

from app.config import (
    SHINGLE_SIZE,
    MIN_WORDS_PER_SENTENCE,
    MIN_SENTENCE_LENGTH,
)

_run_tokenizer = RegexpTokenizer(r"\S+")
_NON_WORD = re.compile(r"[\W_]+")

FINGERPRINT_BYTES = 8


class Token(NamedTuple):
    text: str   # case-folded, punctuation stripped
    start: int  # offsets of the whole run in the raw string
    end: int


class Shingle(NamedTuple):
    token_span: Tuple[int, int]
    char_span: Tuple[int, int]
    hash: str


def canonical_word(run: str) -> str:
    return _NON_WORD.sub("", run.casefold())


def tokenize(text: str) -> List[Token]:
    """
    Whitespace-delimited runs with their raw offsets.

    Offsets cover the whole run, punctuation included, so a copied passage is
    covered up to its closing quote or full stop. Runs with no letters or digits
    ("--", "...") are dropped.
    """
    if not text:
        return []
    tokens = []
    for start, end in _run_tokenizer.span_tokenize(text):
        word = canonical_word(text[start:end])
        if word:
            tokens.append(Token(word, start, end))
    return tokens


def normalize_text(text: str) -> str:
    """Case-folded word tokens joined by single spaces; punctuation dropped."""
    return " ".join(tok.text for tok in tokenize(text))


def fingerprint(words: List[str]) -> str:
    return hashlib.blake2b(" ".join(words).encode("utf-8"), digest_size=FINGERPRINT_BYTES).hexdigest()


class SubmittedText:
    """Raw input plus the token stream used for matching."""

    def __init__(self, raw: str):
        self.raw = raw
        self.tokens = tokenize(raw)

    @property
    def normalized(self) -> str:
        return " ".join(tok.text for tok in self.tokens)

    @property
    def length(self) -> int:
        return len(self.raw)


class ShingleIndex:
    """
    Overlapping k-token windows over a document, advancing one token at a time.

    Iterating yields Shingle tuples lazily and can be repeated. Documents shorter
    than k tokens produce a single shingle covering every token.
    """

    def __init__(self, text: str, k: int = SHINGLE_SIZE, tokens: List[Token] = None):
        if k < 1:
            raise ValueError("shingle size must be positive")
        self.k = k
        self.tokens = tokens if tokens is not None else tokenize(text)

    def __len__(self) -> int:
        n = len(self.tokens)
        if n == 0:
            return 0
        return max(1, n - self.k + 1)

    def __iter__(self) -> Iterator[Shingle]:
        tokens = self.tokens
        width = min(self.k, len(tokens))
        for i in range(len(self)):
            window = tokens[i:i + width]
            yield Shingle(
                token_span=(i, i + width),
                char_span=(window[0].start, window[-1].end),
                hash=fingerprint([t.text for t in window]),
            )

    def fingerprints(self) -> Set[str]:
        return {sh.hash for sh in self}

    def occurrences(self) -> Dict[str, Tuple[int, int]]:
        """Fingerprint -> char span of its first occurrence."""
        first: Dict[str, Tuple[int, int]] = {}
        for sh in self:
            first.setdefault(sh.hash, sh.char_span)
        return first


# ---- Sentences & salience (used to build search queries) ----

def split_into_sentences(text: str) -> List[str]:
    sentences = re.split(r'(?<=[.!?])\s+', text or "")
    return [s.strip() for s in sentences if s.strip()]


def get_meaningful_sentences(text: str) -> List[str]:
    """Extract meaningful sentences from text."""
    filtered = []
    for s in split_into_sentences(text):
        if len(tokenize(s)) >= MIN_WORDS_PER_SENTENCE and len(s) >= MIN_SENTENCE_LENGTH:
            filtered.append(s)
    return filtered


def salient_words(text: str) -> List[str]:
    return [t.text for t in tokenize(text) if t.text.isalpha() and len(t.text) > 3]


def extract_keywords(text: str, max_keywords: int = 5) -> List[str]:
    """Extract top keywords from text for search queries."""
    freq = nltk.FreqDist(salient_words(text))
    return [word for word, _ in freq.most_common(max_keywords)]
