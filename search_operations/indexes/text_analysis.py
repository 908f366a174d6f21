"""
Text Analysis

Tokenization for the lexical index: lower-casing, diacritic folding,
stopword removal and a light English suffix stemmer so that
morphological variants ("payments", "payment", "paying") collide.
"""

import re
import unicodedata
from typing import FrozenSet, List, Optional

from ..config.bm25 import BM25Config

# Common English stopwords
DEFAULT_STOPWORDS: FrozenSet[str] = frozenset({
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'by', 'for', 'from',
    'has', 'he', 'in', 'is', 'it', 'its', 'of', 'on', 'that', 'the',
    'to', 'was', 'will', 'with', 'this', 'but', 'they', 'have',
    'had', 'what', 'when', 'where', 'who', 'which', 'why', 'how',
    'www', 'http', 'https', 'com',
})

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def fold_diacritics(text: str) -> str:
    """Strip combining marks so 'café' and 'cafe' tokenize identically."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def stem(word: str) -> str:
    """
    Reduce common English suffixes.

    Not a full Porter stemmer; covers plurals, -ing/-ed, -tion, -ment,
    -ness and a few adverb/adjective endings.
    """
    if len(word) <= 3 or word.isdigit():
        return word

    # Plurals first, so "payments" and "payment" share a stem
    if word.endswith("ies") and len(word) > 4:
        word = word[:-3] + "y"
    elif word.endswith("sses"):
        word = word[:-2]
    elif word.endswith("s") and not word.endswith(("ss", "us", "is")):
        word = word[:-1]

    if len(word) <= 3:
        return word
    if word.endswith("ness"):
        return word[:-4]
    if word.endswith("ment") and len(word) > 5:
        return word[:-4]
    if word.endswith("ation") and len(word) > 6:
        return word[:-5] + "ate"
    if word.endswith("tion"):
        return word[:-4] + "t"
    if word.endswith("ing") and len(word) > 4:
        word = word[:-3]
        if word.endswith(("at", "iz", "bl")):
            word += "e"
        return word
    if word.endswith("ed") and len(word) > 4:
        word = word[:-2]
        if word.endswith(("at", "iz", "bl")):
            word += "e"
        return word
    if word.endswith("ly") and len(word) > 4:
        return word[:-2]
    return word


class TextAnalyzer:
    """
    Configurable tokenizer shared by indexing and querying.

    The same analyzer must be used on both sides, otherwise stems and
    folded forms will not line up.
    """

    def __init__(self, config: Optional[BM25Config] = None):
        self.config = config or BM25Config()
        self.stopwords = frozenset(self.config.custom_stopwords) if self.config.custom_stopwords else DEFAULT_STOPWORDS

    def tokenize(self, text: Optional[str]) -> List[str]:
        """
        Tokenize text into index terms.

        Args:
            text: Input text (None is treated as empty)

        Returns:
            List of terms, duplicates preserved for term-frequency counting
        """
        if not text:
            return []

        text = text.lower()
        if self.config.fold_diacritics:
            text = fold_diacritics(text)

        tokens = [
            t for t in _TOKEN_RE.findall(text)
            if self.config.min_term_length <= len(t) <= self.config.max_term_length
        ]

        if self.config.enable_stopwords:
            tokens = [t for t in tokens if t not in self.stopwords]

        if self.config.enable_stemming:
            tokens = [stem(t) for t in tokens]

        return tokens
