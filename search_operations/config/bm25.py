"""
BM25 Configuration

Parameters for the in-memory lexical index.
"""

from dataclasses import dataclass
from typing import Optional, Set

from config.settings import BM25Settings


@dataclass
class BM25Config:
    """
    Configuration for BM25 lexical scoring.

    BM25 is a probabilistic ranking function used to estimate the relevance
    of documents to a given search query. This configuration controls its behavior.

    Attributes:
        k1: Term frequency saturation parameter (typical range: 1.2-2.0)
        b: Length normalization parameter (0 = no normalization, 1 = full normalization)
        min_term_length: Minimum length of tokens to consider
        max_term_length: Maximum length of tokens to consider
        enable_stemming: Whether to apply suffix stemming
        enable_stopwords: Whether to filter stopwords
        fold_diacritics: Whether to strip accents before matching
        custom_stopwords: Optional custom stopword set
        idf_smoothing: Whether to use smoothed IDF calculation
    """
    k1: float = 1.5
    b: float = 0.75
    min_term_length: int = 2
    max_term_length: int = 50
    enable_stemming: bool = True
    enable_stopwords: bool = True
    fold_diacritics: bool = True
    custom_stopwords: Optional[Set[str]] = None
    idf_smoothing: bool = True

    def __post_init__(self):
        """Validate BM25 configuration parameters."""
        if self.k1 <= 0:
            raise ValueError(f"k1 must be positive, got {self.k1}")
        if not 0 <= self.b <= 1:
            raise ValueError(f"b must be between 0 and 1, got {self.b}")
        if self.min_term_length < 1:
            raise ValueError(f"min_term_length must be at least 1, got {self.min_term_length}")
        if self.max_term_length < self.min_term_length:
            raise ValueError(
                f"max_term_length ({self.max_term_length}) must be >= "
                f"min_term_length ({self.min_term_length})"
            )

    @classmethod
    def from_settings(cls, settings: BM25Settings) -> "BM25Config":
        return cls(
            k1=settings.k1,
            b=settings.b,
            enable_stemming=settings.enable_stemming,
            enable_stopwords=settings.enable_stopwords,
            fold_diacritics=settings.fold_diacritics,
        )
