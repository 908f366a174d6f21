"""
Search Indexes

Vector and lexical index interfaces plus their in-memory and Milvus backends.
"""

from .base import VectorIndex, LexicalIndex, VectorMatch, TextMatch
from .text_analysis import TextAnalyzer, fold_diacritics, stem
from .bm25 import BM25TextIndex
from .memory_vector import InMemoryVectorIndex
from .milvus_vector import MilvusVectorIndex

__all__ = [
    "VectorIndex",
    "LexicalIndex",
    "VectorMatch",
    "TextMatch",
    "TextAnalyzer",
    "fold_diacritics",
    "stem",
    "BM25TextIndex",
    "InMemoryVectorIndex",
    "MilvusVectorIndex",
]
