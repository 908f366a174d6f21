"""
Lexical Search Module

BM25-style keyword search channel.
"""

from .engine import LexicalSearch

__all__ = ["LexicalSearch"]
