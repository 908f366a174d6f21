"""
Semantic Search Module

Dense vector search channel.
"""

from .engine import VectorSearch

__all__ = ["VectorSearch"]
