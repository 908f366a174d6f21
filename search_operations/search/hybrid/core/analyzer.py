"""
Query Analyzer

Classifies an incoming search string to decide which channels to run.
The gating only skips embedding calls that cannot help; it never removes
a reasonable query from every channel.
"""

import re
from enum import Enum
from dataclasses import dataclass, asdict
from typing import Any, Dict

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

SHORT_QUERY_LENGTH = 3


class QueryKind(str, Enum):
    """Coarse shape of a query"""
    SHORT = "short"      # 1-2 characters
    URL = "url"          # scheme-prefixed URL
    KEYWORD = "keyword"  # single term
    PHRASE = "phrase"    # several terms


@dataclass(frozen=True)
class QueryAnalysis:
    """
    Analyzer verdict for one query.

    Attributes:
        is_short: Trimmed length below 3
        is_url_like: Starts with http:// or https://
        has_alpha: Contains at least one alphabetic character
        use_vector: Run the vector channel
        use_text: Run the lexical channel
        kind: Coarse query shape
    """
    is_short: bool
    is_url_like: bool
    has_alpha: bool
    use_vector: bool
    use_text: bool
    kind: QueryKind

    @property
    def runs_any_channel(self) -> bool:
        return self.use_vector or self.use_text

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


class QueryAnalyzer:
    """Stateless query classifier."""

    def analyze(self, query: str) -> QueryAnalysis:
        trimmed = (query or "").strip()
        is_short = len(trimmed) < SHORT_QUERY_LENGTH
        is_url_like = bool(_URL_RE.match(trimmed))
        has_alpha = any(ch.isalpha() for ch in trimmed)

        if is_short:
            kind = QueryKind.SHORT
        elif is_url_like:
            kind = QueryKind.URL
        elif len(trimmed.split()) > 1:
            kind = QueryKind.PHRASE
        else:
            kind = QueryKind.KEYWORD

        return QueryAnalysis(
            is_short=is_short,
            is_url_like=is_url_like,
            has_alpha=has_alpha,
            use_vector=not is_short and not is_url_like,
            use_text=has_alpha,
            kind=kind,
        )


def analyze_query(query: str) -> QueryAnalysis:
    """Module-level shortcut for `QueryAnalyzer().analyze(query)`."""
    return QueryAnalyzer().analyze(query)
