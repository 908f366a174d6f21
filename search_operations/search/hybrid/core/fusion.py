"""
Result Fusion Module

This module merges the vector and lexical channels' ranked lists into one
ranking. Only ranks are used, never raw scores, since cosine similarity
and BM25 live on unrelated scales.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from config.settings import FusionStrategy
from ....core.base import RankedHit

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class FusedHit:
    """Fused ranking entry; ranks are 0-based per channel, None if absent."""
    tab_id: str
    score: float
    vector_rank: Optional[int] = None
    text_rank: Optional[int] = None


def position_score(rank: int, total: int, weight: float) -> float:
    """
    Linear rank-to-score mapping: item `rank` (0-based) of `total` scores
    weight * (1 - rank / total), so the top item gets the full weight.
    """
    return weight * (1.0 - rank / total)


def rrf_score(rank: int, weight: float, k: int = 60) -> float:
    """
    Weighted reciprocal-rank contribution.

    Formula: weight / (k + rank + 1), with `rank` 0-based.
    """
    return weight / (k + rank + 1)


def deduplicate_hits(hits: Sequence[RankedHit]) -> List[RankedHit]:
    """
    Remove duplicate tab ids from one channel, keeping the first occurrence.
    """
    seen_ids = set()
    deduplicated = []
    for hit in hits:
        if hit.tab_id not in seen_ids:
            seen_ids.add(hit.tab_id)
            deduplicated.append(hit)

    if len(deduplicated) < len(hits):
        logger.debug(f"Removed {len(hits) - len(deduplicated)} duplicate hits")

    return deduplicated


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def fuse_ranked_results(
    vector_hits: Sequence[RankedHit],
    text_hits: Sequence[RankedHit],
    vector_weight: float,
    text_weight: float,
    limit: int,
    date_added: Optional[Mapping[str, datetime]] = None,
    strategy: FusionStrategy = FusionStrategy.POSITION,
    rrf_k: int = 60
) -> List[FusedHit]:
    """
    Fuse two ranked channels into one deduplicated ranking.

    A tab's fused score is the sum of its contributions from every channel it
    appears in; tabs found by only one channel still qualify. A channel with
    weight 0 contributes nothing and its hits are not included. Sorting is by
    fused score descending, then newer `date_added`, then tab id, so the
    output is a deterministic function of the inputs.

    Args:
        vector_hits: Vector channel, best first
        text_hits: Lexical channel, best first
        vector_weight: Weight of the vector channel
        text_weight: Weight of the lexical channel
        limit: Maximum number of fused hits
        date_added: Tie-break timestamps by tab id
        strategy: POSITION (weight * (1 - i/n)) or RRF
        rrf_k: RRF rank constant

    Returns:
        Fused hits, best first, at most `limit`
    """
    dates = date_added or {}
    fused: Dict[str, FusedHit] = {}

    channels = (
        ("vector", deduplicate_hits(vector_hits), vector_weight),
        ("text", deduplicate_hits(text_hits), text_weight),
    )

    for name, hits, weight in channels:
        if weight <= 0:
            continue
        total = len(hits)
        for rank, hit in enumerate(hits):
            if strategy == FusionStrategy.RRF:
                contribution = rrf_score(rank, weight, rrf_k)
            else:
                contribution = position_score(rank, total, weight)

            entry = fused.get(hit.tab_id)
            if entry is None:
                entry = fused[hit.tab_id] = FusedHit(tab_id=hit.tab_id, score=0.0)
            entry.score += contribution
            if name == "vector":
                entry.vector_rank = rank
            else:
                entry.text_rank = rank

    ranked = sorted(
        fused.values(),
        key=lambda h: (-h.score, -_as_utc(dates.get(h.tab_id)).timestamp(), h.tab_id)
    )

    logger.debug(
        f"{strategy.value} fusion completed - "
        f"vector: {len(channels[0][1])}, text: {len(channels[1][1])}, "
        f"unique: {len(ranked)}, weights: (vector={vector_weight:.2f}, text={text_weight:.2f})"
    )

    return ranked[:max(limit, 0)]
