"""
Milvus Vector Index

Vector index backed by a Milvus collection through `pymilvus.MilvusClient`.
The collection stores one row per tab: `tab_id` (primary key), `owner_id`,
`status` and the `embedding` vector, searched with the COSINE metric.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pymilvus import MilvusClient

from persistence_operations.models.entities import TabRecord
from ..core.search_ops_exceptions import VectorSearchError
from .base import VectorIndex, VectorMatch

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class MilvusVectorIndex(VectorIndex):
    """
    Milvus-backed nearest-neighbour index.

    Calls into the synchronous client run on a worker thread so the event
    loop is never blocked.

    Example:
        ```python
        index = MilvusVectorIndex(uri="http://localhost:19530", collection_name="tabs")
        matches = await index.query(query_vector, owner_id="user_001", limit=30)
        ```
    """

    def __init__(
        self,
        uri: str = "http://localhost:19530",
        collection_name: str = "tabs",
        token: Optional[str] = None,
        client: Optional[MilvusClient] = None,
        vector_field: str = "embedding"
    ):
        """
        Args:
            uri: Milvus server URI
            collection_name: Collection holding tab vectors
            token: Optional auth token
            client: Pre-built client (tests inject a mock)
            vector_field: Name of the vector field
        """
        self.collection_name = collection_name
        self.vector_field = vector_field
        self._client = client or MilvusClient(uri=uri, token=token or "")

        logger.info(f"MilvusVectorIndex initialized - collection: {collection_name}")

    def _filter_expr(self, owner_id: str) -> str:
        return f'owner_id == {_quote(owner_id)} and status != "discarded"'

    async def query(
        self,
        embedding: List[float],
        owner_id: str,
        limit: int,
        max_distance: float = 0.7
    ) -> List[VectorMatch]:
        if not embedding or limit <= 0:
            return []

        try:
            results = await asyncio.to_thread(
                self._client.search,
                collection_name=self.collection_name,
                data=[embedding],
                anns_field=self.vector_field,
                filter=self._filter_expr(owner_id),
                limit=limit,
                output_fields=["tab_id"],
                search_params={"metric_type": "COSINE"},
            )
        except Exception as e:
            raise VectorSearchError(f"Milvus search failed: {e}") from e

        hits = results[0] if results else []
        matches = []
        for hit in hits:
            # COSINE metric reports similarity; convert to distance
            distance = 1.0 - float(hit["distance"])
            if distance > max_distance:
                continue
            entity = hit.get("entity") or {}
            tab_id = entity.get("tab_id", hit.get("id"))
            matches.append(VectorMatch(tab_id=str(tab_id), distance=distance))

        matches.sort(key=lambda m: (m.distance, m.tab_id))
        return matches

    def _row(self, tab: TabRecord) -> Dict[str, Any]:
        return {
            "tab_id": tab.id,
            "owner_id": tab.owner_id,
            "status": tab.status.value,
            self.vector_field: tab.embedding,
        }

    async def index_tab(self, tab: TabRecord) -> None:
        """Upsert a tab's vector; tabs without an embedding are skipped."""
        if not tab.has_embedding:
            return
        await asyncio.to_thread(
            self._client.upsert,
            collection_name=self.collection_name,
            data=[self._row(tab)],
        )
        logger.debug(f"Upserted vector for tab {tab.id}")

    async def remove_tab(self, tab_id: str) -> None:
        await asyncio.to_thread(
            self._client.delete,
            collection_name=self.collection_name,
            filter=f"tab_id == {_quote(tab_id)}",
        )
