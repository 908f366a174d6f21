"""
Enrichment Entities

Batch job types: which stages a run covers, the per-tab outcome and the
aggregated batch report returned to callers.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional


class Stage(str, Enum):
    """Enrichment stages, in execution order"""
    SCREENSHOTS = "screenshots"
    CONTENT = "content"
    AI = "ai"
    EMBEDDINGS = "embeddings"


class ProcessType(str, Enum):
    """Requested subset of stages for a batch"""
    SCREENSHOTS = "screenshots"
    AI = "ai"
    EMBEDDINGS = "embeddings"
    FULL = "full"

    @property
    def stages(self) -> FrozenSet[Stage]:
        """
        Stages this process type runs.

        Content extraction is implied by AI and embeddings, both of which
        consume the extracted text.
        """
        if self is ProcessType.FULL:
            return frozenset(Stage)
        if self is ProcessType.SCREENSHOTS:
            return frozenset({Stage.SCREENSHOTS})
        if self is ProcessType.AI:
            return frozenset({Stage.CONTENT, Stage.AI})
        return frozenset({Stage.CONTENT, Stage.EMBEDDINGS})


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class StageFlags:
    """Which externally visible sub-stages produced data for a tab"""
    screenshots: bool = False
    ai: bool = False
    embeddings: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {"screenshots": self.screenshots, "ai": self.ai, "embeddings": self.embeddings}


@dataclass
class TabOutcome:
    """
    Result of enriching one tab in one batch run.

    `status` is FAILED only when an unexpected error escaped the tab's
    processing; losing individual stages leaves it SUCCESS with the
    corresponding flag False.
    """
    tab_id: str
    status: OutcomeStatus = OutcomeStatus.SUCCESS
    updates: StageFlags = field(default_factory=StageFlags)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "tabId": self.tab_id,
            "status": self.status.value,
            "updates": self.updates.to_dict(),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BatchReport:
    """
    Aggregated outcome of a batch.

    Invariant: successful + failed == processed == len(results).
    `errors` is truncated for reporting; counts always cover every tab.
    """
    import_batch_id: Optional[str]
    process_type: ProcessType
    results: List[TabOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    chunks: int = 0
    duration_ms: float = 0.0

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.succeeded)

    def to_dict(self) -> Dict[str, Any]:
        """External camelCase shape of the batch response."""
        return {
            "importBatchId": self.import_batch_id,
            "processType": self.process_type.value,
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
            "errors": list(self.errors),
        }
