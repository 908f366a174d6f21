from .entities import (
    Stage,
    ProcessType,
    OutcomeStatus,
    StageFlags,
    TabOutcome,
    BatchReport,
)

__all__ = [
    "Stage",
    "ProcessType",
    "OutcomeStatus",
    "StageFlags",
    "TabOutcome",
    "BatchReport",
]
