from .entities import (
    TabRecord,
    TabStatus,
    TabUpdates,
    extract_domain,
    tab_from_row,
)

__all__ = [
    "TabRecord",
    "TabStatus",
    "TabUpdates",
    "extract_domain",
    "tab_from_row",
]
