from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd


NO_DATA_MESSAGE = "No data available for the current selection"


def metric_value(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


@dataclass(frozen=True, eq=False)
class ChartData:
    """Chart-ready output of one aggregation.

    ``table`` is a tidy frame, ``meta`` holds orderings and derived scalars.
    An empty result carries only ``empty_message``.
    """

    table: pd.DataFrame = field(default_factory=pd.DataFrame)
    meta: Dict[str, Any] = field(default_factory=dict)
    empty_message: Optional[str] = None

    @classmethod
    def empty(cls, message: str = NO_DATA_MESSAGE) -> "ChartData":
        return cls(empty_message=message)

    @property
    def is_empty(self) -> bool:
        return self.empty_message is not None

