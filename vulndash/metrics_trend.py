from __future__ import annotations

import pandas as pd

from vulndash.data import SEVERITY_ORDER, count_grid
from vulndash.results import ChartData


# Bottom-to-top so critical sits on top of the stack.
TREND_STACK_ORDER = ["low", "medium", "high", "critical"]


def compute_monthly_trend(records: pd.DataFrame) -> ChartData:
    """Findings discovered per calendar month, split by severity.

    Months are ``YYYY-MM`` keys sorted as strings; rows with an invalid
    discovery date have no month and are left out.
    """
    dated = records[records["discovered_date"].notna()]
    if dated.empty:
        return ChartData.empty()
    dated = dated.assign(month=dated["discovered_date"].dt.strftime("%Y-%m"))
    months = sorted(dated["month"].unique())
    table = count_grid(dated, "month", months, "severity", SEVERITY_ORDER)
    return ChartData(table=table, meta={"months": months, "stack_order": list(TREND_STACK_ORDER)})
