from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from vulndash.data import empty_records
from vulndash.filters import DashboardFilters, filter_options


logger = logging.getLogger(__name__)


@dataclass
class DashboardState:
    """The loaded dataset, the two filter selections and the current filtered view.

    ``filtered`` is rebuilt from the full dataset on every change and the
    reference is replaced, never edited in place.
    """

    records: pd.DataFrame = field(default_factory=empty_records)
    filters: DashboardFilters = field(default_factory=DashboardFilters)
    filtered: pd.DataFrame = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.refresh()

    @property
    def org_options(self) -> List[str]:
        return filter_options(self.records, "org_name")

    @property
    def scan_type_options(self) -> List[str]:
        return filter_options(self.records, "scan_type")

    def refresh(self) -> pd.DataFrame:
        self.filtered = self.filters.apply(self.records)
        logger.debug("Filtered view has %d of %d records", len(self.filtered), len(self.records))
        return self.filtered

    def load(self, records: pd.DataFrame) -> pd.DataFrame:
        self.records = records
        self.filters = DashboardFilters()
        return self.refresh()

    def toggle_org(self, token: str) -> pd.DataFrame:
        self.filters = self.filters.toggle_org(token)
        return self.refresh()

    def toggle_scan_type(self, token: str) -> pd.DataFrame:
        self.filters = self.filters.toggle_scan_type(token)
        return self.refresh()

    def reset(self) -> pd.DataFrame:
        self.filters = self.filters.reset()
        return self.refresh()
