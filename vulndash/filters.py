from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, List, Mapping

import pandas as pd


ALL_SENTINEL = "__all__"


@dataclass(frozen=True)
class FilterSelection:
    """Either exactly ``{ALL_SENTINEL}`` or a non-empty set of concrete tokens."""

    values: FrozenSet[str] = frozenset({ALL_SENTINEL})

    def __post_init__(self) -> None:
        values = frozenset(self.values)
        object.__setattr__(self, "values", values)
        if not values:
            raise ValueError("A filter selection cannot be empty")
        if ALL_SENTINEL in values and len(values) > 1:
            raise ValueError(f"{ALL_SENTINEL!r} cannot be combined with concrete values")

    @classmethod
    def of(cls, tokens: Iterable[str]) -> "FilterSelection":
        tokens = frozenset(str(t) for t in tokens)
        if not tokens or ALL_SENTINEL in tokens:
            return cls()
        return cls(tokens)

    @property
    def all_selected(self) -> bool:
        return ALL_SENTINEL in self.values

    def toggle(self, token: str) -> "FilterSelection":
        if token == ALL_SENTINEL:
            return FilterSelection()
        if self.all_selected:
            return FilterSelection(frozenset({token}))
        if token in self.values:
            remaining = self.values - {token}
            return FilterSelection(remaining) if remaining else FilterSelection()
        return FilterSelection(self.values | {token})

    def is_active(self, token: str) -> bool:
        return token in self.values

    def matches_value(self, value: object) -> bool:
        return self.all_selected or value in self.values

    def mask(self, series: pd.Series) -> pd.Series:
        if self.all_selected:
            return pd.Series(True, index=series.index)
        return series.isin(self.values)


@dataclass(frozen=True)
class DashboardFilters:
    orgs: FilterSelection = field(default_factory=FilterSelection)
    scan_types: FilterSelection = field(default_factory=FilterSelection)

    def toggle_org(self, token: str) -> "DashboardFilters":
        return replace(self, orgs=self.orgs.toggle(token))

    def toggle_scan_type(self, token: str) -> "DashboardFilters":
        return replace(self, scan_types=self.scan_types.toggle(token))

    def reset(self) -> "DashboardFilters":
        return DashboardFilters()

    def matches(self, record: Mapping[str, object]) -> bool:
        return self.orgs.matches_value(record.get("org_name")) and self.scan_types.matches_value(record.get("scan_type"))

    def apply(self, records: pd.DataFrame) -> pd.DataFrame:
        if records.empty:
            return records.copy()
        keep = self.orgs.mask(records["org_name"]) & self.scan_types.mask(records["scan_type"])
        return records[keep].reset_index(drop=True)


def filter_options(records: pd.DataFrame, column: str) -> List[str]:
    if records.empty or column not in records.columns:
        return []
    return sorted(str(v) for v in records[column].unique())


def scan_type_label(value: str) -> str:
    return value.upper()
