from __future__ import annotations

import io
import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATASET_FILENAME = "snyk_vulnerability_dataset.csv"

SEVERITY_ORDER = ["critical", "high", "medium", "low"]
STATUS_OPEN = "open"
STATUS_FIXED = "fixed"
VULN_ISSUE_TYPE = "vuln"
FIXABLE_TOKEN = "True"

FLOAT_COLUMNS = ["cvss_score", "risk_score"]
INT_COLUMNS = ["priority_score"]
INT64_LIMIT = float(np.iinfo(np.int64).max)
DATE_COLUMNS = ["discovered_date", "introduced_date", "resolved_date"]

RECORD_COLUMNS = [
    "issue_id",
    "org_name",
    "project_name",
    "scan_type",
    "severity",
    "cvss_score",
    "priority_score",
    "risk_score",
    "issue_type",
    "exploit_maturity",
    "cwe_id",
    "is_fixable",
    "status",
    "discovered_date",
    "introduced_date",
    "resolved_date",
    "resolution_days",
    "language",
    "title",
]


class DatasetLoadError(RuntimeError):
    """The dataset resource could not be read."""


class DatasetParseError(ValueError):
    """The delimited text could not be turned into rows."""


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = ""
        series = df[col]
        if isinstance(series, pd.DataFrame):
            series = series.iloc[:, 0]
        df[col] = series.fillna("").astype(str)
    return df


def numericize(df: pd.DataFrame, cols: Iterable[str], *, default: Optional[float] = 0.0) -> pd.DataFrame:
    """Best-effort numeric coercion; unparsable values become ``default`` (NaN when None)."""
    for col in cols:
        if col in df.columns:
            values = pd.to_numeric(df[col], errors="coerce").replace([np.inf, -np.inf], np.nan)
            if default is not None:
                values = values.fillna(default)
            df[col] = values.astype(float)
    return df


def parse_dates(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    # Invalid dates stay as NaT; offsets are folded into naive UTC.
    for col in cols:
        if col in df.columns:
            parsed = pd.to_datetime(df[col], errors="coerce", format="ISO8601", utc=True)
            df[col] = parsed.dt.tz_localize(None)
    return df


def drop_blank_ids(df: pd.DataFrame) -> pd.DataFrame:
    keep = df["issue_id"].str.strip() != ""
    dropped = int((~keep).sum())
    if dropped:
        logger.info("Dropped %d rows without an issue_id", dropped)
    return df[keep].copy()


def empty_records() -> pd.DataFrame:
    return parse_frame(pd.DataFrame(columns=RECORD_COLUMNS))


def parse_frame(raw: pd.DataFrame) -> pd.DataFrame:
    df = raw.copy()
    df.columns = [str(c) for c in df.columns]
    df = df.loc[:, ~df.columns.duplicated()]
    df = coerce_str_safe(df, RECORD_COLUMNS)
    df = drop_blank_ids(df)

    df = numericize(df, FLOAT_COLUMNS, default=0.0)
    df = numericize(df, INT_COLUMNS, default=0.0)
    for col in INT_COLUMNS:
        # Values past int64 range would wrap on the cast; treat them as unparsable.
        in_range = df[col].abs() < INT64_LIMIT
        df[col] = np.trunc(df[col].where(in_range, 0.0)).astype(np.int64)
    df = numericize(df, ["resolution_days"], default=None)
    df["is_fixable"] = df["is_fixable"].eq(FIXABLE_TOKEN)
    df = parse_dates(df, DATE_COLUMNS)

    extras = [c for c in df.columns if c not in RECORD_COLUMNS]
    return df[RECORD_COLUMNS + extras].reset_index(drop=True)


def parse_rows(rows: Iterable[Mapping[str, object]]) -> pd.DataFrame:
    """Turn raw field-name -> string mappings into typed records.

    Rows with a blank ``issue_id`` are left out; every other malformed value
    is coerced (numbers to 0, resolution_days to NaN, dates to NaT).
    """
    raw = pd.DataFrame([dict(r) for r in rows])
    if raw.empty and not len(raw.columns):
        return empty_records()
    return parse_frame(raw)


def parse_csv(text: str) -> pd.DataFrame:
    try:
        raw = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        return empty_records()
    except (pd.errors.ParserError, ValueError) as exc:
        raise DatasetParseError(f"Failed to parse CSV: {exc}") from exc
    return parse_frame(raw)


def get_dataset_path() -> Path:
    return DATA_DIR / DATASET_FILENAME


def file_signature(path: Path) -> Tuple[str, float]:
    return (str(path), path.stat().st_mtime)


@lru_cache(maxsize=4)
def _load_dataset_cached(signature: Tuple[str, float]) -> pd.DataFrame:
    path = Path(signature[0])
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise DatasetLoadError(f"Cannot read {path.name}: {exc}") from exc
    records = parse_csv(text)
    logger.info("Loaded %d records from %s", len(records), path.name)
    return records


def load_dataset(path: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    path = Path(path) if path is not None else get_dataset_path()
    try:
        signature = file_signature(path)
    except OSError as exc:
        raise DatasetLoadError(f"Cannot read {path.name}: {exc}") from exc
    # The cached frame is shared; hand out copies.
    return _load_dataset_cached(signature).copy()


def load_uploaded(content: Union[bytes, str]) -> pd.DataFrame:
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DatasetParseError(f"Failed to parse CSV: {exc}") from exc
    return parse_csv(content)



# ---------------- Shared selections and groupings for the metrics modules ----------------
def open_records(records: pd.DataFrame) -> pd.DataFrame:
    return records[records["status"] == STATUS_OPEN]


def fixed_records(records: pd.DataFrame) -> pd.DataFrame:
    """Fixed findings that carry a resolution duration."""
    return records[(records["status"] == STATUS_FIXED) & records["resolution_days"].notna()]


def vuln_records(records: pd.DataFrame) -> pd.DataFrame:
    return records[records["issue_type"] == VULN_ISSUE_TYPE]


def sorted_orgs(records: pd.DataFrame) -> List[str]:
    return sorted(str(v) for v in records["org_name"].unique())


def count_grid(
    df: pd.DataFrame,
    row_key: str,
    row_levels: List[str],
    col_key: str,
    col_levels: List[str],
) -> pd.DataFrame:
    """Count rows per (row, col) pair over the full grid; missing pairs are 0.

    Values outside the given levels are ignored.
    """
    grid = pd.MultiIndex.from_product([row_levels, col_levels], names=[row_key, col_key])
    if df.empty:
        counts = pd.Series(0, index=grid, dtype="int64")
    else:
        counts = df.groupby([row_key, col_key]).size().reindex(grid, fill_value=0).astype("int64")
    return counts.rename("count").reset_index()
