"""Input/output helpers for the arrival curve pipeline.

Covers CSV loading with optional column renames and row caps, required-column
checks that raise :class:`SchemaError`, and CSV saving.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

import pandas as pd

from arrival_curves.errors import SchemaError

FLIGHT_COLUMNS: List[str] = [
    "carrier",
    "origin",
    "dest",
    "scheduled_departure_time",
    "departure_timestamp",
    "tail_number",
]
AIRCRAFT_COLUMNS: List[str] = ["tail_number", "seats"]
AIRPORT_COLUMNS: List[str] = ["code", "latitude", "longitude"]


def load_table(
    path: str | Path,
    rename: Mapping[str, str] | None = None,
    parse_dates: Iterable[str] = (),
    max_rows: int | None = None,
) -> pd.DataFrame:
    """Read a CSV, apply column renames, and parse the date columns that exist.

    Renames run before date parsing so ``parse_dates`` uses the pipeline's
    column names rather than the source dataset's.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input table not found: {path}")

    df = pd.read_csv(path, nrows=max_rows, low_memory=False)
    if rename:
        df = df.rename(columns=dict(rename))

    for col in parse_dates:
        if col in df.columns:
            df[col] = pd.to_datetime(df[col], errors="coerce")
        else:
            logging.warning("Skipping date parsing for %s: column not present in %s", col, path)

    logging.info("Loaded %d rows from %s", len(df), path)
    if max_rows is not None:
        logging.info("Row cap of %d applied to %s", max_rows, path)
    return df


def ensure_required_columns(df: pd.DataFrame, required: Iterable[str], table: str = "table") -> pd.DataFrame:
    """Validate that the DataFrame contains the required columns."""

    missing = [col for col in required if col not in df.columns]
    if missing:
        raise SchemaError(f"Missing required columns in {table}: {missing}", columns=missing)
    return df


def save_dataframe(df: pd.DataFrame, path: str | Path) -> None:
    """Persist a DataFrame to CSV."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logging.info("Saved %d rows to %s", len(df), path)


def rename_map(cfg: Dict[str, object] | None) -> Dict[str, str]:
    """Return a ``{source: target}`` rename mapping from a config section."""

    if not cfg:
        return {}
    return {str(src): str(dst) for src, dst in cfg.items()}
