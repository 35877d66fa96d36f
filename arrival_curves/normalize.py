"""Curve normalisation from bucketed percentages to per-minute fractions.

Bucket labels are reduced to their leading run of digits, buckets that share a
minute value are summed (``"240"`` and ``">240"`` both become 240), and the wide
one-column-per-category table is melted into ``minutes_prior``/``category``/
``value`` rows holding fractions.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from arrival_curves.errors import SchemaError
from arrival_curves.reference import CURVE_LABEL_COLUMN

NORMALIZED_COLUMNS: List[str] = ["minutes_prior", "category", "value"]


def _is_percentage_column(series: pd.Series) -> bool:
    return is_numeric_dtype(series) and not is_bool_dtype(series)


def resolve_category_columns(
    curve: pd.DataFrame,
    label_column: str = CURVE_LABEL_COLUMN,
    category_columns: Sequence[str] | None = None,
) -> List[str]:
    """Decide which columns hold category percentages.

    Explicit ``category_columns`` must exist and be numeric (not boolean).
    Without them, every numeric non-boolean column other than the label is a
    category; other columns are skipped with a warning so they are never
    summed by accident. Names used by the long output are reserved.
    """

    if label_column not in curve.columns:
        raise SchemaError(f"Bucket label column '{label_column}' not found", columns=[label_column])

    if category_columns is not None:
        columns = list(category_columns)
        missing = [col for col in columns if col not in curve.columns]
        if missing:
            raise SchemaError(f"Category columns not found: {missing}", columns=missing)
        if label_column in columns:
            raise SchemaError("Bucket label column cannot also be a category", columns=[label_column])
    else:
        columns = [col for col in curve.columns if col != label_column]
        skipped = [col for col in columns if not _is_percentage_column(curve[col])]
        if skipped:
            logging.warning("Ignoring non-numeric or boolean columns in arrival curve: %s", skipped)
        columns = [col for col in columns if col not in skipped]

    non_numeric = [col for col in columns if not _is_percentage_column(curve[col])]
    if non_numeric:
        raise SchemaError(f"Category columns must be numeric, not boolean: {non_numeric}", columns=non_numeric)
    reserved = [col for col in columns if col in NORMALIZED_COLUMNS]
    if reserved:
        raise SchemaError(f"Category columns use reserved names: {reserved}", columns=reserved)
    if not columns:
        raise SchemaError("Arrival curve has no numeric category columns", columns=[])
    return columns


def extract_minutes(labels: pd.Series) -> pd.Series:
    """Return the first run of digits in each label as an integer."""

    extracted = labels.astype("string").str.extract(r"(\d+)", expand=False)
    invalid = extracted.isna()
    if invalid.any():
        bad = labels[invalid].tolist()
        raise SchemaError(f"Bucket labels without a minute value: {bad}", columns=[labels.name], labels=bad)
    try:
        return extracted.astype("int64")
    except (OverflowError, ValueError) as exc:
        too_long = labels[extracted.str.len() > 18].tolist()
        raise SchemaError(
            f"Bucket labels with out-of-range minute values: {too_long}", columns=[labels.name], labels=too_long
        ) from exc


def normalize_arrival_curve(
    curve: pd.DataFrame,
    label_column: str = CURVE_LABEL_COLUMN,
    category_columns: Sequence[str] | None = None,
) -> pd.DataFrame:
    """
    Convert a wide percentage arrival curve into long per-minute fractions.
    Rows are ordered by category (input column order) then ascending minutes_prior.
    """

    columns = resolve_category_columns(curve, label_column=label_column, category_columns=category_columns)

    wide = curve[columns].copy()
    wide["minutes_prior"] = extract_minutes(curve[label_column]).to_numpy()
    collapsed = wide.groupby("minutes_prior", sort=True)[columns].sum()
    n_merged = len(wide) - len(collapsed)
    if n_merged:
        logging.info("Merged %d bucket label(s) sharing a minute value", n_merged)

    long = collapsed.reset_index().melt(
        id_vars="minutes_prior",
        value_vars=columns,
        var_name="category",
        value_name="value",
    )
    long["value"] = long["value"].astype(float) / 100.0
    long["minutes_prior"] = long["minutes_prior"].astype(int)
    logging.info("Normalized %d categories over %d minute buckets", len(columns), len(collapsed))
    return long[NORMALIZED_COLUMNS].reset_index(drop=True)


def category_totals(normalized: pd.DataFrame) -> Dict[str, float]:
    """Sum of fractions per category, in order of first appearance."""

    totals = normalized.groupby("category", sort=False)["value"].sum()
    return {str(cat): float(total) for cat, total in totals.items()}


def check_frequencies_sum_to_one(normalized: pd.DataFrame, tol: float = 1e-9) -> Dict[str, float]:
    """Raise :class:`SchemaError` when any category's fractions do not sum to 1."""

    missing = [col for col in NORMALIZED_COLUMNS if col not in normalized.columns]
    if missing:
        raise SchemaError(f"Missing required columns in normalized curve: {missing}", columns=missing)

    totals = category_totals(normalized)
    off = {cat: total for cat, total in totals.items() if not np.isclose(total, 1.0, rtol=0.0, atol=tol)}
    if off:
        raise SchemaError(f"Category frequencies do not sum to 1 (tol={tol}): {off}", columns=list(off))
    return totals


def to_wide_percentages(normalized: pd.DataFrame, label_column: str = CURVE_LABEL_COLUMN) -> pd.DataFrame:
    """Pivot a normalized table back into the wide percentage layout.

    Labels are the plain minute values, so feeding the result back into
    :func:`normalize_arrival_curve` reproduces the same fractions.
    """

    order = list(dict.fromkeys(normalized["category"]))
    wide = normalized.pivot(index="minutes_prior", columns="category", values="value")[order] * 100.0
    wide = wide.sort_index().reset_index()
    wide.columns.name = None
    wide = wide.rename(columns={"minutes_prior": label_column})
    wide[label_column] = wide[label_column].astype(str)
    return wide
