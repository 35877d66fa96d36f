"""Static reference tables consumed by the pipeline.

The checkpoint arrival curve is published as percentages of passengers per
10-minute bucket ahead of departure, with an open-ended ``>240`` bucket.
Airline factor tables are supplied by the caller and only rescaled here.
"""

from __future__ import annotations

import logging
from typing import List

import pandas as pd

from arrival_curves.io import ensure_required_columns

CURVE_LABEL_COLUMN = "minutes_prior"
PEAK_DOMESTIC = "peak_domestic_8am"
OFF_PEAK_DOMESTIC = "off_peak_domestic"
INTERNATIONAL = "international"
CATEGORIES: List[str] = [PEAK_DOMESTIC, OFF_PEAK_DOMESTIC, INTERNATIONAL]

_BUCKET_LABELS: List[str] = [str(m) for m in range(10, 250, 10)] + [">240"]

_PEAK_DOMESTIC_8AM = [
    0.80, 0.26, 0.42, 1.10, 3.08, 6.71, 10.34, 12.87, 13.54,
    12.79, 11.21, 8.70, 6.13, 4.11, 2.66, 1.69, 1.10, 0.72,
    0.46, 0.32, 0.22, 0.15, 0.11, 0.08, 0.41,
]
_OFF_PEAK_DOMESTIC = [
    0.06, 0.30, 0.48, 0.98, 2.10, 4.03, 6.19, 8.16, 9.59,
    10.25, 10.08, 9.25, 7.95, 6.44, 5.09, 3.94, 3.06, 2.36,
    1.83, 1.43, 1.14, 0.92, 0.74, 0.62, 3.01,
]
_INTERNATIONAL = [
    0.22, 0.11, 0.15, 0.28, 0.61, 1.32, 3.08, 5.13, 7.37,
    8.93, 10.28, 10.69, 9.75, 8.40, 7.12, 5.74, 4.75, 3.81,
    2.92, 2.17, 1.62, 1.19, 0.90, 0.71, 2.77,
]

# Published percentages are rounded to hundredths; category totals drift by up to 0.02 points.
PUBLISHED_CURVE_SUM_TOLERANCE = 1e-3

AIRLINE_FACTOR_COLUMNS: List[str] = ["airline", "carrier", "load_factor", "check_bag_factor", "avg_num_bags"]
PERCENT_FACTOR_COLUMNS: List[str] = ["load_factor", "check_bag_factor"]


def pgds_arrival_curve() -> pd.DataFrame:
    """Return the published passenger arrival curve as a wide percentage table.

    One row per bucket label (``"10"`` through ``"240"`` and ``">240"``) and
    one column per category.
    """

    return pd.DataFrame(
        {
            CURVE_LABEL_COLUMN: _BUCKET_LABELS,
            PEAK_DOMESTIC: _PEAK_DOMESTIC_8AM,
            OFF_PEAK_DOMESTIC: _OFF_PEAK_DOMESTIC,
            INTERNATIONAL: _INTERNATIONAL,
        }
    )


def scale_airline_factors(factors: pd.DataFrame) -> pd.DataFrame:
    """Convert load and check-bag factors from percent to fractions.

    ``avg_num_bags`` is a count per party and is left as is.
    """

    ensure_required_columns(factors, AIRLINE_FACTOR_COLUMNS, table="airline factors")
    scaled = factors.copy()
    for col in PERCENT_FACTOR_COLUMNS:
        scaled[col] = pd.to_numeric(scaled[col], errors="raise") / 100.0
    logging.info("Scaled %s to fractions for %d airlines", PERCENT_FACTOR_COLUMNS, len(scaled))
    return scaled
