"""Flight classification and enrichment.

Joins seat capacity by tail number and airport coordinates for origin and
destination, flags airports inside the contiguous-US bounding box, buckets each
flight into an arrival-curve category, and imputes missing seats with the
carrier median.

The bounding box is an approximation: any airport inside the rectangle counts
as domestic, including non-US locations near the border and offshore points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
import pandas as pd

from arrival_curves.errors import ImputationGapWarning, SchemaError
from arrival_curves.io import AIRCRAFT_COLUMNS, AIRPORT_COLUMNS, FLIGHT_COLUMNS, ensure_required_columns
from arrival_curves.reference import INTERNATIONAL, OFF_PEAK_DOMESTIC, PEAK_DOMESTIC

# (lat_min, lat_max, lon_min, lon_max)
CONTIGUOUS_US_BBOX: Tuple[float, float, float, float] = (24.396308, 49.384358, -125.0, -66.93457)
PEAK_CUTOFF_HHMM = 800
DEST_SUFFIX = "_dest"


@dataclass
class EnrichmentResult:
    """Enriched flights plus carriers whose seats could not be imputed."""

    flights: pd.DataFrame
    imputation_gaps: List[ImputationGapWarning] = field(default_factory=list)

    @property
    def gap_carriers(self) -> List[object]:
        return [gap.carrier for gap in self.imputation_gaps]


def flag_domestic_airports(
    airports: pd.DataFrame,
    bbox: Tuple[float, float, float, float] = CONTIGUOUS_US_BBOX,
) -> pd.DataFrame:
    """Add ``is_domestic_us``: inclusive lat/lon bounding-box test, NA when coordinates are missing."""

    ensure_required_columns(airports, AIRPORT_COLUMNS, table="airports")
    lat_min, lat_max, lon_min, lon_max = bbox
    lat = pd.to_numeric(airports["latitude"], errors="coerce")
    lon = pd.to_numeric(airports["longitude"], errors="coerce")

    inside = lat.between(lat_min, lat_max) & lon.between(lon_min, lon_max)
    flagged = airports.copy()
    flagged["is_domestic_us"] = inside.astype("boolean")
    flagged.loc[lat.isna() | lon.isna(), "is_domestic_us"] = pd.NA
    return flagged


def _check_unique_keys(df: pd.DataFrame, key: str, table: str) -> None:
    dupes = df.loc[df[key].notna() & df[key].duplicated(), key].unique().tolist()
    if dupes:
        raise SchemaError(f"Duplicate {key} values in {table}: {dupes[:10]}", columns=[key], labels=dupes)


def _with_string_keys(df: pd.DataFrame, keys: List[str]) -> pd.DataFrame:
    """Copy with join keys as pandas strings; an all-missing key column reads as float64."""

    return df.assign(**{key: df[key].astype("string") for key in keys})


def join_reference_data(flights: pd.DataFrame, aircraft: pd.DataFrame, airports: pd.DataFrame) -> pd.DataFrame:
    """
    Left-join seats by tail number, then airport coordinates for origin
    (unsuffixed) and destination (``_dest`` suffix).
    """

    ensure_required_columns(flights, FLIGHT_COLUMNS, table="flights")
    ensure_required_columns(aircraft, AIRCRAFT_COLUMNS, table="aircraft")
    if "is_domestic_us" not in airports.columns:
        airports = flag_domestic_airports(airports)
    _check_unique_keys(aircraft, "tail_number", "aircraft")
    _check_unique_keys(airports, "code", "airports")

    airport_cols = ["latitude", "longitude", "is_domestic_us"]
    clashes = [col for col in ["seats", *airport_cols] if col in flights.columns]
    if clashes:
        raise SchemaError(f"Flights already contain enrichment columns: {clashes}", columns=clashes)

    flights = _with_string_keys(flights, ["tail_number", "origin", "dest"])
    aircraft = _with_string_keys(aircraft, ["tail_number"])
    airports = _with_string_keys(airports, ["code"])

    # pandas matches NaN keys to each other; reference rows without a key never join.
    aircraft = aircraft[aircraft["tail_number"].notna()]
    airports = airports[airports["code"].notna()]

    merged = flights.merge(aircraft[AIRCRAFT_COLUMNS], on="tail_number", how="left")

    origin = airports[["code", *airport_cols]].rename(columns={"code": "origin"})
    merged = merged.merge(origin, on="origin", how="left")

    dest = airports[["code", *airport_cols]].rename(
        columns={"code": "dest", **{col: f"{col}{DEST_SUFFIX}" for col in airport_cols}}
    )
    merged = merged.merge(dest, on="dest", how="left")

    merged = merged.rename(columns={"is_domestic_us": "is_domestic_us_origin"})
    for col in ["is_domestic_us_origin", "is_domestic_us_dest"]:
        merged[col] = merged[col].astype("boolean")

    unmatched = {
        "tail_number": int(merged["seats"].isna().sum()),
        "origin": int(merged["latitude"].isna().sum()),
        "dest": int(merged[f"latitude{DEST_SUFFIX}"].isna().sum()),
    }
    if any(unmatched.values()):
        logging.info("Rows without reference match (or missing values) by key: %s", unmatched)
    return merged


def classify_flight_types(flights: pd.DataFrame, peak_cutoff: int = PEAK_CUTOFF_HHMM) -> pd.Series:
    """
    Arrival-curve category per flight. Destinations that are not confirmed
    domestic (including unknown airports) are international; domestic flights
    scheduled at or before ``peak_cutoff`` (HHMM) are peak.
    """

    dest_domestic = flights["is_domestic_us_dest"].astype("boolean").fillna(False).astype(bool)
    dep = pd.to_numeric(flights["scheduled_departure_time"], errors="coerce")

    no_time = dest_domestic & dep.isna()
    if no_time.any():
        logging.warning("%d domestic flights lack a scheduled departure time; classed off-peak", int(no_time.sum()))

    flight_type = np.where(
        ~dest_domestic,
        INTERNATIONAL,
        np.where(dep.le(peak_cutoff).to_numpy(), PEAK_DOMESTIC, OFF_PEAK_DOMESTIC),
    )
    return pd.Series(flight_type, index=flights.index, name="flight_type")


def carrier_seat_medians(flights: pd.DataFrame) -> pd.Series:
    """Median of non-null seats per carrier; NaN for carriers with none."""

    seats = pd.to_numeric(flights["seats"], errors="coerce")
    return seats.groupby(flights["carrier"], dropna=False).median()


def impute_seats_by_carrier(flights: pd.DataFrame) -> Tuple[pd.DataFrame, List[ImputationGapWarning]]:
    """
    Fill null seats with the carrier median (computed first, then substituted).
    Returns a new frame and the carriers left with nulls.
    """

    medians = carrier_seat_medians(flights)
    seats = pd.to_numeric(flights["seats"], errors="coerce")
    fill = flights["carrier"].map(medians)

    imputed = flights.copy()
    imputed["seats_imputed"] = seats.isna() & fill.notna()
    imputed["seats"] = seats.fillna(fill)

    n_filled = int(imputed["seats_imputed"].sum())
    if n_filled:
        logging.info("Imputed seats for %d flights from carrier medians", n_filled)

    gaps: List[ImputationGapWarning] = []
    still_missing = imputed["seats"].isna()
    if still_missing.any():
        counts = imputed.loc[still_missing, "carrier"].value_counts(dropna=False, sort=False)
        for carrier, n in counts.items():
            carrier_key = None if pd.isna(carrier) else carrier
            gap = ImputationGapWarning(carrier=carrier_key, n_missing=int(n))
            logging.warning("Seat imputation gap: %s", gap)
            gaps.append(gap)
    return imputed, gaps


def enrich_flights(
    flights: pd.DataFrame,
    aircraft: pd.DataFrame,
    airports: pd.DataFrame,
    peak_cutoff: int = PEAK_CUTOFF_HHMM,
    bbox: Tuple[float, float, float, float] = CONTIGUOUS_US_BBOX,
) -> EnrichmentResult:
    """Join reference data, classify flight types, and impute seats per carrier."""

    flagged_airports = flag_domestic_airports(airports, bbox=bbox)
    n_domestic = int(flagged_airports["is_domestic_us"].fillna(False).sum())
    logging.info("Flagged %d of %d airports as contiguous US", n_domestic, len(flagged_airports))

    merged = join_reference_data(flights, aircraft, flagged_airports)
    merged["flight_type"] = classify_flight_types(merged, peak_cutoff=peak_cutoff)
    enriched, gaps = impute_seats_by_carrier(merged)

    logging.info(
        "Enriched %d flights: %s",
        len(enriched),
        enriched["flight_type"].value_counts().to_dict(),
    )
    return EnrichmentResult(flights=enriched, imputation_gaps=gaps)
