"""CLI entry point for the arrival curve pipeline.

Normalizes the arrival curve, fits per-category densities, and optionally
classifies and enriches a flight schedule, writing each stage to CSV.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, List

import numpy as np
import pandas as pd

from arrival_curves.config import get_nested, load_config
from arrival_curves.density import density_metadata, densities_to_frame, fit_category_densities
from arrival_curves.flights import CONTIGUOUS_US_BBOX, PEAK_CUTOFF_HHMM, enrich_flights
from arrival_curves.io import load_table, rename_map, save_dataframe
from arrival_curves.normalize import check_frequencies_sum_to_one, normalize_arrival_curve
from arrival_curves.reference import (
    CURVE_LABEL_COLUMN,
    PUBLISHED_CURVE_SUM_TOLERANCE,
    pgds_arrival_curve,
    scale_airline_factors,
)


def configure_logging(log_cfg: Dict[str, object]) -> None:
    """Configure root logger with both file and console handlers."""

    log_dir = Path(log_cfg.get("dir", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    filename = log_cfg.get("filename", "arrival_curves.log")
    log_path = log_dir / filename
    level_name = str(log_cfg.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s - %(levelname)s - %(message)s"
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(fmt))
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(fmt))

    root.addHandler(file_handler)
    root.addHandler(stream_handler)
    root.info("Logging to %s (level=%s)", log_path, level_name)


def load_curve(curve_cfg: Dict[str, object]) -> pd.DataFrame:
    """Return the wide arrival curve from the built-in table or a CSV."""

    source = str(curve_cfg.get("source", "builtin")).lower()
    if source == "builtin":
        logging.info("Using built-in checkpoint arrival curve")
        return pgds_arrival_curve()
    if source == "csv":
        label_column = str(curve_cfg.get("label_column", CURVE_LABEL_COLUMN))
        curve = pd.read_csv(curve_cfg["csv_path"], dtype={label_column: str})
        logging.info("Loaded arrival curve with %d buckets from %s", len(curve), curve_cfg["csv_path"])
        return curve
    raise ValueError(f"Unsupported curve source: {source}")


def density_grid(grid_cfg: Dict[str, object]) -> np.ndarray:
    start = float(grid_cfg.get("start", 0))
    stop = float(grid_cfg.get("stop", 300))
    step = float(grid_cfg.get("step", 1))
    return np.arange(start, stop + step, step)


def run_flights(cfg: Dict[str, object], output_dir: Path, output_cfg: Dict[str, object]) -> None:
    """Load the schedule tables, enrich them, and report imputation gaps."""

    flights_cfg = cfg.get("flights", {}) or {}
    renames = flights_cfg.get("rename", {}) or {}
    max_rows = flights_cfg.get("max_rows")

    flights = load_table(
        flights_cfg["flights_csv"],
        rename=rename_map(renames.get("flights")),
        parse_dates=["departure_timestamp"],
        max_rows=int(max_rows) if max_rows else None,
    )
    aircraft = load_table(flights_cfg["aircraft_csv"], rename=rename_map(renames.get("aircraft")))
    airports = load_table(flights_cfg["airports_csv"], rename=rename_map(renames.get("airports")))

    bbox: List[float] = list(flights_cfg.get("bbox") or CONTIGUOUS_US_BBOX)
    if len(bbox) != 4:
        raise ValueError(f"flights.bbox needs [lat_min, lat_max, lon_min, lon_max], got {bbox}")

    result = enrich_flights(
        flights,
        aircraft,
        airports,
        peak_cutoff=int(flights_cfg.get("peak_cutoff", PEAK_CUTOFF_HHMM)),
        bbox=tuple(bbox),
    )
    if result.imputation_gaps:
        logging.warning(
            "Seats left missing for %d carrier(s): %s",
            len(result.imputation_gaps),
            result.gap_carriers,
        )
    if output_cfg.get("save_enriched_flights", True):
        save_dataframe(result.flights, output_dir / "enriched_flights.csv")

    factors_csv = flights_cfg.get("airline_factors_csv")
    if factors_csv:
        factors = scale_airline_factors(load_table(factors_csv))
        save_dataframe(factors, output_dir / "airline_factors.csv")


def main(config_path: str = "config/arrival_curves.yaml") -> None:
    cfg = load_config(config_path)

    configure_logging(cfg.get("logging", {}) or {})
    curve_cfg = cfg.get("curve", {}) or {}
    density_cfg = cfg.get("density", {}) or {}
    output_cfg = cfg.get("output", {}) or {}
    output_dir = Path(output_cfg.get("dir", "output"))
    output_dir.mkdir(parents=True, exist_ok=True)

    curve = load_curve(curve_cfg)
    normalized = normalize_arrival_curve(
        curve,
        label_column=str(curve_cfg.get("label_column", CURVE_LABEL_COLUMN)),
        category_columns=curve_cfg.get("category_columns"),
    )
    builtin = str(curve_cfg.get("source", "builtin")).lower() == "builtin"
    default_tol = PUBLISHED_CURVE_SUM_TOLERANCE if builtin else 1e-9
    totals = check_frequencies_sum_to_one(normalized, tol=float(curve_cfg.get("sum_tolerance", default_tol)))
    logging.info("Category totals: %s", {cat: round(total, 6) for cat, total in totals.items()})
    if output_cfg.get("save_normalized", True):
        save_dataframe(normalized, output_dir / "normalized_arrival_curve.csv")

    seed = density_cfg.get("seed")
    densities = fit_category_densities(
        normalized,
        sample_size=int(density_cfg.get("sample_size", 1000)),
        seed=int(seed) if seed is not None else None,
        bw_method=density_cfg.get("bw_method"),
    )
    if output_cfg.get("save_density_grid", True):
        grid = density_grid(get_nested(density_cfg, ["grid"], {}))
        save_dataframe(densities_to_frame(densities, grid), output_dir / "category_density_grid.csv")
    if output_cfg.get("save_density_metadata", True):
        save_dataframe(density_metadata(densities), output_dir / "category_density_metadata.csv")

    if get_nested(cfg, ["flights", "enabled"], False):
        run_flights(cfg, output_dir, output_cfg)
    else:
        logging.info("Flight enrichment disabled in config; skipping.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Arrival curve density and flight classification pipeline.")
    parser.add_argument(
        "-c",
        "--config",
        default="config/arrival_curves.yaml",
        help="Path to YAML config file.",
    )
    args = parser.parse_args()
    main(args.config)
