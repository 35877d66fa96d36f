"""Per-category kernel density estimates of passenger arrival times.

Each category's 10-minute histogram is resampled into a fixed-size sample of
minute values and smoothed with a Gaussian KDE. Every category draws from its
own generator spawned from a single seed, so results are reproducible and the
categories never share random state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd
from scipy.stats import gaussian_kde

from arrival_curves.errors import DegenerateDistributionError, SchemaError
from arrival_curves.normalize import NORMALIZED_COLUMNS
from arrival_curves.reference import PEAK_DOMESTIC

DEFAULT_SAMPLE_SIZE = 1000
INTERNATIONAL_MARKER = "international"

SeedLike = int | np.random.SeedSequence | None


@dataclass(frozen=True)
class CategoryDensity:
    """Fitted arrival-time density for one passenger category."""

    category: str
    samples: np.ndarray
    density_model: gaussian_kde
    is_peak: bool
    is_domestic: bool

    def evaluate(self, minutes: Iterable[float] | float) -> np.ndarray:
        """Density at the given minutes-prior values."""

        return self.density_model(np.atleast_1d(np.asarray(minutes, dtype=float)))

    @property
    def bandwidth(self) -> float:
        return float(np.sqrt(self.density_model.covariance[0, 0]))


def is_peak_category(category: str) -> bool:
    return category == PEAK_DOMESTIC


def is_domestic_category(category: str) -> bool:
    return INTERNATIONAL_MARKER not in category


def sample_minutes(
    minutes: np.ndarray,
    weights: np.ndarray,
    size: int,
    rng: np.random.Generator,
    category: str,
) -> np.ndarray:
    """Draw ``size`` minute values with replacement, weighted by frequency."""

    weights = np.asarray(weights, dtype=float)
    if not np.all(np.isfinite(weights)) or np.any(weights < 0):
        raise DegenerateDistributionError(
            f"Category '{category}' has negative or non-finite weights", category=category
        )
    total = weights.sum()
    if total <= 0:
        raise DegenerateDistributionError(f"Category '{category}' has zero total weight", category=category)
    return rng.choice(np.asarray(minutes), size=size, replace=True, p=weights / total)


def fit_density(samples: np.ndarray, category: str, bw_method: str | float | None = None) -> gaussian_kde:
    """Fit a 1-D Gaussian KDE; a sample without spread cannot be fitted."""

    if np.ptp(samples) == 0:
        raise DegenerateDistributionError(
            f"Category '{category}' sampled a single minute value; density is undefined", category=category
        )
    try:
        return gaussian_kde(samples.astype(float), bw_method=bw_method)
    except np.linalg.LinAlgError as exc:
        raise DegenerateDistributionError(f"KDE fit failed for category '{category}': {exc}", category=category) from exc


def fit_category_densities(
    normalized: pd.DataFrame,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    seed: SeedLike = None,
    bw_method: str | float | None = None,
) -> Dict[str, CategoryDensity]:
    """
    Resample each category of a normalized curve and fit a kernel density.
    Returns ``{category: CategoryDensity}`` in order of first appearance.
    """

    missing = [col for col in NORMALIZED_COLUMNS if col not in normalized.columns]
    if missing:
        raise SchemaError(f"Missing required columns in normalized curve: {missing}", columns=missing)
    if sample_size < 2:
        raise ValueError(f"sample_size must be at least 2, got {sample_size}")

    categories: List[str] = list(dict.fromkeys(normalized["category"]))
    seed_seq = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    child_seeds = seed_seq.spawn(len(categories))

    densities: Dict[str, CategoryDensity] = {}
    for category, child in zip(categories, child_seeds):
        rows = normalized[normalized["category"] == category]
        rng = np.random.default_rng(child)
        samples = sample_minutes(
            rows["minutes_prior"].to_numpy(),
            rows["value"].to_numpy(),
            size=sample_size,
            rng=rng,
            category=category,
        )
        samples.flags.writeable = False
        model = fit_density(samples, category, bw_method=bw_method)
        densities[category] = CategoryDensity(
            category=category,
            samples=samples,
            density_model=model,
            is_peak=is_peak_category(category),
            is_domestic=is_domestic_category(category),
        )
        logging.info(
            "Fitted density for %s: n=%d mean=%.1f min bandwidth=%.2f",
            category,
            len(samples),
            float(samples.mean()),
            densities[category].bandwidth,
        )

    return densities


def density_metadata(densities: Dict[str, CategoryDensity]) -> pd.DataFrame:
    """One row of flags and sample summary per category."""

    rows = [
        {
            "category": d.category,
            "is_peak": d.is_peak,
            "is_domestic": d.is_domestic,
            "n_samples": len(d.samples),
            "sample_mean": float(np.mean(d.samples)),
            "bandwidth": d.bandwidth,
        }
        for d in densities.values()
    ]
    return pd.DataFrame(rows)


def densities_to_frame(densities: Dict[str, CategoryDensity], grid: Iterable[float]) -> pd.DataFrame:
    """Evaluate every density on a minute grid as a long table keyed by category."""

    grid_arr = np.asarray(list(grid), dtype=float)
    frames = [
        pd.DataFrame(
            {
                "category": d.category,
                "minutes_prior": grid_arr,
                "density": d.evaluate(grid_arr),
                "is_peak": d.is_peak,
                "is_domestic": d.is_domestic,
            }
        )
        for d in densities.values()
    ]
    if not frames:
        return pd.DataFrame(columns=["category", "minutes_prior", "density", "is_peak", "is_domestic"])
    return pd.concat(frames, ignore_index=True)
