import numpy as np
import pandas as pd
import pytest
from scipy.integrate import trapezoid

from arrival_curves.density import (
    densities_to_frame,
    density_metadata,
    fit_category_densities,
    is_domestic_category,
    is_peak_category,
)
from arrival_curves.errors import DegenerateDistributionError, SchemaError
from arrival_curves.normalize import normalize_arrival_curve
from arrival_curves.reference import pgds_arrival_curve


def _normalized():
    return normalize_arrival_curve(pgds_arrival_curve())


def test_fits_one_density_per_category():
    densities = fit_category_densities(_normalized(), seed=1)
    assert list(densities) == ["peak_domestic_8am", "off_peak_domestic", "international"]
    for density in densities.values():
        assert len(density.samples) == 1000
        values = density.evaluate([60.0, 120.0])
        assert values.shape == (2,)
        assert np.all(values >= 0)


def test_same_seed_gives_identical_samples():
    first = fit_category_densities(_normalized(), seed=123)
    second = fit_category_densities(_normalized(), seed=123)
    for category in first:
        assert np.array_equal(first[category].samples, second[category].samples)
        assert np.allclose(first[category].evaluate(90.0), second[category].evaluate(90.0))


def test_categories_use_independent_streams():
    normalized = _normalized()
    peak_only = normalized[normalized["category"] == "peak_domestic_8am"]
    both = fit_category_densities(normalized, seed=5)
    alone = fit_category_densities(peak_only, seed=5)
    assert np.array_equal(both["peak_domestic_8am"].samples, alone["peak_domestic_8am"].samples)


def test_samples_come_from_observed_minutes():
    normalized = _normalized()
    densities = fit_category_densities(normalized, sample_size=200, seed=9)
    allowed = set(normalized["minutes_prior"])
    assert set(densities["international"].samples.tolist()) <= allowed


def test_flags():
    densities = fit_category_densities(_normalized(), seed=2)
    assert densities["peak_domestic_8am"].is_peak
    assert not densities["off_peak_domestic"].is_peak
    assert densities["off_peak_domestic"].is_domestic
    assert not densities["international"].is_domestic
    assert is_domestic_category("International")
    assert not is_peak_category("peak_domestic")


def test_zero_weight_category_raises():
    curve = pd.DataFrame(
        {
            "minutes_prior": ["10", "20", "30"],
            "peak_domestic_8am": [20.0, 50.0, 30.0],
            "international": [0.0, 0.0, 0.0],
        }
    )
    with pytest.raises(DegenerateDistributionError) as excinfo:
        fit_category_densities(normalize_arrival_curve(curve), seed=0)
    assert excinfo.value.category == "international"


def test_single_bucket_category_raises():
    curve = pd.DataFrame({"minutes_prior": ["10", "20"], "international": [100.0, 0.0]})
    with pytest.raises(DegenerateDistributionError):
        fit_category_densities(normalize_arrival_curve(curve), seed=0)


def test_missing_columns_raise():
    with pytest.raises(SchemaError):
        fit_category_densities(pd.DataFrame({"category": ["a"], "value": [1.0]}))


def test_density_frame_and_metadata():
    densities = fit_category_densities(_normalized(), seed=3)
    grid = np.arange(0, 301, 1)
    frame = densities_to_frame(densities, grid)
    assert len(frame) == 3 * len(grid)
    for _, part in frame.groupby("category"):
        # Gaussian tails extend past the grid, so the integral is close to but below 1.
        assert 0.9 < trapezoid(part["density"], part["minutes_prior"]) <= 1.0 + 1e-6

    meta = density_metadata(densities).set_index("category")
    assert meta.loc["peak_domestic_8am", "is_peak"]
    assert (meta["n_samples"] == 1000).all()


def test_samples_are_read_only():
    densities = fit_category_densities(_normalized(), sample_size=50, seed=4)
    samples = densities["international"].samples
    with pytest.raises(ValueError):
        samples[0] = 0
