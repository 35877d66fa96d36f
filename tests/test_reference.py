import pandas as pd
import pytest

from arrival_curves.errors import SchemaError
from arrival_curves.reference import CATEGORIES, pgds_arrival_curve, scale_airline_factors


def test_published_curve_layout():
    curve = pgds_arrival_curve()
    assert list(curve.columns) == ["minutes_prior", *CATEGORIES]
    assert len(curve) == 25
    assert curve["minutes_prior"].iloc[0] == "10"
    assert curve["minutes_prior"].iloc[-1] == ">240"
    assert curve[CATEGORIES].sum().round(1).tolist() == [100.0, 100.0, 100.0]


def test_scale_airline_factors():
    factors = pd.DataFrame(
        {
            "airline": ["American"],
            "carrier": ["AA"],
            "load_factor": [85.0],
            "check_bag_factor": [40.0],
            "avg_num_bags": [1.2],
        }
    )
    scaled = scale_airline_factors(factors)
    assert scaled.loc[0, "load_factor"] == pytest.approx(0.85)
    assert scaled.loc[0, "check_bag_factor"] == pytest.approx(0.40)
    assert scaled.loc[0, "avg_num_bags"] == pytest.approx(1.2)
    assert factors.loc[0, "load_factor"] == 85.0


def test_scale_airline_factors_requires_columns():
    with pytest.raises(SchemaError):
        scale_airline_factors(pd.DataFrame({"carrier": ["AA"]}))
