import pandas as pd
import yaml

import cli


def _write_config(tmp_path, flights_cfg):
    cfg = {
        "logging": {"dir": str(tmp_path / "logs"), "level": "INFO"},
        "curve": {"source": "builtin", "sum_tolerance": 0.001},
        "density": {"sample_size": 500, "seed": 11, "grid": {"start": 0, "stop": 60, "step": 10}},
        "flights": flights_cfg,
        "output": {"dir": str(tmp_path / "out")},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return path


def test_main_writes_curve_outputs(tmp_path):
    cli.main(str(_write_config(tmp_path, {"enabled": False})))

    out = tmp_path / "out"
    normalized = pd.read_csv(out / "normalized_arrival_curve.csv")
    assert set(normalized["category"]) == {"peak_domestic_8am", "off_peak_domestic", "international"}
    grid = pd.read_csv(out / "category_density_grid.csv")
    assert len(grid) == 3 * 7
    assert not (out / "enriched_flights.csv").exists()


def test_main_enriches_flights(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    pd.DataFrame(
        {
            "carrier": ["AA", "AA"],
            "origin": ["ORD", "ORD"],
            "dest": ["DEN", "NRT"],
            "sched_dep_time": [700, 1300],
            "time_hour": ["2013-01-01 07:00:00", "2013-01-01 13:00:00"],
            "tailnum": ["N1", "N2"],
        }
    ).to_csv(data / "flights.csv", index=False)
    pd.DataFrame({"tailnum": ["N1"], "seats": [150]}).to_csv(data / "planes.csv", index=False)
    pd.DataFrame(
        {"faa": ["ORD", "DEN", "NRT"], "lat": [41.97, 39.86, 35.76], "lon": [-87.9, -104.67, 140.39]}
    ).to_csv(data / "airports.csv", index=False)

    flights_cfg = {
        "enabled": True,
        "flights_csv": str(data / "flights.csv"),
        "aircraft_csv": str(data / "planes.csv"),
        "airports_csv": str(data / "airports.csv"),
        "rename": {
            "flights": {"sched_dep_time": "scheduled_departure_time", "time_hour": "departure_timestamp", "tailnum": "tail_number"},
            "aircraft": {"tailnum": "tail_number"},
            "airports": {"faa": "code", "lat": "latitude", "lon": "longitude"},
        },
    }
    cli.main(str(_write_config(tmp_path, flights_cfg)))

    enriched = pd.read_csv(tmp_path / "out" / "enriched_flights.csv")
    assert enriched["flight_type"].tolist() == ["peak_domestic_8am", "international"]
    assert enriched["seats"].tolist() == [150, 150]


def test_builtin_curve_runs_without_explicit_tolerance(tmp_path):
    path = _write_config(tmp_path, {"enabled": False})
    cfg = yaml.safe_load(path.read_text(encoding="utf-8"))
    del cfg["curve"]["sum_tolerance"]
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")

    cli.main(str(path))
    assert (tmp_path / "out" / "category_density_metadata.csv").exists()
