"""Passenger arrival curves and flight classification for checkpoint modelling.

This package turns bucketed historical arrival-curve tables into per-minute
frequencies and per-category kernel density estimates, and classifies flight
schedules into the matching curve category with seat counts imputed per carrier.
"""

from arrival_curves.density import CategoryDensity, fit_category_densities
from arrival_curves.errors import DegenerateDistributionError, ImputationGapWarning, SchemaError
from arrival_curves.flights import EnrichmentResult, enrich_flights
from arrival_curves.normalize import normalize_arrival_curve

__all__ = [
    "CategoryDensity",
    "DegenerateDistributionError",
    "EnrichmentResult",
    "ImputationGapWarning",
    "SchemaError",
    "enrich_flights",
    "fit_category_densities",
    "normalize_arrival_curve",
]
