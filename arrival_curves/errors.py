"""Error types raised or reported by the arrival curve pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List


class ArrivalCurveError(Exception):
    """Base class for pipeline errors."""


class SchemaError(ArrivalCurveError, ValueError):
    """A required column is missing or a table holds malformed values."""

    def __init__(self, message: str, columns: Iterable[str] = (), labels: Iterable[Any] = ()) -> None:
        super().__init__(message)
        self.columns: List[str] = list(columns)
        self.labels: List[Any] = list(labels)


class DegenerateDistributionError(ArrivalCurveError, ValueError):
    """A category cannot be sampled or fitted (zero weight, single support point)."""

    def __init__(self, message: str, category: str) -> None:
        super().__init__(message)
        self.category = category


@dataclass(frozen=True)
class ImputationGapWarning:
    """A carrier with missing seat counts and no valid seats to impute from.

    Returned alongside the enriched flights rather than raised; the affected
    rows keep their null ``seats`` value.
    """

    carrier: Any
    n_missing: int

    def __str__(self) -> str:
        return f"carrier {self.carrier!r} has no seat data to impute {self.n_missing} missing value(s)"
