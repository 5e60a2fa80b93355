"""
===========================================================
data.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================
Observed case counts for the SEIQRDP fit

Holds the quarantined (Q), recovered (R) and deceased (D)
time series that the model is fitted against. Recovered
counts are optional; when they are missing the fit runs on
two channels (Q+R and D).
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import ConfigurationError


def _as_series(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim > 1:
        if min(arr.shape) > 1:
            raise ConfigurationError(f"{name} should be a vector, got shape {arr.shape}")
        arr = arr.ravel()
    return np.atleast_1d(arr)


@dataclass
class ObservedSeries:
    """
    Container for the observed Q, R, D series.

    Attributes:
    -----------
    Q: np.ndarray
        Currently quarantined (active confirmed) cases
    R: np.ndarray, optional
        Cumulative recovered cases; None or empty when unavailable
    D: np.ndarray
        Cumulative deceased cases
    """

    Q: np.ndarray
    R: Optional[np.ndarray]
    D: np.ndarray

    def __post_init__(self):
        self.Q = _as_series(self.Q, "Q")
        self.D = _as_series(self.D, "D")
        self.R = _as_series([] if self.R is None else self.R, "R")

        if self.Q.size == 0:
            raise ConfigurationError("Q must contain at least one observation")
        if self.Q.size != self.D.size:
            raise ConfigurationError(
                f"Q and D must have the same length ({self.Q.size} != {self.D.size})"
            )
        if self.R.size not in (0, self.Q.size):
            raise ConfigurationError(
                f"R must be empty or have the same length as Q ({self.R.size} != {self.Q.size})"
            )

        # negative counts are reporting errors, not model states
        self.Q = np.clip(self.Q, 0.0, None)
        self.R = np.clip(self.R, 0.0, None)
        self.D = np.clip(self.D, 0.0, None)

    def __len__(self) -> int:
        return int(self.Q.size)

    @property
    def has_recovered(self) -> bool:
        return self.R.size > 0

    @property
    def channels(self) -> Sequence[str]:
        return ("Q", "R", "D") if self.has_recovered else ("Q+R", "D")

    def stacked(self) -> np.ndarray:
        """Observation matrix [Q; R; D], or [Q; D] when R is missing"""
        if self.has_recovered:
            return np.vstack([self.Q, self.R, self.D])
        return np.vstack([self.Q, self.D])

    def to_dataframe(self) -> pd.DataFrame:
        data = {"Q": self.Q, "D": self.D}
        if self.has_recovered:
            data["R"] = self.R
        return pd.DataFrame(data)[[c for c in ("Q", "R", "D") if c in data]]
