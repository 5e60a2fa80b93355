"""
===========================================================
grid.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Converts observation timestamps to a day axis and builds the
    oversampled grid used by the RK4 integrator.

API:
    build_time_grid(time, dt) -> TimeGrid(t_target, t, dt)

Notes:
    - Calendar input goes through pandas.to_datetime; plain numbers
      are taken as days.
    - t_target is rounded to the nearest 1/dt of a day so that every
      observation time falls on the integration grid.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
import pandas as pd
from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass(frozen=True)
class TimeGrid:
    t_target: np.ndarray    # days since first observation, one per sample
    t: np.ndarray           # integration grid, step dt
    dt: float

    @property
    def n_obs(self) -> int:
        return int(self.t_target.size)

    @property
    def n_steps(self) -> int:
        return int(self.t.size) - 1


def _days_since_start(time) -> np.ndarray:
    arr = np.asarray(time)
    if arr.ndim > 1:
        if arr.shape[0] > 1 and arr.shape[1] > 1:
            raise ConfigurationError("Time should be a vector")
        arr = arr.ravel()
    arr = np.atleast_1d(arr)
    if arr.size == 0:
        raise ConfigurationError("Time vector is empty")

    if arr.dtype.kind in "iuf":
        days = arr.astype(float)
        return days - days[0]
    if arr.dtype.kind == "m":
        delta = pd.to_timedelta(arr)
        return np.asarray((delta - delta[0]) / pd.Timedelta(days=1), dtype=float)

    stamps = pd.to_datetime(arr)
    return np.asarray((stamps - stamps[0]) / pd.Timedelta(days=1), dtype=float)


def build_time_grid(time, dt: float = 0.1) -> TimeGrid:
    """
    Build the observation axis and the oversampled integration grid.

    Parameters:
    -----------
    time: array-like
        Observation timestamps (datetimes, strings, or numbers in days).
        Row or column vectors are accepted, full matrices are not.
    dt: float
        Integration step in days

    Returns:
    --------
    TimeGrid
        t_target (days, rounded to multiples of dt) and t, the grid from
        t_target[0] to t_target[-1] with step dt
    """
    if not dt > 0:
        raise ConfigurationError("dt must be positive")

    fs = 1.0 / dt
    t_target = np.round(_days_since_start(time) * fs) / fs
    if np.any(np.diff(t_target) <= 0):
        raise ConfigurationError(
            "Time must be strictly increasing (after rounding to the integration step)"
        )

    # tolerance keeps the last observation on the grid despite float rounding
    n_steps = int(np.floor((t_target[-1] - t_target[0]) / dt + 1e-9))
    t = t_target[0] + dt * np.arange(n_steps + 1)
    return TimeGrid(t_target=t_target, t=t, dt=float(dt))
