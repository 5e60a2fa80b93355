"""
===========================================================
config.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Solver options and parameter bounds for the SEIQRDP fit.

    Parameter vector layout (9 entries):
        [alpha, beta, gamma, delta, l1, l2, l3, k1, k2]
        - alpha: protection rate (S -> P)
        - beta:  infection rate
        - gamma: inverse of the average latent time (E -> I)
        - delta: rate of entering quarantine (I -> Q)
        - l1..l3: parameters of the recovery rate lambda(t)
        - k1, k2: parameters of the mortality rate kappa(t)

Example Usage:
    from seiqrdp.config import FitOptions
    opts = FitOptions(dt=0.05, verbosity="iter")
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import Union

from .errors import ConfigurationError

PARAM_NAMES = ("alpha", "beta", "gamma", "delta", "l1", "l2", "l3", "k1", "k2")
N_PARAMS = len(PARAM_NAMES)

LAMBDA_SLICE = slice(4, 7)
KAPPA_SLICE = slice(7, 9)

# l3 has the dimension of a time (days)
LAMBDA_LOWER = np.array([0.0, 0.0, 0.0])
LAMBDA_UPPER = np.array([1.0, 5.0, 100.0])
KAPPA_LOWER = np.array([0.0, 0.0])
KAPPA_UPPER = np.array([2.0, 2.0])

LOWER_BOUNDS = np.concatenate([[0.0, 0.0, 0.0, 0.0], LAMBDA_LOWER, KAPPA_LOWER])
UPPER_BOUNDS = np.concatenate([[1.0, 3.0, 1.0, 1.0], LAMBDA_UPPER, KAPPA_UPPER])

# least_squares verbose levels
_VERBOSITY_LEVELS = {"off": 0, "final": 1, "iter": 2}


@dataclass
class FitOptions:
    """
    Options for the main least-squares fit.

    Parameters:
    -----------
    tol_x: float
        Stop when the parameter step becomes smaller than this (xtol)
    tol_fun: float
        Stop when the relative drop of the cost is smaller than this (ftol)
    verbosity: int or str
        0/1/2, or "off"/"final"/"iter"
    dt: float
        Integration step (days)
    max_nfev: int
        Maximum number of objective evaluations
    """
    tol_x: float = 1e-5
    tol_fun: float = 1e-5
    verbosity: Union[int, str] = 0
    dt: float = 0.1
    max_nfev: int = 1200

    def __post_init__(self):
        if isinstance(self.verbosity, str):
            key = self.verbosity.lower()
            if key not in _VERBOSITY_LEVELS:
                raise ConfigurationError(
                    f"verbosity must be one of {sorted(_VERBOSITY_LEVELS)} or 0/1/2, got {self.verbosity!r}"
                )
            self.verbosity = _VERBOSITY_LEVELS[key]
        if self.verbosity not in (0, 1, 2):
            raise ConfigurationError(f"verbosity must be 0, 1 or 2, got {self.verbosity!r}")
        if not self.dt > 0:
            raise ConfigurationError("dt must be positive")
        if not self.tol_x > 0 or not self.tol_fun > 0:
            raise ConfigurationError("tolerances must be positive")
        if int(self.max_nfev) < 1:
            raise ConfigurationError("max_nfev must be at least 1")
        self.max_nfev = int(self.max_nfev)
