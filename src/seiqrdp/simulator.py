"""
===========================================================
simulator.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Deterministic SEIQRDP model integrated with fixed-step RK4 on
    the oversampled grid, then sampled at the observation times.
    This is the body of the objective function of the main fit.

    Compartments:
        S: Susceptible
        E: Exposed (infected, not yet infectious)
        I: Infectious (not yet detected)
        Q: Quarantined (confirmed, active)
        R: Recovered
        D: Deceased
        P: Protected (insusceptible)

API:
    CompartmentSimulator(observed, N, E0, I0, grid, lambda_form, kappa_form)
      - initial_state() -> np.ndarray (7,)
      - simulate(params) -> dict(t, S, E, I, Q, R, D, P, lambda, kappa)
      - __call__(params, t_obs=None) -> [Q; R; D] or [Q+R; D]
      - residuals(params) -> flattened model - observed

Notes:
    - Every parameter goes through abs() before use.
    - The simulator holds no mutable state, so repeated calls with
      the same parameters give the same output (finite-difference
      Jacobians rely on this).
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import warnings
import numpy as np
from typing import Dict, Optional

from .config import N_PARAMS, LAMBDA_SLICE, KAPPA_SLICE
from .data import ObservedSeries
from .errors import ConfigurationError, ConsistencyError, HighRecoveryRateWarning
from .grid import TimeGrid
from .integrator import COMPARTMENTS, transition_matrix, infection_force, rk4_step
from .rates import RateForm, evaluate_rate, DEFAULT_LAMBDA_FORM, DEFAULT_KAPPA_FORM

# recovery rates above this usually come from a diverging iterate
LAMBDA_WARNING_LEVEL = 10.0


class CompartmentSimulator:
    """
    SEIQRDP model bound to one data set.

    Parameters:
    -----------
    observed: ObservedSeries
        Q, R (possibly empty) and D; only the first sample is used for the
        initial condition, the rest is used by residuals()
    N: float
        Total population (deceased included)
    E0, I0: float
        Initial exposed and infectious cases
    grid: TimeGrid
        Observation axis and integration grid
    lambda_form, kappa_form: RateForm
        Functional forms of lambda(t) and kappa(t)
    """

    def __init__(self, observed: ObservedSeries, N: float, E0: float, I0: float,
                 grid: TimeGrid,
                 lambda_form: RateForm = DEFAULT_LAMBDA_FORM,
                 kappa_form: RateForm = DEFAULT_KAPPA_FORM):
        if len(observed) != grid.n_obs:
            raise ConfigurationError(
                f"time has {grid.n_obs} samples but the series have {len(observed)}"
            )
        self.observed = observed
        self.N = float(N)
        self.E0 = float(E0)
        self.I0 = float(I0)
        self.grid = grid
        self.lambda_form = lambda_form
        self.kappa_form = kappa_form

    def initial_state(self) -> np.ndarray:
        """Compartments at t_target[0]; S takes whatever population is left"""
        obs = self.observed
        y0 = np.zeros(len(COMPARTMENTS))
        y0[1] = self.E0
        y0[2] = self.I0
        y0[3] = obs.Q[0]
        y0[4] = obs.R[0] if obs.has_recovered else 0.0
        y0[5] = obs.D[0]
        y0[0] = self.N - y0[1:].sum()

        # total population, deceased included, is assumed constant
        if not np.all(np.isfinite(y0)) or round(y0.sum() - self.N) != 0:
            raise ConsistencyError(
                "the initial compartments must add up to the total population "
                f"(sum={y0.sum():.6g}, N={self.N:.6g})"
            )
        if y0[0] < 0:
            raise ConsistencyError(
                f"population N={self.N:.6g} is smaller than the initial E+I+Q+R+D "
                f"({y0[1:].sum():.6g})"
            )
        return y0

    def _unpack(self, params) -> tuple:
        p = np.abs(np.asarray(params, dtype=float).ravel())
        if p.size != N_PARAMS:
            raise ConfigurationError(f"expected {N_PARAMS} parameters, got {p.size}")
        return p[0], p[1], p[2], p[3], p[LAMBDA_SLICE], p[KAPPA_SLICE]

    def simulate(self, params) -> Dict[str, np.ndarray]:
        """Integrate the model over the whole grid"""
        alpha, beta, gamma, delta, lambda0, kappa0 = self._unpack(params)
        t = self.grid.t
        h = self.grid.dt

        lam = evaluate_rate(self.lambda_form, lambda0, t)
        kappa = evaluate_rate(self.kappa_form, kappa0, t)
        if np.any(lam > LAMBDA_WARNING_LEVEL):
            warnings.warn("lambda is abnormally high", HighRecoveryRateWarning, stacklevel=2)

        Y = np.empty((len(COMPARTMENTS), t.size))
        Y[:, 0] = self.initial_state()
        for k in range(t.size - 1):
            A = transition_matrix(alpha, gamma, delta, lam[k], kappa[k])
            F = infection_force(Y[:, k], beta, self.N)
            Y[:, k + 1] = rk4_step(Y[:, k], A, F, h)

        out = {"t": t}
        out.update({name: Y[i] for i, name in enumerate(COMPARTMENTS)})
        out["lambda"] = lam
        out["kappa"] = kappa
        return out

    def __call__(self, params, t_obs: Optional[np.ndarray] = None) -> np.ndarray:
        """Model Q, R, D at t_obs (defaults to the observation times)"""
        t_obs = self.grid.t_target if t_obs is None else np.asarray(t_obs, dtype=float)
        sim = self.simulate(params)
        Q1 = np.interp(t_obs, sim["t"], sim["Q"])
        R1 = np.interp(t_obs, sim["t"], sim["R"])
        D1 = np.interp(t_obs, sim["t"], sim["D"])
        if self.observed.has_recovered:
            return np.vstack([Q1, R1, D1])
        # without recovered data Q and R cannot be told apart
        return np.vstack([Q1 + R1, D1])

    def residuals(self, params) -> np.ndarray:
        return (self(params) - self.observed.stacked()).ravel()
