"""
===========================================================
estimator.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Estimate the nine SEIQRDP parameters from observed quarantined,
    recovered and deceased counts:
      1) put the observation times on a day axis (grid.py)
      2) preliminary fits of lambda(t) and kappa(t) (rate_fitting.py)
      3) bounded scipy least_squares with the RK4 model in the
         residual function (simulator.py)

Example Usage:
    from seiqrdp.estimator import fit_seiqrdp
    result = fit_seiqrdp(
        Q, R, D, N=1e6, E0=50, I0=50, time=dates,
        guess=[0.01, 1.0, 0.2, 0.5, 0.05, 0.1, 10, 0.01, 0.05],
        dt=0.1, verbosity="iter",
    )
    print(result.summary())

Notes:
    - All result fields are always filled; read what you need
      (residual, jacobian, model_fun for sensitivity studies).
    - With R empty the fit runs on [Q+R; D] and both rates keep
      their default forms.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import warnings
import numpy as np
import pandas as pd
from dataclasses import dataclass, field, fields
from typing import Dict, Optional, Tuple
from scipy.optimize import least_squares

from .config import (FitOptions, PARAM_NAMES, N_PARAMS, LOWER_BOUNDS, UPPER_BOUNDS,
                     LAMBDA_SLICE, KAPPA_SLICE)
from .data import ObservedSeries
from .errors import ConfigurationError, MissingRecoveredWarning
from .grid import TimeGrid, build_time_grid
from .rate_fitting import RateFitResult, fit_lambda, fit_kappa
from .rates import RateFunction, DEFAULT_LAMBDA_FORM, DEFAULT_KAPPA_FORM
from .simulator import CompartmentSimulator


@dataclass
class SEIQRDPFitResult:
    alpha: float; beta: float; gamma: float; delta: float
    lambda0: np.ndarray; kappa0: np.ndarray
    lambda_fun: RateFunction; kappa_fun: RateFunction
    residual: np.ndarray            # model - observed, one row per channel
    jacobian: np.ndarray            # d(residual.ravel())/d(params)
    model_fun: CompartmentSimulator
    success: bool; status: int; message: str
    nfev: int; cost: float
    t_target: np.ndarray
    fitted: np.ndarray
    observed: np.ndarray
    channels: Tuple[str, ...] = field(default=("Q", "R", "D"))

    @property
    def params(self) -> np.ndarray:
        return np.concatenate([[self.alpha, self.beta, self.gamma, self.delta],
                               self.lambda0, self.kappa0])

    @property
    def residual_norm(self) -> float:
        return float(np.linalg.norm(self.residual))

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(PARAM_NAMES, map(float, self.params)))

    def to_dataframe(self) -> pd.DataFrame:
        """Observed vs fitted channels at the observation times"""
        data = {"t": self.t_target}
        for i, name in enumerate(self.channels):
            data[f"{name}_obs"] = self.observed[i]
            data[f"{name}_fit"] = self.fitted[i]
        return pd.DataFrame(data)

    def summary(self) -> str:
        lines = [
            "SEIQRDP fit",
            "=" * 50,
            f"Converged: {self.success} ({self.message})",
            f"Function evaluations: {self.nfev}",
            f"Residual norm: {self.residual_norm:.4g}",
            f"alpha (protection rate):  {self.alpha:.4g}",
            f"beta  (infection rate):   {self.beta:.4g}",
            f"gamma (1/latent time):    {self.gamma:.4g}",
            f"delta (quarantine rate):  {self.delta:.4g}",
            f"lambda: {self.lambda_fun.form.value} {np.round(self.lambda0, 4).tolist()}",
            f"kappa:  {self.kappa_fun.form.value} {np.round(self.kappa0, 4).tolist()}",
        ]
        return "\n".join(lines)


class SEIQRDPEstimator:
    """
    Bounded least-squares estimation of the SEIQRDP parameters.

    Parameters:
    -----------
    Q, R, D: array-like
        Observed quarantined, recovered (may be None/empty) and deceased cases
    N: float
        Total population
    E0, I0: float
        Initial exposed and infectious cases
    time: array-like
        Observation timestamps (datetimes or days)
    options: FitOptions, optional
        Tolerances, verbosity, integration step, evaluation cap
    """

    def __init__(self, Q, R, D, N: float, E0: float, I0: float, time,
                 options: Optional[FitOptions] = None):
        self.options = options if options is not None else FitOptions()
        self.observed = ObservedSeries(Q, R, D)
        self.grid: TimeGrid = build_time_grid(time, self.options.dt)
        if self.grid.n_obs != len(self.observed):
            raise ConfigurationError(
                f"time has {self.grid.n_obs} samples but the series have {len(self.observed)}"
            )
        self.N = float(N)
        self.E0 = float(E0)
        self.I0 = float(I0)

    def preliminary_fit(self, guess) -> Tuple[RateFitResult, RateFitResult]:
        """lambda then kappa; the kappa fit starts from the lambda result's guess"""
        guess = np.array(guess, dtype=float)
        obs = self.observed
        if not obs.has_recovered:
            warnings.warn('No data available for "Recovered"', MissingRecoveredWarning, stacklevel=2)
            lam = RateFitResult(guess, RateFunction(DEFAULT_LAMBDA_FORM, guess[LAMBDA_SLICE]),
                                fitted=False, message="no recovered data")
            kap = RateFitResult(guess, RateFunction(DEFAULT_KAPPA_FORM, guess[KAPPA_SLICE]),
                                fitted=False, message="no recovered data")
            return lam, kap

        lam = fit_lambda(self.grid.t_target, obs.Q, obs.R, guess)
        kap = fit_kappa(self.grid.t_target, obs.Q, obs.D, lam.guess)
        return lam, kap

    def build_simulator(self, lambda_fun: RateFunction, kappa_fun: RateFunction) -> CompartmentSimulator:
        return CompartmentSimulator(self.observed, self.N, self.E0, self.I0, self.grid,
                                    lambda_form=lambda_fun.form, kappa_form=kappa_fun.form)

    def fit(self, guess) -> SEIQRDPFitResult:
        guess = np.asarray(guess, dtype=float).ravel()
        if guess.size != N_PARAMS:
            raise ConfigurationError(f"guess must have {N_PARAMS} elements, got {guess.size}")

        lam, kap = self.preliminary_fit(guess)
        model = self.build_simulator(lam.rate, kap.rate)
        model.initial_state()   # fail before the solver starts

        # least_squares rejects a start outside the box
        x0 = np.clip(kap.guess, LOWER_BOUNDS, UPPER_BOUNDS)
        opts = self.options
        res = least_squares(model.residuals, x0,
                            bounds=(LOWER_BOUNDS, UPPER_BOUNDS),
                            method="trf",
                            xtol=opts.tol_x,
                            ftol=opts.tol_fun,
                            max_nfev=opts.max_nfev,
                            verbose=opts.verbosity)

        coeff = np.abs(res.x)
        observed = self.observed.stacked()
        return SEIQRDPFitResult(
            alpha=float(coeff[0]), beta=float(coeff[1]),
            gamma=float(coeff[2]), delta=float(coeff[3]),
            lambda0=coeff[LAMBDA_SLICE], kappa0=coeff[KAPPA_SLICE],
            lambda_fun=lam.rate.with_params(coeff[LAMBDA_SLICE]),
            kappa_fun=kap.rate.with_params(coeff[KAPPA_SLICE]),
            residual=res.fun.reshape(observed.shape),
            jacobian=res.jac,
            model_fun=model,
            success=bool(res.success), status=int(res.status), message=str(res.message),
            nfev=int(res.nfev), cost=float(res.cost),
            t_target=self.grid.t_target,
            fitted=model(coeff),
            observed=observed,
            channels=tuple(self.observed.channels),
        )


def fit_seiqrdp(Q, R, D, N: float, E0: float, I0: float, time, guess,
                options: Optional[FitOptions] = None, **option_kwargs) -> SEIQRDPFitResult:
    """
    Fit the SEIQRDP model to observed Q, R, D counts.

    Options can be passed as a FitOptions instance or as keyword
    arguments (tol_x, tol_fun, verbosity, dt, max_nfev), not both.
    """
    if options is None:
        try:
            options = FitOptions(**option_kwargs)
        except TypeError as exc:
            accepted = [f.name for f in fields(FitOptions)]
            unknown = sorted(set(option_kwargs) - set(accepted))
            raise ConfigurationError(
                f"unknown fit option(s) {unknown}; accepted options are {', '.join(accepted)}") from exc
    elif option_kwargs:
        raise ConfigurationError("pass either a FitOptions instance or keyword options, not both")
    return SEIQRDPEstimator(Q, R, D, N, E0, I0, time, options=options).fit(guess)


def fit_from_dataframe(df: pd.DataFrame, N: float, E0: float, I0: float, guess,
                       time_col: str = "date", q_col: str = "quarantined",
                       r_col: Optional[str] = "recovered", d_col: str = "deceased",
                       **kwargs) -> SEIQRDPFitResult:
    """To fit already-cleaned data from a DataFrame (R column optional)"""
    R = df[r_col].to_numpy(dtype=float) if r_col is not None and r_col in df.columns else None
    return fit_seiqrdp(df[q_col].to_numpy(dtype=float), R, df[d_col].to_numpy(dtype=float),
                       N, E0, I0, df[time_col].to_numpy(), guess, **kwargs)
