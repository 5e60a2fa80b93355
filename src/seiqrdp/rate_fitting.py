"""
===========================================================
rate_fitting.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Preliminary fits of the recovery rate lambda(t) and the
    mortality rate kappa(t). They pick the functional form used
    by the main fit and give it a sensible starting point, which
    helps the coupled 9-parameter problem converge.

    For each rate:
      1) empirical rate = diff(X) / median(diff(t)) / Q[1:]
      2) drop implausible points (NaN mask)
      3) bounded scipy least_squares on what is left

Example Usage:
    from seiqrdp.rate_fitting import fit_lambda, fit_kappa
    lam = fit_lambda(grid.t_target, Q, R, guess)
    kap = fit_kappa(grid.t_target, Q, D, lam.guess)

Notes:
    - Below 20 cumulative cases the rate estimate is too noisy;
      the fit is skipped and the default form is kept.
    - A failed sub-fit never stops the main fit: it is reported
      with a RateFitWarning and the default form is returned.
    - The guess passed in is never modified; results carry a copy.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import warnings
import numpy as np
from dataclasses import dataclass
from typing import Sequence, Tuple
from scipy.optimize import least_squares

from .config import LAMBDA_SLICE, KAPPA_SLICE
from .errors import RateFitWarning
from .rates import (RateForm, RateFunction, evaluate_rate,
                    DEFAULT_LAMBDA_FORM, DEFAULT_KAPPA_FORM)

MIN_CASES_FOR_FIT = 20

# a daily recovery rate above 1 or a death rate above 3 is not physical
LAMBDA_MAX_RATE = 1.0
KAPPA_MAX_RATE = 3.0

LAMBDA_FIT_BOUNDS = (np.array([0.0, 0.0, 0.0]), np.array([1.0, 2.0, 100.0]))
KAPPA_FIT_BOUNDS = (np.array([0.0, 0.0]), np.array([2.0, 2.0]))
LOGISTIC_START = (0.2, 0.1, 1.0)

_FIT_TOL = 1e-6


@dataclass
class RateFitResult:
    """
    Outcome of a preliminary rate fit.

    Attributes:
    -----------
    guess: np.ndarray
        Full 9-element guess, with the rate's slots refreshed when fitted
    rate: RateFunction
        Selected form with its starting parameters
    fitted: bool
        False when the fit was skipped or failed (default form kept)
    message: str
        Why the fit was skipped/failed, or which form won
    """
    guess: np.ndarray
    rate: RateFunction
    fitted: bool
    message: str = ""


def empirical_rate(t_target, Q, X) -> Tuple[np.ndarray, np.ndarray]:
    """
    Point-wise rate per quarantined case from the increments of a
    cumulative series X (recovered or deceased).

    Returns (t, rate) for the interior points t_target[1:].
    """
    t_target = np.asarray(t_target, dtype=float)
    Q = np.asarray(Q, dtype=float)
    X = np.asarray(X, dtype=float)
    if t_target.size < 2:
        return np.empty(0), np.empty(0)
    step = np.median(np.diff(t_target))
    with np.errstate(divide="ignore", invalid="ignore"):
        rate = np.diff(X) / step / Q[1:]
    return t_target[1:], rate


def mask_outlier_rates(rate, max_rate: float, drop_zero: bool = False) -> np.ndarray:
    """Copy of rate with |rate| > max_rate (and optionally zeros) set to NaN"""
    rate = np.array(rate, dtype=float)
    with np.errstate(invalid="ignore"):
        bad = np.abs(rate) > max_rate
    if drop_zero:
        bad |= rate == 0
    rate[bad] = np.nan
    return rate


def mask_lambda_rates(rate) -> np.ndarray:
    # zero recovery usually means nobody reported that day
    return mask_outlier_rates(rate, LAMBDA_MAX_RATE, drop_zero=True)


def mask_kappa_rates(rate) -> np.ndarray:
    return mask_outlier_rates(rate, KAPPA_MAX_RATE)


def _fit_form(form: RateForm, x: np.ndarray, y: np.ndarray,
              a0: Sequence[float], bounds: Tuple[np.ndarray, np.ndarray]) -> Tuple[np.ndarray, float]:
    """Bounded fit of one rate form; returns (coefficients, residual sum of squares)"""
    if x.size < form.n_params:
        raise ValueError(f"only {x.size} usable rate points for {form.value}")
    lower, upper = bounds
    a0 = np.clip(np.asarray(a0, dtype=float), lower, upper)

    def resid(a: np.ndarray) -> np.ndarray:
        return evaluate_rate(form, a, x) - y

    res = least_squares(resid, a0, bounds=bounds, method="trf",
                        xtol=_FIT_TOL, ftol=_FIT_TOL)
    if res.status <= 0:
        raise RuntimeError(f"{form.value} fit did not converge: {res.message}")
    return res.x, float(2.0 * res.cost)


def _usable_points(x: np.ndarray, rate: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    keep = ~np.isnan(rate)
    return x[keep], rate[keep]


def select_lambda_form(coeff1, r1: float, coeff2, r2: float) -> Tuple[RateForm, np.ndarray]:
    """Pick logistic (coeff1, rss r1) or offset exponential (coeff2, rss r2)"""
    # the logistic form behaves better on long horizons
    saturated = coeff2[0] >= 0.99 or coeff2[1] >= 4.9
    if r1 <= r2 or saturated:
        return RateForm.LOGISTIC, np.asarray(coeff1, dtype=float)
    return RateForm.EXPONENTIAL_OFFSET, np.asarray(coeff2, dtype=float)


def fit_lambda(t_target, Q, R, guess) -> RateFitResult:
    """
    Choose the lambda(t) form and refresh guess[4:7].

    Two forms are fitted to the empirical recovery rate; the logistic
    one is kept unless the offset exponential is strictly better and
    has not run into its upper bounds.
    """
    guess = np.array(guess, dtype=float)
    default = RateFunction(DEFAULT_LAMBDA_FORM, guess[LAMBDA_SLICE])
    R = np.asarray(R, dtype=float)

    if R.size == 0 or np.max(R) < MIN_CASES_FOR_FIT:
        return RateFitResult(guess, default, fitted=False,
                             message=f"fewer than {MIN_CASES_FOR_FIT} recovered cases, fit skipped")

    x, rate = empirical_rate(t_target, Q, R)
    x, y = _usable_points(x, mask_lambda_rates(rate))

    try:
        coeff1, r1 = _fit_form(RateForm.LOGISTIC, x, y, LOGISTIC_START, LAMBDA_FIT_BOUNDS)
        start2 = (0.2, 0.1, float(np.min(x)))
        coeff2, r2 = _fit_form(RateForm.EXPONENTIAL_OFFSET, x, y, start2, LAMBDA_FIT_BOUNDS)
    except (ValueError, RuntimeError, np.linalg.LinAlgError) as exc:
        warnings.warn(f"Preliminary lambda fit failed ({exc}); keeping the logistic default",
                      RateFitWarning, stacklevel=2)
        return RateFitResult(guess, default, fitted=False, message=str(exc))

    form, coeff = select_lambda_form(coeff1, r1, coeff2, r2)
    guess[LAMBDA_SLICE] = coeff
    return RateFitResult(guess, RateFunction(form, coeff), fitted=True,
                         message=f"{form.value} selected (rss {r1:.3g} vs {r2:.3g})")


def fit_kappa(t_target, Q, D, guess) -> RateFitResult:
    """Fit the exponential decay of kappa(t) and refresh guess[7:9]"""
    guess = np.array(guess, dtype=float)
    default = RateFunction(DEFAULT_KAPPA_FORM, guess[KAPPA_SLICE])
    D = np.asarray(D, dtype=float)

    if D.size == 0 or np.max(D) < MIN_CASES_FOR_FIT:
        return RateFitResult(guess, default, fitted=False,
                             message=f"fewer than {MIN_CASES_FOR_FIT} deceased cases, fit skipped")

    x, rate = empirical_rate(t_target, Q, D)
    x, y = _usable_points(x, mask_kappa_rates(rate))

    try:
        coeff, _ = _fit_form(DEFAULT_KAPPA_FORM, x, y, guess[KAPPA_SLICE], KAPPA_FIT_BOUNDS)
    except (ValueError, RuntimeError, np.linalg.LinAlgError) as exc:
        warnings.warn(f"Preliminary kappa fit failed ({exc}); keeping the exponential default",
                      RateFitWarning, stacklevel=2)
        return RateFitResult(guess, default, fitted=False, message=str(exc))

    guess[KAPPA_SLICE] = coeff
    return RateFitResult(guess, RateFunction(DEFAULT_KAPPA_FORM, coeff), fitted=True)
