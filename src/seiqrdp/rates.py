"""
===========================================================
rates.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Empirical forms of the time-varying recovery rate lambda(t)
    and mortality rate kappa(t).

        LOGISTIC            a1 / (1 + exp(-a2 (t - a3)))
        EXPONENTIAL_OFFSET  a1 + exp(-a2 (t + a3))
        EXPONENTIAL_DECAY   a1 exp(-a2 t)

    The form is picked once by the preliminary fit; afterwards only
    its parameters change.

Example Usage:
    from seiqrdp.rates import RateFunction, RateForm
    lam = RateFunction(RateForm.LOGISTIC, (0.1, 0.2, 10.0))
    lam(np.arange(30))
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple


class RateForm(Enum):
    LOGISTIC = "logistic"
    EXPONENTIAL_OFFSET = "exponential_offset"
    EXPONENTIAL_DECAY = "exponential_decay"

    @property
    def n_params(self) -> int:
        return 2 if self is RateForm.EXPONENTIAL_DECAY else 3


def evaluate_rate(form: RateForm, a: Sequence[float], t) -> np.ndarray:
    """Evaluate a rate form with parameters a at times t"""
    t = np.asarray(t, dtype=float)
    # exp overflow gives inf (or the limit 0 for the logistic), never a warning
    with np.errstate(over="ignore"):
        if form is RateForm.LOGISTIC:
            return a[0] / (1.0 + np.exp(-a[1] * (t - a[2])))
        if form is RateForm.EXPONENTIAL_OFFSET:
            return a[0] + np.exp(-a[1] * (t + a[2]))
        if form is RateForm.EXPONENTIAL_DECAY:
            return a[0] * np.exp(-a[1] * t)
    raise ValueError(f"unknown rate form: {form!r}")


@dataclass(frozen=True)
class RateFunction:
    """A rate form together with its parameter sub-vector"""
    form: RateForm
    params: Tuple[float, ...]

    def __post_init__(self):
        params = tuple(float(p) for p in np.ravel(self.params))
        if len(params) != self.form.n_params:
            raise ValueError(
                f"{self.form.value} takes {self.form.n_params} parameters, got {len(params)}"
            )
        object.__setattr__(self, "params", params)

    def __call__(self, t) -> np.ndarray:
        return evaluate_rate(self.form, self.params, t)

    def with_params(self, params: Sequence[float]) -> "RateFunction":
        return RateFunction(self.form, tuple(params))

    def as_dict(self) -> dict:
        return {"form": self.form.value, "params": list(self.params)}


DEFAULT_LAMBDA_FORM = RateForm.LOGISTIC
DEFAULT_KAPPA_FORM = RateForm.EXPONENTIAL_DECAY
