"""
===========================================================
integrator.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Right-hand side and RK4 step of the SEIQRDP system written as

        dY/dt = A(t) Y + F(Y)

    with Y = [S, E, I, Q, R, D, P]. A carries every linear
    transition, F the mass-action infection term beta*S*I/N.

Notes:
    - A and F are held constant over one step. alpha, beta, gamma
      and delta are constant anyway; lambda(t) and kappa(t) are
      treated as piecewise constant, so dt must stay small compared
      to the time scale on which they change.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np

COMPARTMENTS = ("S", "E", "I", "Q", "R", "D", "P")
S, E, I, Q, R, D, P = range(7)


def transition_matrix(alpha: float, gamma: float, delta: float, lam: float, kappa: float) -> np.ndarray:
    """7x7 matrix A of the linear transitions"""
    A = np.zeros((7, 7))
    A[S, S] = -alpha
    A[E, E] = -gamma
    A[I, E] = gamma
    A[I, I] = -delta
    A[Q, I] = delta
    A[Q, Q] = -(kappa + lam)
    A[R, Q] = lam
    A[D, Q] = kappa
    A[P, S] = alpha
    return A


def infection_force(Y: np.ndarray, beta: float, N: float) -> np.ndarray:
    """Mass-action term, only non-zero on the S and E rows"""
    F = np.zeros(7)
    inf = beta / N * Y[S] * Y[I]
    F[S] = -inf
    F[E] = inf
    return F


def linear_rhs(Y: np.ndarray, A: np.ndarray, F: np.ndarray) -> np.ndarray:
    return A @ Y + F


def rk4_step(Y: np.ndarray, A: np.ndarray, F: np.ndarray, h: float) -> np.ndarray:
    """single RK4 step of dY/dt = A Y + F with A, F frozen"""
    k1 = linear_rhs(Y, A, F)
    k2 = linear_rhs(Y + 0.5*h*k1, A, F)
    k3 = linear_rhs(Y + 0.5*h*k2, A, F)
    k4 = linear_rhs(Y + h*k3, A, F)
    return Y + (h/6.0)*(k1 + 2*k2 + 2*k3 + k4)
