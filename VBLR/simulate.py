# =============================================================================
# Copyright 2025. Somjit Roy and Pritam Dey.
# This program implements synthetic data generators used to demonstrate and
# test variational Bayesian linear regression.
#
# Authors:
#   Somjit Roy <sroy_123@tamu.edu> and Pritam Dey <pritam.dey@tamu.edu>
# =============================================================================

# Required imports
import numpy as np


def simulate_linear_data(n: int,
                         coef,
                         sigma: float = 1.0,
                         seed=None,
                         x_scale: float = 1.0):
    """
    Simulate data from a Gaussian linear model with an intercept.

    The response is generated as
        y = coef[0] + X @ coef[1:] + ε,   ε ~ N(0, sigma²),
    with X having independent N(0, x_scale²) entries.

    Parameters
    ----------
    n : int
        Number of observations.
    coef : array-like of shape (d + 1,)
        True coefficients, intercept first.
    sigma : float, default=1.0
        Noise standard deviation.
    seed : int or np.random.Generator, optional
        Seed for `np.random.default_rng`.
    x_scale : float, default=1.0
        Standard deviation of the predictors.

    Returns
    -------
    X : np.ndarray of shape (n, d)
        Raw predictors (no intercept column).
    y : np.ndarray of shape (n,)
        Simulated responses.
    """
    coef = np.asarray(coef, dtype=float)
    if coef.ndim != 1 or coef.shape[0] < 1:
        raise ValueError("coef must be a non-empty 1-D array with the intercept first")
    if n < 1:
        raise ValueError("n must be a positive integer")

    rng = np.random.default_rng(seed)
    X = rng.normal(0.0, x_scale, size=(n, coef.shape[0] - 1))
    y = coef[0] + X @ coef[1:] + rng.normal(0.0, sigma, size=n)
    return X, y

def simulate_sparse_data(n: int,
                         d: int,
                         n_relevant: int,
                         sigma: float = 1.0,
                         seed=None,
                         magnitude: float = 2.0):
    """
    Simulate a high-dimensional regression problem in which only the first
    `n_relevant` of `d` predictors influence the response.

    Relevant coefficients alternate in sign with absolute value `magnitude`;
    the intercept and all remaining coefficients are zero.

    Parameters
    ----------
    n : int
        Number of observations.
    d : int
        Number of raw predictors.
    n_relevant : int
        Number of leading predictors with non-zero coefficients (<= d).
    sigma : float, default=1.0
        Noise standard deviation.
    seed : int or np.random.Generator, optional
        Seed for `np.random.default_rng`.
    magnitude : float, default=2.0
        Absolute value of the relevant coefficients.

    Returns
    -------
    X : np.ndarray of shape (n, d)
        Raw predictors with independent N(0, 1) entries.
    y : np.ndarray of shape (n,)
        Simulated responses.
    coef : np.ndarray of shape (d + 1,)
        True coefficients, intercept first.
    """
    if not 0 <= n_relevant <= d:
        raise ValueError(f"n_relevant must lie in [0, {d}]")

    coef = np.zeros(d + 1)
    signs = np.where(np.arange(n_relevant) % 2 == 0, 1.0, -1.0)
    coef[1:n_relevant + 1] = magnitude * signs

    rng = np.random.default_rng(seed)
    X = rng.normal(0.0, 1.0, size=(n, d))
    y = X @ coef[1:] + rng.normal(0.0, sigma, size=n)
    return X, y, coef
