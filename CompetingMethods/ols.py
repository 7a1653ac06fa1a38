# =============================================================================
# Copyright 2025. Somjit Roy and Pritam Dey.
# This program implements ordinary least squares (OLS) regression in order to
# compare against variational Bayesian linear regression with and without
# automatic relevance determination (following Drugowitsch, 2013
# <https://arxiv.org/abs/1310.5438>).
#
# Authors:
#   Somjit Roy <sroy_123@tamu.edu> and Pritam Dey <pritam.dey@tamu.edu>
# =============================================================================

# Required imports
import numpy as np
import pandas as pd
from scipy.linalg import lstsq
from typing import Dict
import matplotlib.pyplot as plt
from tqdm import tqdm

from VBLR import VBLR_fit, InvalidInput, add_intercept, simulate_linear_data
from VBLR.utils import SingularSystem, stablesolve, validate_data


# =============================================================================
# OLS fit
# =============================================================================
def ols_fit(X: np.ndarray, y: np.ndarray) -> Dict[str, np.ndarray]:
    """
    Ordinary least squares fit of y on the design matrix X.

    Parameters
    ----------
    X : ndarray, shape (n, p)
        Design matrix (intercept column included, if any).
    y : ndarray, shape (n,)
        Responses.

    Returns
    -------
    dict
        'coef'  : ndarray, shape (p,) — least-squares coefficients
        'sigma' : float — residual standard deviation with n - p degrees of freedom
        'se'    : ndarray, shape (p,) — standard errors of the coefficients
    """
    X, y = validate_data(X, y)
    n, p = X.shape
    if n <= p:
        raise InvalidInput(f"OLS needs more observations than columns; got n={n}, p={p}")

    if np.linalg.matrix_rank(X) < p:
        raise InvalidInput("design matrix is rank deficient")

    coef = lstsq(X, y)[0]
    try:
        XX_inv = stablesolve(X.T @ X)
    except SingularSystem as err:
        raise InvalidInput(f"design matrix is numerically rank deficient: {err}") from err

    resid = y - X @ coef
    sigma2 = resid @ resid / (n - p)
    se = np.sqrt(sigma2 * np.diag(XX_inv))

    return {'coef': coef, 'sigma': np.sqrt(sigma2), 'se': se}

# =============================================================================
# Comparing VBLR and OLS for different repetitions of sample sizes and
# plotting the L2 error between true and estimated coefficients
# =============================================================================
def compare_vblr_ols(
    coef: np.ndarray,
    sigma: float,
    sample_sizes: list,
    n_reps: int,
    ard: bool = False,
    prior_params=(1e-2, 1e-2, 1e-2, 1e-2),
    seed: int = 123,
    plot: bool = False
) -> pd.DataFrame:
    """
    For each sample size in `sample_sizes`, run `n_reps` repetitions of:
      1. Simulate (n x d) predictors and responses from the linear model with `coef`.
      2. Fit VBLR (on the intercept-augmented design) and OLS.
      3. Compute the L2 errors ||coef_hat - coef|| of both fits.
    Optionally display a boxplot of L2 errors versus sample sizes.

    Parameters
    ----------
    coef : ndarray, shape (d + 1,)
        True regression coefficients, intercept first.
    sigma : float
        Noise standard deviation.
    sample_sizes : list of int
        Sample sizes to evaluate.
    n_reps : int
        Number of repetitions per sample size.
    ard : bool, default=False
        Whether VBLR uses automatic relevance determination.
    prior_params : tuple, default=(1e-2, 1e-2, 1e-2, 1e-2)
        [a0, b0, c0, d0] handed to VBLR.
    seed : int, default=123
        Random seed for reproducibility.
    plot : bool, default=False
        If True, shows a boxplot of L2 errors.

    Returns
    -------
    pd.DataFrame
        Columns 'n', 'rep', 'vblr_l2', 'ols_l2', 'vblr_iterations'.
    """
    coef = np.asarray(coef, dtype=float)
    a0, b0, c0, d0 = prior_params
    rng = np.random.default_rng(seed)
    rows = []

    for n in tqdm(sample_sizes, desc="Sample sizes"):
        for rep in tqdm(range(n_reps), desc=f" Reps (n={n})", leave=False):
            X_raw, y = simulate_linear_data(n, coef, sigma=sigma, seed=rng)
            X = add_intercept(X_raw)

            res = VBLR_fit(X, y, a0=a0, b0=b0, c0=c0, d0=d0, ard=ard, verbose=False)
            ols = ols_fit(X, y)

            rows.append({'n': n, 'rep': rep,
                         'vblr_l2': np.linalg.norm(res.coef - coef),
                         'ols_l2': np.linalg.norm(ols['coef'] - coef),
                         'vblr_iterations': res.iterations})

    errors = pd.DataFrame(rows)

    if plot:
        fig, axes = plt.subplots(1, 2, sharey=True)
        for ax, col, name in zip(axes, ['vblr_l2', 'ols_l2'], ['VBLR', 'OLS']):
            data = [errors.loc[errors['n'] == n, col].to_numpy() for n in sample_sizes]
            ax.boxplot(data)
            ax.set_xticks(np.arange(1, len(sample_sizes) + 1), [str(n) for n in sample_sizes])
            ax.set_xlabel('Sample Size')
            ax.set_title(f'{name}/True $L_2$ Error')
        axes[0].set_ylabel(r'$L_2$ Error')
        fig.tight_layout()
        plt.show()

    return errors


def run_vblr_ols_test(seed: int = 1010):
    """
    Fit VBLR with and without ARD and OLS on y = 1 + 2·x1 + 3·x2 + 5·x3 + N(0, 2²)
    and print the estimates side by side.
    """
    beta = np.array([1.0, 2.0, 3.0, 5.0])
    X_raw, y = simulate_linear_data(100, beta, sigma=2.0, seed=seed)
    X = add_intercept(X_raw)

    vblr = VBLR_fit(X, y, verbose=False)
    vblr_ard = VBLR_fit(X, y, ard=True, verbose=False)
    ols = ols_fit(X, y)

    print(f"True coefficients: {beta}")
    print(f"VBLR variational estimates, E(w): {vblr.coef}")
    print(f"VBLR-ARD variational estimates, E(w): {vblr_ard.coef}")
    print(f"OLS estimates: {ols['coef']}")
    print(f"VBLR sigma: {vblr.sigma:.4f}, OLS sigma: {ols['sigma']:.4f}")

if __name__ == "__main__":
    run_vblr_ols_test()
