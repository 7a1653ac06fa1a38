# =============================================================================
# Copyright 2025. Somjit Roy and Pritam Dey.
# This program implements the result container returned by the variational
# Bayesian linear regression solver (following Drugowitsch, 2013
# <https://arxiv.org/abs/1310.5438>).
#
# Authors:
#   Somjit Roy <sroy_123@tamu.edu> and Pritam Dey <pritam.dey@tamu.edu>
# =============================================================================

# Required imports
import numpy as np
from typing import NamedTuple


def _frozen(arr) -> np.ndarray:
    arr = np.array(arr, dtype=float, copy=True)
    arr.flags.writeable = False
    return arr


class VBLRResult(NamedTuple):
    """
    Snapshot of a fitted variational posterior.

    The variational family is:
        q(w, τ, α) = N(w | coef, V / τ) × Gamma(τ | a_N, b_N) × Π_k Gamma(α_k | c_N, d_N[k])

    Attributes
    ----------
    coef : np.ndarray of shape (p,)
        Posterior mean of the regression coefficients (intercept first, if any).
    sigma : float
        Residual standard deviation sqrt(1 / (E_wtau / ||w||²)) at the final
        iterate. `nan` when ||w||² is zero, where the formula is undefined.
    elbo : float
        Evidence lower bound at the final iterate.
    iterations : int
        Number of coordinate-ascent sweeps actually run (1 <= iterations <= maxiter).
    tol_achieved : float
        Absolute change of the ELBO over the last sweep.
    hit_iteration_cap : bool
        True if `maxiter` sweeps ran without the ELBO change dropping to `tol`.
    V : np.ndarray of shape (p, p)
        Noise-scaled covariance of the coefficients: w | τ ~ N(coef, V / τ).
    a_N, b_N : float
        Shape and rate of the Gamma posterior on the noise precision τ.
    c_N : float
        Shape of the Gamma posterior(s) on the coefficient precision.
    d_N : np.ndarray of shape (1,) or (p,)
        Rate(s) of the coefficient-precision posterior: one shared value, or
        one per coefficient under ARD.
    E_alpha : np.ndarray of shape (p,)
        Expected coefficient precision per coefficient.
    E_tau : float
        Expected noise precision a_N / b_N.
    ard : bool
        Whether automatic relevance determination was used.
    elbo_trace : np.ndarray of shape (iterations,)
        ELBO after every sweep.
    """
    coef: np.ndarray
    sigma: float
    elbo: float
    iterations: int
    tol_achieved: float
    hit_iteration_cap: bool
    V: np.ndarray
    a_N: float
    b_N: float
    c_N: float
    d_N: np.ndarray
    E_alpha: np.ndarray
    E_tau: float
    ard: bool
    elbo_trace: np.ndarray

    @classmethod
    def from_state(cls, *, coef, sigma, elbo, iterations, tol_achieved, hit_iteration_cap,
                   V, a_N, b_N, c_N, d_N, E_alpha, ard, elbo_trace):
        """
        Build a result from solver state, copying every array and marking it read-only.
        """
        return cls(coef=_frozen(coef), sigma=float(sigma), elbo=float(elbo),
                   iterations=int(iterations), tol_achieved=float(tol_achieved),
                   hit_iteration_cap=bool(hit_iteration_cap),
                   V=_frozen(V), a_N=float(a_N), b_N=float(b_N), c_N=float(c_N),
                   d_N=_frozen(d_N), E_alpha=_frozen(E_alpha),
                   E_tau=float(a_N / b_N), ard=bool(ard),
                   elbo_trace=_frozen(elbo_trace))

    @property
    def coef_scale(self) -> np.ndarray:
        """Scale matrix V * b_N / a_N of the Student-t marginal posterior of the coefficients."""
        return self.V * (self.b_N / self.a_N)
