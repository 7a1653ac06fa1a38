# =============================================================================
# Copyright 2025. Somjit Roy and Pritam Dey.
# This program implements helper functions for variational Bayesian linear
# regression with and without automatic relevance determination (following
# Drugowitsch, 2013 <https://arxiv.org/abs/1310.5438>).
#
# Authors:
#   Somjit Roy <sroy_123@tamu.edu> and Pritam Dey <pritam.dey@tamu.edu>
# =============================================================================

# Required imports
import numpy as np
from scipy.linalg import cho_factor, cho_solve


class InvalidInput(ValueError):
    """
    Raised when the data or the hyperparameters handed to the solver are
    malformed: mismatched row counts, non-finite entries, non-positive
    hyperparameters, tolerance or iteration cap.
    """


class SingularSystem(np.linalg.LinAlgError):
    """
    Raised when the coefficient precision matrix is not numerically
    positive definite, so its inverse cannot be formed reliably.
    """


def stablesolve(A: np.ndarray, return_logdet: bool = False):
    """
    Computes the inverse of a symmetric positive definite matrix A using
    Cholesky decomposition.

    Unlike a plain inverse, a failed decomposition is never papered over:
    the matrix is either inverted through its Cholesky factor or a
    `SingularSystem` error is raised.

    Parameters
    ----------
    A : np.ndarray of shape (n, n)
        A real symmetric positive definite matrix to invert.
    return_logdet : bool, optional
        If True, also return log|A| read off the Cholesky factor. Default is False.

    Returns
    -------
    res : np.ndarray of shape (n, n)
        The inverse of matrix A.
    logdet_A : float
        Log-determinant of A (only if `return_logdet` is True).

    Raises
    ------
    SingularSystem
        If A has non-finite entries, is not numerically positive definite,
        or its inverse is not finite.
    """
    if not np.all(np.isfinite(A)):
        raise SingularSystem("matrix to invert has non-finite entries")
    try:
        c, lower = cho_factor(A, overwrite_a=False, check_finite=False)
    except np.linalg.LinAlgError as err:
        raise SingularSystem(f"matrix is not positive definite: {err}") from err

    res = cho_solve((c, lower), np.eye(A.shape[0]), check_finite=False)
    if not np.all(np.isfinite(res)):
        raise SingularSystem("inverse of the matrix is not finite")

    if return_logdet:
        return res, 2 * np.sum(np.log(np.diag(c)))
    return res

def add_intercept(X: np.ndarray) -> np.ndarray:
    """
    Prepend a column of ones to the design matrix, so that the first
    regression coefficient is the intercept.

    Parameters
    ----------
    X : np.ndarray of shape (n, d)
        Raw predictor matrix. A 1-D array is treated as a single predictor.

    Returns
    -------
    np.ndarray of shape (n, d + 1)
        Design matrix with the intercept column first.
    """
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X[:, None]
    return np.column_stack((np.ones(X.shape[0]), X))

def _is_positive_scalar(value) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    if not isinstance(value, (int, float, np.integer, np.floating)):
        return False
    return bool(np.isfinite(value) and value > 0)

def validate_data(X, y):
    """
    Validate the response vector and design matrix handed to the solver.

    Parameters
    ----------
    X : array-like of shape (n, p)
        Design matrix (intercept column already included, if any).
    y : array-like of shape (n,)
        Response vector.

    Returns
    -------
    X : np.ndarray of shape (n, p), float
    y : np.ndarray of shape (n,), float

    Raises
    ------
    InvalidInput
        If the shapes are wrong, the row counts differ or any entry is non-finite.
    """
    try:
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
    except (TypeError, ValueError) as err:
        raise InvalidInput(f"X and y must be numeric arrays: {err}") from err

    if X.ndim != 2:
        raise InvalidInput(f"'X' must be a 2-D array of shape (n, p); got {X.ndim} dimension(s)")
    if y.ndim == 2 and y.shape[1] == 1:
        y = y[:, 0]
    if y.ndim != 1:
        raise InvalidInput(f"'y' must be a 1-D array; got shape {y.shape}")

    n, p = X.shape
    if n < 1 or p < 1:
        raise InvalidInput(f"'X' must have at least one row and one column; got shape {X.shape}")
    if y.shape[0] != n:
        raise InvalidInput(f"'y' has {y.shape[0]} entries but 'X' has {n} rows")
    if not np.all(np.isfinite(X)):
        raise InvalidInput("'X' contains missing or non-finite entries")
    if not np.all(np.isfinite(y)):
        raise InvalidInput("'y' contains missing or non-finite entries")

    return X, y

def validate_hyperparams(a0, b0, c0, d0, maxiter, tol, ard):
    """
    Validate the fixed hyperparameters of one fit.

    Raises
    ------
    InvalidInput
        If any prior parameter or the tolerance is not a positive finite scalar,
        `maxiter` is not a positive integer or `ard` is not a boolean.
    """
    for name, value in (("a0", a0), ("b0", b0), ("c0", c0), ("d0", d0), ("tol", tol)):
        if not _is_positive_scalar(value):
            raise InvalidInput(f"{name} must be a positive scalar; got {value!r}")

    if isinstance(maxiter, (bool, np.bool_)) or not isinstance(maxiter, (int, np.integer)) or maxiter < 1:
        raise InvalidInput(f"maxiter must be a positive integer; got {maxiter!r}")

    if not isinstance(ard, (bool, np.bool_)):
        raise InvalidInput(f"ard must be a boolean; got {ard!r}")
