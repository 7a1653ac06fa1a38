import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from VBLR import add_intercept


TRUE_COEF = np.array([1.0, 2.0, 3.0, 5.0])


def orthogonal_noise(X, sigma, rng):
    """Gaussian noise with the column space of X projected out, rescaled to sd `sigma`."""
    e = rng.normal(0.0, sigma, size=X.shape[0])
    e = e - X @ np.linalg.lstsq(X, e, rcond=None)[0]
    return sigma * e / e.std()


@pytest.fixture
def linear_data():
    """y = 1 + 2 x1 + 3 x2 + 5 x3 + noise(sd=2), n = 100, least-squares solution exactly TRUE_COEF."""
    rng = np.random.default_rng(2024)
    X_raw = rng.normal(0.0, 1.0, size=(100, 3))
    X = add_intercept(X_raw)
    y = X @ TRUE_COEF + orthogonal_noise(X, 2.0, rng)
    return X_raw, X, y


@pytest.fixture
def wide_data():
    """More columns than rows: n = 30, 60 raw predictors, the first 5 relevant."""
    rng = np.random.default_rng(7)
    X_raw = rng.normal(0.0, 1.0, size=(30, 60))
    coef = np.zeros(61)
    coef[1:6] = [3.0, -2.0, 2.5, -3.0, 2.0]
    y = add_intercept(X_raw) @ coef + rng.normal(0.0, 0.5, size=30)
    return add_intercept(X_raw), y
