import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

import VBLR.vblr as vblr_module
from VBLR import (
    InvalidInput,
    SingularSystem,
    VBLR_fit,
    VBLRResult,
    add_intercept,
    simulate_linear_data,
    simulate_sparse_data,
    vblr_elbo,
    vblr_update,
)

from conftest import TRUE_COEF


@pytest.mark.parametrize("ard", [False, True])
def test_recovers_known_coefficients(linear_data, ard):
    _, X, y = linear_data

    res = VBLR_fit(X, y, ard=ard, maxiter=1000, tol=1e-8, verbose=False)

    assert isinstance(res, VBLRResult)
    assert_allclose(res.coef, TRUE_COEF, atol=0.5)
    assert not res.hit_iteration_cap
    assert res.iterations < 1000
    assert res.tol_achieved <= 1e-8
    assert res.coef.shape == (4,)
    assert res.V.shape == (4, 4)
    assert res.E_alpha.shape == (4,)
    assert res.d_N.shape == ((4,) if ard else (1,))


@pytest.mark.parametrize("ard", [False, True])
def test_recovers_coefficients_from_simulated_draw(ard):
    X_raw, y = simulate_linear_data(100, TRUE_COEF, sigma=2.0, seed=1)

    res = VBLR_fit(add_intercept(X_raw), y, ard=ard, verbose=False)

    assert_allclose(res.coef, TRUE_COEF, atol=0.5)
    assert not res.hit_iteration_cap
    assert res.tol_achieved <= 1e-8


@pytest.mark.parametrize("ard", [False, True])
def test_elbo_is_non_decreasing(linear_data, wide_data, ard):
    for X, y in [linear_data[1:], wide_data]:
        res = VBLR_fit(X, y, c0=1e-6, d0=1e-6, ard=ard, maxiter=300, verbose=False)

        trace = res.elbo_trace
        assert trace.shape == (res.iterations,)
        assert trace[-1] == res.elbo
        assert np.all(np.diff(trace) >= -1e-6)


@pytest.mark.parametrize("ard", [False, True])
def test_iteration_count_within_bounds(wide_data, ard):
    X, y = wide_data
    for maxiter in [1, 2, 5, 50]:
        res = VBLR_fit(X, y, ard=ard, maxiter=maxiter, tol=1e-12, verbose=False)
        assert 1 <= res.iterations <= maxiter


def test_single_coefficient_modes_agree():
    # with one coefficient the shared and per-coefficient precisions coincide
    rng = np.random.default_rng(3)
    X = rng.normal(size=(40, 1))
    y = 1.5 * X[:, 0] + rng.normal(size=40)

    shared = VBLR_fit(X, y, ard=False, verbose=False)
    per_coef = VBLR_fit(X, y, ard=True, verbose=False)

    assert shared.iterations == per_coef.iterations
    assert shared.c_N == per_coef.c_N
    assert_array_equal(shared.elbo_trace, per_coef.elbo_trace)
    assert_array_equal(shared.coef, per_coef.coef)
    assert_array_equal(shared.V, per_coef.V)
    assert_array_equal(shared.d_N, per_coef.d_N)


def test_update_modes_agree_for_uniform_precision(linear_data):
    _, X, y = linear_data
    XX, Xy = X.T @ X, X.T @ y
    w = np.array([0.5, -1.0, 2.0, 0.25])
    E_alpha = np.full(4, 0.3)

    kwargs = dict(a_N=1.0 + 50, c_N=1.0 + 2, b0=1.0, d0=1.0)
    shared = vblr_update(X, y, XX, Xy, w, E_alpha, ard=False, **kwargs)
    per_coef = vblr_update(X, y, XX, Xy, w, E_alpha, ard=True, **kwargs)

    assert shared['b_N'] == per_coef['b_N']
    assert_array_equal(shared['w'], per_coef['w'])
    assert_array_equal(shared['V'], per_coef['V'])
    assert shared['logdet_V'] == per_coef['logdet_V']

    # uniform penalty equals the scalar form E_alpha * ||w||^2
    resid = y - X @ w
    assert shared['b_N'] == pytest.approx(1.0 + 0.5 * (resid @ resid + 0.3 * (w @ w)), rel=1e-12)

    # shared precision stays uniform, and both d_N updates sum to the same quantity
    assert np.all(shared['E_alpha'] == shared['E_alpha'][0])
    assert shared['d_N'][0] - 1.0 == pytest.approx(np.sum(per_coef['d_N'] - 1.0), rel=1e-12)


def test_elbo_matches_closed_form(linear_data):
    _, X, y = linear_data
    res = VBLR_fit(X, y, a0=0.5, b0=0.2, c0=0.3, d0=0.4, verbose=False)
    n, p = X.shape

    from scipy.special import gammaln
    E_tau = res.a_N / res.b_N
    resid = y - X @ res.coef
    expected = (-n / 2 * np.log(2 * np.pi)
                - 0.5 * (E_tau * resid @ resid + np.sum((X.T @ X) * res.V))
                + 0.5 * np.linalg.slogdet(res.V)[1] + p / 2
                - gammaln(0.5) + 0.5 * np.log(0.2) - 0.2 * E_tau
                + gammaln(res.a_N) - res.a_N * np.log(res.b_N) + res.a_N
                - gammaln(0.3) + 0.3 * np.log(0.4) + gammaln(res.c_N) - res.c_N * np.log(res.d_N[0]))

    assert res.elbo == pytest.approx(expected, rel=1e-10)
    assert res.a_N == 0.5 + n / 2
    assert res.c_N == pytest.approx(0.3 + p / 2)

    direct = vblr_elbo(X, y, X.T @ X, np.array(res.coef), np.array(res.V),
                       np.linalg.slogdet(res.V)[1], 0.5, 0.2, 0.3, 0.4,
                       res.a_N, res.b_N, res.c_N, res.d_N)
    assert direct == pytest.approx(res.elbo, rel=1e-10)


def test_sigma_reproduces_fixed_formula(linear_data):
    # sigma = sqrt(1 / (E_wtau / ||w||^2)) is kept as is, it is not the predictive sd
    _, X, y = linear_data
    res = VBLR_fit(X, y, verbose=False)

    ww = res.coef @ res.coef
    E_wtau = res.E_tau * ww + np.trace(res.V)
    assert res.sigma == pytest.approx(np.sqrt(1 / (E_wtau / ww)), rel=1e-12)
    assert res.sigma < 1 / np.sqrt(res.E_tau)
    assert res.sigma == pytest.approx(2.0, abs=0.2)


def test_sigma_is_nan_for_null_fit():
    X = add_intercept(np.linspace(-1, 1, 20))
    y = np.zeros(20)

    res = VBLR_fit(X, y, verbose=False)

    assert_array_equal(res.coef, np.zeros(2))
    assert np.isnan(res.sigma)
    assert np.isfinite(res.elbo)


@pytest.mark.parametrize("ard", [False, True])
def test_fit_is_reproducible(wide_data, ard):
    X, y = wide_data
    first = VBLR_fit(X, y, ard=ard, maxiter=100, verbose=False)
    second = VBLR_fit(X, y, ard=ard, maxiter=100, verbose=False)

    assert first.iterations == second.iterations
    assert_array_equal(first.coef, second.coef)
    assert_array_equal(first.V, second.V)
    assert_array_equal(first.elbo_trace, second.elbo_trace)
    assert first.sigma == second.sigma


def test_result_is_immutable(linear_data):
    _, X, y = linear_data
    res = VBLR_fit(X, y, verbose=False)

    with pytest.raises(AttributeError):
        res.coef = np.zeros(4)
    with pytest.raises(ValueError):
        res.coef[0] = 10.0
    with pytest.raises(ValueError):
        res.V[0, 0] = 10.0

    assert_allclose(res.coef_scale, res.V / res.E_tau)


def test_iteration_cap_is_reported_not_raised(linear_data, capsys):
    _, X, y = linear_data

    res = VBLR_fit(X, y, maxiter=2, tol=1e-12, verbose=False)

    assert res.iterations == 2
    assert res.hit_iteration_cap
    assert res.tol_achieved > 1e-12
    assert res.coef.shape == (4,)
    assert np.isfinite(res.elbo)
    assert "reached maximum iterations" in capsys.readouterr().out


def test_verbose_reports_convergence(linear_data, capsys):
    _, X, y = linear_data
    res = VBLR_fit(X, y, verbose=True)
    assert f"Converged in {res.iterations} iterations." in capsys.readouterr().out


def test_wide_design_is_well_defined_under_ard(wide_data):
    X, y = wide_data
    res = VBLR_fit(X, y, ard=True, c0=1e-6, d0=1e-6, maxiter=500, verbose=False)

    assert np.all(np.isfinite(res.coef))
    assert np.all(res.E_alpha > 0)


@pytest.mark.parametrize(
    "X, y",
    [
        (np.ones((10, 2)), np.ones(9)),
        (np.ones((10, 2)), np.ones((10, 2))),
        (np.ones(10), np.ones(10)),
        (np.ones((0, 2)), np.ones(0)),
        (np.array([[1.0, np.nan], [1.0, 2.0]]), np.ones(2)),
        (np.ones((2, 2)), np.array([1.0, np.inf])),
    ],
)
def test_malformed_data_raises_before_loop(monkeypatch, X, y):
    def fail(*args, **kwargs):
        raise AssertionError("coordinate ascent must not start")

    monkeypatch.setattr(vblr_module, "vblr_update", fail)

    with pytest.raises(InvalidInput):
        VBLR_fit(X, y, verbose=False)


@pytest.mark.parametrize(
    "kwargs",
    [
        {'a0': 0.0},
        {'b0': -1.0},
        {'c0': np.inf},
        {'d0': True},
        {'tol': 0.0},
        {'maxiter': 0},
        {'maxiter': 1.5},
        {'ard': 'yes'},
    ],
)
def test_invalid_hyperparameters_raise(linear_data, kwargs):
    _, X, y = linear_data
    with pytest.raises(InvalidInput):
        VBLR_fit(X, y, verbose=False, **kwargs)


def test_invalid_input_is_a_value_error():
    assert issubclass(InvalidInput, ValueError)
    assert issubclass(SingularSystem, np.linalg.LinAlgError)
    assert not issubclass(SingularSystem, InvalidInput)


def test_singular_precision_matrix_raises():
    # duplicated columns and a vanishing prior precision leave XX + diag(E_alpha) singular
    X = np.ones((4, 2))
    y = np.arange(4.0)

    with pytest.raises(SingularSystem):
        VBLR_fit(X, y, c0=1e-300, d0=1.0, verbose=False)


@pytest.mark.slow
def test_ard_shrinks_irrelevant_predictors():
    X_raw, y, coef = simulate_sparse_data(n=500, d=1000, n_relevant=100, sigma=1.0, seed=11)
    X = add_intercept(X_raw)
    priors = dict(a0=1e-2, b0=1e-2, c0=1e-6, d0=1e-6)

    ard = VBLR_fit(X, y, ard=True, maxiter=500, verbose=False, **priors)
    shared = VBLR_fit(X, y, ard=False, maxiter=500, verbose=False, **priors)

    irrelevant = slice(101, 1001)
    ard_resid = np.mean(np.abs(ard.coef[irrelevant]))
    shared_resid = np.mean(np.abs(shared.coef[irrelevant]))

    assert abs(np.mean(ard.coef[irrelevant])) < 0.05
    assert ard_resid < 0.05
    assert shared_resid > 0.05
    assert shared_resid > 2 * ard_resid
