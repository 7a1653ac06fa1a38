# =============================================================================
# Copyright 2025. Somjit Roy and Pritam Dey.
# This program implements the estimator class for variational Bayesian linear
# regression with and without automatic relevance determination (following
# Drugowitsch, 2013 <https://arxiv.org/abs/1310.5438>).
#
# Authors:
#   Somjit Roy <sroy_123@tamu.edu> and Pritam Dey <pritam.dey@tamu.edu>
# =============================================================================

# Required imports
from .vblr import VBLR_fit
from .utils import InvalidInput, validate_data
import numpy as np
import pandas as pd
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from sklearn.exceptions import NotFittedError
from sklearn.preprocessing import StandardScaler
import matplotlib.pyplot as plt

# Default [a0, b0, c0, d0]
DEFAULT_PRIOR_PARAMS = (1e-2, 1e-2, 1e-2, 1e-2)

# Validating prior parameters for the normal-inverse-gamma model
def validate_prior_params_vblr(prior_params):
    """
    Validate and unpack prior parameters for variational Bayesian linear regression.

    This function checks the correctness of prior parameters provided in the form:
        prior_params = [a0, b0, c0, d0],
    where:
        - a0: shape parameter of the Gamma prior on the noise precision (τ),
        - b0: rate parameter of the Gamma prior on the noise precision (τ),
        - c0: shape parameter of the Gamma prior(s) on the coefficient precision (α),
        - d0: rate parameter of the Gamma prior(s) on the coefficient precision (α).

    Parameters
    ----------
    prior_params : list or tuple of length 4
        The prior parameter set: [a0, b0, c0, d0].

    Returns
    -------
    a0, b0, c0, d0 : float
        Validated prior parameters.

    Raises
    ------
    InvalidInput
        If the input is malformed or any parameter is not a positive scalar.
    """

    if not isinstance(prior_params, (list, tuple)) or len(prior_params) != 4:
        raise InvalidInput("prior_params must be a list of four elements: [a0, b0, c0, d0]")

    validated = []
    for name, value in zip(("a0", "b0", "c0", "d0"), prior_params):
        if isinstance(value, bool) or not (isinstance(value, (int, float, np.integer, np.floating))
                                           and np.isfinite(value) and value > 0):
            raise InvalidInput(f"{name} must be a positive scalar")
        validated.append(float(value))

    return tuple(validated)

# =============================================================================
# The VBLR class for Gaussian linear regression
# =============================================================================
class VBLR_linear:
    """
    Variational Bayesian Linear Regression (VBLR).

    This class provides a high-level interface to fit a Gaussian linear model
    with a normal-inverse-gamma prior by mean-field variational inference,
    optionally with automatic relevance determination (ARD). It supports
    scaling, intercept addition, ELBO tracking, prediction, tabular summaries
    and plots of the fit.

    Parameters
    ----------
    fit_intercept : bool, default=True
        Whether to include an intercept term in the design matrix.
    scale_X : bool, default=False
        If True, standardizes X before fitting.
    scale_y : bool, default=False
        If True, standardizes y before fitting.
    ard : bool, default=False
        If True, every coefficient gets its own precision hyperparameter.

    Attributes
    ----------
    is_fitted : bool
        Indicates whether the model has been fitted.
    fitted_values : VBLRResult
        Posterior summary returned by `VBLR_fit`.
    """
    def __init__(self,
                 fit_intercept: bool = True,
                 scale_X: bool = False,
                 scale_y: bool = False,
                 ard: bool = False):
        """
        Initialize the VBLR model parameters.
        """
        if not isinstance(ard, (bool, np.bool_)):
            raise InvalidInput("ard must be a boolean")

        self.fit_intercept = fit_intercept
        self.scale_X = scale_X
        self.scale_y = scale_y
        self.ard = bool(ard)
        self.is_fitted = False

    def _design(self, X: np.ndarray) -> np.ndarray:
        design_matrix = np.array(X, dtype=float)
        if design_matrix.ndim == 1:
            design_matrix = design_matrix[:, None]
        if self.scale_X:
            design_matrix = self.X_scaler_.transform(design_matrix)
        if self.fit_intercept:
            design_matrix = np.column_stack((np.ones(design_matrix.shape[0]), design_matrix))
        return design_matrix

    def _check_fitted(self):
        if not self.is_fitted:
            raise NotFittedError("VBLR model is not trained yet. Call fit() first.")

    def fit(self,
            X: np.ndarray,
            y: np.ndarray,
            prior_params=None,
            maxiter: int = 1000,
            tol: float = 1e-8,
            verbose=True):
        """
        Fit the VBLR model to the input data.

        Parameters
        ----------
        X : np.ndarray of shape (n, d)
            Raw predictor matrix (without intercept column).
        y : np.ndarray of shape (n,)
            Response vector.
        prior_params : list or tuple, optional
            Prior parameters [a0, b0, c0, d0] for the Gamma priors on the noise
            and coefficient precisions. If None, all four default to 1e-2.
        maxiter : int, default=1000
            Maximum number of coordinate-ascent sweeps.
        tol : float, default=1e-8
            Tolerance on the absolute change in the ELBO.
        verbose : bool, default=True
            Whether to print fit and convergence information.

        Returns
        -------
        self : VBLR_linear
            The fitted estimator.
        """
        X = np.asarray(X)
        if X.ndim == 1:
            X = X[:, None]
        X, y = validate_data(X, y)

        self.X = X
        self.y = y
        self.n, self.p = self.X.shape

        if self.scale_X:
            self.X_scaler_ = StandardScaler().fit(self.X)
        if self.scale_y:
            self.y_scaler_ = StandardScaler().fit(self.y[:, None])
            self.y = self.y_scaler_.transform(self.y[:, None])[:, 0]

        self.design_matrix = self._design(self.X)
        self.p = self.design_matrix.shape[1]

        ################################################################
        if verbose:
            console = Console()
            mode = "ARD" if self.ard else "shared precision"
            console.print(
                Panel(
                    "[bold green] Starting VBLR fit![/]",
                    title=f"[bold blue]VBLR Fit for Linear Regression ({mode})[/]",
                    border_style="magenta",
                    expand=False
                )
            )
        ################################################################

        ################################################################
        ### prior parameter validation
        ################################################################

        if prior_params is None:
            a0, b0, c0, d0 = DEFAULT_PRIOR_PARAMS
        else:
            a0, b0, c0, d0 = validate_prior_params_vblr(prior_params=prior_params)

        ################################################################
        ### VBLR for Gaussian linear regression
        ################################################################
        self.fitted_values = VBLR_fit(X=self.design_matrix, y=self.y,
                                      a0=a0, b0=b0, c0=c0, d0=d0, ard=self.ard,
                                      maxiter=maxiter, tol=tol,
                                      verbose=verbose)

        self.is_fitted = True
        return self

    def get_variational_estimates(self):
        """
        Retrieve the variational posterior estimates.

        Returns
        -------
        dict
            A dictionary containing:
            - 'm': np.ndarray of shape (p,), posterior mean of w.
            - 'V': np.ndarray of shape (p, p), scaled posterior covariance of w.
            - 'a_N': float, shape parameter of the Gamma posterior on τ.
            - 'b_N': float, rate parameter of the Gamma posterior on τ.
            - 'c_N': float, shape parameter of the Gamma posterior(s) on α.
            - 'd_N': np.ndarray, rate parameter(s) of the Gamma posterior(s) on α.
            - 'E_alpha': np.ndarray of shape (p,), expected coefficient precision.
        """
        self._check_fitted()
        res = self.fitted_values
        return {'m': res.coef, 'V': res.V, 'a_N': res.a_N, 'b_N': res.b_N,
                'c_N': res.c_N, 'd_N': res.d_N, 'E_alpha': res.E_alpha}

    def get_elbo(self):
        """
        Retrieve the Evidence Lower Bound (ELBO) values recorded during training.

        Returns
        -------
        np.ndarray
            ELBO values over iterations.
        """
        self._check_fitted()
        return np.array(self.fitted_values.elbo_trace)

    def get_posterior_means(self):
        """
        Return posterior means of the model parameters.

        Returns
        -------
        w : np.ndarray of shape (p,)
            Posterior mean of regression coefficients.
        tau : float
            Posterior mean of the noise precision τ.
        """
        self._check_fitted()
        res = self.fitted_values
        return np.array(res.coef), res.E_tau

    def predict(self, X: np.ndarray, return_std: bool = False):
        """
        Posterior predictive mean (and standard deviation) for new inputs.

        Parameters
        ----------
        X : np.ndarray of shape (m, d)
            Raw predictors, transformed the same way as the training data.
        return_std : bool, default=False
            If True, also return the scale of the Student-t predictive
            distribution, sqrt((1 + xᵀVx) · b_N / a_N).

        Returns
        -------
        mean : np.ndarray of shape (m,)
        std : np.ndarray of shape (m,), only if `return_std` is True
        """
        self._check_fitted()
        design_matrix = self._design(X)
        if design_matrix.shape[1] != self.p:
            raise InvalidInput(f"X must have {self.p - int(self.fit_intercept)} columns")

        res = self.fitted_values
        mean = design_matrix @ res.coef
        std = np.sqrt((1 + np.einsum('ij,ij->i', design_matrix @ res.V, design_matrix)) / res.E_tau)

        if self.scale_y:
            mean = self.y_scaler_.inverse_transform(mean[:, None])[:, 0]
            std = std * self.y_scaler_.scale_[0]

        if return_std:
            return mean, std
        return mean

    def _coef_names(self):
        names = [f"x{k + 1}" for k in range(self.p - int(self.fit_intercept))]
        if self.fit_intercept:
            names.insert(0, "intercept")
        return names

    def summary(self, verbose: bool = False) -> pd.DataFrame:
        """
        Tabulate the posterior of every coefficient.

        Returns
        -------
        pd.DataFrame
            One row per coefficient with the posterior mean, the posterior
            standard deviation sqrt(V_kk · b_N / a_N) and the expected precision E_alpha.
        """
        self._check_fitted()
        res = self.fitted_values
        df = pd.DataFrame({'mean': res.coef,
                           'sd': np.sqrt(np.diag(res.V) / res.E_tau),
                           'E_alpha': res.E_alpha},
                          index=pd.Index(self._coef_names(), name='coefficient'))

        if verbose:
            table = Table(title="VBLR posterior summary")
            table.add_column("coefficient", style="bold")
            for col in df.columns:
                table.add_column(col, justify="right")
            for name, row in df.iterrows():
                table.add_row(name, *[f"{v:.4g}" for v in row])
            Console().print(table)

        return df

    def plot_elbo(self, ax=None):
        """
        Plot the ELBO trajectory over iterations.

        Returns
        -------
        matplotlib.axes.Axes
        """
        self._check_fitted()
        if ax is None:
            _, ax = plt.subplots()
        elbo = self.get_elbo()
        ax.plot(np.arange(1, elbo.shape[0] + 1), elbo, marker='o', markersize=3)
        ax.set_xlabel('Iteration')
        ax.set_ylabel('ELBO')
        ax.set_title('VBLR ELBO trajectory')
        return ax

    def plot_coefficients(self, true_coef=None, ax=None):
        """
        Plot posterior means of the coefficients with ±2 posterior standard
        deviations, optionally against the true coefficients.

        Returns
        -------
        matplotlib.axes.Axes
        """
        df = self.summary()
        if ax is None:
            _, ax = plt.subplots()
        idx = np.arange(df.shape[0])
        ax.errorbar(idx, df['mean'], yerr=2 * df['sd'], fmt='o', markersize=3,
                    capsize=2, label='VBLR')
        if true_coef is not None:
            ax.scatter(idx, np.asarray(true_coef), marker='x', color='red', label='True')
        ax.axhline(0.0, color='grey', linewidth=0.5)
        ax.set_xlabel('Coefficient index')
        ax.set_ylabel(r'$E(w)$')
        ax.legend()
        return ax
