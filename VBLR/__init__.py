# =============================================================================
# Copyright 2025. Somjit Roy and Pritam Dey.
# This program implements required initializations for variational Bayesian
# linear regression with and without automatic relevance determination
# (following Drugowitsch, 2013 <https://arxiv.org/abs/1310.5438>).
#
# Authors:
#   Somjit Roy <sroy_123@tamu.edu> and Pritam Dey <pritam.dey@tamu.edu>
# =============================================================================

from .VBLR_classes import VBLR_linear, validate_prior_params_vblr
from .vblr import VBLR_fit, vblr_update, vblr_elbo
from .results import VBLRResult
from .utils import InvalidInput, SingularSystem, add_intercept
from .simulate import simulate_linear_data, simulate_sparse_data
