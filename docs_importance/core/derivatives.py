#!/usr/bin/env python
"""
Final approxes of a pool and the loss first derivative at them.
"""

import numpy as np

from ..utils.loss_utils import evaluate_derivatives


def compute_final_approxes(ensemble, leaf_indices, baseline):
    """
    Sum of every tree's per-iteration leaf values at each document's leaf, on top of the baseline.
    """
    final_approxes = np.array(baseline, dtype=float)
    for tree, tree_leaf_indices in zip(ensemble.trees, leaf_indices):
        for leaf_values in tree.leaf_values:
            final_approxes += leaf_values[tree_leaf_indices]
    return final_approxes


def compute_final_first_derivatives(ensemble, leaf_indices, pool, loss_function='RMSE',
                                    leaf_estimation_method='Gradient'):
    """
    First derivative of the loss at the final approx of every pool document.

    Computed once per run: it does not depend on the removed training document.
    """
    final_approxes = compute_final_approxes(ensemble, leaf_indices, pool.baseline)
    return evaluate_derivatives(
        loss_function, leaf_estimation_method, final_approxes, pool.target, pool.weights
    )
