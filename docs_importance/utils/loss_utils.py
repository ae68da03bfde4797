"""
Loss derivatives with respect to the approx.

Derivatives are taken of the per-document log-likelihood (the negated loss), so
for RMSE the first derivative is `target - approx` and the second one is -1.
Both are multiplied by the document weights.
"""

import numpy as np

LEAF_ESTIMATION_METHODS = ('Gradient', 'Newton')


def _sigmoid(x):
    return 0.5 * (1 + np.tanh(0.5 * x))


def _rmse(approxes, target):
    return target - approxes, -np.ones_like(approxes)


def _logloss(approxes, target):
    p = _sigmoid(approxes)
    return target - p, -p * (1 - p)


def _poisson(approxes, target):
    expected = np.exp(approxes)
    return target - expected, -expected


def _mae(approxes, target):
    return np.sign(target - approxes), np.zeros_like(approxes)


LOSS_DERIVATIVES = {
    'RMSE': _rmse,
    'Logloss': _logloss,
    'CrossEntropy': _logloss,
    'Poisson': _poisson,
    'MAE': _mae,
}


def check_loss_params(loss_function, leaf_estimation_method):
    if loss_function not in LOSS_DERIVATIVES:
        raise ValueError(f"Unknown loss function: {loss_function} (expected one of {', '.join(LOSS_DERIVATIVES)})")
    if leaf_estimation_method not in LEAF_ESTIMATION_METHODS:
        raise ValueError(f"Unknown leaf estimation method: {leaf_estimation_method}")


def evaluate_derivatives(loss_function, leaf_estimation_method, approxes, target,
                         weights=None, need_second=False):
    """
    Evaluate weighted loss derivatives at the given approxes.

    Args:
        loss_function: 'RMSE', 'Logloss', 'CrossEntropy', 'Poisson' or 'MAE'
        leaf_estimation_method: 'Gradient' or 'Newton'
        approxes: (doc_count,) current predictions in raw (link) space
        target: (doc_count,) labels; probabilities are accepted by CrossEntropy
        weights: optional (doc_count,) document weights
        need_second: also return the second derivative

    Returns:
        der1, or (der1, der2) if need_second
    """
    check_loss_params(loss_function, leaf_estimation_method)
    approxes = np.asarray(approxes, dtype=float)
    target = np.asarray(target, dtype=float)
    if approxes.shape != target.shape:
        raise ValueError(f"Approxes shape {approxes.shape} does not match target shape {target.shape}")
    der1, der2 = LOSS_DERIVATIVES[loss_function](approxes, target)
    if weights is not None:
        weights = np.asarray(weights, dtype=float)
        der1 = der1 * weights
        der2 = der2 * weights
    if need_second:
        return der1, der2
    return der1
