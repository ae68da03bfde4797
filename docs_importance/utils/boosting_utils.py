"""
Reference oblivious-tree gradient boosting.

Fits small ensembles whose leaf-fitting coefficients are recorded as TreeStatistics,
so document importances can be computed for them. With fixed `tree_splits` and a
per-document weight override it also retrains the same structures, which is what a
leave-one-out comparison needs.

Leaf values of iteration `it` are

    v[leaf] = learning_rate * sum_{d in leaf} der1[d] / (sum_{d in leaf} h[d] + l2_leaf_reg)

with h = weight for Gradient and h = -der2 for Newton. The recorded coefficients are
the first-order change of this expression when one document weight goes to zero:
adding[d] = der1[d] - h[d] * v[leaf(d)] / learning_rate, multiplier[d] = -der2[d],
denominator[leaf] = sum h + l2_leaf_reg (third derivatives are ignored for Newton).
"""

import numpy as np
from tqdm import tqdm

from ..core.base import ObliviousEnsemble, ObliviousTree, TreeStatistics
from ..core.leaf_indices import calc_leaf_indices
from .loss_utils import evaluate_derivatives
from .quantization_utils import binarize_features, compute_borders


def _leaf_score(leaf_indices, der1, hessians, leaf_count, l2_leaf_reg):
    numerators = np.bincount(leaf_indices, weights=der1, minlength=leaf_count)
    denominators = np.bincount(leaf_indices, weights=hessians, minlength=leaf_count) + l2_leaf_reg
    return np.sum(numerators ** 2 / denominators)


def select_tree_splits(binarized_features, borders, der1, hessians, depth, l2_leaf_reg):
    """
    Greedy depth-wise split search: every level takes the (feature, border) pair
    that maximises sum over leaves of (sum der1)^2 / (sum h + l2).
    """
    candidates = [(feature, border)
                  for feature, feature_borders in enumerate(borders)
                  for border in range(len(feature_borders))]
    if not candidates:
        raise ValueError("No feature has borders, nothing to split on")

    splits = []
    leaf_indices = np.zeros(binarized_features.shape[1], dtype=np.int64)
    for level in range(depth):
        leaf_count = 1 << (level + 1)
        scores = [
            _leaf_score(leaf_indices | ((binarized_features[feature] > border).astype(np.int64) << level),
                        der1, hessians, leaf_count, l2_leaf_reg)
            for feature, border in candidates
        ]
        feature, border = candidates[int(np.argmax(scores))]
        splits.append((feature, border))
        leaf_indices |= (binarized_features[feature] > border).astype(np.int64) << level
    return splits


def fit_oblivious_boosting(features, target, weights=None, loss_function='RMSE',
                           leaf_estimation_method='Gradient', iterations=20, depth=3,
                           learning_rate=0.1, leaves_estimation_iterations=1, l2_leaf_reg=3.0,
                           border_count=32, borders=None, tree_splits=None, baseline=None,
                           verbose=False):
    """
    Fit an oblivious-tree ensemble and collect its leaf-fitting statistics.

    Args:
        features, target: training data
        weights: document weights (ones by default); a zero weight removes a document
        loss_function: see loss_utils.LOSS_DERIVATIVES
        leaf_estimation_method: 'Gradient' or 'Newton'
        iterations: number of trees
        depth: tree depth
        learning_rate: shrinkage applied to every leaf step
        leaves_estimation_iterations: leaf steps per tree
        l2_leaf_reg: added to every leaf denominator
        border_count: borders per feature when `borders` is not given
        borders: float feature borders to reuse
        tree_splits: per tree split lists to reuse instead of searching
        baseline: starting approxes
        verbose: show a progress bar

    Returns:
        ensemble: ObliviousEnsemble
        tree_statistics: list of TreeStatistics, one per tree
    """
    features = np.atleast_2d(np.asarray(features, dtype=float))
    target = np.asarray(target, dtype=float)
    doc_count = features.shape[0]
    weights = np.ones(doc_count) if weights is None else np.asarray(weights, dtype=float)
    approx = np.zeros(doc_count) if baseline is None else np.array(baseline, dtype=float)
    if tree_splits is not None:
        iterations = len(tree_splits)
    if not learning_rate > 0:
        raise ValueError(f"Learning rate should be positive, got {learning_rate}")

    if borders is None:
        borders = compute_borders(features, border_count)
    binarized_features = binarize_features(borders, features)
    use_newton = leaf_estimation_method == 'Newton'

    trees = []
    tree_statistics = []
    for tree_id in tqdm(range(iterations), desc="Fitting oblivious trees", disable=not verbose):
        der1, der2 = evaluate_derivatives(loss_function, leaf_estimation_method, approx, target,
                                          weights, need_second=True)
        hessians = -der2 if use_newton else weights
        if tree_splits is not None:
            splits = tree_splits[tree_id]
        else:
            splits = select_tree_splits(binarized_features, borders, der1, hessians, depth, l2_leaf_reg)
        leaf_count = 1 << len(splits)
        leaf_indices = calc_leaf_indices(binarized_features, splits)

        leaf_values = np.zeros((leaves_estimation_iterations, leaf_count))
        multipliers = np.zeros((leaves_estimation_iterations, doc_count))
        addings = np.zeros((leaves_estimation_iterations, doc_count))
        denominators = np.zeros((leaves_estimation_iterations, leaf_count))
        for it in range(leaves_estimation_iterations):
            if it > 0:
                der1, der2 = evaluate_derivatives(loss_function, leaf_estimation_method, approx, target,
                                                  weights, need_second=True)
                hessians = -der2 if use_newton else weights
            numerators = np.bincount(leaf_indices, weights=der1, minlength=leaf_count)
            denominators[it] = np.bincount(leaf_indices, weights=hessians, minlength=leaf_count) + l2_leaf_reg
            leaf_values[it] = learning_rate * numerators / denominators[it]
            addings[it] = der1 - hessians * leaf_values[it][leaf_indices] / learning_rate
            multipliers[it] = -der2
            approx += leaf_values[it][leaf_indices]

        trees.append(ObliviousTree(splits, leaf_values))
        tree_statistics.append(TreeStatistics(leaf_count, leaf_indices, multipliers, addings, denominators))

    return ObliviousEnsemble(trees, borders), tree_statistics
