#!/usr/bin/env python
"""
Leaf index resolution: which leaf of every tree each pool document falls into.
"""

import numpy as np
from multiprocessing.pool import ThreadPool

from .base import InconsistentStateError
from ..utils.quantization_utils import binarize_features


def calc_leaf_indices(binarized_features, splits):
    """Level d of an oblivious tree sets bit d when the bin is above the split border."""
    leaf_indices = np.zeros(binarized_features.shape[1], dtype=np.int64)
    for depth, (feature, border) in enumerate(splits):
        leaf_indices |= (binarized_features[feature] > border).astype(np.int64) << depth
    return leaf_indices


def build_indices_for_bin_tree(ensemble, binarized_features, tree_id):
    """
    Leaf ids of one tree for every document of a binarized pool.

    Args:
        ensemble: ObliviousEnsemble
        binarized_features: (feature_count, doc_count) uint8 bins
        tree_id: tree to evaluate

    Returns:
        (doc_count,) int64 leaf ids in [0, 2 ** depth)
    """
    return calc_leaf_indices(binarized_features, ensemble.trees[tree_id].splits)


def compute_leaf_indices(ensemble, features, thread_count=1):
    """
    Resolve leaf ids of every tree for a pool, in parallel over trees.

    Args:
        ensemble: ObliviousEnsemble
        features: (doc_count, feature_count) raw features
        thread_count: worker threads

    Returns:
        leaf_indices: list of (doc_count,) arrays, one per tree
    """
    try:
        binarized_features = binarize_features(ensemble.borders, features)
    except ValueError as e:
        raise InconsistentStateError(str(e))

    with ThreadPool(processes=thread_count) as pool:
        leaf_indices = pool.map(
            lambda tree_id: build_indices_for_bin_tree(ensemble, binarized_features, tree_id),
            range(ensemble.tree_count)
        )
    return leaf_indices
