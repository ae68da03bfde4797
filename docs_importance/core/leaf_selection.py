#!/usr/bin/env python
"""
Leaf update selection: leaves whose value is re-fitted at a leaf-estimation iteration.
"""

import numpy as np

from .base import ALL_POINTS, TOP_K_LEAVES


def get_leaf_ids_to_update(tree_statistics, jacobian, update_method):
    """
    Args:
        tree_statistics: TreeStatistics of the tree being updated
        jacobian: (train_doc_count,) current prediction shift of training documents
        update_method: UpdateMethod

    Returns:
        int64 array of leaf ids; empty for SinglePoint
    """
    leaf_count = tree_statistics.leaf_count

    if update_method.update_type == ALL_POINTS:
        return np.arange(leaf_count)

    if update_method.update_type == TOP_K_LEAVES:
        leaf_jacobians = np.bincount(
            tree_statistics.leaf_indices, weights=np.abs(jacobian), minlength=leaf_count
        )
        # stable: equal aggregates keep ascending leaf id order
        ordered_leaf_indices = np.argsort(-leaf_jacobians, kind='stable')
        return ordered_leaf_indices[:min(update_method.top_size, leaf_count)]

    return np.empty(0, dtype=np.int64)
