#!/usr/bin/env python
"""
Derivatives of leaf values with respect to the weight of one removed training document.

The leaf-fitting arithmetic of every tree and every leaf-estimation iteration is
replayed in fit order. Each step corrects the selected leaves by

    -learning_rate / denominator[leaf] * (sum_{d in leaf} multiplier[d] * jacobian[d]
                                          + adding[removed] if leaf holds the removed doc)

and then adds the corrections to the jacobian of the documents in those leaves,
so later trees see the prediction shift accumulated by earlier ones.
"""

import numpy as np

from .leaf_selection import get_leaf_ids_to_update


class LeavesDerivativesAccumulator:
    """
    State of the recurrence for one removed document.

    Attributes:
        jacobian: (train_doc_count,) accumulated prediction shift of training documents
        leaf_derivatives: per tree, (iterations, leaf_count) leaf value corrections
    """

    def __init__(self, removed_doc_id, tree_statistics, learning_rate, update_method):
        self.removed_doc_id = removed_doc_id
        self.tree_statistics = tree_statistics
        self.learning_rate = learning_rate
        self.update_method = update_method
        doc_count = tree_statistics[0].doc_count if tree_statistics else 0
        self.jacobian = np.zeros(doc_count)
        self.leaf_derivatives = [
            np.zeros((stats.leaves_estimation_iterations, stats.leaf_count)) for stats in tree_statistics
        ]

    def update_leaves_derivatives_for_tree(self, leaf_ids_to_update, tree_id, iteration):
        """Fill leaf_derivatives[tree_id][iteration] from the current jacobian."""
        stats = self.tree_statistics[tree_id]
        multiplier = stats.formula_numerator_multiplier[iteration]
        adding = stats.formula_numerator_adding[iteration]
        denominators = stats.formula_denominators[iteration]
        removed_doc_id = self.removed_doc_id
        removed_doc_leaf_id = stats.leaf_indices[removed_doc_id]
        jacobian = self.jacobian

        leaf_derivatives = self.leaf_derivatives[tree_id][iteration]
        leaf_derivatives.fill(0)
        is_removed_doc_updated = False
        for leaf_id in leaf_ids_to_update:
            docs = stats.leaves_doc_id[leaf_id]
            value = np.sum(multiplier[docs] * jacobian[docs])
            if leaf_id == removed_doc_leaf_id:
                value += adding[removed_doc_id]
                is_removed_doc_updated = True
            leaf_derivatives[leaf_id] = value * (-self.learning_rate / denominators[leaf_id])

        if not is_removed_doc_updated:
            value = jacobian[removed_doc_id] * multiplier[removed_doc_id] + adding[removed_doc_id]
            leaf_derivatives[removed_doc_leaf_id] = value * (-self.learning_rate / denominators[removed_doc_leaf_id])
        return is_removed_doc_updated

    def update_jacobian(self, leaf_ids_to_update, tree_id, iteration, is_removed_doc_updated):
        stats = self.tree_statistics[tree_id]
        leaf_derivatives = self.leaf_derivatives[tree_id][iteration]
        for leaf_id in leaf_ids_to_update:
            self.jacobian[stats.leaves_doc_id[leaf_id]] += leaf_derivatives[leaf_id]
        if not is_removed_doc_updated:
            self.jacobian[self.removed_doc_id] += leaf_derivatives[stats.leaf_indices[self.removed_doc_id]]

    def run(self):
        """Process all trees and iterations in fit order; returns leaf_derivatives."""
        for tree_id, stats in enumerate(self.tree_statistics):
            for iteration in range(stats.leaves_estimation_iterations):
                leaf_ids_to_update = get_leaf_ids_to_update(stats, self.jacobian, self.update_method)
                is_removed_doc_updated = self.update_leaves_derivatives_for_tree(
                    leaf_ids_to_update, tree_id, iteration
                )
                self.update_jacobian(leaf_ids_to_update, tree_id, iteration, is_removed_doc_updated)
        return self.leaf_derivatives


def compute_leaves_derivatives(removed_doc_id, tree_statistics, learning_rate, update_method):
    """
    Leaf value corrections of every tree and iteration caused by removing one training document.

    Returns:
        list (per tree) of (iterations, leaf_count) arrays
    """
    accumulator = LeavesDerivativesAccumulator(removed_doc_id, tree_statistics, learning_rate, update_method)
    return accumulator.run()
