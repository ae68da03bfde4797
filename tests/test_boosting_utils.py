#!/usr/bin/env python
"""
Tests for the reference oblivious boosting fitter and its recorded statistics.
"""

import unittest
import numpy as np
import sys
import os

# Add project root to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from docs_importance.core.base import Pool, UpdateMethod
from docs_importance.core.document_importance import compute_document_importances
from docs_importance.core.leaves_derivatives import compute_leaves_derivatives
from docs_importance.utils.boosting_utils import fit_oblivious_boosting


class TestObliviousBoosting(unittest.TestCase):
    """Test fitting and the statistics it records."""

    def setUp(self):
        rng = np.random.default_rng(7)
        self.X = rng.normal(size=(30, 3))
        self.y = self.X[:, 0] - 2 * self.X[:, 1] + rng.normal(scale=0.1, size=30)
        self.learning_rate = 0.1
        self.l2_leaf_reg = 3.0

    def test_statistics_are_consistent(self):
        ensemble, tree_statistics = fit_oblivious_boosting(
            self.X, self.y, iterations=3, depth=2, leaves_estimation_iterations=2, border_count=6
        )
        self.assertEqual(ensemble.tree_count, 3)
        ensemble.validate()
        for tree, stats in zip(ensemble.trees, tree_statistics):
            self.assertEqual(tree.leaf_count, 4)
            self.assertEqual(tree.leaf_values.shape, (2, 4))
            stats.validate(len(self.X), 2)

    def test_refit_with_fixed_structure_reproduces_model(self):
        ensemble, _ = fit_oblivious_boosting(self.X, self.y, iterations=3, depth=2)
        refit, _ = fit_oblivious_boosting(
            self.X, self.y, borders=ensemble.borders,
            tree_splits=[tree.splits for tree in ensemble.trees]
        )
        for tree, refit_tree in zip(ensemble.trees, refit.trees):
            self.assertEqual(tree.splits, refit_tree.splits)
            np.testing.assert_array_equal(tree.leaf_values, refit_tree.leaf_values)

    def test_single_tree_matches_leave_one_out_to_first_order(self):
        """
        For one RMSE Gradient step the exact leave-one-out change of the removed document's
        leaf equals the analytical one times (n_leaf + l2) / (n_leaf - 1 + l2).
        """
        params = dict(iterations=1, depth=2, learning_rate=self.learning_rate, l2_leaf_reg=self.l2_leaf_reg)
        ensemble, tree_statistics = fit_oblivious_boosting(self.X, self.y, **params)
        stats = tree_statistics[0]

        for removed_doc_id in [0, 5, 17]:
            with self.subTest(removed_doc=removed_doc_id):
                weights = np.ones(len(self.X))
                weights[removed_doc_id] = 0
                loo, _ = fit_oblivious_boosting(
                    self.X, self.y, weights=weights, borders=ensemble.borders,
                    tree_splits=[tree.splits for tree in ensemble.trees], **params
                )
                actual = loo.trees[0].leaf_values[0] - ensemble.trees[0].leaf_values[0]
                predicted = compute_leaves_derivatives(
                    removed_doc_id, tree_statistics, self.learning_rate, UpdateMethod()
                )[0][0]

                leaf = stats.leaf_indices[removed_doc_id]
                leaf_size = len(stats.leaves_doc_id[leaf])
                ratio = (leaf_size + self.l2_leaf_reg) / (leaf_size - 1 + self.l2_leaf_reg)
                self.assertAlmostEqual(predicted[leaf] * ratio, actual[leaf], places=10)
                other_leaves = np.arange(4) != leaf
                np.testing.assert_allclose(predicted[other_leaves], 0, atol=1e-15)
                np.testing.assert_allclose(actual[other_leaves], 0, atol=1e-12)

    def test_newton_logloss_importances_are_finite(self):
        labels = (self.y > 0).astype(float)
        ensemble, tree_statistics = fit_oblivious_boosting(
            self.X, labels, loss_function='Logloss', leaf_estimation_method='Newton',
            iterations=3, depth=2, leaves_estimation_iterations=2
        )
        importances = compute_document_importances(
            ensemble, tree_statistics, Pool(self.X[:5], labels[:5]), loss_function='Logloss',
            leaf_estimation_method='Newton', learning_rate=0.1, update_method='AllPoints', thread_count=2
        )
        self.assertEqual(importances.shape, (30, 5))
        self.assertTrue(np.all(np.isfinite(importances)))


if __name__ == "__main__":
    unittest.main(verbosity=2)
