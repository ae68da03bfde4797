#!/usr/bin/env python
"""
Basic functionality tests for the document importances toolkit.

This module contains unit tests that run the full computation on a small
fitted ensemble: output shape, determinism, update policy equivalences and
rejection of invalid configurations.
"""

import unittest
import numpy as np
import sys
import os
from sklearn.datasets import make_regression
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler

# Add project root to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from docs_importance.core.base import (
    ConfigurationError,
    InconsistentStateError,
    ObliviousEnsemble,
    ObliviousTree,
    Pool,
    TreeStatistics,
    UpdateMethod,
)
from docs_importance.core.document_importance import DocumentImportancesEvaluator, compute_document_importances
from docs_importance.utils.boosting_utils import fit_oblivious_boosting


class TestBasicFunctionality(unittest.TestCase):
    """Test the full computation on a fitted model."""

    def setUp(self):
        """Set up test data and a fitted ensemble."""
        X, y = make_regression(n_samples=50, n_features=3, noise=5.0, random_state=42)
        self.x_train, self.x_valid, self.y_train, self.y_valid = train_test_split(
            X, y, test_size=0.2, random_state=42
        )

        scaler = StandardScaler()
        self.x_train = scaler.fit_transform(self.x_train)
        self.x_valid = scaler.transform(self.x_valid)
        mean, std = self.y_train.mean(), self.y_train.std()
        self.y_train = (self.y_train - mean) / std
        self.y_valid = (self.y_valid - mean) / std

        self.learning_rate = 0.1
        self.ensemble, self.tree_statistics = fit_oblivious_boosting(
            self.x_train, self.y_train, iterations=5, depth=2, learning_rate=self.learning_rate,
            leaves_estimation_iterations=2, border_count=8
        )
        self.pool = Pool(self.x_valid, self.y_valid)

    def evaluate(self, **kwargs):
        params = dict(learning_rate=self.learning_rate, leaves_estimation_iterations=2)
        params.update(kwargs)
        return compute_document_importances(self.ensemble, self.tree_statistics, self.pool, **params)

    def test_output_shape(self):
        """Rows are training documents, columns are scored documents, for every policy."""
        for update_method in ['AllPoints', 'TopKLeaves:top=2', 'SinglePoint']:
            with self.subTest(update_method=update_method):
                importances = self.evaluate(update_method=update_method)
                self.assertEqual(importances.shape, (len(self.x_train), len(self.x_valid)))
                self.assertTrue(np.all(np.isfinite(importances)))

    def test_scored_pool_size_is_independent(self):
        pool = Pool(self.x_train[:7], self.y_train[:7])
        importances = compute_document_importances(
            self.ensemble, self.tree_statistics, pool, learning_rate=self.learning_rate,
            update_method='TopKLeaves:top=3'
        )
        self.assertEqual(importances.shape, (len(self.x_train), 7))

    def test_determinism_across_thread_counts(self):
        for update_method in ['AllPoints', 'TopKLeaves:top=2']:
            with self.subTest(update_method=update_method):
                single = self.evaluate(update_method=update_method, thread_count=1)
                repeated = self.evaluate(update_method=update_method, thread_count=1)
                multi = self.evaluate(update_method=update_method, thread_count=4)
                np.testing.assert_array_equal(single, repeated)
                np.testing.assert_array_equal(single, multi)

    def test_top_k_of_every_leaf_equals_all_points(self):
        all_points = self.evaluate(update_method='AllPoints')
        top_k = self.evaluate(update_method=UpdateMethod('TopKLeaves', self.ensemble.max_leaf_count))
        np.testing.assert_array_equal(top_k, all_points)

    def test_importances_are_not_trivial(self):
        importances = self.evaluate(update_method='AllPoints')
        self.assertGreater(np.abs(importances).max(), 0)


class TestConfiguration(unittest.TestCase):
    """Test handling of invalid configurations and inconsistent inputs."""

    def setUp(self):
        X, y = make_regression(n_samples=20, n_features=2, random_state=0)
        self.ensemble, self.tree_statistics = fit_oblivious_boosting(
            X, y / y.std(), iterations=2, depth=2, border_count=4
        )
        self.pool = Pool(X, y)

    def test_update_method_parsing(self):
        self.assertEqual(UpdateMethod.parse('AllPoints'), UpdateMethod('AllPoints'))
        self.assertEqual(UpdateMethod.parse('TopKLeaves:top=3'), UpdateMethod('TopKLeaves', 3))
        self.assertEqual(UpdateMethod.parse('SinglePoint').update_type, 'SinglePoint')
        for description in ['Unknown', 'TopKLeaves', 'TopKLeaves:top=0', 'TopKLeaves:size=2',
                            'TopKLeaves:top=x', 'AllPoints:top=2']:
            with self.subTest(description=description):
                with self.assertRaises(ConfigurationError):
                    UpdateMethod.parse(description)

    def test_invalid_parameters(self):
        invalid = [
            {'update_method': 'TopKLeaves:top=5'},
            {'learning_rate': 0},
            {'learning_rate': -0.1},
            {'thread_count': 0},
            {'thread_count': 2.0},
            {'thread_count': True},
            {'loss_function': 'Unknown'},
            {'leaf_estimation_method': 'Exact'},
            {'leaves_estimation_iterations': 0},
        ]
        for kwargs in invalid:
            with self.subTest(**kwargs):
                with self.assertRaises(ConfigurationError):
                    DocumentImportancesEvaluator(self.ensemble, self.tree_statistics, **kwargs)

    def test_inconsistent_statistics(self):
        with self.assertRaises(InconsistentStateError):
            DocumentImportancesEvaluator(self.ensemble, self.tree_statistics[:1])

        stats = self.tree_statistics[0]
        truncated = TreeStatistics(
            stats.leaf_count, stats.leaf_indices[:-1], stats.formula_numerator_multiplier[:, :-1],
            stats.formula_numerator_adding[:, :-1], stats.formula_denominators
        )
        with self.assertRaises(InconsistentStateError):
            DocumentImportancesEvaluator(self.ensemble, [truncated] + self.tree_statistics[1:])

        with self.assertRaises(InconsistentStateError):
            DocumentImportancesEvaluator(self.ensemble, self.tree_statistics, leaves_estimation_iterations=2)

    def test_leaves_doc_id_disagreeing_with_leaf_indices(self):
        stats = self.tree_statistics[0]
        swapped = TreeStatistics(
            stats.leaf_count, stats.leaf_indices, stats.formula_numerator_multiplier,
            stats.formula_numerator_adding, stats.formula_denominators,
            leaves_doc_id=stats.leaves_doc_id[::-1]
        )
        with self.assertRaises(InconsistentStateError):
            DocumentImportancesEvaluator(self.ensemble, [swapped] + self.tree_statistics[1:])

    def test_document_listed_twice_in_a_leaf(self):
        stats = TreeStatistics(
            2, [0, 0, 1], np.ones((1, 3)), np.ones((1, 3)), np.ones((1, 2)), leaves_doc_id=[[0, 0], [2]]
        )
        with self.assertRaises(InconsistentStateError):
            stats.validate(3, 1)

        ensemble = ObliviousEnsemble(
            [ObliviousTree([(0, 0)], [[0.0, 0.0]]), ObliviousTree([(1, 0)], [[0.0, 0.0]])],
            borders=[[0.5], [0.5]]
        )
        tree_statistics = [TreeStatistics(2, [0, 0, 1], np.ones((1, 3)), np.ones((1, 3)), np.ones((1, 2))), stats]
        with self.assertRaises(InconsistentStateError):
            DocumentImportancesEvaluator(ensemble, tree_statistics)

    def test_pool_without_features(self):
        evaluator = DocumentImportancesEvaluator(self.ensemble, self.tree_statistics)
        with self.assertRaises(InconsistentStateError):
            evaluator.get_document_importances(Pool(np.zeros((3, 1)), np.zeros(3)))

    def test_pool_length_mismatch(self):
        with self.assertRaises(InconsistentStateError):
            Pool(np.zeros((3, 2)), np.zeros(2))


if __name__ == "__main__":
    unittest.main(verbosity=2)
