#!/usr/bin/env python
"""
Document importances of training documents for the predictions of a pool.

Importances[i][j] estimates how much removing training document i from leaf
fitting changes the loss derivative-weighted prediction of pool document j:

    Importances[i][j] = der1(final_approx[j]) * sum_{tree, it} dLeafValue[tree][it][leaf(j)] / dw_i

The computation has two parallel phases separated by a barrier:
- leaf indices of the pool, parallel over trees
- one leaf derivative recurrence per training document, parallel over documents
"""

import numpy as np
from multiprocessing.pool import ThreadPool
from tqdm import tqdm

from .base import (
    ConfigurationError,
    InconsistentStateError,
    UpdateMethod,
    validate_config,
)
from .derivatives import compute_final_first_derivatives
from .leaf_indices import compute_leaf_indices
from .leaves_derivatives import compute_leaves_derivatives
from ..utils.loss_utils import LEAF_ESTIMATION_METHODS, LOSS_DERIVATIVES


def get_document_importances_for_one_train_doc(leaf_derivatives, leaf_indices, final_first_derivatives):
    """
    Importance row of one removed training document.

    Args:
        leaf_derivatives: per tree, (iterations, leaf_count) leaf value corrections
        leaf_indices: per tree, (doc_count,) leaf ids of the scored pool
        final_first_derivatives: (doc_count,) loss first derivatives of the scored pool

    Returns:
        (doc_count,) importances
    """
    predicted_derivatives = np.zeros(len(final_first_derivatives))
    for tree_leaf_derivatives, tree_leaf_indices in zip(leaf_derivatives, leaf_indices):
        for iteration_leaf_derivatives in tree_leaf_derivatives:
            predicted_derivatives += iteration_leaf_derivatives[tree_leaf_indices]
    return final_first_derivatives * predicted_derivatives


class DocumentImportancesEvaluator:
    """
    Evaluates document importances for a trained ensemble and its training statistics.

    Args:
        ensemble: ObliviousEnsemble
        tree_statistics: list of TreeStatistics, one per tree, collected on the training pool
        loss_function: loss the ensemble was trained with
        leaf_estimation_method: 'Gradient' or 'Newton'
        learning_rate: learning rate used at training time
        leaves_estimation_iterations: leaf-estimation iterations per tree (taken from the
            statistics when None)
        update_method: UpdateMethod or its string form
        thread_count: worker threads for both parallel phases
        verbose: print progress
    """

    def __init__(self, ensemble, tree_statistics, loss_function='RMSE', leaf_estimation_method='Gradient',
                 learning_rate=0.03, leaves_estimation_iterations=None, update_method='AllPoints',
                 thread_count=1, verbose=False):
        self.ensemble = ensemble
        self.tree_statistics = list(tree_statistics)
        self.update_method = UpdateMethod.parse(update_method)
        self.learning_rate = learning_rate
        self.thread_count = thread_count
        self.verbose = verbose

        if loss_function not in LOSS_DERIVATIVES:
            raise ConfigurationError(f"Unknown loss function: {loss_function}")
        if leaf_estimation_method not in LEAF_ESTIMATION_METHODS:
            raise ConfigurationError(f"Unknown leaf estimation method: {leaf_estimation_method}")
        self.loss_function = loss_function
        self.leaf_estimation_method = leaf_estimation_method

        validate_config(learning_rate, thread_count, self.update_method, ensemble.max_leaf_count)

        if leaves_estimation_iterations is None:
            leaves_estimation_iterations = (
                self.tree_statistics[0].leaves_estimation_iterations if self.tree_statistics else 1
            )
        if leaves_estimation_iterations < 1:
            raise ConfigurationError(
                f"Leaves estimation iterations should be positive, got {leaves_estimation_iterations}"
            )
        self.leaves_estimation_iterations = leaves_estimation_iterations
        self._check_consistency()

    @property
    def tree_count(self):
        return self.ensemble.tree_count

    @property
    def doc_count(self):
        return self.tree_statistics[0].doc_count if self.tree_statistics else 0

    def _check_consistency(self):
        self.ensemble.validate()
        if len(self.tree_statistics) != self.tree_count:
            raise InconsistentStateError(
                f"{len(self.tree_statistics)} tree statistics for {self.tree_count} trees"
            )
        for tree_id, (tree, stats) in enumerate(zip(self.ensemble.trees, self.tree_statistics)):
            if stats.leaf_count != tree.leaf_count:
                raise InconsistentStateError(
                    f"Tree {tree_id}: statistics have {stats.leaf_count} leaves, tree has {tree.leaf_count}"
                )
            if tree.leaves_estimation_iterations != self.leaves_estimation_iterations:
                raise InconsistentStateError(
                    f"Tree {tree_id}: {tree.leaves_estimation_iterations} leaf value iterations, "
                    f"expected {self.leaves_estimation_iterations}"
                )
            stats.validate(self.doc_count, self.leaves_estimation_iterations, tree_id)

    def get_document_importances(self, pool):
        """
        Importances of every training document for every document of `pool`.

        Returns:
            (train_doc_count, pool.doc_count) array
        """
        if self.verbose:
            print(f"Document importances: {self.doc_count} train docs, {pool.doc_count} scored docs, "
                  f"{self.tree_count} trees, {self.update_method}, {self.thread_count} threads")

        leaf_indices = compute_leaf_indices(self.ensemble, pool.features, self.thread_count)
        final_first_derivatives = compute_final_first_derivatives(
            self.ensemble, leaf_indices, pool, self.loss_function, self.leaf_estimation_method
        )
        return self.get_document_importances_from_leaf_indices(leaf_indices, final_first_derivatives)

    def get_document_importances_from_leaf_indices(self, leaf_indices, final_first_derivatives):
        """
        Importances for a pool whose leaf indices and final derivatives are already known.
        """
        final_first_derivatives = np.asarray(final_first_derivatives, dtype=float)
        if len(leaf_indices) != self.tree_count:
            raise InconsistentStateError(f"{len(leaf_indices)} leaf index arrays for {self.tree_count} trees")
        for tree_id, (tree, tree_leaf_indices) in enumerate(zip(self.ensemble.trees, leaf_indices)):
            if len(tree_leaf_indices) != len(final_first_derivatives):
                raise InconsistentStateError(
                    f"Tree {tree_id}: {len(tree_leaf_indices)} leaf indices for "
                    f"{len(final_first_derivatives)} scored documents"
                )
            if len(tree_leaf_indices) and (np.min(tree_leaf_indices) < 0
                                           or np.max(tree_leaf_indices) >= tree.leaf_count):
                raise InconsistentStateError(f"Tree {tree_id}: scored leaf index out of [0, {tree.leaf_count})")

        document_importances = np.zeros((self.doc_count, len(final_first_derivatives)))

        def compute_row(doc_id):
            # the derivative of leaf values with respect to train doc weight
            leaf_derivatives = compute_leaves_derivatives(
                doc_id, self.tree_statistics, self.learning_rate, self.update_method
            )
            document_importances[doc_id] = get_document_importances_for_one_train_doc(
                leaf_derivatives, leaf_indices, final_first_derivatives
            )
            return doc_id

        with ThreadPool(processes=self.thread_count) as workers:
            for _ in tqdm(workers.imap_unordered(compute_row, range(self.doc_count)),
                          total=self.doc_count, desc="Computing document importances",
                          disable=not self.verbose):
                pass

        if self.verbose:
            print(f"Document importances computed: matrix {document_importances.shape}")
        return document_importances


def compute_document_importances(ensemble, tree_statistics, pool, **kwargs):
    """Shortcut for DocumentImportancesEvaluator(...).get_document_importances(pool)."""
    return DocumentImportancesEvaluator(ensemble, tree_statistics, **kwargs).get_document_importances(pool)
