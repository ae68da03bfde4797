#!/usr/bin/env python
"""
Base data structures for document importance computation.

This module contains the containers shared by all stages of the computation:
- ObliviousTree / ObliviousEnsemble: the trained model (splits and per-iteration leaf values)
- TreeStatistics: per-tree coefficients of the original leaf-fitting arithmetic
- Pool: documents being explained (features, target, weights, baseline)
- UpdateMethod: which leaves are re-fitted at every leaf-estimation iteration
- Error types raised on invalid configuration or inconsistent inputs
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple


class ConfigurationError(ValueError):
    """Raised when a computation parameter is invalid."""


class InconsistentStateError(ValueError):
    """Raised when model, statistics and pool do not agree with each other."""


ALL_POINTS = 'AllPoints'
TOP_K_LEAVES = 'TopKLeaves'
SINGLE_POINT = 'SinglePoint'

UPDATE_TYPES = (SINGLE_POINT, TOP_K_LEAVES, ALL_POINTS)


class UpdateMethod:
    """
    Leaf update policy.

    AllPoints re-fits every leaf, TopKLeaves only the `top_size` leaves with the
    largest accumulated |jacobian|, SinglePoint none of them (only the removed
    document's own leaf is updated).
    """

    def __init__(self, update_type=ALL_POINTS, top_size: Optional[int] = None):
        if update_type not in UPDATE_TYPES:
            raise ConfigurationError(
                f"Unknown update method: {update_type} (expected one of {', '.join(UPDATE_TYPES)})"
            )
        if update_type == TOP_K_LEAVES:
            if top_size is None:
                raise ConfigurationError("TopKLeaves update method requires top size")
            if int(top_size) != top_size or top_size < 1:
                raise ConfigurationError(f"Top size should be a positive integer, got {top_size}")
            top_size = int(top_size)
        elif top_size is not None:
            raise ConfigurationError(f"Top size is only supported by {TOP_K_LEAVES}, got {update_type}")
        self.update_type = update_type
        self.top_size = top_size

    @classmethod
    def parse(cls, description):
        """
        Parse 'AllPoints', 'SinglePoint' or 'TopKLeaves:top=<K>'.
        """
        if isinstance(description, UpdateMethod):
            return description
        name, _, params = str(description).partition(':')
        top_size = None
        if params:
            key, _, value = params.partition('=')
            if key != 'top' or not value:
                raise ConfigurationError(f"Unknown update method parameter: {params}")
            try:
                top_size = int(value)
            except ValueError:
                raise ConfigurationError(f"Top size should be an integer, got {value}")
        return cls(name, top_size)

    def __eq__(self, other):
        if not isinstance(other, UpdateMethod):
            return NotImplemented
        return (self.update_type, self.top_size) == (other.update_type, other.top_size)

    def __repr__(self):
        if self.update_type == TOP_K_LEAVES:
            return f"UpdateMethod('{self.update_type}:top={self.top_size}')"
        return f"UpdateMethod('{self.update_type}')"


class ObliviousTree:
    """
    Oblivious (symmetric) tree: the same split is applied to every node of a level.

    Args:
        splits: list of (feature_index, border_index), one per depth level; level d
            sets bit d of the leaf index
        leaf_values: array (leaves_estimation_iterations, 2 ** depth) of fitted values,
            learning rate already applied
    """

    def __init__(self, splits: Sequence[Tuple[int, int]], leaf_values):
        self.splits = [(int(feature), int(border)) for feature, border in splits]
        self.leaf_values = np.atleast_2d(np.asarray(leaf_values, dtype=float))

    @property
    def depth(self) -> int:
        return len(self.splits)

    @property
    def leaf_count(self) -> int:
        return 1 << self.depth

    @property
    def leaves_estimation_iterations(self) -> int:
        return self.leaf_values.shape[0]


class ObliviousEnsemble:
    """
    Ordered sequence of oblivious trees plus the float feature borders used to
    binarize raw feature values.
    """

    def __init__(self, trees: List[ObliviousTree], borders: Sequence[Sequence[float]]):
        self.trees = list(trees)
        self.borders = [np.asarray(b, dtype=float) for b in borders]

    @property
    def tree_count(self) -> int:
        return len(self.trees)

    @property
    def max_leaf_count(self) -> int:
        return max((tree.leaf_count for tree in self.trees), default=1)

    @property
    def feature_count(self) -> int:
        return len(self.borders)

    def validate(self):
        for tree_id, tree in enumerate(self.trees):
            if tree.leaf_values.shape[1] != tree.leaf_count:
                raise InconsistentStateError(
                    f"Tree {tree_id}: {tree.leaf_values.shape[1]} leaf values for {tree.leaf_count} leaves"
                )
            for feature, border in tree.splits:
                if not 0 <= feature < self.feature_count:
                    raise InconsistentStateError(f"Tree {tree_id}: split on unknown feature {feature}")
                if not 0 <= border < len(self.borders[feature]):
                    raise InconsistentStateError(
                        f"Tree {tree_id}: border {border} out of range for feature {feature}"
                    )


class TreeStatistics:
    """
    Coefficients of the leaf-fitting arithmetic of one tree, collected at training time.

    For every leaf-estimation iteration the fitted leaf value changes, to first order,
    by -learning_rate / denominators[leaf] * (adding[removed] + sum multiplier[d] * jacobian[d])
    when one training document is removed.
    """

    def __init__(self, leaf_count, leaf_indices, formula_numerator_multiplier,
                 formula_numerator_adding, formula_denominators, leaves_doc_id=None):
        self.leaf_count = int(leaf_count)
        self.leaf_indices = np.asarray(leaf_indices, dtype=np.int64)
        self.formula_numerator_multiplier = np.atleast_2d(np.asarray(formula_numerator_multiplier, dtype=float))
        self.formula_numerator_adding = np.atleast_2d(np.asarray(formula_numerator_adding, dtype=float))
        self.formula_denominators = np.atleast_2d(np.asarray(formula_denominators, dtype=float))
        if leaves_doc_id is None:
            leaves_doc_id = build_leaves_doc_id(self.leaf_indices, self.leaf_count)
        self.leaves_doc_id = [np.asarray(docs, dtype=np.int64) for docs in leaves_doc_id]

    @property
    def doc_count(self) -> int:
        return len(self.leaf_indices)

    @property
    def leaves_estimation_iterations(self) -> int:
        return self.formula_denominators.shape[0]

    def validate(self, doc_count, leaves_estimation_iterations, tree_id=0):
        prefix = f"Tree {tree_id} statistics"
        if self.doc_count != doc_count:
            raise InconsistentStateError(f"{prefix}: {self.doc_count} leaf indices for {doc_count} documents")
        expected = {
            'formula_numerator_multiplier': (leaves_estimation_iterations, doc_count),
            'formula_numerator_adding': (leaves_estimation_iterations, doc_count),
            'formula_denominators': (leaves_estimation_iterations, self.leaf_count),
        }
        for name, shape in expected.items():
            if getattr(self, name).shape != shape:
                raise InconsistentStateError(
                    f"{prefix}: {name} has shape {getattr(self, name).shape}, expected {shape}"
                )
        if doc_count and (self.leaf_indices.min() < 0 or self.leaf_indices.max() >= self.leaf_count):
            raise InconsistentStateError(f"{prefix}: leaf index out of [0, {self.leaf_count})")
        if len(self.leaves_doc_id) != self.leaf_count:
            raise InconsistentStateError(
                f"{prefix}: {len(self.leaves_doc_id)} document sets for {self.leaf_count} leaves"
            )
        for leaf_id, docs in enumerate(self.leaves_doc_id):
            if len(docs) and (docs.min() < 0 or docs.max() >= doc_count
                              or np.any(self.leaf_indices[docs] != leaf_id)):
                raise InconsistentStateError(f"{prefix}: leaf {leaf_id} document set disagrees with leaf indices")
        # every document listed exactly once
        listed = np.sort(np.concatenate(self.leaves_doc_id))
        if not np.array_equal(listed, np.arange(doc_count)):
            raise InconsistentStateError(
                f"{prefix}: leaves list {len(listed)} document ids ({len(np.unique(listed))} distinct), "
                f"expected each of {doc_count} documents once"
            )


def build_leaves_doc_id(leaf_indices, leaf_count):
    """Inverse of leaf_indices: sorted document ids of every leaf."""
    leaf_indices = np.asarray(leaf_indices, dtype=np.int64)
    order = np.argsort(leaf_indices, kind='stable')
    bounds = np.searchsorted(leaf_indices[order], np.arange(leaf_count + 1))
    return [order[bounds[leaf]:bounds[leaf + 1]] for leaf in range(leaf_count)]


class Pool:
    """
    Documents being explained.

    Args:
        features: (doc_count, feature_count) raw float features
        target: (doc_count,) labels
        weights: optional (doc_count,) document weights, ones by default
        baseline: optional (doc_count,) starting approxes, zeros by default
    """

    def __init__(self, features, target, weights=None, baseline=None):
        self.features = np.atleast_2d(np.asarray(features, dtype=float))
        self.target = np.asarray(target, dtype=float).ravel()
        n = self.features.shape[0]
        self.weights = np.ones(n) if weights is None else np.asarray(weights, dtype=float).ravel()
        self.baseline = np.zeros(n) if baseline is None else np.asarray(baseline, dtype=float).ravel()
        for name in ('target', 'weights', 'baseline'):
            if len(getattr(self, name)) != n:
                raise InconsistentStateError(
                    f"Pool {name} has {len(getattr(self, name))} values for {n} documents"
                )

    @property
    def doc_count(self) -> int:
        return self.features.shape[0]


def validate_config(learning_rate, thread_count, update_method, max_leaf_count):
    """Reject invalid parameters before any computation starts."""
    if not learning_rate > 0:
        raise ConfigurationError(f"Learning rate should be positive, got {learning_rate}")
    if isinstance(thread_count, bool) or not isinstance(thread_count, (int, np.integer)) or thread_count < 1:
        raise ConfigurationError(f"Thread count should be a positive integer, got {thread_count}")
    if update_method.update_type == TOP_K_LEAVES and update_method.top_size > max_leaf_count:
        raise ConfigurationError(
            f"Top size {update_method.top_size} exceeds the maximum leaf count {max_leaf_count}"
        )
