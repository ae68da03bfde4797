"""
Core module for document importance computation.

This package provides the stages of the computation:
- Base data structures (ensemble, tree statistics, pool, update method)
- Leaf index resolution of a pool
- Final first derivatives of a pool
- Leaf update selection (AllPoints, TopKLeaves, SinglePoint)
- Leaf value derivatives with respect to a removed document's weight
- Importance aggregation and ranking interface
"""

from .base import (
    ConfigurationError,
    InconsistentStateError,
    ObliviousEnsemble,
    ObliviousTree,
    Pool,
    TreeStatistics,
    UpdateMethod,
)
from .leaf_indices import build_indices_for_bin_tree, compute_leaf_indices
from .derivatives import compute_final_approxes, compute_final_first_derivatives
from .leaf_selection import get_leaf_ids_to_update
from .leaves_derivatives import LeavesDerivativesAccumulator, compute_leaves_derivatives
from .document_importance import (
    DocumentImportancesEvaluator,
    compute_document_importances,
    get_document_importances_for_one_train_doc,
)
from .importance_interface import get_object_importance, importances_to_frame, rank_document_importances
