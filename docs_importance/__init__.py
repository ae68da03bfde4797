"""
Document Importances - training document influence for oblivious tree ensembles

This package estimates how much removing one training document would change the
prediction of every scored document, by differentiating the leaf-fitting recurrence
of a trained ensemble instead of retraining it once per document.

Key modules:
- core.document_importance: Main computation engine
- core.importance_interface: Ranking of training documents and command line tool
- utils.boosting_utils: Reference oblivious boosting that records leaf statistics
- utils.loss_utils: Loss derivatives
- experiments: Comparison with leave-one-out retraining
"""

__version__ = "1.0.0"

from docs_importance.core.base import ObliviousEnsemble, ObliviousTree, Pool, TreeStatistics, UpdateMethod
from docs_importance.core.document_importance import DocumentImportancesEvaluator, compute_document_importances
from docs_importance.core.importance_interface import get_object_importance
from docs_importance.utils.boosting_utils import fit_oblivious_boosting

__all__ = [
    'ObliviousEnsemble',
    'ObliviousTree',
    'Pool',
    'TreeStatistics',
    'UpdateMethod',
    'DocumentImportancesEvaluator',
    'compute_document_importances',
    'get_object_importance',
    'fit_oblivious_boosting',
]
