#!/usr/bin/env python
"""
Example Usage of Document Importances

This script demonstrates the basic usage of the document importances toolkit,
comparing the update methods on a small regression problem.
"""

import time
import numpy as np

from docs_importance.core.base import Pool
from docs_importance.core.document_importance import DocumentImportancesEvaluator
from docs_importance.core.importance_interface import rank_document_importances
from docs_importance.utils.boosting_utils import fit_oblivious_boosting
from docs_importance.utils.data_utils import load_dataset


def basic_example():
    """Basic example of computing document importances."""

    print("=" * 60)
    print("BASIC DOCUMENT IMPORTANCES EXAMPLE")
    print("=" * 60)

    # Load and prepare data
    print("\n1. Loading and preparing data...")
    x_train, x_valid, y_train, y_valid = load_dataset('diabetes')
    print(f"   Training set size: {len(x_train)}")
    print(f"   Validation set size: {len(x_valid)}")

    # Fit the ensemble and collect leaf statistics
    print("\n2. Fitting oblivious boosting...")
    learning_rate = 0.1
    ensemble, tree_statistics = fit_oblivious_boosting(
        x_train, y_train, iterations=30, depth=3, learning_rate=learning_rate, verbose=True
    )
    pool = Pool(x_valid, y_valid)

    # Compare update methods
    print("\n3. Computing document importances...")
    methods = ['AllPoints', 'TopKLeaves:top=2', 'SinglePoint']
    results = {}

    for update_method in methods:
        print(f"\n   Method: {update_method}")
        start_time = time.time()

        evaluator = DocumentImportancesEvaluator(
            ensemble, tree_statistics, learning_rate=learning_rate,
            update_method=update_method, thread_count=4
        )
        importances = evaluator.get_document_importances(pool)

        exec_time = time.time() - start_time
        results[update_method] = importances

        print(f"     Matrix shape: {importances.shape}")
        print(f"     Execution time: {exec_time:.3f}s")

    # Agreement of the approximations with the exact replay
    print("\n4. Agreement with AllPoints:")
    reference = results['AllPoints'].ravel()
    for update_method in methods[1:]:
        corr = np.corrcoef(reference, results[update_method].ravel())[0, 1]
        print(f"   {update_method}: correlation {corr:.4f}")

    # Most influential training documents on average
    indices, scores = rank_document_importances(results['AllPoints'], top_size=5, importance_type='Average')
    print("\n5. Top-5 training documents by |average importance|:")
    for doc_id, score in zip(indices[0], scores[0]):
        print(f"   doc {doc_id}: {score:+.6f}")


if __name__ == "__main__":
    basic_example()
