#!/usr/bin/env python
"""
Main interface for document importance computation.

This module ranks training documents by their importance:
- PerObject: one ranking for every scored document
- Average: one ranking of the importance averaged over the scored pool
and filters them by sign and size. It also provides the command line tool.
"""

import argparse
import numpy as np
import pandas as pd

from .base import ConfigurationError
from .document_importance import DocumentImportancesEvaluator
from ..utils.data_utils import load_pool
from ..utils.model_utils import load_model_bundle

IMPORTANCE_TYPES = ('PerObject', 'Average')
IMPORTANCE_VALUES_SIGNS = ('Positive', 'Negative', 'All')


def rank_document_importances(importances, top_size=-1, importance_type='Average',
                              importance_values_sign='All'):
    """
    Sort training documents by importance.

    Args:
        importances: (train_doc_count, scored_doc_count) matrix
        top_size: entries kept per ranking, -1 keeps all
        importance_type: 'PerObject' or 'Average'
        importance_values_sign: 'Positive' (positive values, descending), 'Negative'
            (negative values, ascending) or 'All' (descending absolute value)

    Returns:
        indices, scores: lists with one entry per ranking (one per scored document for
        PerObject, a single one for Average)
    """
    if importance_type not in IMPORTANCE_TYPES:
        raise ConfigurationError(f"Unknown importance type: {importance_type}")
    if importance_values_sign not in IMPORTANCE_VALUES_SIGNS:
        raise ConfigurationError(f"Unknown importance values sign: {importance_values_sign}")
    if top_size != -1 and top_size < 0:
        raise ConfigurationError(f"Top size should be non-negative or -1, got {top_size}")

    importances = np.asarray(importances, dtype=float)
    if importance_type == 'PerObject':
        rows = importances.T
    elif importances.shape[1] == 0:
        rows = np.zeros((1, importances.shape[0]))
    else:
        rows = importances.mean(axis=1)[None, :]

    indices, scores = [], []
    for row in rows:
        if importance_values_sign == 'Positive':
            order = np.argsort(-row, kind='stable')
            order = order[row[order] > 0]
        elif importance_values_sign == 'Negative':
            order = np.argsort(row, kind='stable')
            order = order[row[order] < 0]
        else:
            order = np.argsort(-np.abs(row), kind='stable')
        if top_size != -1:
            order = order[:top_size]
        indices.append(order)
        scores.append(row[order])
    return indices, scores


def get_object_importance(ensemble, tree_statistics, pool, top_size=-1, importance_type='Average',
                          importance_values_sign='All', update_method='SinglePoint', thread_count=1,
                          verbose=False, **kwargs):
    """
    Compute document importances and rank training documents.

    Args:
        ensemble, tree_statistics: fitted model and its training statistics
        pool: Pool being explained
        top_size, importance_type, importance_values_sign: see rank_document_importances
        update_method: 'SinglePoint', 'AllPoints' or 'TopKLeaves:top=<K>'
        thread_count: worker threads
        **kwargs: loss_function, leaf_estimation_method, learning_rate, leaves_estimation_iterations

    Returns:
        indices, scores
    """
    # ranking options are checked before the expensive part
    rank_document_importances(np.zeros((0, 0)), top_size, importance_type, importance_values_sign)
    evaluator = DocumentImportancesEvaluator(
        ensemble, tree_statistics, update_method=update_method, thread_count=thread_count,
        verbose=verbose, **kwargs
    )
    importances = evaluator.get_document_importances(pool)
    return rank_document_importances(importances, top_size, importance_type, importance_values_sign)


def importances_to_frame(indices, scores, importance_type='Average'):
    """Long table with one row per (ranking, rank) pair."""
    records = []
    for row_id, (row_indices, row_scores) in enumerate(zip(indices, scores)):
        for rank, (train_doc, score) in enumerate(zip(row_indices, row_scores)):
            records.append({
                'scored_doc': row_id if importance_type == 'PerObject' else -1,
                'rank': rank,
                'train_doc': int(train_doc),
                'importance': float(score),
            })
    return pd.DataFrame(records, columns=['scored_doc', 'rank', 'train_doc', 'importance'])


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compute training document importances of an oblivious tree ensemble")
    parser.add_argument("--model", required=True, help="Pickled model bundle (ensemble, tree statistics, params)")
    parser.add_argument("--pool", required=True, help="Pool to explain (.npz with features, target, weight, baseline)")
    parser.add_argument("--update-method", default="SinglePoint",
                        help="SinglePoint, AllPoints or TopKLeaves:top=<K>")
    parser.add_argument("--top-size", type=int, default=-1, help="Training documents kept per ranking (-1: all)")
    parser.add_argument("--type", choices=IMPORTANCE_TYPES, default="Average", help="Ranking type")
    parser.add_argument("--sign", choices=IMPORTANCE_VALUES_SIGNS, default="All", help="Importance values sign")
    parser.add_argument("--threads", type=int, default=1, help="Number of threads")
    parser.add_argument("--output", default="document_importances.csv", help="Output CSV path")
    parser.add_argument("--quiet", action="store_true", help="Do not print progress")

    args = parser.parse_args(argv)

    ensemble, tree_statistics, params = load_model_bundle(args.model)
    pool = load_pool(args.pool)
    print(f"Loaded model with {ensemble.tree_count} trees and {pool.doc_count} documents to explain")

    explain_params = {key: params[key] for key in
                      ('loss_function', 'leaf_estimation_method', 'learning_rate', 'leaves_estimation_iterations')
                      if key in params}
    indices, scores = get_object_importance(
        ensemble, tree_statistics, pool,
        top_size=args.top_size, importance_type=args.type, importance_values_sign=args.sign,
        update_method=args.update_method, thread_count=args.threads, verbose=not args.quiet,
        **explain_params
    )

    df = importances_to_frame(indices, scores, args.type)
    df.to_csv(args.output, index=False)
    print(f"Document importances saved to {args.output} ({len(df)} rows)")


if __name__ == "__main__":
    main()
