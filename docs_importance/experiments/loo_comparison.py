#!/usr/bin/env python
"""
Leave-one-out comparison: analytical document importances vs actual retraining.

This script:
1. Fits a reference oblivious boosting ensemble on a dataset
2. Computes analytical document importances for the test pool
3. Retrains the same tree structures with each of the first N training documents removed
4. Compares predicted and actual effects (der1 * prediction shift) per removed document

Correlations are expected to be high near the fitted solution; the method is a
first-order approximation, not an exact replacement for retraining.
"""

import argparse
import os
import time
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from scipy.stats import pearsonr, spearmanr
from tqdm import tqdm

from ..core.base import Pool
from ..core.derivatives import compute_final_approxes, compute_final_first_derivatives
from ..core.document_importance import DocumentImportancesEvaluator
from ..core.leaf_indices import compute_leaf_indices
from ..utils.boosting_utils import fit_oblivious_boosting
from ..utils.data_utils import DATASET_LOSSES, load_dataset


def predict_approxes(ensemble, features):
    leaf_indices = compute_leaf_indices(ensemble, features)
    return compute_final_approxes(ensemble, leaf_indices, np.zeros(len(features)))


def run_loo_comparison(dataset='synthetic', num_removed=20, update_methods=('AllPoints', 'TopKLeaves:top=2', 'SinglePoint'),
                       iterations=20, depth=3, learning_rate=0.1, leaves_estimation_iterations=1,
                       l2_leaf_reg=3.0, thread_count=1, random_state=42):
    """
    Returns:
        DataFrame with one row per (update method, removed document)
    """
    x_train, x_test, y_train, y_test = load_dataset(dataset, random_state=random_state)
    loss_function = DATASET_LOSSES[dataset]
    fit_params = dict(loss_function=loss_function, iterations=iterations, depth=depth,
                      learning_rate=learning_rate, leaves_estimation_iterations=leaves_estimation_iterations,
                      l2_leaf_reg=l2_leaf_reg)

    print(f"Fitting {iterations} trees of depth {depth} on {dataset} ({len(x_train)} train docs, {loss_function})")
    ensemble, tree_statistics = fit_oblivious_boosting(x_train, y_train, verbose=True, **fit_params)
    tree_splits = [tree.splits for tree in ensemble.trees]

    test_pool = Pool(x_test, y_test)
    leaf_indices = compute_leaf_indices(ensemble, x_test, thread_count)
    final_first_derivatives = compute_final_first_derivatives(ensemble, leaf_indices, test_pool, loss_function)
    base_approxes = predict_approxes(ensemble, x_test)

    num_removed = min(num_removed, len(x_train))
    actual_effects = np.zeros((num_removed, len(x_test)))
    for doc_id in tqdm(range(num_removed), desc="Leave-one-out retraining"):
        weights = np.ones(len(x_train))
        weights[doc_id] = 0
        loo_ensemble, _ = fit_oblivious_boosting(x_train, y_train, weights=weights, borders=ensemble.borders,
                                                 tree_splits=tree_splits, **fit_params)
        actual_effects[doc_id] = final_first_derivatives * (predict_approxes(loo_ensemble, x_test) - base_approxes)

    results = []
    for update_method in update_methods:
        evaluator = DocumentImportancesEvaluator(
            ensemble, tree_statistics, loss_function=loss_function, learning_rate=learning_rate,
            leaves_estimation_iterations=leaves_estimation_iterations, update_method=update_method,
            thread_count=thread_count
        )
        start_time = time.time()
        importances = evaluator.get_document_importances_from_leaf_indices(leaf_indices, final_first_derivatives)
        exec_time = time.time() - start_time

        for doc_id in range(num_removed):
            predicted, actual = importances[doc_id], actual_effects[doc_id]
            constant = np.std(predicted) == 0 or np.std(actual) == 0
            results.append({
                'dataset': dataset,
                'update_method': update_method,
                'removed_doc': doc_id,
                'pearson': np.nan if constant else pearsonr(predicted, actual)[0],
                'spearman': np.nan if constant else spearmanr(predicted, actual)[0],
                'predicted_total': predicted.sum(),
                'actual_total': actual.sum(),
                'execution_time': exec_time,
            })
        print(f"  {update_method}: {exec_time:.3f}s for {len(x_train)} train docs")

    return pd.DataFrame(results)


def analyze_results(df, output_dir):
    """Summarize correlations and plot predicted vs actual total effects."""
    os.makedirs(output_dir, exist_ok=True)

    print("\n=== LEAVE-ONE-OUT COMPARISON SUMMARY ===")
    summary = df.groupby('update_method')[['pearson', 'spearman', 'execution_time']].mean()
    for method, stats in summary.iterrows():
        print(f"  {method}: pearson {stats['pearson']:.3f}, spearman {stats['spearman']:.3f}, "
              f"time {stats['execution_time']:.3f}s")

    sns.set_style('whitegrid')
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))

    sns.scatterplot(data=df, x='actual_total', y='predicted_total', hue='update_method', ax=ax1)
    low = min(df['actual_total'].min(), df['predicted_total'].min())
    high = max(df['actual_total'].max(), df['predicted_total'].max())
    ax1.plot([low, high], [low, high], 'r--', alpha=0.5)
    ax1.set_xlabel('Actual effect (retraining)')
    ax1.set_ylabel('Predicted effect (analytical)')
    ax1.set_title('Total effect on the test pool per removed document')

    sns.boxplot(data=df, x='update_method', y='pearson', ax=ax2)
    ax2.set_title('Per-document Pearson correlation')

    plt.tight_layout()
    plot_path = os.path.join(output_dir, 'loo_comparison.png')
    plt.savefig(plot_path, dpi=300, bbox_inches='tight')
    plt.close(fig)
    print(f"Plot saved to: {plot_path}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compare document importances with leave-one-out retraining")
    parser.add_argument("--dataset", choices=sorted(DATASET_LOSSES), default="synthetic", help="Dataset to use")
    parser.add_argument("--num_removed", type=int, default=20, help="Training documents to retrain without")
    parser.add_argument("--iterations", type=int, default=20, help="Number of trees")
    parser.add_argument("--depth", type=int, default=3, help="Tree depth")
    parser.add_argument("--learning_rate", type=float, default=0.1, help="Learning rate")
    parser.add_argument("--leaves_estimation_iterations", type=int, default=1, help="Leaf steps per tree")
    parser.add_argument("--top_size", type=int, default=2, help="Top size of the TopKLeaves update method")
    parser.add_argument("--threads", type=int, default=1, help="Number of threads")
    parser.add_argument("--output_dir", default="results", help="Directory for CSV and plots")

    args = parser.parse_args(argv)

    df = run_loo_comparison(
        dataset=args.dataset, num_removed=args.num_removed,
        update_methods=('AllPoints', f'TopKLeaves:top={args.top_size}', 'SinglePoint'),
        iterations=args.iterations, depth=args.depth, learning_rate=args.learning_rate,
        leaves_estimation_iterations=args.leaves_estimation_iterations, thread_count=args.threads
    )

    os.makedirs(args.output_dir, exist_ok=True)
    csv_path = os.path.join(args.output_dir, f'loo_comparison_{args.dataset}.csv')
    df.to_csv(csv_path, index=False)
    print(f"\nRaw results saved to {csv_path}")

    analyze_results(df, args.output_dir)


if __name__ == "__main__":
    main()
