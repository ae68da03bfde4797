"""
Feature quantization helpers.

Raw float features are mapped to bin indices once per pool; oblivious tree
splits are then evaluated on the bins instead of the raw values.
"""

import numpy as np

MAX_BORDER_COUNT = 254


def compute_borders(features, border_count=32):
    """
    Quantile borders for every float feature.

    Args:
        features: (doc_count, feature_count) array
        border_count: maximal number of borders per feature

    Returns:
        borders: list of sorted unique border arrays, one per feature
    """
    if not 1 <= border_count <= MAX_BORDER_COUNT:
        raise ValueError(f"border_count should be in [1, {MAX_BORDER_COUNT}], got {border_count}")
    features = np.atleast_2d(np.asarray(features, dtype=float))
    quantiles = np.linspace(0, 1, border_count + 2)[1:-1]
    borders = []
    for column in features.T:
        values = np.unique(column[~np.isnan(column)])
        if len(values) < 2:
            borders.append(np.empty(0))
            continue
        # midpoints keep every border strictly between two observed values
        midpoints = (values[:-1] + values[1:]) / 2
        if len(midpoints) > border_count:
            midpoints = np.unique(np.quantile(midpoints, quantiles))
        borders.append(midpoints)
    return borders


def binarize_features(borders, features):
    """
    Bin index of every value: the number of borders strictly below it.

    Returns:
        (feature_count, doc_count) uint8 array
    """
    features = np.atleast_2d(np.asarray(features, dtype=float))
    if features.shape[1] < len(borders):
        raise ValueError(f"Pool has {features.shape[1]} features, model expects {len(borders)}")
    binarized = np.zeros((len(borders), features.shape[0]), dtype=np.uint8)
    for feature, feature_borders in enumerate(borders):
        if len(feature_borders) > MAX_BORDER_COUNT:
            raise ValueError(f"Feature {feature} has {len(feature_borders)} borders, at most {MAX_BORDER_COUNT} supported")
        binarized[feature] = np.searchsorted(feature_borders, features[:, feature], side='left')
    return binarized
