"""
Utility functions for document importance computation.

This module provides:
- Loss derivatives for the supported loss functions
- Feature quantization (borders and binarization)
- A reference oblivious boosting fitter that records leaf statistics
- Dataset, pool and model bundle helpers
"""

from .loss_utils import evaluate_derivatives
from .quantization_utils import binarize_features, compute_borders

__all__ = [
    'evaluate_derivatives',
    'binarize_features',
    'compute_borders',
]
