"""
Experimental analysis scripts for document importances.

This module contains research scripts for:
- Comparison of analytical importances with leave-one-out retraining
"""

# Note: Experiment scripts are meant to be run as standalone modules
# and don't export functions for import

__all__ = []
