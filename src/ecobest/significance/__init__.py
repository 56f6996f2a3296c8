"""
Significance of the best subset match.

Null model (column-margin-preserving randomization), permutation engine,
p-value estimation and the global BEST test that ties them together.
"""

from .null_model import permute
from .permutation import NullDistribution, PermutationEngine
from .estimator import SignificanceResult, estimate_significance
from .global_test import (
    GlobalBestResult, global_best_test, global_best_from_config, load_config_matrices,
)

__all__ = [
    "permute",
    "NullDistribution", "PermutationEngine",
    "SignificanceResult", "estimate_significance",
    "GlobalBestResult", "global_best_test", "global_best_from_config", "load_config_matrices",
]
