"""
ecobest - best-subset matching of distance structures (BIOENV / BVstep)

Finds the subset of explanatory variables (e.g. environmental measurements)
whose sample dissimilarities best reproduce a fixed dissimilarity structure
(e.g. of a zoobenthic community), scored by Spearman rank correlation, and
tests the best match against a column-margin-preserving permutation null.

Subpackages:
- data_process: reading, alignment, validation and transforms of input matrices
- matching: dissimilarities, rank correlation, exhaustive and stepwise searches
- significance: null model, permutation engine and the global BEST test
- report: figures and CSV export of results
"""
import logging

from .exceptions import (
    BestMatchError, InvalidParameter, DimensionMismatch, RowCountMismatch,
    ConstraintConflict, UnknownIndex, InvalidIndex, EmptySubset, PermutationFailure,
)
from .config import (
    BVStepParams, BioEnvParams, PermutationParams, AnalysisConfig,
    load_analysis_config, setup_logging,
)
from .matching import (
    DistanceStructure, dissimilarity, target_distance, rank_correlation,
    VariableSubset, SubsetEvaluator, ScoredSubset, SearchResult,
    ExhaustiveMatcher, StepwiseMatcher, bio_env, bv_step,
)
from .significance import (
    permute, NullDistribution, PermutationEngine, SignificanceResult,
    estimate_significance, GlobalBestResult, global_best_test, global_best_from_config,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Errors
    "BestMatchError", "InvalidParameter", "DimensionMismatch", "RowCountMismatch",
    "ConstraintConflict", "UnknownIndex", "InvalidIndex", "EmptySubset", "PermutationFailure",

    # Configuration
    "BVStepParams", "BioEnvParams", "PermutationParams", "AnalysisConfig",
    "load_analysis_config", "setup_logging",

    # Matching
    "DistanceStructure", "dissimilarity", "target_distance", "rank_correlation",
    "VariableSubset", "SubsetEvaluator", "ScoredSubset", "SearchResult",
    "ExhaustiveMatcher", "StepwiseMatcher", "bio_env", "bv_step",

    # Significance
    "permute", "NullDistribution", "PermutationEngine", "SignificanceResult",
    "estimate_significance", "GlobalBestResult", "global_best_test", "global_best_from_config",
]

__version__ = "0.1.0"
