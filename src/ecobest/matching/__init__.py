"""
Best-subset matching for ecobest.

This subpackage scores variable subsets by how well their induced
dissimilarities reproduce a fixed target's dissimilarities, and searches for
the best subset exhaustively (BIOENV) or stepwise with restarts (BVstep).
"""

from .dissimilarity import (
    DistanceStructure,
    SUPPORTED_INDICES,
    dissimilarity,
    resolve_index,
    target_distance,
)
from .rank_correlation import rank_correlation, spearman_vectors
from .subsets import VariableSubset, SubsetEvaluator, coerce_variables
from .results import ScoredSubset, SearchResult, Matcher
from .bioenv import ExhaustiveMatcher, bio_env
from .bvstep import StepwiseMatcher, SearchState, RestartTrace, Phase, bv_step

__all__ = [
    # Distances
    "DistanceStructure", "SUPPORTED_INDICES", "dissimilarity", "resolve_index",
    "target_distance",

    # Matching coefficient
    "rank_correlation", "spearman_vectors",

    # Subsets and results
    "VariableSubset", "SubsetEvaluator", "coerce_variables",
    "ScoredSubset", "SearchResult", "Matcher",

    # Searches
    "ExhaustiveMatcher", "bio_env",
    "StepwiseMatcher", "SearchState", "RestartTrace", "Phase", "bv_step",
]
