"""
Exception hierarchy for ecobest.

Every error raised by the package derives from BestMatchError, so callers can
catch any library failure in one place and still tell configuration mistakes
(InvalidParameter, ConstraintConflict) from structural data mismatches
(DimensionMismatch, RowCountMismatch) and collaborator failures (UnknownIndex,
PermutationFailure).

None of these are recovered locally: each one invalidates the statistical
result, so they propagate straight to the caller.
"""
from __future__ import annotations


class BestMatchError(Exception):
    """Base exception for all ecobest errors."""
    pass


class InvalidParameter(BestMatchError, ValueError):
    """
    Out-of-range or conflicting configuration.

    Attributes:
        name: Name of the offending parameter, if known
        value: The rejected value
    """

    def __init__(self, message: str, name: str | None = None, value=None):
        super().__init__(message)
        self.name = name
        self.value = value


class DimensionMismatch(BestMatchError, ValueError):
    """
    Two structures that must share a sample set do not.

    Attributes:
        expected: Expected size (or labels)
        actual: Size (or labels) actually found
    """

    def __init__(self, message: str, expected=None, actual=None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class RowCountMismatch(DimensionMismatch):
    """Fixed and variable matrices have a different number of samples."""
    pass


class ConstraintConflict(BestMatchError, ValueError):
    """
    Always-include and always-exclude variable sets overlap.

    Attributes:
        overlap: Sorted tuple of the shared column positions
    """

    def __init__(self, message: str, overlap: tuple = ()):
        super().__init__(message)
        self.overlap = tuple(overlap)


class UnknownIndex(BestMatchError, ValueError):
    """
    The dissimilarity provider does not know the requested index.

    Attributes:
        index_name: The rejected index name
        supported: Names the provider does support
    """

    def __init__(self, message: str, index_name: str | None = None,
                 supported: tuple = ()):
        super().__init__(message)
        self.index_name = index_name
        self.supported = tuple(supported)


# The subset evaluator reports a rejected index under this name.
InvalidIndex = UnknownIndex


class EmptySubset(BestMatchError, ValueError):
    """A variable subset with no columns was evaluated."""
    pass


class PermutationFailure(BestMatchError, RuntimeError):
    """
    A permutation iteration failed; the whole null distribution is void.

    The original error is chained as ``__cause__``.

    Attributes:
        iteration: Zero-based index of the failed permutation
        n_permutations: Number of permutations requested for the run
    """

    def __init__(self, message: str, iteration: int, n_permutations: int | None = None):
        super().__init__(message)
        self.iteration = iteration
        self.n_permutations = n_permutations
