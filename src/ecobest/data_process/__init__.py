"""
Data preparation for ecobest: reading, cleaning, validating and transforming
the fixed (biotic) and variable (environmental) matrices.
"""

from .cleaning import as_frame, align_samples, handle_missing, handle_missing_pair, ensure_nonnegative
from .transform import hellinger_transform, standardize, absolute
from .validators import matrix_schema, validate_matrix
from .ingest import read_matrix

__all__ = [
    "as_frame", "align_samples", "handle_missing", "handle_missing_pair", "ensure_nonnegative",
    "hellinger_transform", "standardize", "absolute",
    "matrix_schema", "validate_matrix",
    "read_matrix",
]
