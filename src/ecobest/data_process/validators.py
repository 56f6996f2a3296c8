from __future__ import annotations
import numpy as np
import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema, Check

from ..exceptions import InvalidParameter

_finite = Check(lambda s: np.isfinite(s), error="finite values")


def matrix_schema(columns, *, nonnegative: bool = False) -> DataFrameSchema:
    """Schema for a samples x variables matrix: numeric, finite, no missing values."""
    checks = [_finite] + ([Check.ge(0)] if nonnegative else [])
    return DataFrameSchema(
        {col: Column(float, checks=checks, nullable=False, coerce=True) for col in columns},
        strict=True,
    )


def validate_matrix(df: pd.DataFrame, name: str = "matrix", *,
                    nonnegative: bool = False, min_rows: int = 3) -> pd.DataFrame:
    """
    Validate and coerce a matrix before any distance is computed.

    Returns the coerced DataFrame. Raises InvalidParameter with every failing
    case listed when the matrix is unusable.
    """
    if df.shape[1] == 0:
        raise InvalidParameter(f"{name} has no columns", name=name)
    if df.shape[0] < min_rows:
        raise InvalidParameter(f"{name} needs at least {min_rows} samples, got {df.shape[0]}",
                               name=name, value=df.shape[0])
    if df.columns.has_duplicates:
        dup = list(df.columns[df.columns.duplicated()])
        raise InvalidParameter(f"{name} has duplicated column names: {dup}", name=name, value=dup)
    try:
        return matrix_schema(df.columns, nonnegative=nonnegative).validate(df, lazy=True)
    except pa.errors.SchemaErrors as exc:
        cases = exc.failure_cases[["column", "check", "failure_case"]].head(10)
        raise InvalidParameter(f"{name} failed validation:\n{cases.to_string(index=False)}",
                               name=name) from exc
