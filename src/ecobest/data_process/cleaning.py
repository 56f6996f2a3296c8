from __future__ import annotations
from typing import Tuple

import numpy as np
import pandas as pd

from ..exceptions import DimensionMismatch, InvalidParameter, RowCountMismatch


def as_frame(data, prefix: str = "V") -> pd.DataFrame:
    """
    Coerce a matrix-like input into a float DataFrame.

    Args:
        data: DataFrame, 2-D array or nested list (samples as rows)
        prefix: Column name prefix used when the input carries no names

    Returns:
        A new DataFrame; the caller's object is never modified
    """
    if isinstance(data, pd.DataFrame):
        return data.astype(float, copy=True)
    X = np.asarray(data, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if X.ndim != 2:
        raise InvalidParameter(f"Expected a 2-D matrix, got {X.ndim} dimensions", name="matrix")
    return pd.DataFrame(X, columns=[f"{prefix}{i + 1}" for i in range(X.shape[1])])


def align_samples(fix, var) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Put the fixed and variable matrices on one shared sample index.

    A bare array adopts the other input's index. Two DataFrames must already
    carry identical indexes (same labels in the same order).

    Raises:
        RowCountMismatch: if the sample counts differ
        DimensionMismatch: if both inputs are labelled differently
    """
    fix_df = as_frame(fix, prefix="F")
    var_df = as_frame(var, prefix="V")
    if fix_df.shape[0] != var_df.shape[0]:
        raise RowCountMismatch(
            f"fixed and variable matrices must have the same number of rows "
            f"({fix_df.shape[0]} vs {var_df.shape[0]})",
            expected=fix_df.shape[0], actual=var_df.shape[0])

    fix_labelled = isinstance(fix, pd.DataFrame)
    var_labelled = isinstance(var, pd.DataFrame)
    if fix_labelled and not var_labelled:
        var_df.index = fix_df.index
    elif var_labelled and not fix_labelled:
        fix_df.index = var_df.index
    elif not fix_df.index.equals(var_df.index):
        raise DimensionMismatch(
            "fixed and variable matrices are indexed by different samples; "
            "align them first (e.g. df.loc[other.index])",
            expected=list(fix_df.index[:5]), actual=list(var_df.index[:5]))
    return fix_df, var_df


def handle_missing(df: pd.DataFrame, strategy: str) -> pd.DataFrame:
    """
    Fill or drop missing values in the numeric columns of one matrix.

    Args:
        df: samples x variables DataFrame
        strategy: "zero_for_absent_taxa" (NaN count means not found),
            "median_by_column" (impute each variable's median) or
            "drop_rows_if_any" (drop incomplete samples)

    Returns:
        A new DataFrame
    """
    df = df.copy()
    cols = df.select_dtypes(include="number").columns
    if strategy == "zero_for_absent_taxa":
        df[cols] = df[cols].fillna(0.0)
    elif strategy == "median_by_column":
        df[cols] = df[cols].apply(lambda s: s.fillna(s.median()))
    elif strategy == "drop_rows_if_any":
        df = df.dropna(subset=cols)
    else:
        raise InvalidParameter(f"Unknown missing strategy: {strategy}", name="strategy", value=strategy)
    return df


def handle_missing_pair(fix: pd.DataFrame, var: pd.DataFrame,
                        strategy: str) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Apply ``handle_missing`` to the fixed and variable matrices together.

    When rows are dropped, a sample incomplete in either matrix leaves both,
    so the two stay on one sample index (in the fixed matrix's order).
    """
    fix_df = handle_missing(fix, strategy)
    var_df = handle_missing(var, strategy)
    if strategy == "drop_rows_if_any":
        common = fix_df.index[fix_df.index.isin(var_df.index)]
        fix_df, var_df = fix_df.loc[common], var_df.loc[common]
    return fix_df, var_df


def ensure_nonnegative(df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate that numeric columns contain only non-negative values.

    Returns:
        Original DataFrame if validation passes

    Raises:
        InvalidParameter: If negative values are found
    """
    cols = df.select_dtypes(include="number").columns
    negative = (df[cols] < 0).any()
    if negative.any():
        raise InvalidParameter(f"Negative values found in columns: {list(negative[negative].index)}",
                               name="matrix")
    return df
