from __future__ import annotations
import numpy as np
import pandas as pd

def hellinger_transform(df: pd.DataFrame) -> pd.DataFrame:
    """
    Hellinger transform for nonnegative composition/count-like data.
    Returns a DataFrame with the same index/columns and values in [0, 1].
    """
    X = df.to_numpy(dtype=float, copy=True)
    if np.any(X < 0):
        raise ValueError("hellinger_transform requires nonnegative inputs.")
    row_sums = X.sum(axis=1, keepdims=True)
    row_sums[row_sums == 0] = 1.0  # empty samples stay at zero
    H = np.sqrt(X / row_sums)
    return pd.DataFrame(H, index=df.index, columns=df.columns)

def standardize(df: pd.DataFrame) -> pd.DataFrame:
    """
    Z-score by column (ddof=1). Constant columns are centred but not divided.
    """
    X = df.to_numpy(dtype=float, copy=True)
    mu = X.mean(axis=0, keepdims=True)
    sd = X.std(axis=0, ddof=1, keepdims=True) if X.shape[0] > 1 else np.ones_like(mu)
    sd[~np.isfinite(sd) | (sd == 0)] = 1.0
    Z = (X - mu) / sd
    return pd.DataFrame(Z, index=df.index, columns=df.columns)

def absolute(df: pd.DataFrame) -> pd.DataFrame:
    """
    Absolute values, used before handing a matrix to the null model.
    """
    return pd.DataFrame(np.abs(df.to_numpy(dtype=float, copy=True)),
                        index=df.index, columns=df.columns)
