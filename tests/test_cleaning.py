# tests/test_cleaning.py
import numpy as np
import pandas as pd
import pytest
from ecobest.data_process.cleaning import (
    align_samples, as_frame, ensure_nonnegative, handle_missing, handle_missing_pair,
)
from ecobest.exceptions import DimensionMismatch, InvalidParameter, RowCountMismatch

def test_handle_missing_zero_for_taxa():
    df = pd.DataFrame({"taxa_A": [1, None], "taxa_B": [None, 2.0]})
    out = handle_missing(df, "zero_for_absent_taxa")
    assert out.isna().sum().sum() == 0
    assert float(out.loc[0, "taxa_B"]) == 0.0

def test_handle_missing_drop_rows():
    df = pd.DataFrame({"a": [1.0, None, 3.0], "b": [1.0, 2.0, 3.0]})
    assert len(handle_missing(df, "drop_rows_if_any")) == 2

def test_handle_missing_unknown_strategy():
    with pytest.raises(InvalidParameter):
        handle_missing(pd.DataFrame({"a": [1.0]}), "guess")

def test_as_frame_names_array_columns():
    df = as_frame(np.arange(6).reshape(3, 2), prefix="E")
    assert list(df.columns) == ["E1", "E2"]
    assert df.dtypes.unique().tolist() == [np.dtype(float)]

def test_align_samples_array_adopts_index():
    fix = pd.DataFrame({"t": [1.0, 2.0, 3.0]}, index=["a", "b", "c"])
    fix_df, var_df = align_samples(fix, np.ones((3, 2)))
    assert list(var_df.index) == ["a", "b", "c"]

def test_align_samples_row_count_mismatch():
    with pytest.raises(RowCountMismatch) as err:
        align_samples(np.ones((10, 3)), np.ones((12, 2)))
    assert err.value.expected == 10 and err.value.actual == 12

def test_align_samples_rejects_different_labels():
    fix = pd.DataFrame({"t": [1.0, 2.0]}, index=["a", "b"])
    var = pd.DataFrame({"v": [1.0, 2.0]}, index=["b", "a"])
    with pytest.raises(DimensionMismatch):
        align_samples(fix, var)

def test_ensure_nonnegative():
    ok = pd.DataFrame({"a": [0.0, 1.0]})
    assert ensure_nonnegative(ok) is ok
    with pytest.raises(InvalidParameter):
        ensure_nonnegative(pd.DataFrame({"a": [0.0, -1.0]}))

def test_handle_missing_pair_drops_incomplete_samples_from_both():
    fix = pd.DataFrame({"t": [1.0, None, 3.0, 4.0]}, index=list("abcd"))
    var = pd.DataFrame({"v": [1.0, 2.0, 3.0, None]}, index=list("abcd"))
    f, v = handle_missing_pair(fix, var, "drop_rows_if_any")
    assert list(f.index) == ["a", "c"]
    assert list(v.index) == ["a", "c"]

def test_handle_missing_pair_fills_without_dropping():
    fix = pd.DataFrame({"t": [1.0, None, 3.0]})
    var = pd.DataFrame({"v": [1.0, 5.0, None]})
    f, v = handle_missing_pair(fix, var, "median_by_column")
    assert f["t"].tolist() == [1.0, 2.0, 3.0]
    assert v["v"].tolist() == [1.0, 5.0, 3.0]
