from __future__ import annotations
from pathlib import Path
import pandas as pd

_READERS = {
    ".csv": lambda p, **kw: pd.read_csv(p, **kw),
    ".tsv": lambda p, **kw: pd.read_csv(p, sep="\t", **kw),
    ".txt": lambda p, **kw: pd.read_csv(p, sep=None, engine="python", **kw),
    ".xlsx": lambda p, **kw: pd.read_excel(p, engine="openpyxl", **kw),
    ".parquet": lambda p, **kw: pd.read_parquet(p),
}

def read_matrix(path: str | Path, index_col: str | int | None = None) -> pd.DataFrame:
    """
    Read a samples x variables matrix from CSV/TSV, Excel or Parquet.

    Args:
        path: File to read; the reader is chosen by suffix
        index_col: Column holding the sample identifiers (e.g. "StationID")

    Returns:
        pd.DataFrame indexed by sample when index_col is given
    """
    path = Path(path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported matrix file type: {path.suffix} (use one of {sorted(_READERS)})")
    if path.suffix.lower() == ".parquet":
        df = reader(path)
        return df.set_index(index_col) if index_col is not None else df
    return reader(path, index_col=index_col)
