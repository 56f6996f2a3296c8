from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, Optional

from ..config import RESULTS

logger = logging.getLogger(__name__)

__all__ = ["export_global_best"]


def export_global_best(result, out_dir: Optional[str | Path] = None, *,
                       prefix: str = "global_best", figure: bool = True) -> Dict[str, Path]:
    """
    Write the tables (and optionally the figure) of a global BEST run.

    Args:
        result: GlobalBestResult
        out_dir: target directory, created if missing (default: project results/)
        prefix: file name prefix
        figure: also save the plot_global_best figure as PNG

    Returns:
        mapping of artifact name to written path
    """
    out = Path(out_dir) if out_dir is not None else RESULTS
    out.mkdir(parents=True, exist_ok=True)

    tables = {
        "order_by_best": result.observed.to_frame("best"),
        "order_by_i_comb": result.observed.to_frame("size"),
        "null_distribution": result.null.to_frame(),
        "summary": result.summary(),
    }
    paths: Dict[str, Path] = {}
    for name, df in tables.items():
        path = out / f"{prefix}_{name}.csv"
        df.to_csv(path, index=False)
        paths[name] = path

    if figure:
        import matplotlib.pyplot as plt
        from .plots import plot_global_best

        fig, _, _ = plot_global_best(result)
        path = out / f"{prefix}_null.png"
        fig.savefig(path, dpi=150)
        plt.close(fig)
        paths["figure"] = path

    logger.info(f"Exported {len(paths)} artifacts to {out}")
    return paths
