from __future__ import annotations
from typing import Optional

import numpy as np

__all__ = ["plot_global_best"]


def plot_global_best(result, *, axes=None, title: Optional[str] = None):
    """
    Plot the null distribution of a global BEST run against the observed score.

    Parameters
    ----------
    result : GlobalBestResult
    axes : pair of matplotlib Axes or None; if None, a new 1x2 figure is created
    title : Optional title string

    Returns
    -------
    (fig, axes, info) where info is a dict with keys:
      rho_obs, p_value, t, n_perm, best_model_vars, running_p
    """
    import matplotlib.pyplot as plt

    null = np.asarray(result.null.scores, dtype=float)
    rho_obs = float(result.best_model_rho)
    B = null.size
    idx = np.arange(1, B + 1)
    # p-value as it would read after the first i permutations
    running_p = (np.cumsum(null >= rho_obs) + 1) / (idx + 1)

    created_fig = False
    if axes is None:
        fig, axes = plt.subplots(1, 2, figsize=(12, 5))
        created_fig = True
    else:
        fig = axes[0].figure
    ax_trend, ax_hist = axes

    ax_trend.plot(idx, null, color="#94a3b8", lw=0.8, marker=".", ms=3, label="Permuted best rho")
    ax_trend.axhline(rho_obs, color="#ef4444", lw=2, label=f"Observed rho = {rho_obs:.3f}")
    ax_trend.set_xlabel("Permutation")
    ax_trend.set_ylabel("Best rho")
    ax_p = ax_trend.twinx()
    ax_p.plot(idx, running_p, color="#2563eb", lw=1.5, label="Running p")
    ax_p.set_ylim(0, 1)
    ax_p.set_ylabel("p-value")
    lines = ax_trend.get_legend_handles_labels()
    lines_p = ax_p.get_legend_handles_labels()
    ax_trend.legend(lines[0] + lines_p[0], lines[1] + lines_p[1], loc="upper right", fontsize=8)
    ax_trend.set_title("Permutation trend")

    bins = max(10, int(np.sqrt(B)))
    ax_hist.hist(null, bins=bins, color="#cbd5e1", edgecolor="#94a3b8", alpha=0.9, label="Permutation null")
    ax_hist.axvline(rho_obs, color="#ef4444", lw=2, label=f"Observed rho = {rho_obs:.3f}")
    ax_hist.set_xlabel("Best rho under H0 (permuted variables)")
    ax_hist.set_ylabel("Frequency")
    ax_hist.legend(loc="upper left", fontsize=8)
    ax_hist.text(0.02, 0.80, f"Best: {result.best_model_vars}", transform=ax_hist.transAxes,
                 va="top", fontsize=9, color="#374151")

    ttl = title or f"Global BEST test ({result.observed.method})"
    fig.suptitle(ttl + "\n" + f"rho={rho_obs:.3f}, t={result.t}, p={result.p_value:.3f}, perms={B}")

    if created_fig:
        fig.tight_layout()

    info = {
        "rho_obs": rho_obs,
        "p_value": float(result.p_value),
        "t": int(result.t),
        "n_perm": int(B),
        "best_model_vars": result.best_model_vars,
        "running_p": running_p,
    }
    return fig, axes, info
