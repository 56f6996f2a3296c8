"""Figures and tables for global BEST results."""

from .plots import plot_global_best
from .export import export_global_best

__all__ = ["plot_global_best", "export_global_best"]
