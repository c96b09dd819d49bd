"""Outlier scores: LOF, LoOP, incremental k-NN and circular statistics."""

from .lof import compute_lof, compute_loop, knn_table
from .angular import angular_outliers_e, angular_outliers_c
from .iterative_knn import IterativeKNN

__all__ = [
    'compute_lof',
    'compute_loop',
    'knn_table',
    'angular_outliers_e',
    'angular_outliers_c',
    'IterativeKNN'
]
