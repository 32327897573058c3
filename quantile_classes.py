#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Quantile classification of one numeric variable.

Two passes:
  1) compute_scheme() over the whole dataset fixes the breakpoints
  2) classify() / classify_series() assign each value to a bin

Bins follow the closed-lowest convention:
    [b0, b1], (b1, b2], ..., (b(k-1), bk]
Values below b0 or above bk are clamped to the edge bins.
"""

import logging
from typing import NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class ClassificationScheme(NamedTuple):
    """
    Breakpoints for one variable.

    breaks: the k+1 quantiles as computed (may repeat on skewed data)
    edges:  breaks with adjacent identical values merged; bins are built on these
    """
    name: str
    k: int
    breaks: Tuple[float, ...]
    edges: Tuple[float, ...]

    @property
    def n_classes(self) -> int:
        return len(self.edges) - 1

    @property
    def is_collapsed(self) -> bool:
        return self.n_classes < self.k

    def interval_labels(self, fmt: str = "{:,.0f}"):
        labels = []
        for i in range(self.n_classes):
            lo, hi = self.edges[i], self.edges[i + 1]
            opener = "[" if i == 0 else "("
            labels.append(f"{opener}{fmt.format(lo)}, {fmt.format(hi)}]")
        return labels


def _merge_ties(breaks: np.ndarray) -> Tuple[float, ...]:
    edges = [float(breaks[0])]
    for b in breaks[1:]:
        if float(b) > edges[-1]:
            edges.append(float(b))
    if len(edges) == 1:
        edges.append(edges[0])
    return tuple(edges)


def compute_scheme(values, k: int, name: Optional[str] = None) -> ClassificationScheme:
    """
    Quantile breakpoints at probabilities 0, 1/k, ..., 1 (linear interpolation
    between order statistics). Non-finite values are ignored.
    """
    if k < 1:
        raise ValueError(f"Class count must be >= 1, got {k}")
    if name is None:
        name = getattr(values, "name", None) or "value"

    arr = pd.to_numeric(pd.Series(values, dtype="object"), errors="coerce").to_numpy(dtype=float)
    finite = np.isfinite(arr)
    n_missing = int((~finite).sum())
    if n_missing:
        logger.info("%s: %d missing value(s) left out of the breakpoints", name, n_missing)
    arr = arr[finite]
    if arr.size == 0:
        raise ValueError(f"{name}: no numeric values to classify")

    breaks = np.quantile(arr, np.linspace(0.0, 1.0, k + 1), method="linear")
    # guard against float round-off at the ends
    breaks[0], breaks[-1] = arr.min(), arr.max()

    scheme = ClassificationScheme(
        name=str(name),
        k=int(k),
        breaks=tuple(float(b) for b in breaks),
        edges=_merge_ties(breaks),
    )
    if scheme.is_collapsed:
        logger.warning(
            "%s: quantile breakpoints repeat; %d classes requested, %d effective",
            scheme.name, scheme.k, scheme.n_classes,
        )
    return scheme


def classify(value, scheme: ClassificationScheme) -> Optional[int]:
    """0-based bin index, clamped to the scheme's range; None for missing values."""
    if value is None or pd.isna(value):
        return None
    i = int(np.searchsorted(scheme.edges, float(value), side="left")) - 1
    return min(max(i, 0), scheme.n_classes - 1)


def classify_series(values: pd.Series, scheme: ClassificationScheme) -> pd.Series:
    """Vectorised classify(); missing values give <NA> in an Int64 series."""
    s = pd.to_numeric(pd.Series(values), errors="coerce").astype(float)
    idx = np.searchsorted(np.asarray(scheme.edges), s.to_numpy(), side="left") - 1
    idx = np.clip(idx, 0, scheme.n_classes - 1)
    out = pd.Series(idx, index=s.index, dtype="Int64")
    out[s.isna()] = pd.NA
    return out
