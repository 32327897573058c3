#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Joint classes and color lookup for a k×k bivariate choropleth.

Label convention (1-based, x first):
    JointClass(x=1, y=2).label == "2-3"
The legend cell at column x, row y shows JointClass(x, y) and its color, so a
woreda labelled "i-j" and the legend cell "i-j" always share a color.
"""

import logging
from typing import Dict, NamedTuple, Optional, Union

import numpy as np
import pandas as pd
from matplotlib.colors import is_color_like, to_hex, to_rgb

from quantile_classes import ClassificationScheme, classify

logger = logging.getLogger(__name__)


class PaletteError(ValueError):
    """Palette does not cover the k×k class space."""


# ---------------------- Palettes ----------------------
# 3×3 palettes keyed "x-y", x = population class, y = elevation class
PALETTES: Dict[str, Dict[str, str]] = {
    "DkBlue": {
        "1-1": "#e8e8e8", "2-1": "#b5c0da", "3-1": "#6c83b5",
        "1-2": "#b8d6be", "2-2": "#90b2b3", "3-2": "#567994",
        "1-3": "#73ae80", "2-3": "#5a9178", "3-3": "#2a5a5b",
    },
    "GrPink": {
        "1-1": "#e8e8e8", "2-1": "#e4acac", "3-1": "#c85a5a",
        "1-2": "#b0d5df", "2-2": "#ad9ea5", "3-2": "#985356",
        "1-3": "#64acbe", "2-3": "#627f8c", "3-3": "#574249",
    },
    "DkViolet": {
        "1-1": "#cabed0", "2-1": "#bc7c8f", "3-1": "#ae3a4e",
        "1-2": "#89a1c8", "2-2": "#806a8a", "3-2": "#77324c",
        "1-3": "#4885c1", "2-3": "#435786", "3-3": "#3f2949",
    },
}


class JointClass(NamedTuple):
    x: int
    y: int

    @property
    def label(self) -> str:
        return f"{self.x + 1}-{self.y + 1}"

    @classmethod
    def from_label(cls, label: str) -> "JointClass":
        try:
            i, j = (int(p) for p in str(label).split("-"))
        except ValueError:
            raise ValueError(f"Bad joint class label '{label}', expected 'i-j'") from None
        return cls(i - 1, j - 1)


class Palette:
    """Validated total mapping JointClass -> color for a k×k grid."""

    def __init__(self, name: str, k: int, colors: Dict[JointClass, str]):
        self.name = name
        self.k = k
        self._colors = dict(colors)

    def color_for(self, joint: JointClass) -> str:
        x, y = joint
        if not (0 <= x < self.k and 0 <= y < self.k):
            raise PaletteError(f"{tuple(joint)} is outside the {self.k}x{self.k} palette '{self.name}'")
        return self._colors[JointClass(x, y)]

    def grid(self):
        """Colors as rows indexed [y][x]."""
        return [[self._colors[JointClass(x, y)] for x in range(self.k)] for y in range(self.k)]

    def by_label(self) -> Dict[str, str]:
        return {jc.label: c for jc, c in sorted(self._colors.items())}

    def __repr__(self):
        return f"Palette({self.name!r}, k={self.k})"


def blend_palette(k: int, low="#e8e8e8", x_high="#be64ac", y_high="#5ac8c8") -> Dict[str, str]:
    """
    k×k palette by bilinear blending of three corner colors; the
    high-high corner is the product of the two high colors.
    """
    if k < 2:
        raise PaletteError(f"Blended palette needs k >= 2, got {k}")
    c00 = np.array(to_rgb(low))
    c10 = np.array(to_rgb(x_high))
    c01 = np.array(to_rgb(y_high))
    c11 = c10 * c01
    out = {}
    for x in range(k):
        for y in range(k):
            u, v = x / (k - 1), y / (k - 1)
            rgb = (1 - u) * (1 - v) * c00 + u * (1 - v) * c10 + (1 - u) * v * c01 + u * v * c11
            out[JointClass(x, y).label] = to_hex(np.clip(rgb, 0, 1))
    return out


def build_palette(palette: Union[str, Dict[str, str]], k: int) -> Palette:
    """
    Resolve a palette name, "blend", (or an explicit {"i-j": color} dict) to a Palette
    and check it covers all k² classes exactly.
    """
    if palette == "blend":
        name, raw = "blend", blend_palette(k)
    elif isinstance(palette, str):
        if palette not in PALETTES:
            raise PaletteError(f"Unknown palette '{palette}'; choose from {sorted(PALETTES)}")
        name, raw = palette, PALETTES[palette]
    else:
        name, raw = "custom", palette

    colors: Dict[JointClass, str] = {}
    for label, color in raw.items():
        jc = JointClass.from_label(label)
        if not (0 <= jc.x < k and 0 <= jc.y < k):
            raise PaletteError(f"Palette '{name}' has class '{label}' outside a {k}x{k} grid")
        if jc in colors:
            raise PaletteError(f"Palette '{name}' defines class '{jc.label}' more than once")
        if not is_color_like(color):
            raise PaletteError(f"Palette '{name}' class '{label}' has invalid color {color!r}")
        colors[jc] = color

    missing = [JointClass(x, y).label for y in range(k) for x in range(k) if JointClass(x, y) not in colors]
    if missing:
        raise PaletteError(f"Palette '{name}' has no color for class(es) {missing} at k={k}")
    logger.debug("Palette %s covers all %d classes", name, k * k)
    return Palette(name, k, colors)


# ---------------------- Encoder ----------------------
class BivariateEncoder:
    """Joint class from two fixed schemes built with the same k."""

    def __init__(self, x_scheme: ClassificationScheme, y_scheme: ClassificationScheme):
        if x_scheme.k != y_scheme.k:
            raise ValueError(
                f"Schemes differ in class count: {x_scheme.name} k={x_scheme.k}, "
                f"{y_scheme.name} k={y_scheme.k}"
            )
        self.x_scheme = x_scheme
        self.y_scheme = y_scheme
        self.k = x_scheme.k

    def encode(self, x_value, y_value) -> Optional[JointClass]:
        x = classify(x_value, self.x_scheme)
        y = classify(y_value, self.y_scheme)
        if x is None or y is None:
            return None
        return JointClass(x, y)

    def encode_frame(self, df: pd.DataFrame, x_col: str, y_col: str) -> pd.DataFrame:
        """Add x_bin, y_bin (Int64) and bi_class ("i-j" or <NA>) columns."""
        out = df.copy()
        joints = [self.encode(xv, yv) for xv, yv in zip(out[x_col], out[y_col])]
        out["x_bin"] = pd.array([j.x if j is not None else pd.NA for j in joints], dtype="Int64")
        out["y_bin"] = pd.array([j.y if j is not None else pd.NA for j in joints], dtype="Int64")
        out["bi_class"] = pd.array([j.label if j is not None else pd.NA for j in joints], dtype="string")
        return out


def colors_for_frame(df: pd.DataFrame, palette: Palette, label_col: str = "bi_class") -> pd.Series:
    """Color per row; rows without a joint class get <NA>."""
    return df[label_col].map(
        lambda lab: palette.color_for(JointClass.from_label(lab)) if pd.notna(lab) else pd.NA
    )
