#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Draw woredas colored by joint class with a k×k legend grid.

- Woredas without a joint class (no population or no DEM coverage) are drawn
  light grey and hatched
- Legend: x axis = first variable classes (left -> right),
          y axis = second variable classes (bottom -> top),
  cell (x, y) shows JointClass(x, y), label "x+1-y+1"
"""

import logging
from pathlib import Path
from typing import List, NamedTuple, Optional

import geopandas as gpd
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
from mpl_toolkits.axes_grid1.inset_locator import inset_axes

import woreda_config as cfg
from bivariate_palette import JointClass, Palette, colors_for_frame
from quantile_classes import ClassificationScheme

logger = logging.getLogger(__name__)


class LegendCell(NamedTuple):
    col: int
    row: int
    label: str
    color: str


# ---------------------- Helpers ----------------------
def legend_cells(palette: Palette) -> List[LegendCell]:
    """One cell per joint class; column = x bin, row = y bin (row 0 at the bottom)."""
    cells = []
    for y in range(palette.k):
        for x in range(palette.k):
            jc = JointClass(x, y)
            cells.append(LegendCell(col=x, row=y, label=jc.label, color=palette.color_for(jc)))
    return cells


def _edge_ticks(scheme: Optional[ClassificationScheme], k: int):
    """Tick positions and labels at the bin edges of the scheme."""
    if scheme is None or scheme.n_classes != k:
        return [i + 0.5 for i in range(k)], [str(i + 1) for i in range(k)]
    return list(range(k + 1)), [f"{e:,.0f}" for e in scheme.edges]


def draw_legend(
    ax,
    palette: Palette,
    x_title: str,
    y_title: str,
    x_scheme: Optional[ClassificationScheme] = None,
    y_scheme: Optional[ClassificationScheme] = None,
    show_labels: bool = False,
):
    k = palette.k
    for cell in legend_cells(palette):
        ax.add_patch(Rectangle((cell.col, cell.row), 1, 1, facecolor=cell.color, edgecolor="white", linewidth=0.6))
        if show_labels:
            ax.text(cell.col + 0.5, cell.row + 0.5, cell.label, ha="center", va="center", fontsize=6)

    ax.set_xlim(0, k)
    ax.set_ylim(0, k)
    ax.set_aspect("equal")

    xt, xl = _edge_ticks(x_scheme, k)
    yt, yl = _edge_ticks(y_scheme, k)
    ax.set_xticks(xt)
    ax.set_xticklabels(xl, fontsize=6, rotation=45, ha="right")
    ax.set_yticks(yt)
    ax.set_yticklabels(yl, fontsize=6)
    ax.set_xlabel(f"{x_title} →", fontsize=7)
    ax.set_ylabel(f"{y_title} →", fontsize=7)
    ax.tick_params(length=2, pad=1)
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    return ax


def _savefig(fig, path):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=cfg.DPI, bbox_inches="tight")
    logger.info("[saved] %s", path)


# ---------------------- Main ----------------------
def plot_bivariate_map(
    gdf: gpd.GeoDataFrame,
    palette: Palette,
    out_png=cfg.OUT_PNG,
    x_title: str = "Population",
    y_title: str = "Elevation (m)",
    x_scheme: Optional[ClassificationScheme] = None,
    y_scheme: Optional[ClassificationScheme] = None,
    title: Optional[str] = None,
    crs: str = cfg.CRS_PROJ,
    label_col: str = "bi_class",
):
    """
    Render `gdf` (must carry `label_col`, "i-j" or <NA>) and save to `out_png`.
    Returns the figure; the caller closes it.
    """
    g = gdf.to_crs(crs).copy()
    g["_color"] = colors_for_frame(g, palette, label_col)
    has_class = g["_color"].notna()

    fig, ax = plt.subplots(figsize=cfg.FIGSIZE)

    if (~has_class).any():
        g[~has_class].plot(
            ax=ax, color=cfg.NODATA_COLOR, hatch="///", edgecolor="white", linewidth=0.1,
        )
    if has_class.any():
        g[has_class].plot(ax=ax, color=g.loc[has_class, "_color"].tolist(), edgecolor="white", linewidth=0.1)
    g[["geometry"]].dissolve().boundary.plot(ax=ax, linewidth=0.5, color="dimgrey")

    ax.set_axis_off()
    ax.set_aspect("equal")
    if title:
        ax.set_title(title, fontsize=13)

    lax = inset_axes(
        ax,
        width="24%",
        height="24%",
        loc="lower left",
        borderpad=3.0,
    )
    draw_legend(lax, palette, x_title, y_title, x_scheme, y_scheme)

    if out_png is not None:
        _savefig(fig, out_png)
    return fig

