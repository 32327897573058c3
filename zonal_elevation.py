#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Mean DEM elevation per woreda, area-weighted.

For each polygon:
    elevation_mean = sum(value * coverage) / sum(coverage)
over valid (non-nodata) cells, via exact_extract.

Polygons outside the raster extent, or covering only nodata cells, get NaN.
"""

import logging

import numpy as np
import pandas as pd
import geopandas as gpd
import rasterio
from shapely.geometry import box
from exactextract import exact_extract

import woreda_config as cfg

logger = logging.getLogger(__name__)


# ---------------------- Helpers ----------------------
def reproject_to_raster_crs(gdf: gpd.GeoDataFrame, raster_path) -> gpd.GeoDataFrame:
    """Reproject GeoDataFrame to the CRS of the raster, if needed."""
    with rasterio.open(raster_path) as src:
        r_crs = src.crs
    if r_crs is None:
        return gdf
    if gdf.crs is None:
        gdf = gdf.set_crs(cfg.CRS_LATLON, allow_override=True)
    if gdf.crs != r_crs:
        gdf = gdf.to_crs(r_crs)
    return gdf


def split_by_raster_bounds(gdf: gpd.GeoDataFrame, raster_path):
    """Return (subset that intersects raster, non-overlapping remainder)."""
    with rasterio.open(raster_path) as src:
        left, bottom, right, top = src.bounds
    hit = gdf.intersects(box(left, bottom, right, top))
    return gdf[hit].copy(), gdf[~hit].copy()


def _stat_from_value(v, key: str) -> float:
    """
    Extract a statistic from exact_extract output, which may be either:
      - {'mean': ...}
      - {'type': 'Feature', 'properties': {'mean': ...}, ...}
    """
    if v is None:
        return np.nan
    if isinstance(v, dict):
        if key in v:
            val = v.get(key)
        else:
            props = v.get("properties")
            val = props.get(key) if isinstance(props, dict) else None
        return np.nan if val is None else float(val)
    return np.nan


# ---------------------- Main ----------------------
def mean_elevation(
    woredas: gpd.GeoDataFrame,
    dem_path=cfg.DEM_PATH,
    id_col: str = cfg.ID_COL,
    out_col: str = cfg.ELEVATION,
) -> pd.DataFrame:
    """
    Return [id_col, out_col] with one row per woreda, in input order.
    Missing coverage stays NaN.
    """
    gdf = reproject_to_raster_crs(woredas[[id_col, "geometry"]], dem_path)
    gdf_hit, gdf_miss = split_by_raster_bounds(gdf, dem_path)

    out = pd.DataFrame({id_col: gdf[id_col].to_numpy()}, index=gdf.index)
    out[out_col] = np.nan

    if len(gdf_miss) > 0:
        logger.warning("%d woreda(s) lie outside the DEM extent; elevation set to no data", len(gdf_miss))

    if len(gdf_hit) > 0:
        with rasterio.open(dem_path) as src:
            vals = exact_extract(src, gdf_hit, ["mean"])
        out.loc[gdf_hit.index, out_col] = np.array([_stat_from_value(v, "mean") for v in vals], dtype=float)

    n_empty = int(out.loc[gdf_hit.index, out_col].isna().sum())
    if n_empty:
        logger.warning("%d woreda(s) cover only DEM nodata cells; elevation set to no data", n_empty)

    return out.reset_index(drop=True)


def add_mean_elevation(
    woredas: gpd.GeoDataFrame,
    dem_path=cfg.DEM_PATH,
    id_col: str = cfg.ID_COL,
    out_col: str = cfg.ELEVATION,
) -> gpd.GeoDataFrame:
    elev = mean_elevation(woredas, dem_path, id_col=id_col, out_col=out_col)
    out = woredas.merge(elev, on=id_col, how="left")
    return gpd.GeoDataFrame(out, geometry=woredas.geometry.name, crs=woredas.crs)
