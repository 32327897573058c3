#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Load the three inputs of the woreda bivariate map.

Inputs
- woreda boundaries (shapefile / GeoPackage), keyed by an admin-3 code
- population table (CSV or Excel), keyed by the same code
- DEM GeoTIFF (only metadata is read here; values are read per zone later)

Admin codes are normalised to stripped, upper-case strings on both sides so
the join in join_population.py compares like with like.
"""

import logging
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd
import geopandas as gpd
import rasterio

import woreda_config as cfg

logger = logging.getLogger(__name__)


class RasterInfo(NamedTuple):
    path: str
    crs: Optional[str]
    bounds: Tuple[float, float, float, float]
    nodata: Optional[float]
    shape: Tuple[int, int]


# ---------------------- Helpers ----------------------
def normalise_key(s: pd.Series) -> pd.Series:
    """Admin codes as stripped upper-case strings; blanks become <NA>."""
    out = s.astype("string").str.strip().str.upper()
    return out.mask(out.fillna("") == "")


def require_columns(df: pd.DataFrame, cols, source) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing column(s) {missing} in {source}; found {list(df.columns)}")


def _require_file(path) -> Path:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input not found: {p}")
    return p


def ensure_valid_geometries(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Drop null/empty geometries and repair invalid ones."""
    out = gdf[gdf.geometry.notnull()].copy()
    out["geometry"] = out.geometry.make_valid()
    return out[~out.geometry.is_empty]


def add_area_km2(gdf: gpd.GeoDataFrame, col: str = cfg.AREA_KM2, eq_epsg: int = cfg.EQ_EPSG) -> gpd.GeoDataFrame:
    out = gdf.copy()
    out[col] = out.to_crs(eq_epsg).area / 1e6
    return out


# ---------------------- Loaders ----------------------
def load_woredas(
    path=cfg.WOREDA_PATH,
    key_col: str = cfg.WOREDA_KEY,
    layer: Optional[str] = cfg.WOREDA_LAYER,
    name_col: Optional[str] = cfg.WOREDA_NAME,
    id_col: str = cfg.ID_COL,
    crs: str = cfg.CRS_LATLON,
) -> gpd.GeoDataFrame:
    """
    Read woreda polygons and return one row per admin code:
    [id_col, (name_col), area_km2, geometry] in `crs`.

    Rows without a code are dropped; repeated codes are dissolved into a
    single geometry.
    """
    p = _require_file(path)
    gdf = gpd.read_file(p, layer=layer) if layer else gpd.read_file(p)
    require_columns(gdf, [key_col], p.name)

    gdf = gdf.set_crs(crs) if gdf.crs is None else gdf.to_crs(crs)
    gdf = ensure_valid_geometries(gdf)

    gdf[id_col] = normalise_key(gdf[key_col])
    no_key = int(gdf[id_col].isna().sum())
    if no_key:
        logger.warning("%d woreda polygon(s) in %s have no %s and are dropped", no_key, p.name, key_col)
        gdf = gdf[gdf[id_col].notna()].copy()

    keep = [id_col] + ([name_col] if name_col and name_col in gdf.columns else [])
    n_dup = int(gdf[id_col].duplicated().sum())
    if n_dup:
        logger.warning("%d repeated %s value(s) in %s; dissolving parts per code", n_dup, key_col, p.name)
        meta = pd.DataFrame(gdf[keep]).drop_duplicates(subset=id_col)
        diss = gdf.dissolve(by=id_col).reset_index()[[id_col, "geometry"]]
        gdf = gpd.GeoDataFrame(meta.merge(diss, on=id_col), geometry="geometry", crs=crs)
    else:
        gdf = gdf[keep + ["geometry"]].copy()

    gdf = add_area_km2(gdf).reset_index(drop=True)
    logger.info("Loaded %d woredas from %s", len(gdf), p.name)
    return gdf


def load_population(
    path=cfg.POP_PATH,
    key_col: str = cfg.POP_KEY,
    value_col: str = cfg.POP_COL,
    sheet=cfg.POP_SHEET,
    id_col: str = cfg.ID_COL,
    out_col: str = cfg.POPULATION,
) -> pd.DataFrame:
    """
    Read the population table and return [id_col, out_col].

    Population strings such as "12,345" are parsed; anything non-numeric or
    negative becomes NaN. Duplicate codes are left in place for the joiner to
    report.
    """
    p = _require_file(path)
    if p.suffix.lower() in (".xlsx", ".xls"):
        df = pd.read_excel(p, sheet_name=sheet)
    else:
        df = pd.read_csv(p)
    require_columns(df, [key_col, value_col], p.name)

    out = pd.DataFrame({id_col: normalise_key(df[key_col])})
    raw = df[value_col]
    if not pd.api.types.is_numeric_dtype(raw):
        raw = raw.astype(str).str.replace(",", "", regex=False).str.strip()
    out[out_col] = pd.to_numeric(raw, errors="coerce")
    out.loc[out[out_col] < 0, out_col] = np.nan

    n_bad = int(out[out_col].isna().sum())
    if n_bad:
        logger.warning("%d row(s) in %s have no usable %s value", n_bad, p.name, value_col)
    out = out[out[id_col].notna()].reset_index(drop=True)
    logger.info("Loaded %d population rows from %s", len(out), p.name)
    return out


def read_raster_info(path=cfg.DEM_PATH) -> RasterInfo:
    p = _require_file(path)
    with rasterio.open(p) as src:
        crs = src.crs.to_string() if src.crs is not None else None
        info = RasterInfo(
            path=str(p),
            crs=crs,
            bounds=tuple(src.bounds),
            nodata=src.nodata,
            shape=(src.height, src.width),
        )
    if info.crs is None:
        logger.warning("DEM %s has no CRS; assuming %s", p.name, cfg.CRS_LATLON)
    return info
