#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bivariate map of woreda population × mean elevation (Ethiopia).

Steps
1) load woreda boundaries, population table, DEM metadata
2) inner-join population onto woredas by admin-3 code
3) mean DEM elevation per woreda (exact_extract)
4) quantile breakpoints for both variables over all woredas
5) joint class "i-j" per woreda and color lookup
6) map + k×k legend

Outputs
- bivariate_outputs/map_bivariate_population_elevation.png
- bivariate_outputs/woreda_population_elevation_classes.csv
- bivariate_outputs/woreda_population_elevation_classes.gpkg (layer: woredas)
"""

import logging
from pathlib import Path

import pandas as pd
import geopandas as gpd
import matplotlib.pyplot as plt

import woreda_config as cfg
from load_inputs import load_woredas, load_population, read_raster_info
from join_population import join_population, add_density
from zonal_elevation import add_mean_elevation
from quantile_classes import compute_scheme
from bivariate_palette import BivariateEncoder, build_palette
from map_bivariate import plot_bivariate_map

logger = logging.getLogger(__name__)

AXIS_TITLES = {
    cfg.POPULATION: "Population",
    cfg.POP_DENSITY: "Population density (per km²)",
    cfg.ELEVATION: "Mean elevation (m)",
}


# ---------------------- Helpers ----------------------
def class_counts(gdf: pd.DataFrame, k: int) -> pd.DataFrame:
    """Woredas per (x_bin, y_bin) as a k×k table, rows = y from high to low."""
    valid = gdf.dropna(subset=["x_bin", "y_bin"])
    tab = pd.crosstab(valid["y_bin"].astype(int), valid["x_bin"].astype(int))
    tab = tab.reindex(index=range(k), columns=range(k), fill_value=0)
    tab.index = [f"y{i + 1}" for i in tab.index]
    tab.columns = [f"x{j + 1}" for j in tab.columns]
    return tab.iloc[::-1]


def write_outputs(gdf: gpd.GeoDataFrame, out_csv, out_gpkg, layer: str = cfg.OUT_LAYER) -> None:
    for p in (out_csv, out_gpkg):
        Path(p).parent.mkdir(parents=True, exist_ok=True)
    gdf.drop(columns="geometry").to_csv(out_csv, index=False)
    logger.info("[saved] %s", out_csv)
    # nullable columns as float / object so either OGR backend can write them
    gpkg = gdf.copy()
    for c in ("x_bin", "y_bin"):
        if c in gpkg.columns:
            gpkg[c] = gpkg[c].astype("float64")
    if "bi_class" in gpkg.columns:
        gpkg["bi_class"] = gpkg["bi_class"].astype(object).where(gpkg["bi_class"].notna(), None)
    gpkg.to_file(out_gpkg, layer=layer, driver="GPKG")
    logger.info("[saved] %s (layer: %s)", out_gpkg, layer)


def build_table(
    woreda_path=cfg.WOREDA_PATH,
    pop_path=cfg.POP_PATH,
    dem_path=cfg.DEM_PATH,
    woreda_key: str = cfg.WOREDA_KEY,
    pop_key: str = cfg.POP_KEY,
    pop_col: str = cfg.POP_COL,
    woreda_layer=cfg.WOREDA_LAYER,
    woreda_name=cfg.WOREDA_NAME,
) -> gpd.GeoDataFrame:
    """Steps 1-3: one row per matched woreda with population, area, density, elevation."""
    read_raster_info(dem_path)
    woredas = load_woredas(woreda_path, key_col=woreda_key, layer=woreda_layer, name_col=woreda_name)
    pop = load_population(pop_path, key_col=pop_key, value_col=pop_col)

    joined, _report = join_population(woredas, pop)
    joined = add_density(joined)
    return add_mean_elevation(joined, dem_path)


def classify_table(
    gdf: gpd.GeoDataFrame,
    k: int = cfg.N_CLASSES,
    x_var: str = cfg.X_VARIABLE,
    y_var: str = cfg.Y_VARIABLE,
):
    """Steps 4-5: returns (classified frame, x_scheme, y_scheme)."""
    x_scheme = compute_scheme(gdf[x_var], k, name=x_var)
    y_scheme = compute_scheme(gdf[y_var], k, name=y_var)
    encoder = BivariateEncoder(x_scheme, y_scheme)
    out = encoder.encode_frame(gdf, x_var, y_var)
    return gpd.GeoDataFrame(out, geometry="geometry", crs=gdf.crs), x_scheme, y_scheme


# ---------------------- Main ----------------------
def main(
    k: int = cfg.N_CLASSES,
    palette_name=cfg.PALETTE_NAME,
    x_var: str = cfg.X_VARIABLE,
    y_var: str = cfg.Y_VARIABLE,
    out_png=cfg.OUT_PNG,
    out_csv=cfg.OUT_CSV,
    out_gpkg=cfg.OUT_GPKG,
    **inputs,
) -> gpd.GeoDataFrame:
    # palette is checked before any data is read
    palette = build_palette(palette_name, k)

    table = build_table(**inputs)
    classified, x_scheme, y_scheme = classify_table(table, k=k, x_var=x_var, y_var=y_var)

    n_nodata = int(classified["bi_class"].isna().sum())
    if n_nodata:
        logger.warning("%d woreda(s) have no joint class (missing %s or %s)", n_nodata, x_var, y_var)
    logger.info("Woredas per class (%s across, %s up):\n%s", x_var, y_var, class_counts(classified, k))

    write_outputs(classified, out_csv, out_gpkg)

    fig = plot_bivariate_map(
        classified,
        palette,
        out_png=out_png,
        x_title=AXIS_TITLES.get(x_var, x_var),
        y_title=AXIS_TITLES.get(y_var, y_var),
        x_scheme=x_scheme,
        y_scheme=y_scheme,
        title="Ethiopia woredas: population and elevation",
    )
    plt.close(fig)
    return classified


if __name__ == "__main__":
    logging.basicConfig(level=cfg.LOG_LEVEL, format="[%(levelname)s] %(message)s")
    main()
