#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Shared settings for the woreda population × elevation bivariate map.

Every pipeline module reads its defaults from here; functions also accept the
same values as keyword arguments.
"""

from pathlib import Path

# ---------------------- Config ----------------------
DATA_DIR = Path("data")

WOREDA_PATH  = DATA_DIR / "eth_admbnda_adm3_csa_bofedb_2021.shp"
WOREDA_LAYER = None
WOREDA_KEY   = "ADM3_PCODE"     # admin-3 code in the boundary file
WOREDA_NAME  = "ADM3_EN"        # optional woreda name

POP_PATH  = DATA_DIR / "eth_admpop_adm3_2022.csv"
POP_SHEET = 0                   # used when the table is an Excel workbook
POP_KEY   = "admin3Pcode"       # admin-3 code in the population table
POP_COL   = "Total"             # population column in the population table

DEM_PATH = DATA_DIR / "eth_dem_srtm_90m.tif"

# Output column names
ID_COL        = "woreda_id"
POPULATION    = "population"
ELEVATION     = "elevation_mean"
AREA_KM2      = "area_km2"
POP_DENSITY   = "pop_density"

X_VARIABLE = POPULATION         # POPULATION | POP_DENSITY
Y_VARIABLE = ELEVATION

N_CLASSES    = 3
PALETTE_NAME = "DkBlue"         # "DkBlue" | "GrPink" | "DkViolet"

CRS_LATLON = "EPSG:4326"
CRS_PROJ   = "EPSG:20137"       # Adindan / UTM zone 37N
EQ_EPSG    = 6933               # equal-area CRS for area calc

NODATA_COLOR = "lightgrey"
FIGSIZE      = (10, 9)
DPI          = 300

OUTDIR   = Path("bivariate_outputs")
OUT_PNG  = OUTDIR / "map_bivariate_population_elevation.png"
OUT_CSV  = OUTDIR / "woreda_population_elevation_classes.csv"
OUT_GPKG = OUTDIR / "woreda_population_elevation_classes.gpkg"
OUT_LAYER = "woredas"

LOG_LEVEL = "INFO"
