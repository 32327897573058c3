import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import geopandas as gpd
import pytest
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import box

NODATA = -9999.0
CELL = 0.1                      # DEM resolution in degrees
DEM_WEST, DEM_NORTH = 38.0, 10.0
DEM_SIZE = 20                   # 20 x 20 cells -> 38..40E, 8..10N

# 3 x 3 grid of 0.5° woredas in the DEM's top-left corner, codes ET0101..ET0109
# row 0 is the northern row
GRID = [
    (f"ET01{r * 3 + c + 1:02d}", c, r) for r in range(3) for c in range(3)
]
ELEVATIONS = {
    "ET0101": 500.0, "ET0102": 900.0, "ET0103": 1300.0,
    "ET0104": 1700.0, "ET0105": 2100.0, "ET0106": 2500.0,
    "ET0107": 2900.0, "ET0108": None, "ET0109": 3300.0,   # ET0108 over nodata
}
OUTSIDE = "ET0199"


def _square(c, r):
    x0 = DEM_WEST + 0.5 * c
    y1 = DEM_NORTH - 0.5 * r
    return box(x0, y1 - 0.5, x0 + 0.5, y1)


@pytest.fixture
def woredas():
    rows = [{"woreda_id": code, "ADM3_EN": f"Woreda {code[-2:]}", "geometry": _square(c, r)} for code, c, r in GRID]
    rows.append({"woreda_id": OUTSIDE, "ADM3_EN": "Offshore", "geometry": box(45.0, 5.0, 45.5, 5.5)})
    return gpd.GeoDataFrame(rows, geometry="geometry", crs="EPSG:4326")


@pytest.fixture
def woreda_file(tmp_path, woredas):
    path = tmp_path / "woredas.gpkg"
    out = woredas.rename(columns={"woreda_id": "ADM3_PCODE"})
    # lower-case, padded codes to exercise key normalisation
    out["ADM3_PCODE"] = " " + out["ADM3_PCODE"].str.lower() + " "
    out.to_file(path, driver="GPKG")
    return path


@pytest.fixture
def dem_file(tmp_path):
    arr = np.full((DEM_SIZE, DEM_SIZE), 100.0, dtype="float32")
    for code, c, r in GRID:
        if ELEVATIONS[code] is not None:
            arr[r * 5:(r + 1) * 5, c * 5:(c + 1) * 5] = ELEVATIONS[code]
    # nodata with a one-cell margin around ET0108 so edge cells of neighbours never leak in
    arr[9:16, 4:11] = NODATA

    path = tmp_path / "dem.tif"
    with rasterio.open(
        path, "w",
        driver="GTiff",
        height=DEM_SIZE, width=DEM_SIZE, count=1,
        dtype="float32",
        crs="EPSG:4326",
        transform=from_origin(DEM_WEST, DEM_NORTH, CELL, CELL),
        nodata=NODATA,
    ) as dst:
        dst.write(arr, 1)
    return path


@pytest.fixture
def population_file(tmp_path):
    rows = [{"admin3Pcode": code, "Total": f"{(i + 1) * 10_000:,}"} for i, (code, _, _) in enumerate(GRID[:8])]
    rows += [
        {"admin3Pcode": OUTSIDE, "Total": "5,000"},
        {"admin3Pcode": "ET9999", "Total": "1,000"},     # no polygon
        {"admin3Pcode": "ET0101", "Total": "999,999"},   # repeated code
    ]
    path = tmp_path / "population.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path
