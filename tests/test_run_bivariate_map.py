import logging

import numpy as np
import pandas as pd
import geopandas as gpd
import pytest

from bivariate_palette import PaletteError, PALETTES
from conftest import OUTSIDE
from run_bivariate_map import class_counts, main


@pytest.fixture
def inputs(woreda_file, population_file, dem_file):
    return dict(
        woreda_path=woreda_file,
        pop_path=population_file,
        dem_path=dem_file,
        woreda_key="ADM3_PCODE",
        pop_key="admin3Pcode",
        pop_col="Total",
        woreda_name="ADM3_EN",
    )


def test_end_to_end(tmp_path, inputs, caplog):
    out_png = tmp_path / "out" / "map.png"
    out_csv = tmp_path / "out" / "classes.csv"
    out_gpkg = tmp_path / "out" / "classes.gpkg"

    with caplog.at_level(logging.INFO):
        result = main(out_png=out_png, out_csv=out_csv, out_gpkg=out_gpkg, **inputs)

    # ET0109 has no population row, ET9999 has no polygon
    assert sorted(result["woreda_id"]) == [f"ET010{i}" for i in range(1, 9)] + [OUTSIDE]
    assert "ET0109" in caplog.text and "ET9999" in caplog.text

    by_id = result.set_index("woreda_id")
    assert pd.isna(by_id.loc["ET0108", "bi_class"])
    assert pd.isna(by_id.loc[OUTSIDE, "bi_class"])
    assert by_id.loc["ET0101", "population"] == 10_000
    assert by_id.loc["ET0101", "bi_class"] == "1-1"
    assert by_id.loc["ET0107", "bi_class"] == "3-3"

    valid = result.dropna(subset=["bi_class"])
    assert valid["x_bin"].between(0, 2).all()
    assert valid["y_bin"].between(0, 2).all()

    assert out_png.exists() and out_png.stat().st_size > 0
    table = pd.read_csv(out_csv)
    assert "geometry" not in table.columns
    assert len(table) == len(result)
    layer = gpd.read_file(out_gpkg, layer="woredas")
    assert len(layer) == len(result)
    assert "[saved]" in caplog.text


def test_palette_mismatch_fails_before_reading_inputs(tmp_path):
    with pytest.raises(PaletteError):
        main(k=4, palette_name="DkBlue", woreda_path=tmp_path / "missing.shp")


def test_density_on_x_axis(tmp_path, inputs):
    result = main(
        x_var="pop_density",
        palette_name="GrPink",
        out_png=tmp_path / "m.png",
        out_csv=tmp_path / "c.csv",
        out_gpkg=tmp_path / "c.gpkg",
        **inputs,
    )
    valid = result.dropna(subset=["bi_class"])
    assert len(valid) == 7
    assert valid["bi_class"].isin(list(PALETTES["GrPink"])).all()


def test_class_counts_layout():
    df = pd.DataFrame({
        "x_bin": pd.array([0, 0, 2, 1, pd.NA], dtype="Int64"),
        "y_bin": pd.array([2, 2, 0, 1, 1], dtype="Int64"),
    })
    tab = class_counts(df, 3)
    assert list(tab.index) == ["y3", "y2", "y1"]
    assert list(tab.columns) == ["x1", "x2", "x3"]
    assert tab.loc["y3", "x1"] == 2
    assert tab.loc["y1", "x3"] == 1
    assert tab.to_numpy().sum() == 4
