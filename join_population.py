#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Attach population to woreda polygons by admin code.

Join policy: INNER join. Woredas without a population row and population rows
without a woreda are dropped, and both counts are logged at WARNING level with
a sample of the codes. When a code appears more than once in the population
table, the first row is kept and the repeat count is logged.
"""

import logging
from typing import List, NamedTuple

import pandas as pd
import geopandas as gpd

import woreda_config as cfg

logger = logging.getLogger(__name__)

SAMPLE_KEYS = 10


class JoinReport(NamedTuple):
    n_woredas: int
    n_table: int
    n_matched: int
    n_duplicate_table_keys: int
    unmatched_woreda_keys: List[str]
    unmatched_table_keys: List[str]


def _sample(keys) -> str:
    keys = list(keys)
    head = ", ".join(keys[:SAMPLE_KEYS])
    return head + (", ..." if len(keys) > SAMPLE_KEYS else "")


def join_population(
    woredas: gpd.GeoDataFrame,
    population: pd.DataFrame,
    id_col: str = cfg.ID_COL,
    value_col: str = cfg.POPULATION,
):
    """
    Inner-join `population[[id_col, value_col]]` onto `woredas`.

    Returns (joined GeoDataFrame, JoinReport). Row order follows `woredas`.
    """
    for df, what in ((woredas, "woredas"), (population, "population table")):
        if id_col not in df.columns:
            raise ValueError(f"Join column '{id_col}' missing from {what}")
    if value_col not in population.columns:
        raise ValueError(f"Column '{value_col}' missing from population table")

    pop = population[[id_col, value_col]].copy()
    dup = pop[id_col].duplicated(keep="first")
    n_dup = int(dup.sum())
    if n_dup:
        logger.warning(
            "%d duplicate admin code(s) in population table; keeping first row for: %s",
            n_dup, _sample(pop.loc[dup, id_col].unique()),
        )
        pop = pop[~dup]

    woreda_keys = set(woredas[id_col])
    table_keys = set(pop[id_col])
    unmatched_w = sorted(woreda_keys - table_keys)
    unmatched_t = sorted(table_keys - woreda_keys)

    if unmatched_w:
        logger.warning(
            "%d of %d woredas have no population row and are dropped: %s",
            len(unmatched_w), len(woreda_keys), _sample(unmatched_w),
        )
    if unmatched_t:
        logger.warning(
            "%d of %d population rows match no woreda and are dropped: %s",
            len(unmatched_t), len(table_keys), _sample(unmatched_t),
        )

    joined = woredas.merge(pop, on=id_col, how="inner")
    joined = gpd.GeoDataFrame(joined, geometry=woredas.geometry.name, crs=woredas.crs)

    report = JoinReport(
        n_woredas=len(woreda_keys),
        n_table=len(table_keys),
        n_matched=len(joined),
        n_duplicate_table_keys=n_dup,
        unmatched_woreda_keys=unmatched_w,
        unmatched_table_keys=unmatched_t,
    )
    logger.info("Joined population onto %d of %d woredas", report.n_matched, report.n_woredas)
    return joined, report


def add_density(
    gdf: gpd.GeoDataFrame,
    value_col: str = cfg.POPULATION,
    area_col: str = cfg.AREA_KM2,
    out_col: str = cfg.POP_DENSITY,
) -> gpd.GeoDataFrame:
    """Persons per km²; zero or missing area gives NaN."""
    out = gdf.copy()
    area = out[area_col].where(out[area_col] > 0)
    out[out_col] = out[value_col] / area
    return out
