import logging

import numpy as np
import pandas as pd
import pytest

from quantile_classes import ClassificationScheme, classify, classify_series, compute_scheme


def test_quintile_breaks():
    scheme = compute_scheme([10, 20, 30, 40, 50], 5)
    assert scheme.breaks == pytest.approx((10, 18, 26, 34, 42, 50))
    assert scheme.n_classes == 5
    assert not scheme.is_collapsed


def test_quintile_classify_and_clamp():
    scheme = compute_scheme([10, 20, 30, 40, 50], 5)
    assert classify(10, scheme) == 0
    assert classify(50, scheme) == 4
    assert classify(55, scheme) == 4
    assert classify(-3, scheme) == 0


def test_bins_are_right_closed_above_the_first():
    scheme = compute_scheme([10, 20, 30, 40, 50], 5)
    assert classify(18, scheme) == 0
    assert classify(18.0001, scheme) == 1
    assert classify(42, scheme) == 3


@pytest.mark.parametrize("k", [2, 3, 4, 7])
def test_breaks_cover_observed_range(k):
    rng = np.random.default_rng(7)
    values = rng.lognormal(10, 1.2, size=250)
    scheme = compute_scheme(values, k)
    assert len(scheme.breaks) == k + 1
    assert scheme.breaks[0] == values.min()
    assert scheme.breaks[-1] == values.max()
    assert all(0 <= classify(v, scheme) < k for v in values)


def test_training_values_fill_every_class():
    values = np.arange(1, 31, dtype=float)
    scheme = compute_scheme(values, 3)
    counts = pd.Series([classify(v, scheme) for v in values]).value_counts()
    assert sorted(counts.index) == [0, 1, 2]
    assert counts.max() - counts.min() <= 1


def test_ties_collapse_with_warning(caplog):
    values = [0] * 8 + [5, 9]
    with caplog.at_level(logging.WARNING, logger="quantile_classes"):
        scheme = compute_scheme(values, 3, name="population")
    assert len(scheme.breaks) == 4
    assert scheme.is_collapsed
    assert scheme.edges == (0.0, 9.0)
    assert "population" in caplog.text and "effective" in caplog.text
    assert all(0 <= classify(v, scheme) < scheme.n_classes for v in values)


def test_all_equal_values_do_not_fail(caplog):
    with caplog.at_level(logging.WARNING, logger="quantile_classes"):
        scheme = compute_scheme([7.0, 7.0, 7.0], 3)
    assert scheme.breaks == (7.0, 7.0, 7.0, 7.0)
    assert scheme.edges == (7.0, 7.0)
    assert scheme.n_classes == 1
    assert classify(7.0, scheme) == 0
    assert classify(100.0, scheme) == 0
    assert "1 effective" in caplog.text


def test_missing_values_are_ignored_and_not_classified():
    values = pd.Series([1.0, np.nan, 2.0, 3.0, None, 4.0], name="elevation_mean")
    scheme = compute_scheme(values, 2)
    assert scheme.name == "elevation_mean"
    assert scheme.breaks == pytest.approx((1.0, 2.5, 4.0))
    assert classify(np.nan, scheme) is None
    assert classify(None, scheme) is None


def test_classify_series_matches_scalar():
    values = pd.Series([5.0, 12.0, np.nan, 30.0, 70.0], index=list("abcde"))
    scheme = compute_scheme([10, 20, 30, 40, 50], 5)
    out = classify_series(values, scheme)
    assert str(out.dtype) == "Int64"
    assert list(out.index) == list("abcde")
    assert out.isna().tolist() == [False, False, True, False, False]
    assert [out[i] for i in "abde"] == [classify(values[i], scheme) for i in "abde"]


def test_reclassification_is_identical():
    rng = np.random.default_rng(3)
    values = rng.normal(2000, 600, size=100)
    a = compute_scheme(values, 3)
    b = compute_scheme(values, 3)
    assert a == b
    assert classify_series(pd.Series(values), a).equals(classify_series(pd.Series(values), b))


def test_scheme_is_immutable():
    scheme = compute_scheme([1, 2, 3], 3)
    assert isinstance(scheme, ClassificationScheme)
    with pytest.raises(AttributeError):
        scheme.k = 4


def test_interval_labels():
    scheme = compute_scheme([10, 20, 30, 40, 50], 5)
    labels = scheme.interval_labels()
    assert labels[0] == "[10, 18]"
    assert labels[-1] == "(42, 50]"


@pytest.mark.parametrize("values, k", [([], 3), ([np.nan, np.nan], 3), ([1, 2, 3], 0)])
def test_invalid_input_raises(values, k):
    with pytest.raises(ValueError):
        compute_scheme(values, k)
