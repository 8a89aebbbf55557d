import pytest

from elevation import (
    ElevationCorrection,
    correction_minutes,
    formula_correction_minutes,
    horizon_dip_degrees,
    table_correction_minutes,
)


def test_horizon_dip_bandung():
    # 1.76 * sqrt(768) / 60
    assert horizon_dip_degrees(768) == pytest.approx(0.813, abs=0.01)


@pytest.mark.parametrize("elevation", [0, -5])
def test_sea_level_has_no_correction(elevation):
    assert horizon_dip_degrees(elevation) == 0
    assert formula_correction_minutes(elevation) == 0
    assert table_correction_minutes(elevation) == 0


@pytest.mark.parametrize(
    "elevation, minutes",
    [
        (100, 0),
        (249.9, 0),
        (250, 1),
        (300, 1),
        (708, 2),
        (768, 2),
        (1000, 3),
        (1312, 4),
        (1700, 5),
        (2093, 6),
        (2500, 6),
        (2501, 7),
        (2750, 7),
        (3000, 8),
    ],
)
def test_kemenag_table(elevation, minutes):
    assert table_correction_minutes(elevation) == minutes


def test_formula_correction():
    # dip at 708 m is ~0.78 degrees, ~3.1 minutes
    assert formula_correction_minutes(708) == 3
    assert formula_correction_minutes(100) == 1


@pytest.mark.parametrize(
    "strategy", [ElevationCorrection.TABLE, ElevationCorrection.FORMULA]
)
def test_corrections_are_non_decreasing(strategy):
    previous = 0
    for elevation in range(0, 5001, 10):
        minutes = correction_minutes(elevation, strategy)
        assert minutes >= previous
        previous = minutes


def test_dip_is_continuous_and_increasing():
    dips = [horizon_dip_degrees(e) for e in range(0, 3001)]
    for a, b in zip(dips, dips[1:]):
        assert b > a
        assert b - a < 0.25


def test_strategy_selection():
    assert correction_minutes(708, ElevationCorrection.TABLE) == 2
    assert correction_minutes(708, ElevationCorrection.FORMULA) == 3
    assert correction_minutes(708, ElevationCorrection.NONE) == 0
    assert correction_minutes(708, "formula") == 3
