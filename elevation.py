"""
Elevation correction for sunrise and sunset (Kemenag RI).
An observer above sea level sees a lowered horizon, so the sun appears to rise
earlier and set later. Two strategies convert elevation into whole minutes:
the horizon-dip formula and the Kemenag practical table (default).
"""

import math
from enum import Enum


class ElevationCorrection(str, Enum):
    TABLE = "table"
    FORMULA = "formula"
    NONE = "none"


# (upper bound in meters, exclusive) -> minutes
_KEMENAG_TABLE: tuple[tuple[float, int], ...] = (
    (250.0, 0),
    (700.0, 1),
    (1000.0, 2),
    (1300.0, 3),
    (1700.0, 4),
    (2000.0, 5),
    (2500.0, 6),
)


def horizon_dip_degrees(elevation: float) -> float:
    """Dip of the horizon in degrees: D' = 1.76 × √elevation / 60."""
    if elevation <= 0:
        return 0.0
    return 1.76 * math.sqrt(elevation) / 60.0


def formula_correction_minutes(elevation: float) -> int:
    """Horizon dip converted to time, 4 minutes per degree, rounded half up."""
    if elevation <= 0:
        return 0
    return int(math.floor(horizon_dip_degrees(elevation) * 4.0 + 0.5))


def table_correction_minutes(elevation: float) -> int:
    """Kemenag practical table. Above 2500 m, one more minute per started 250 m."""
    for upper, minutes in _KEMENAG_TABLE:
        if elevation < upper:
            return minutes
    return 6 + math.ceil((elevation - 2500.0) / 250.0)


def correction_minutes(elevation: float, strategy: ElevationCorrection) -> int:
    """Minutes subtracted from sunrise and added to maghrib for the given strategy."""
    strategy = ElevationCorrection(strategy)
    if strategy is ElevationCorrection.NONE:
        return 0
    if strategy is ElevationCorrection.FORMULA:
        return formula_correction_minutes(elevation)
    return table_correction_minutes(elevation)
