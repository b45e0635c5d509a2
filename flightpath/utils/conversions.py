"""Unit conversions for display readouts"""

FT_PER_M = 3.28084
KNOTS_PER_KMH = 0.539957
KMH_PER_MPS = 3.6


def meters_to_feet(meters: float) -> int:
    return round(meters * FT_PER_M)


def kmh_to_knots(kmh: float) -> int:
    return round(kmh * KNOTS_PER_KMH)


def mps_to_kmh(mps: float) -> float:
    return mps * KMH_PER_MPS
