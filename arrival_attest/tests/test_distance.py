"""
Test haversine distance and geofence classification.

Verifies:
- Identity and symmetry
- Known fixture on the equator
- Strict boundary at the threshold
- Coordinate parsing of untrusted input
"""

from __future__ import annotations

import math

import pytest

from arrival_attest.distance import (
    ARRIVAL_THRESHOLD_M,
    EARTH_RADIUS_M,
    Proximity,
    classify,
    haversine_distance_m,
    parse_latitude,
    parse_longitude,
    round_half_up,
)

# Meters per degree of latitude on the model sphere.
M_PER_DEG = EARTH_RADIUS_M * math.pi / 180.0


@pytest.mark.parametrize(
    "lat,lon",
    [(0.0, 0.0), (28.0026, 86.8528), (-33.8688, 151.2093), (89.9, -179.9)],
)
def test_distance_to_self_is_zero(lat, lon):
    assert haversine_distance_m(lat, lon, lat, lon) == 0.0


def test_distance_is_symmetric():
    a = (19.076, 72.8777)
    b = (22.5726, 88.3639)
    assert haversine_distance_m(*a, *b) == pytest.approx(haversine_distance_m(*b, *a))


def test_one_degree_of_longitude_on_equator():
    d = haversine_distance_m(0, 0, 0, 1)
    assert d == pytest.approx(111_195, rel=0.01)
    assert d == pytest.approx(M_PER_DEG)


def test_antipodes_are_half_circumference():
    d = haversine_distance_m(0, 0, 0, 180)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_M)


@pytest.mark.parametrize(
    "lat,lon",
    [(35.6517, 138.7944), (28.0026, 86.8528), (-33.8688, 151.2093), (0.1, 0.1), (89.0, 45.0), (12.345678, -98.7654321)],
)
def test_exact_antipodes_stay_in_domain(lat, lon):
    anti_lon = lon - 180.0 if lon > 0 else lon + 180.0
    d = haversine_distance_m(lat, lon, -lat, anti_lon)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-6)


def test_many_exact_antipodes_never_raise():
    for i in range(2000):
        lat = -89.0 + (i * 0.0891) % 178.0
        lon = -179.0 + (i * 0.1789) % 358.0
        anti_lon = lon - 180.0 if lon > 0 else lon + 180.0
        d = haversine_distance_m(lat, lon, -lat, anti_lon)
        assert 0.0 <= d <= math.pi * EARTH_RADIUS_M
        assert classify(d) is Proximity.OUTSIDE


def test_threshold_constant():
    assert ARRIVAL_THRESHOLD_M == 50.0


def test_boundary_is_outside():
    assert classify(50.0) is Proximity.OUTSIDE
    assert classify(49.999) is Proximity.WITHIN
    assert classify(50.001) is Proximity.OUTSIDE
    assert classify(0.0) is Proximity.WITHIN


def test_nan_distance_never_passes():
    assert classify(float("nan")) is Proximity.OUTSIDE


@pytest.mark.parametrize("meters,expected", [(10, Proximity.WITHIN), (40, Proximity.WITHIN), (60, Proximity.OUTSIDE), (500, Proximity.OUTSIDE)])
def test_monotonic_around_destination(meters, expected):
    lat, lon = 26.93377, 75.9236
    d = haversine_distance_m(lat + meters / M_PER_DEG, lon, lat, lon)
    assert d == pytest.approx(meters, rel=1e-6)
    assert classify(d) is expected


def test_round_half_up_matches_js_math_round():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(0.0) == 0


@pytest.mark.parametrize("raw,expected", [(12.5, 12.5), ("12.5", 12.5), ("1e1", 10.0), (" -45 ", -45.0), (90, 90.0), ("-90", -90.0), (0, 0.0)])
def test_parse_latitude_accepts(raw, expected):
    assert parse_latitude(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "1_0", "\u0663", "\uff11\uff12", "NaN", "inf", "90.0001", -91, True, None, [1], {"v": 1}, 10**400])
def test_parse_latitude_rejects(raw):
    assert parse_latitude(raw) is None


def test_parse_longitude_range():
    assert parse_longitude("180") == 180.0
    assert parse_longitude("-180") == -180.0
    assert parse_longitude(180.5) is None
    assert parse_longitude("1e3") is None
