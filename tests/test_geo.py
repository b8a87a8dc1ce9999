import pytest

from school_ranker.geo import (
    band_color,
    band_label,
    distance_band,
    distance_km,
    format_distance,
    haversine_km,
    is_near,
    round_km,
)
from school_ranker.models import Institution, ReferencePosition
from school_ranker.ranking import rank

POINTS = [
    (50.6292, 3.0573),
    (48.8566, 2.3522),
    (-33.8688, 151.2093),
    (0.0, 0.0),
    (89.9, -179.9),
]


@pytest.mark.parametrize("lat, lon", POINTS)
def test_identical_points_are_zero(lat, lon):
    assert distance_km(lat, lon, lat, lon) == 0.0


def test_distance_is_symmetric():
    for lat1, lon1 in POINTS:
        for lat2, lon2 in POINTS:
            assert distance_km(lat1, lon1, lat2, lon2) == distance_km(lat2, lon2, lat1, lon1)


def test_distance_has_two_decimals():
    for lat1, lon1 in POINTS:
        for lat2, lon2 in POINTS:
            d = distance_km(lat1, lon1, lat2, lon2)
            assert round(d, 2) == d


def test_known_distances():
    # One degree along a meridian and half the circumference, R = 6371 km.
    assert distance_km(0, 0, 1, 0) == 111.19
    assert distance_km(0, 0, 0, 180) == 20015.09
    assert 200 < distance_km(48.8566, 2.3522, 50.6292, 3.0573) < 210


def test_rounding_is_half_up():
    assert round_km(0.125) == 0.13
    assert round_km(2.675) == 2.68
    assert round_km(1.234) == 1.23
    assert round_km(haversine_km(0, 0, 1, 0)) == 111.19


def test_distance_bands():
    assert distance_band(0.0) == "very_near"
    assert distance_band(0.99) == "very_near"
    assert distance_band(1.0) == "near"
    assert distance_band(4.99) == "near"
    assert distance_band(5.0) == "moderate"
    assert distance_band(9.99) == "moderate"
    assert distance_band(10.0) == "far"
    assert band_label(0.5) == "Très proche"
    assert band_label(12) == "Éloigné"
    assert band_color(3) == "blue"
    assert band_color(7) == "yellow"


def test_is_near_threshold():
    assert is_near(4.99)
    assert not is_near(5.0)


def test_format_distance():
    assert format_distance(0.85) == "850 m"
    assert format_distance(0.0) == "0 m"
    assert format_distance(1.0) == "1.0 km"
    assert format_distance(12.34) == "12.3 km"


def test_antipodal_points_do_not_fail():
    assert distance_km(87.5, 0, -87.5, 180) == 20015.09
    for lat in range(-90, 91):
        for lon in (0.0, 10.0, -170.0):
            other_lon = lon + 180 if lon <= 0 else lon - 180
            assert 20015.08 <= distance_km(lat, lon, -lat, other_lon) <= 20015.09


def test_rank_handles_antipodal_reference():
    institutions = [Institution(id=0, name="Sud", latitude=-87.5, longitude=180.0)]
    ranked = rank(institutions, ReferencePosition.from_coordinates(87.5, 0.0))
    assert ranked[0].distance == 20015.09
