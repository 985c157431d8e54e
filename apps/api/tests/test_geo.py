from __future__ import annotations

import math

import pytest
from sqlalchemy import Float, literal, select

from app.geo import EARTH_RADIUS_KM, haversine_km, haversine_km_sql


def test_same_point_is_zero_distance():
    assert haversine_km(52.52, 13.405, 52.52, 13.405) == 0


def test_berlin_to_paris():
    assert haversine_km(52.52, 13.405, 48.8566, 2.3522) == pytest.approx(877.5, abs=2)


def test_distance_is_symmetric():
    there = haversine_km(40.7128, -74.006, 51.5074, -0.1278)
    back = haversine_km(51.5074, -0.1278, 40.7128, -74.006)
    assert there == pytest.approx(back)


def test_antipodal_points_are_half_the_circumference():
    assert haversine_km(0, 0, 0, 180) == pytest.approx(math.pi * EARTH_RADIUS_KM)


@pytest.mark.parametrize(
    ("lat", "lng"),
    [(52.54698, 13.405), (48.8566, 2.3522), (-33.8688, 151.2093), (0, -180)],
)
def test_sql_expression_matches_python(db_session, lat, lng):
    expr = haversine_km_sql(52.52, 13.405, literal(lat, Float), literal(lng, Float))

    assert db_session.scalar(select(expr)) == pytest.approx(
        haversine_km(52.52, 13.405, lat, lng), rel=1e-9
    )
