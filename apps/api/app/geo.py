"""Great-circle distance, in Python and as a SQL expression."""

from __future__ import annotations

import math

from sqlalchemy import Float, case, func, literal
from sqlalchemy.sql.elements import ColumnElement

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in kilometres between two (lat, lng) points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def _radians(value) -> ColumnElement[float]:
    return func.radians(value, type_=Float)


def haversine_km_sql(
    lat: float,
    lng: float,
    lat_column: ColumnElement[float],
    lng_column: ColumnElement[float],
) -> ColumnElement[float]:
    """
    Same formula as haversine_km, evaluated by the database against a row's
    coordinate columns. Uses only radians/sin/cos/asin/sqrt/power so it runs
    on PostgreSQL as-is and on SQLite once app.db registers those functions.
    """
    origin_lat = literal(lat, Float)
    origin_lng = literal(lng, Float)

    half_d_phi = (_radians(lat_column) - _radians(origin_lat)) / 2
    half_d_lambda = (_radians(lng_column) - _radians(origin_lng)) / 2

    a = func.power(func.sin(half_d_phi, type_=Float), 2, type_=Float) + func.cos(
        _radians(origin_lat), type_=Float
    ) * func.cos(_radians(lat_column), type_=Float) * func.power(
        func.sin(half_d_lambda, type_=Float), 2, type_=Float
    )
    # Rounding can push `a` a hair above 1 for antipodal points.
    clamped = case((a > 1.0, 1.0), else_=a)
    return (2 * EARTH_RADIUS_KM) * func.asin(func.sqrt(clamped, type_=Float), type_=Float)
