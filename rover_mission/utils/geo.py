"""
Geographic utilities

WGS84 to UTM projection (transverse Mercator, Snyder's series).
Accurate to well under a meter inside a zone.
"""

import math
from typing import Tuple

# WGS84 ellipsoid parameters
EARTH_RADIUS_M = 6378137.0              # Equatorial radius
EARTH_FLATTENING = 1.0 / 298.257223563  # WGS84 flattening

UTM_SCALE_FACTOR = 0.9996
UTM_FALSE_EASTING = 500000.0
UTM_FALSE_NORTHING_SOUTH = 10000000.0


def utm_zone(lat: float, lon: float) -> int:
    """
    UTM zone number for a position

    Includes the Norway and Svalbard exceptions.

    Args:
        lat, lon: Position in degrees

    Returns:
        Zone number 1-60
    """
    # Normalize longitude to [-180, 180)
    lon = ((lon + 180.0) % 360.0) - 180.0
    zone = int((lon + 180.0) / 6.0) + 1

    if 56.0 <= lat < 64.0 and 3.0 <= lon < 12.0:
        return 32

    if 72.0 <= lat < 84.0:
        if 0.0 <= lon < 9.0:
            return 31
        elif 9.0 <= lon < 21.0:
            return 33
        elif 21.0 <= lon < 33.0:
            return 35
        elif 33.0 <= lon < 42.0:
            return 37

    return min(zone, 60)


def central_meridian(zone: int) -> float:
    """Longitude of the central meridian of a UTM zone, in degrees"""
    return (zone - 1) * 6.0 - 180.0 + 3.0


def gps_to_utm(lat: float, lon: float) -> Tuple[float, float, int, str]:
    """
    Convert GPS coordinates to UTM

    Args:
        lat, lon: Position in degrees

    Returns:
        Tuple of (easting, northing, zone, hemisphere) with hemisphere
        'N' or 'S'

    Raises:
        ValueError: Outside the UTM latitude range (-80 to 84 degrees)
    """
    if not (-80.0 <= lat <= 84.0):
        raise ValueError(f"Latitude {lat} outside UTM range")

    zone = utm_zone(lat, lon)
    lon0 = math.radians(central_meridian(zone))

    a = EARTH_RADIUS_M
    e2 = EARTH_FLATTENING * (2.0 - EARTH_FLATTENING)
    e4 = e2 * e2
    e6 = e4 * e2
    ep2 = e2 / (1.0 - e2)

    phi = math.radians(lat)
    lam = math.radians(lon)
    sin_phi = math.sin(phi)
    cos_phi = math.cos(phi)
    tan_phi = math.tan(phi)

    n = a / math.sqrt(1.0 - e2 * sin_phi ** 2)
    t = tan_phi ** 2
    c = ep2 * cos_phi ** 2
    # Longitude difference wrapped to [-pi, pi)
    d_lam = (lam - lon0 + math.pi) % (2.0 * math.pi) - math.pi
    big_a = cos_phi * d_lam

    # Meridional arc
    m = a * (
        (1.0 - e2 / 4.0 - 3.0 * e4 / 64.0 - 5.0 * e6 / 256.0) * phi
        - (3.0 * e2 / 8.0 + 3.0 * e4 / 32.0 + 45.0 * e6 / 1024.0) * math.sin(2.0 * phi)
        + (15.0 * e4 / 256.0 + 45.0 * e6 / 1024.0) * math.sin(4.0 * phi)
        - (35.0 * e6 / 3072.0) * math.sin(6.0 * phi)
    )

    easting = UTM_SCALE_FACTOR * n * (
        big_a
        + (1.0 - t + c) * big_a ** 3 / 6.0
        + (5.0 - 18.0 * t + t ** 2 + 72.0 * c - 58.0 * ep2) * big_a ** 5 / 120.0
    ) + UTM_FALSE_EASTING

    northing = UTM_SCALE_FACTOR * (
        m + n * tan_phi * (
            big_a ** 2 / 2.0
            + (5.0 - t + 9.0 * c + 4.0 * c ** 2) * big_a ** 4 / 24.0
            + (61.0 - 58.0 * t + t ** 2 + 600.0 * c - 330.0 * ep2) * big_a ** 6 / 720.0
        )
    )

    hemisphere = 'N'
    if lat < 0:
        northing += UTM_FALSE_NORTHING_SOUTH
        hemisphere = 'S'

    return easting, northing, zone, hemisphere
