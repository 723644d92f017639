"""
Haversine Algorithm - Calculate distance between two geographical points
Used to find donors nearest to the location requesting blood
"""

import math

# Radius of earth in kilometers
EARTH_RADIUS_KM = 6371


def deg2rad(deg):
    return deg * (math.pi / 180)


def distance_km(lat1, lon1, lat2, lon2):
    """
    Calculate straight-line distance between two points.
    Note: This is "as the crow flies" distance, not road distance.

    Args:
        lat1, lon1: Latitude and longitude of point 1 (degrees)
        lat2, lon2: Latitude and longitude of point 2 (degrees)

    Returns:
        Distance in kilometers, rounded to 1 decimal place
    """
    d_lat = deg2rad(lat2 - lat1)
    d_lon = deg2rad(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(deg2rad(lat1)) * math.cos(deg2rad(lat2)) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(EARTH_RADIUS_KM * c * 10) / 10


def has_coordinates(coordinates):
    """True when a ``{'lat': ..., 'lng': ...}`` mapping carries both values."""
    if not coordinates:
        return False
    return coordinates.get('lat') is not None and coordinates.get('lng') is not None


def distance_between(origin, destination):
    """Distance between two ``{'lat', 'lng'}`` mappings."""
    return distance_km(origin['lat'], origin['lng'], destination['lat'], destination['lng'])
