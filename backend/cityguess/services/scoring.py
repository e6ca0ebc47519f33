from math import radians, sin, cos, sqrt, atan2, exp

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on Earth.

    Callers validate that latitudes are within [-90, 90] and longitudes
    within [-180, 180].

    Args:
        lat1, lon1: Coordinates of the first point (degrees)
        lat2, lon2: Coordinates of the second point (degrees)

    Returns:
        Distance in kilometers
    """
    # Convert coordinates to radians
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)

    # Haversine formula
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)

    a = sin(dlat / 2)**2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon / 2)**2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def km_to_miles(distance_km: float) -> float:
    return distance_km * KM_TO_MILES


def calculate_score(distance_km: float, max_points: int = 5000, decay_km: float = 2000.0) -> int:
    """
    Calculate score based on distance from actual location.

    Scoring system (exponential decay):
    - 0 km: max_points
    - every further decay_km divides the score by e
    - e.g. with the defaults: 100km -> 4756, 500km -> 3894,
      2000km -> 1839, 10000km -> 34

    The result never increases with distance and never drops below 0.

    Args:
        distance_km: Distance in kilometers, negative values count as 0
        max_points: Maximum possible points
        decay_km: Distance at which the score falls to max_points / e

    Returns:
        Score (0 to max_points)
    """
    distance_km = max(0.0, distance_km)
    return max(0, int(round(max_points * exp(-distance_km / decay_km))))
