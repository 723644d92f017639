import logging
import random
from collections import namedtuple

from algorithms.blood_compatibility import is_compatible
from algorithms.haversine import distance_between, has_coordinates

# Constants
DEFAULT_RADIUS_KM = 15

# Unknown-location policies
PSEUDO_NEAR = 'pseudo_near'
EXCLUDE = 'exclude'
UNKNOWN_LOCATION_POLICIES = (PSEUDO_NEAR, EXCLUDE)

# Synthetic distance range for donors without coordinates
PSEUDO_NEAR_MIN_KM = 1
PSEUDO_NEAR_MAX_KM = 11

# Logger
logger = logging.getLogger(__name__)

MatchCandidate = namedtuple('MatchCandidate', ['donor', 'distance_km'])


def pseudo_near_distance(rng=None):
    """
    Synthetic distance for a donor whose location is unknown.

    This is a fallback for incomplete profiles, not a measured distance:
    such donors are treated as somewhere nearby so they still hear about
    the request.
    """
    rng = rng or random
    return round(rng.uniform(PSEUDO_NEAR_MIN_KM, PSEUDO_NEAR_MAX_KM) * 10) / 10


def is_matchable(donor):
    """Only available donors with a known blood type take part in matching."""
    return bool(donor.get('is_available')) and bool(donor.get('blood_type'))


def find_matches(request_coords, requested_blood_type, donor_pool,
                 radius_km=DEFAULT_RADIUS_KM, unknown_location=PSEUDO_NEAR, rng=None):
    """
    Find compatible, available donors within ``radius_km`` of a request.

    Criteria:
    - Donor is available and has a blood type
    - Donor blood type compatible with the requested type
    - Donor is within radius_km of the request

    Args:
        request_coords (dict): ``{'lat': ..., 'lng': ...}`` of the request
        requested_blood_type (str): Blood type needed
        donor_pool (iterable): Donor profile dicts
        radius_km (float): Search radius in km
        unknown_location (str): ``pseudo_near`` or ``exclude`` for donors
            without coordinates
        rng (random.Random): Source for synthetic distances

    Returns:
        List of MatchCandidate sorted by distance (closest first)
    """
    if unknown_location not in UNKNOWN_LOCATION_POLICIES:
        raise ValueError(f"Unknown location policy: {unknown_location}")

    candidates = []

    for donor in donor_pool:
        if not is_matchable(donor):
            continue

        if not is_compatible(donor['blood_type'], requested_blood_type):
            continue

        if has_coordinates(donor.get('coordinates')):
            distance = distance_between(request_coords, donor['coordinates'])
        elif unknown_location == PSEUDO_NEAR:
            distance = pseudo_near_distance(rng)
            logger.debug(f"Donor {donor.get('id')} has no location, using pseudo-near distance {distance}km")
        else:
            continue

        if distance > radius_km:
            continue

        candidates.append(MatchCandidate(donor, distance))

    candidates.sort(key=lambda c: c.distance_km)
    return candidates
