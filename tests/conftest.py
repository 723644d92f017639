import math
import random

import pytest

from algorithms.haversine import EARTH_RADIUS_KM
from bloodrequests.services import BloodRequestService, MatchingConfig
from donors.repositories import DonorRepository
from notifications.emitter import NotificationEmitter
from storage.kv import InMemoryKeyValueStore

NEW_YORK = {'lat': 40.7128, 'lng': -74.0060}

KM_PER_DEGREE_LAT = EARTH_RADIUS_KM * math.pi / 180


def north_of(origin, km):
    """Point ``km`` kilometres due north of ``origin``."""
    return {'lat': origin['lat'] + km / KM_PER_DEGREE_LAT, 'lng': origin['lng']}


def make_donor(donor_id, blood_type='O+', km=None, is_available=True, origin=NEW_YORK, **extra):
    profile = {
        'id': donor_id,
        'role': 'donor',
        'full_name': f'Donor {donor_id}',
        'email': f'{donor_id}@example.com',
        'phone': '555-0100',
        'blood_type': blood_type,
        'is_available': is_available,
        'location': 'New York',
        'coordinates': north_of(origin, km) if km is not None else None,
    }
    profile.update(extra)
    return profile


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def donors(store):
    return DonorRepository(store)


@pytest.fixture
def config():
    return MatchingConfig(search_radius_km=15, unknown_location='exclude', nearby_radius_km=15)


@pytest.fixture
def service(store, donors, config):
    return BloodRequestService(
        store=store,
        donors=donors,
        emitter=NotificationEmitter(store),
        config=config,
        rng=random.Random(7),
    )
