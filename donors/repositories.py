# donors/repositories.py
import logging

from django.utils import timezone

from bloodbridge.exceptions import NotFoundError, ValidationError
from donors.fixtures import DEMO_PROFILES
from storage.kv import InMemoryKeyValueStore

PROFILE_PREFIX = 'user_profile:'

ROLE_DONOR = 'donor'
ROLE_PATIENT = 'patient'
ROLE_CLINIC = 'clinic'
ROLES = (ROLE_DONOR, ROLE_PATIENT, ROLE_CLINIC)

logger = logging.getLogger(__name__)


def profile_key(user_id):
    return f"{PROFILE_PREFIX}{user_id}"


class DonorRepository:
    """User profiles kept in the key-value store under ``user_profile:<id>``."""

    def __init__(self, store):
        self.store = store

    def get_profile(self, user_id):
        return self.store.get(profile_key(user_id))

    def require_profile(self, user_id):
        profile = self.get_profile(user_id)
        if not profile:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile

    def save_profile(self, profile):
        self.store.set(profile_key(profile['id']), profile)
        return profile

    def all_profiles(self):
        return self.store.get_by_prefix(PROFILE_PREFIX)

    def donor_pool(self):
        """Every profile with the donor role, available or not."""
        return [p for p in self.all_profiles() if p.get('role') == ROLE_DONOR]

    def search(self, blood_type=None, location=None):
        """Available donors, optionally narrowed by exact blood type and location substring."""
        donors = [d for d in self.donor_pool() if d.get('is_available')]
        if blood_type:
            donors = [d for d in donors if d.get('blood_type') == blood_type]
        if location:
            needle = location.lower()
            donors = [d for d in donors if needle in (d.get('location') or '').lower()]
        return donors

    def update_profile(self, user_id, changes):
        """
        Merge ``changes`` into the caller's profile. The first update creates
        the profile and must name a role.
        """
        now = timezone.now().isoformat()
        profile = self.get_profile(user_id)

        if not profile:
            role = changes.get('role')
            if role not in ROLES:
                raise ValidationError({'role': 'This field is required when creating a profile.'})
            profile = {
                'id': user_id,
                'role': role,
                'is_available': False,
                'coordinates': None,
                'created_at': now,
            }
            logger.info(f"Creating {role} profile for {user_id}")

        profile.update({k: v for k, v in changes.items() if k != 'id'})
        profile['updated_at'] = now
        self.save_profile(profile)
        return profile

    def set_availability(self, user_id, is_available):
        profile = self.require_profile(user_id)
        if profile.get('role') != ROLE_DONOR:
            raise ValidationError('Only donors can update availability')

        profile['is_available'] = bool(is_available)
        profile['updated_at'] = timezone.now().isoformat()
        self.save_profile(profile)

        logger.info(f"Donor {user_id} availability set to {profile['is_available']}")
        return profile


class FixtureDonorRepository(DonorRepository):
    """Repository seeded with the demo donor population, backed by an in-memory store."""

    def __init__(self, store=None, profiles=DEMO_PROFILES):
        super().__init__(store if store is not None else InMemoryKeyValueStore())
        for profile in profiles:
            self.save_profile(profile)
