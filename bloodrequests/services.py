# bloodrequests/services.py
"""
Blood request orchestration: submit, match, notify, accept, cancel.

The service is built per HTTP request from an explicit Caller and
MatchingConfig; it holds no state of its own beyond the store it wraps.
Reads of the donor pool and writes of notifications are scan-then-write,
not a transaction, so two concurrent submissions may both notify the same
donor. That is accepted at-least-once behaviour.
"""
import logging
import math
import random
import uuid
from collections import namedtuple
from numbers import Number

from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from algorithms.blood_compatibility import BLOOD_TYPES
from algorithms.haversine import distance_between, has_coordinates
from algorithms.matching import EXCLUDE, PSEUDO_NEAR, UNKNOWN_LOCATION_POLICIES, find_matches
from algorithms.priority import URGENCY_LEVELS, sort_by_urgency_then_distance
from bloodbridge.exceptions import InvalidStateError, NotFoundError, StoreError, ValidationError
from donors.repositories import ROLE_DONOR, DonorRepository, FixtureDonorRepository
from notifications.emitter import NotificationEmitter
from notifications.tasks import queue_delivery
from storage.kv import DatabaseKeyValueStore, InMemoryKeyValueStore

REQUEST_PREFIX = 'blood_request_'

STATUS_ACTIVE = 'Active'
STATUS_ACCEPTED = 'Accepted'
STATUS_CANCELLED = 'Cancelled'

DEFAULT_URGENCY = 'Medium'

# free-text fields kept alongside the validated ones
OPTIONAL_FIELDS = ('hospital', 'reason', 'notes', 'contact_phone')

logger = logging.getLogger(__name__)

MatchingConfig = namedtuple('MatchingConfig', ['search_radius_km', 'unknown_location', 'nearby_radius_km'])


def matching_config_from_settings():
    conf = settings.MATCHING
    policy = conf.get('UNKNOWN_LOCATION_POLICY', EXCLUDE)
    if policy not in UNKNOWN_LOCATION_POLICIES:
        raise ValueError(f"MATCHING['UNKNOWN_LOCATION_POLICY'] must be one of {UNKNOWN_LOCATION_POLICIES}")
    return MatchingConfig(
        search_radius_km=float(conf.get('SEARCH_RADIUS_KM', 15)),
        unknown_location=policy,
        nearby_radius_km=float(conf.get('NEARBY_RADIUS_KM', 15)),
    )


def new_request_id():
    return f"{REQUEST_PREFIX}{uuid.uuid4().hex}"


def _is_number(value):
    return isinstance(value, Number) and not isinstance(value, bool) and math.isfinite(value)


def validate_request_data(data):
    """
    Check a blood request submission and return the cleaned fields.
    Raises ValidationError with a per-field detail dict.
    """
    errors = {}

    blood_type = data.get('blood_type')
    if not blood_type:
        errors['blood_type'] = 'This field is required.'
    elif blood_type not in BLOOD_TYPES:
        errors['blood_type'] = f"Must be one of {', '.join(BLOOD_TYPES)}."

    units = data.get('units')
    if units is None or units == '':
        errors['units'] = 'This field is required.'
    elif isinstance(units, bool) or not isinstance(units, int) or units < 1:
        errors['units'] = 'Must be a positive integer.'

    urgency = data.get('urgency') or DEFAULT_URGENCY
    if urgency not in URGENCY_LEVELS:
        errors['urgency'] = f"Must be one of {', '.join(URGENCY_LEVELS)}."

    coordinates = data.get('coordinates')
    if coordinates is not None:
        if (not isinstance(coordinates, dict)
                or not _is_number(coordinates.get('lat'))
                or not _is_number(coordinates.get('lng'))):
            errors['coordinates'] = 'Must contain finite numeric lat and lng.'

    if errors:
        raise ValidationError(errors)

    cleaned = {k: data[k] for k in OPTIONAL_FIELDS if data.get(k) is not None}
    cleaned.update({
        'blood_type': blood_type,
        'units': units,
        'urgency': urgency,
        'coordinates': None,
    })
    if coordinates is not None:
        cleaned['coordinates'] = {'lat': float(coordinates['lat']), 'lng': float(coordinates['lng'])}
    return cleaned


class BloodRequestService:

    def __init__(self, store, donors, emitter, config, rng=None):
        self.store = store
        self.donors = donors
        self.emitter = emitter
        self.config = config
        self.rng = rng

    # ------------------------------------------
    # Submission
    # ------------------------------------------
    def submit_blood_request(self, request_data, requester_id=None):
        """
        Persist a new blood request and notify matching donors nearby.

        Returns ``{'request_id': ..., 'notified_donors': n}``. A failure to
        store the request itself propagates; failures while matching or
        notifying are logged and the request still stands.
        """
        cleaned = validate_request_data(request_data)

        now = timezone.now().isoformat()
        blood_request = {
            **cleaned,
            'id': new_request_id(),
            'user_id': requester_id,
            'status': STATUS_ACTIVE,
            'created_at': now,
            'last_updated': now,
        }

        self.store.set(blood_request['id'], blood_request)
        logger.info(f"Blood request {blood_request['id']} stored ({blood_request['blood_type']}, "
                    f"{blood_request['units']} units, {blood_request['urgency']})")

        notified = 0
        if has_coordinates(blood_request.get('coordinates')):
            notified = self._notify_nearby_donors(blood_request)
        else:
            logger.info(f"Blood request {blood_request['id']} has no coordinates, skipping donor matching")

        return {'request_id': blood_request['id'], 'notified_donors': notified}

    def _notify_nearby_donors(self, blood_request):
        try:
            candidates = self.find_matches(blood_request['coordinates'], blood_request['blood_type'])
            notifications = self.emitter.notify_matches(blood_request, candidates)
        except Exception:
            logger.exception(f"Donor notification failed for request {blood_request['id']}")
            return 0

        if len(notifications) < len(candidates):
            logger.warning(f"Only {len(notifications)} of {len(candidates)} donors notified "
                           f"for request {blood_request['id']}")
        logger.info(f"Blood request {blood_request['id']} created and "
                    f"{len(notifications)} compatible donors notified")
        return len(notifications)

    def find_matches(self, coordinates, blood_type, radius_km=None):
        """Run the donor matcher over the current donor pool."""
        return find_matches(
            coordinates,
            blood_type,
            self.donors.donor_pool(),
            radius_km=radius_km if radius_km is not None else self.config.search_radius_km,
            unknown_location=self.config.unknown_location,
            rng=self.rng,
        )

    # ------------------------------------------
    # Status transitions
    # ------------------------------------------
    def get_request(self, request_id):
        blood_request = self.store.get(request_id) if request_id.startswith(REQUEST_PREFIX) else None
        if not blood_request:
            raise NotFoundError('Blood request not found')
        return blood_request

    def accept_request(self, request_id, donor_id, donor_message=''):
        """
        Active -> Accepted. The requester gets one ``request_accepted``
        notification; accepting twice raises InvalidStateError.
        """
        blood_request = self.get_request(request_id)

        donor = self.donors.require_profile(donor_id)
        if donor.get('role') != ROLE_DONOR:
            raise ValidationError('Only donors can accept blood requests')

        if blood_request['status'] != STATUS_ACTIVE:
            raise InvalidStateError()

        now = timezone.now().isoformat()
        blood_request.update({
            'status': STATUS_ACCEPTED,
            'accepted_by': donor_id,
            'accepted_by_name': donor.get('full_name'),
            'accepted_by_contact': donor.get('phone'),
            'accepted_by_email': donor.get('email'),
            'accepted_at': now,
            'donor_message': donor_message or '',
            'last_updated': now,
        })
        self.store.set(request_id, blood_request)
        logger.info(f"Request {request_id} accepted by donor {donor_id}")

        if blood_request.get('user_id'):
            try:
                self.emitter.notify_acceptance(blood_request, donor, donor_message)
            except StoreError as e:
                logger.error(f"Acceptance notification failed for request {request_id}: {e}")

        return {
            'success': True,
            'request_id': request_id,
            'donor_info': {
                'name': donor.get('full_name'),
                'contact': donor.get('phone'),
                'email': donor.get('email'),
            },
        }

    def cancel_request(self, request_id, requester_id):
        """Active -> Cancelled, only by the user who created the request."""
        blood_request = self.get_request(request_id)

        if blood_request.get('user_id') != requester_id:
            raise PermissionDenied('Only the requester can cancel a blood request')

        if blood_request['status'] != STATUS_ACTIVE:
            raise InvalidStateError()

        now = timezone.now().isoformat()
        blood_request.update({
            'status': STATUS_CANCELLED,
            'cancelled_at': now,
            'last_updated': now,
        })
        self.store.set(request_id, blood_request)
        logger.info(f"Request {request_id} cancelled by {requester_id}")
        return blood_request

    def mark_notification_read(self, notification_id, user_id):
        self.emitter.mark_read(notification_id, user_id=user_id)

    # ------------------------------------------
    # Listings
    # ------------------------------------------
    def requests_for(self, user_id):
        """Donors see every active request; patients and clinics see their own."""
        profile = self.donors.require_profile(user_id)
        requests = self.store.get_by_prefix(REQUEST_PREFIX)

        if profile.get('role') == ROLE_DONOR:
            requests = [r for r in requests if r.get('status') == STATUS_ACTIVE]
        else:
            requests = [r for r in requests if r.get('user_id') == user_id]

        requests.sort(key=lambda r: r.get('created_at', ''), reverse=True)
        return requests

    def nearby_requests(self, donor_id, radius_km=None):
        """
        Active requests for the donor's own blood type within the radius,
        most urgent first and then nearest.
        """
        donor = self.donors.require_profile(donor_id)
        if not has_coordinates(donor.get('coordinates')):
            return []

        radius_km = radius_km if radius_km is not None else self.config.nearby_radius_km

        nearby = []
        for blood_request in self.store.get_by_prefix(REQUEST_PREFIX):
            if blood_request.get('status') != STATUS_ACTIVE:
                continue
            if blood_request.get('blood_type') != donor.get('blood_type'):
                continue
            if not has_coordinates(blood_request.get('coordinates')):
                continue

            distance = distance_between(donor['coordinates'], blood_request['coordinates'])
            if distance <= radius_km:
                nearby.append({**blood_request, 'distance_km': distance})

        return sort_by_urgency_then_distance(nearby)


def build_service(caller, config=None):
    """
    Wire a BloodRequestService for ``caller``.

    Demo callers get the fixture donor population in a throwaway in-memory
    store and treat unknown-location donors as pseudo-near; everyone else
    works against the database store and gets e-mail delivery queued.
    """
    config = config or matching_config_from_settings()

    if caller.is_demo:
        store = InMemoryKeyValueStore()
        return BloodRequestService(
            store=store,
            donors=FixtureDonorRepository(store),
            emitter=NotificationEmitter(store),
            config=config._replace(unknown_location=PSEUDO_NEAR),
            rng=random.Random(),
        )

    store = DatabaseKeyValueStore()
    return BloodRequestService(
        store=store,
        donors=DonorRepository(store),
        emitter=NotificationEmitter(store, dispatch=queue_delivery),
        config=config,
    )
