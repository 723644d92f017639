# notifications/emitter.py
"""
Builds and persists notification records.

Delivery is at-least-once: ``notify_matches`` writes one record per
candidate every time it is called and never looks for earlier records for
the same request. Callers must not invoke it twice for one request unless
they mean to re-notify.
"""
import logging
import uuid

from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from bloodbridge.exceptions import NotFoundError, StoreError

NOTIFICATION_PREFIX = 'notification_'

TYPE_BLOOD_REQUEST = 'blood_request'
TYPE_REQUEST_ACCEPTED = 'request_accepted'

DEFAULT_HOSPITAL = 'Local Hospital'

logger = logging.getLogger(__name__)


def new_notification_id():
    return f"{NOTIFICATION_PREFIX}{uuid.uuid4().hex}"


def units_phrase(units):
    return f"{units} units" if units > 1 else '1 unit'


def distance_phrase(distance_km):
    return 'Very close' if distance_km < 1 else f"{distance_km}km away"


def build_match_notification(blood_request, candidate):
    """Notification telling a matched donor about a nearby request."""
    hospital = blood_request.get('hospital') or DEFAULT_HOSPITAL
    return {
        'id': new_notification_id(),
        'user_id': candidate.donor['id'],
        'type': TYPE_BLOOD_REQUEST,
        'title': f"🩸 {blood_request['urgency']} Blood Request Near You",
        'message': (
            f"{blood_request['blood_type']} blood needed at {hospital} - "
            f"{units_phrase(blood_request['units'])} required ({distance_phrase(candidate.distance_km)})"
        ),
        'blood_request_id': blood_request['id'],
        'distance_km': candidate.distance_km,
        'urgency': blood_request['urgency'],
        'read': False,
        'created_at': timezone.now().isoformat(),
    }


def build_acceptance_notification(blood_request, donor_profile, donor_message=''):
    """Notification telling the requester that a donor accepted."""
    hospital = blood_request.get('hospital') or DEFAULT_HOSPITAL
    donor_name = donor_profile.get('full_name') or 'A donor'
    return {
        'id': new_notification_id(),
        'user_id': blood_request['user_id'],
        'type': TYPE_REQUEST_ACCEPTED,
        'title': '✅ Your Blood Request Has Been Accepted!',
        'message': (
            f"{donor_name} has accepted your {blood_request['blood_type']} blood request "
            f"at {hospital}. They will contact you shortly."
        ),
        'blood_request_id': blood_request['id'],
        'donor_id': donor_profile['id'],
        'donor_name': donor_name,
        'donor_contact': donor_profile.get('phone'),
        'donor_email': donor_profile.get('email'),
        'donor_message': donor_message or '',
        'distance_km': 0,
        # acceptance is always important to the requester
        'urgency': 'High',
        'read': False,
        'created_at': timezone.now().isoformat(),
    }


class NotificationEmitter:
    """
    Persists notifications and hands each one to an optional ``dispatch``
    callable (e.g. queueing an e-mail).
    """

    def __init__(self, store, dispatch=None):
        self.store = store
        self.dispatch = dispatch

    def notify_matches(self, blood_request, candidates):
        """
        Create one ``blood_request`` notification per candidate.

        A failed write is logged and skipped; the returned list only holds
        notifications that were persisted.
        """
        created = []
        for candidate in candidates:
            notification = build_match_notification(blood_request, candidate)
            try:
                self.store.set(notification['id'], notification)
            except StoreError as e:
                logger.error(
                    f"Could not persist notification for donor {candidate.donor['id']} "
                    f"on request {blood_request['id']}: {e}"
                )
                continue

            created.append(notification)
            logger.info(
                f"Created notification for donor {candidate.donor.get('full_name', candidate.donor['id'])} "
                f"({candidate.donor['blood_type']}) - Distance: {candidate.distance_km}km"
            )
            self._dispatch(notification)

        return created

    def notify_acceptance(self, blood_request, donor_profile, donor_message=''):
        notification = build_acceptance_notification(blood_request, donor_profile, donor_message)
        self.store.set(notification['id'], notification)
        logger.info(
            f"Created acceptance notification for {blood_request['user_id']} - "
            f"Request {blood_request['id']} accepted by {donor_profile['id']}"
        )
        self._dispatch(notification)
        return notification

    def mark_read(self, notification_id, user_id=None):
        """
        Set ``read`` on a notification. With ``user_id`` given, only the
        recipient may do so.
        """
        notification = self.store.get(notification_id) if notification_id.startswith(NOTIFICATION_PREFIX) else None
        if not notification:
            raise NotFoundError('Notification not found')
        if user_id is not None and notification.get('user_id') != user_id:
            raise PermissionDenied('Notification belongs to another user')

        notification['read'] = True
        self.store.set(notification_id, notification)
        return notification

    def for_user(self, user_id):
        """All notifications addressed to ``user_id``, newest first."""
        notifications = [n for n in self.store.get_by_prefix(NOTIFICATION_PREFIX)
                         if n.get('user_id') == user_id]
        notifications.sort(key=lambda n: n.get('created_at', ''), reverse=True)
        return notifications

    def _dispatch(self, notification):
        if self.dispatch is None:
            return
        try:
            self.dispatch(notification)
        except Exception as e:
            logger.warning(f"Dispatch failed for notification {notification['id']}: {e}")
