import pytest
from rest_framework.exceptions import PermissionDenied

from bloodbridge.exceptions import InvalidStateError, NotFoundError, StoreError, ValidationError
from bloodrequests.services import (
    REQUEST_PREFIX,
    STATUS_ACCEPTED,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    BloodRequestService,
    validate_request_data,
)
from notifications.emitter import NOTIFICATION_PREFIX, TYPE_REQUEST_ACCEPTED, NotificationEmitter
from donors.repositories import DonorRepository
from storage.kv import InMemoryKeyValueStore
from tests.conftest import NEW_YORK, make_donor

PATIENT = {
    'id': 'patient-1',
    'role': 'patient',
    'full_name': 'Pat Patient',
    'blood_type': 'O+',
    'is_available': False,
    'coordinates': NEW_YORK,
}


def seed(donors, *profiles):
    for profile in profiles:
        donors.save_profile(profile)


def submit(service, **overrides):
    data = {
        'blood_type': 'O+',
        'units': 2,
        'urgency': 'High',
        'hospital': 'Bellevue Hospital',
        'coordinates': dict(NEW_YORK),
    }
    data.update(overrides)
    return service.submit_blood_request(data, requester_id='patient-1')


# ------------------------------------------
# Validation
# ------------------------------------------
@pytest.mark.parametrize('data, field', [
    ({'units': 2}, 'blood_type'),
    ({'blood_type': 'O+'}, 'units'),
    ({'blood_type': 'Z+', 'units': 1}, 'blood_type'),
    ({'blood_type': 'O+', 'units': 0}, 'units'),
    ({'blood_type': 'O+', 'units': '2'}, 'units'),
    ({'blood_type': 'O+', 'units': True}, 'units'),
    ({'blood_type': 'O+', 'units': 1, 'urgency': 'Whenever'}, 'urgency'),
    ({'blood_type': 'O+', 'units': 1, 'coordinates': {'lat': 'north'}}, 'coordinates'),
    ({'blood_type': 'O+', 'units': 1, 'coordinates': {'lat': float('nan'), 'lng': -74.0}}, 'coordinates'),
    ({'blood_type': 'O+', 'units': 1, 'coordinates': {'lat': 40.7, 'lng': float('inf')}}, 'coordinates'),
])
def test_validation_errors(data, field):
    with pytest.raises(ValidationError) as excinfo:
        validate_request_data(data)
    assert field in excinfo.value.detail


def test_validation_defaults_urgency():
    assert validate_request_data({'blood_type': 'A-', 'units': 1})['urgency'] == 'Medium'


def test_invalid_submission_persists_nothing(service, store):
    with pytest.raises(ValidationError):
        service.submit_blood_request({'units': 1}, requester_id='patient-1')
    assert store.get_by_prefix(REQUEST_PREFIX) == []


def test_non_finite_coordinates_are_rejected_before_storing(service, donors, store):
    seed(donors, make_donor('d1', km=2.0))

    with pytest.raises(ValidationError) as excinfo:
        submit(service, coordinates={'lat': float('nan'), 'lng': -74.0})

    assert 'coordinates' in excinfo.value.detail
    assert store.get_by_prefix(REQUEST_PREFIX) == []


def test_unknown_fields_are_not_stored(service, store):
    result = submit(service, accepted_by='mallory', accepted_at='2026-01-01T00:00:00+00:00',
                    cancelled_at='2026-01-01T00:00:00+00:00', notes='Ward 4')

    stored = store.get(result['request_id'])
    assert stored['notes'] == 'Ward 4'
    assert stored['hospital'] == 'Bellevue Hospital'
    for field in ('accepted_by', 'accepted_at', 'cancelled_at'):
        assert field not in stored


# ------------------------------------------
# Submission
# ------------------------------------------
def test_end_to_end_notifies_compatible_donors_in_radius(service, donors, store):
    seed(
        donors,
        make_donor('o-pos-near', blood_type='O+', km=2.0),
        make_donor('o-neg-mid', blood_type='O-', km=7.5),
        make_donor('o-pos-edge', blood_type='O+', km=14.0),
        make_donor('a-pos-near', blood_type='A+', km=1.0),
        make_donor('o-neg-far', blood_type='O-', km=30.0),
    )

    result = service.submit_blood_request(
        {'blood_type': 'O+', 'units': 2, 'coordinates': {'lat': 40.7128, 'lng': -74.0060}},
        requester_id='patient-1',
    )

    assert result['notified_donors'] == 3
    notifications = store.get_by_prefix(NOTIFICATION_PREFIX)
    assert len(notifications) == 3
    assert {n['blood_request_id'] for n in notifications} == {result['request_id']}
    assert {n['user_id'] for n in notifications} == {'o-pos-near', 'o-neg-mid', 'o-pos-edge'}


def test_submitted_request_is_stored_active(service, store):
    result = submit(service)

    stored = store.get(result['request_id'])
    assert stored['status'] == STATUS_ACTIVE
    assert stored['user_id'] == 'patient-1'
    assert stored['blood_type'] == 'O+'
    assert stored['created_at'] == stored['last_updated']
    assert result['request_id'].startswith(REQUEST_PREFIX)


def test_request_ids_are_unique(service):
    assert submit(service)['request_id'] != submit(service)['request_id']


def test_without_coordinates_no_matching(service, donors, store):
    seed(donors, make_donor('d1', km=1.0))

    result = service.submit_blood_request({'blood_type': 'O+', 'units': 1}, requester_id='patient-1')

    assert result['notified_donors'] == 0
    assert store.get(result['request_id']) is not None
    assert store.get_by_prefix(NOTIFICATION_PREFIX) == []


def test_initial_persist_failure_is_raised():
    class BrokenStore(InMemoryKeyValueStore):
        def set(self, key, value):
            raise StoreError('database unavailable')

    store = BrokenStore()
    service = BloodRequestService(store, DonorRepository(store), NotificationEmitter(store),
                                  config=None)

    with pytest.raises(StoreError):
        service.submit_blood_request({'blood_type': 'O+', 'units': 1, 'coordinates': dict(NEW_YORK)})
    assert store.get_by_prefix(REQUEST_PREFIX) == []


def test_partial_fan_out_failure_still_succeeds(config):
    class FlakyStore(InMemoryKeyValueStore):
        def set(self, key, value):
            if key.startswith(NOTIFICATION_PREFIX) and value['user_id'] == 'd2':
                raise StoreError('write timeout')
            super().set(key, value)

    store = FlakyStore()
    donors = DonorRepository(store)
    seed(donors, make_donor('d1', km=1.0), make_donor('d2', km=2.0), make_donor('d3', km=3.0))
    service = BloodRequestService(store, donors, NotificationEmitter(store), config)

    result = submit(service)

    assert result['notified_donors'] == 2
    assert store.get(result['request_id'])['status'] == STATUS_ACTIVE


def test_donor_pool_scan_failure_keeps_request(config):
    class ScanFailingStore(InMemoryKeyValueStore):
        def get_by_prefix(self, prefix):
            raise StoreError('scan failed')

    store = ScanFailingStore()
    service = BloodRequestService(store, DonorRepository(store), NotificationEmitter(store), config)

    result = submit(service)

    assert result['notified_donors'] == 0
    assert store.get(result['request_id']) is not None


def test_non_donor_profiles_are_not_matched(service, donors):
    seed(donors, PATIENT, make_donor('d1', km=1.0))
    assert submit(service)['notified_donors'] == 1


def test_pseudo_near_policy_counts_unlocated_donors(store, donors, config):
    seed(donors, make_donor('located', km=1.0), make_donor('unlocated', km=None))
    service = BloodRequestService(store, donors, NotificationEmitter(store),
                                  config._replace(unknown_location='pseudo_near'))

    assert submit(service)['notified_donors'] == 2


# ------------------------------------------
# Accept / cancel
# ------------------------------------------
def test_accept_request(service, donors, store):
    seed(donors, PATIENT, make_donor('d1', km=1.0, full_name='Sarah Johnson', phone='555-1234'))
    request_id = submit(service, coordinates=None)['request_id']

    result = service.accept_request(request_id, 'd1', donor_message='Can be there in 20 min')

    assert result['success'] is True
    assert result['donor_info'] == {'name': 'Sarah Johnson', 'contact': '555-1234', 'email': 'd1@example.com'}

    stored = store.get(request_id)
    assert stored['status'] == STATUS_ACCEPTED
    assert stored['accepted_by'] == 'd1'
    assert stored['accepted_by_contact'] == '555-1234'
    assert stored['accepted_by_email'] == 'd1@example.com'

    notifications = store.get_by_prefix(NOTIFICATION_PREFIX)
    assert len(notifications) == 1
    assert notifications[0]['type'] == TYPE_REQUEST_ACCEPTED
    assert notifications[0]['user_id'] == 'patient-1'
    assert notifications[0]['donor_message'] == 'Can be there in 20 min'


def test_second_accept_is_rejected_without_new_notification(service, donors, store):
    seed(donors, PATIENT, make_donor('d1', km=1.0), make_donor('d2', km=2.0))
    request_id = submit(service, coordinates=None)['request_id']
    service.accept_request(request_id, 'd1')

    with pytest.raises(InvalidStateError):
        service.accept_request(request_id, 'd2')

    assert store.get(request_id)['accepted_by'] == 'd1'
    assert len(store.get_by_prefix(NOTIFICATION_PREFIX)) == 1


def test_accept_unknown_request(service, donors):
    seed(donors, make_donor('d1', km=1.0))
    with pytest.raises(NotFoundError):
        service.accept_request('blood_request_missing', 'd1')


def test_accept_rejects_non_request_keys(service, donors, store):
    seed(donors, make_donor('d1', km=1.0))
    store.set('notification_x', {'id': 'notification_x', 'status': 'Active'})
    with pytest.raises(NotFoundError):
        service.accept_request('notification_x', 'd1')


def test_accept_requires_donor_role(service, donors):
    seed(donors, PATIENT)
    request_id = submit(service, coordinates=None)['request_id']
    with pytest.raises(ValidationError):
        service.accept_request(request_id, 'patient-1')


def test_accept_by_unknown_donor(service):
    request_id = submit(service, coordinates=None)['request_id']
    with pytest.raises(NotFoundError):
        service.accept_request(request_id, 'ghost')


def test_cancel_request(service, store):
    request_id = submit(service, coordinates=None)['request_id']

    cancelled = service.cancel_request(request_id, 'patient-1')

    assert cancelled['status'] == STATUS_CANCELLED
    assert store.get(request_id)['status'] == STATUS_CANCELLED


def test_cancel_only_by_requester(service):
    request_id = submit(service, coordinates=None)['request_id']
    with pytest.raises(PermissionDenied):
        service.cancel_request(request_id, 'someone-else')


def test_cancelled_request_cannot_be_accepted(service, donors):
    seed(donors, make_donor('d1', km=1.0))
    request_id = submit(service, coordinates=None)['request_id']
    service.cancel_request(request_id, 'patient-1')

    with pytest.raises(InvalidStateError):
        service.accept_request(request_id, 'd1')


def test_accepted_request_cannot_be_cancelled(service, donors):
    seed(donors, make_donor('d1', km=1.0))
    request_id = submit(service, coordinates=None)['request_id']
    service.accept_request(request_id, 'd1')

    with pytest.raises(InvalidStateError):
        service.cancel_request(request_id, 'patient-1')


def test_mark_notification_read(service, donors, store):
    seed(donors, make_donor('d1', km=1.0))
    submit(service)
    notification = store.get_by_prefix(NOTIFICATION_PREFIX)[0]

    service.mark_notification_read(notification['id'], 'd1')

    assert store.get(notification['id'])['read'] is True


def test_mark_notification_read_only_by_recipient(service, donors, store):
    seed(donors, make_donor('d1', km=1.0))
    submit(service)
    notification = store.get_by_prefix(NOTIFICATION_PREFIX)[0]

    with pytest.raises(PermissionDenied):
        service.mark_notification_read(notification['id'], 'd2')
    assert store.get(notification['id'])['read'] is False


def test_mark_notification_read_rejects_request_ids(service):
    request_id = submit(service, coordinates=None)['request_id']

    with pytest.raises(NotFoundError):
        service.mark_notification_read(request_id, 'patient-1')
    assert 'read' not in service.get_request(request_id)


# ------------------------------------------
# Listings
# ------------------------------------------
def test_requests_for_donor_sees_active_only(service, donors):
    seed(donors, PATIENT, make_donor('d1', km=1.0))
    open_id = submit(service, coordinates=None)['request_id']
    cancelled_id = submit(service, coordinates=None)['request_id']
    service.cancel_request(cancelled_id, 'patient-1')

    assert [r['id'] for r in service.requests_for('d1')] == [open_id]


def test_requests_for_patient_sees_own(service, donors):
    seed(donors, PATIENT, {**PATIENT, 'id': 'patient-2'})
    mine = submit(service, coordinates=None)['request_id']
    service.submit_blood_request({'blood_type': 'A+', 'units': 1}, requester_id='patient-2')

    assert [r['id'] for r in service.requests_for('patient-1')] == [mine]


def test_nearby_requests_orders_by_urgency_then_distance(service, donors):
    seed(donors, make_donor('d1', blood_type='O+', km=0.0))
    low_near = submit(service, urgency='Low', coordinates=make_donor('x', km=1.0)['coordinates'])['request_id']
    critical_far = submit(service, urgency='Critical', coordinates=make_donor('x', km=9.0)['coordinates'])['request_id']
    critical_near = submit(service, urgency='Critical', coordinates=make_donor('x', km=3.0)['coordinates'])['request_id']
    submit(service, urgency='Critical', coordinates=make_donor('x', km=40.0)['coordinates'])
    submit(service, blood_type='A+', urgency='Critical', coordinates=make_donor('x', km=1.0)['coordinates'])

    nearby = service.nearby_requests('d1')

    assert [r['id'] for r in nearby] == [critical_near, critical_far, low_near]
    assert nearby[0]['distance_km'] == 3.0


def test_nearby_requests_for_unlocated_donor_is_empty(service, donors):
    seed(donors, make_donor('d1', km=None))
    submit(service)
    assert service.nearby_requests('d1') == []
