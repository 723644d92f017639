# api/views.py
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.identity import caller_from_request
from api.serializers import (
    AcceptRequestSerializer,
    AvailabilitySerializer,
    DonorSerializer,
    MatchCandidateSerializer,
    MatchQuerySerializer,
    ProfileSerializer,
    RadiusQuerySerializer,
)
from bloodrequests.services import build_service


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    return Response({'status': 'ok'})


# ============================================
# BLOOD REQUESTS
# ============================================
@api_view(['GET', 'POST'])
def blood_requests(request):
    """
    GET  - requests visible to the caller
    POST - submit a new request and notify nearby donors
    """
    caller = caller_from_request(request)
    service = build_service(caller)

    if request.method == 'POST':
        summary = service.submit_blood_request(request.data, requester_id=caller.user_id)
        return Response({'success': True, **summary}, status=status.HTTP_201_CREATED)

    return Response({'requests': service.requests_for(caller.user_id)})


@api_view(['GET'])
def nearby_blood_requests(request):
    """Active requests near the calling donor, most urgent first."""
    query = RadiusQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    caller = caller_from_request(request)
    service = build_service(caller)
    requests = service.nearby_requests(caller.user_id, radius_km=query.validated_data.get('radius_km'))
    return Response({'requests': requests})


@api_view(['POST'])
def accept_blood_request(request, request_id):
    body = AcceptRequestSerializer(data=request.data)
    body.is_valid(raise_exception=True)

    caller = caller_from_request(request)
    result = build_service(caller).accept_request(
        request_id, caller.user_id, donor_message=body.validated_data['donor_message']
    )
    return Response(result)


@api_view(['POST'])
def cancel_blood_request(request, request_id):
    caller = caller_from_request(request)
    blood_request = build_service(caller).cancel_request(request_id, caller.user_id)
    return Response({'success': True, 'request': blood_request})


# ============================================
# DONORS
# ============================================
@api_view(['GET'])
def donors(request):
    """Available donors, filtered by ?blood_type= and ?location=."""
    service = build_service(caller_from_request(request))
    found = service.donors.search(
        blood_type=request.query_params.get('blood_type'),
        location=request.query_params.get('location'),
    )
    return Response({'donors': DonorSerializer(found, many=True).data})


@api_view(['GET'])
def donor_matches(request):
    """Preview which donors a request at ?lat=&lng= for ?blood_type= would reach."""
    query = MatchQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    service = build_service(caller_from_request(request))
    candidates = service.find_matches(
        {'lat': params['lat'], 'lng': params['lng']},
        params['blood_type'],
        radius_km=params.get('radius_km'),
    )
    return Response({
        'count': len(candidates),
        'matches': MatchCandidateSerializer(candidates, many=True).data,
    })


@api_view(['PUT'])
def donor_availability(request):
    body = AvailabilitySerializer(data=request.data)
    body.is_valid(raise_exception=True)

    caller = caller_from_request(request)
    updated = build_service(caller).donors.set_availability(caller.user_id, body.validated_data['is_available'])
    return Response({'message': 'Availability updated successfully', 'profile': updated})


# ============================================
# PROFILE
# ============================================
@api_view(['GET', 'PUT'])
def profile(request):
    """
    GET - the caller's profile
    PUT - merge fields into the caller's profile, creating it on first use
    """
    caller = caller_from_request(request)
    repository = build_service(caller).donors

    if request.method == 'PUT':
        body = ProfileSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        changes = dict(body.validated_data)
        if changes.get('coordinates'):
            changes['coordinates'] = dict(changes['coordinates'])
        if not repository.get_profile(caller.user_id):
            changes.setdefault('email', getattr(request.user, 'email', '') or None)
        updated = repository.update_profile(caller.user_id, changes)
        return Response({'message': 'Profile updated successfully', 'profile': updated})

    return Response({'profile': repository.require_profile(caller.user_id)})


# ============================================
# NOTIFICATIONS
# ============================================
@api_view(['GET'])
def notifications(request):
    caller = caller_from_request(request)
    service = build_service(caller)
    return Response({'notifications': service.emitter.for_user(caller.user_id)})


@api_view(['PUT'])
def mark_notification_read(request, notification_id):
    caller = caller_from_request(request)
    build_service(caller).mark_notification_read(notification_id, caller.user_id)
    return Response({'success': True})
