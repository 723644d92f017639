# api/urls.py
from django.urls import path
from . import views

app_name = 'api'

urlpatterns = [
    path('health/', views.health, name='health'),

    # Blood requests
    path('blood-requests/', views.blood_requests, name='blood-requests'),
    path('blood-requests/nearby/', views.nearby_blood_requests, name='nearby-blood-requests'),
    path('blood-requests/<str:request_id>/accept/', views.accept_blood_request, name='accept-blood-request'),
    path('blood-requests/<str:request_id>/cancel/', views.cancel_blood_request, name='cancel-blood-request'),

    # Profile
    path('profile/', views.profile, name='profile'),

    # Donors
    path('donors/', views.donors, name='donors'),
    path('donors/matches/', views.donor_matches, name='donor-matches'),
    path('donors/availability/', views.donor_availability, name='donor-availability'),

    # Notifications
    path('notifications/', views.notifications, name='notifications'),
    path('notifications/<str:notification_id>/read/', views.mark_notification_read, name='mark-notification-read'),
]

# Available endpoints:
# GET  /api/health/                               - Liveness check
# GET  /api/blood-requests/                       - Requests visible to the caller
# POST /api/blood-requests/                       - Submit a request, notify nearby donors
# GET  /api/blood-requests/nearby/                - Active requests near the calling donor
# POST /api/blood-requests/{id}/accept/           - Calling donor accepts a request
# POST /api/blood-requests/{id}/cancel/           - Requester cancels a request
#
# GET  /api/profile/                              - Caller's profile
# PUT  /api/profile/                              - Create or update the caller's profile
#
# GET  /api/donors/                               - Available donors (?blood_type=, ?location=)
# GET  /api/donors/matches/                       - Match preview (?blood_type=&lat=&lng=&radius_km=)
# PUT  /api/donors/availability/                  - Calling donor toggles availability
#
# GET  /api/notifications/                        - Caller's notifications
# PUT  /api/notifications/{id}/read/              - Mark a notification read
