# accounts/identity.py
"""
Caller identity handed to the matching service.

The service never looks at HTTP requests or sessions; views build a
``Caller`` once and pass it in explicitly.
"""
from collections import namedtuple

DEMO_USER_ID = 'demo_user'

Caller = namedtuple('Caller', ['user_id', 'is_demo'])


def caller_from_request(request):
    """Build a Caller from an authenticated DRF request."""
    user = request.user
    if getattr(user, 'is_demo', False):
        return Caller(DEMO_USER_ID, True)
    return Caller(str(user.pk), False)
