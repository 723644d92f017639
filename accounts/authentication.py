# accounts/authentication.py
from rest_framework.authentication import BaseAuthentication, get_authorization_header

DEMO_TOKEN_PREFIX = 'demo_token_'


class DemoUser:
    """Stand-in user for demo sessions. Never persisted."""
    pk = 'demo_user'
    username = 'demo'
    email = 'demo@demo.com'
    is_demo = True
    is_active = True
    is_staff = False
    is_superuser = False

    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False

    def __str__(self):
        return self.username


class DemoTokenAuthentication(BaseAuthentication):
    """
    Accept ``Authorization: Bearer demo_token_<anything>`` and authenticate
    the request as the demo user. Any other header is left to the next
    authentication class.
    """
    keyword = b'bearer'

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if len(auth) != 2 or auth[0].lower() != self.keyword:
            return None

        token = auth[1].decode('latin-1')
        if not token.startswith(DEMO_TOKEN_PREFIX):
            return None

        return DemoUser(), token

    def authenticate_header(self, request):
        return 'Bearer'
