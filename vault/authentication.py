from rest_framework import HTTP_HEADER_ENCODING
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from .exceptions import Unauthenticated


class VerifiedUser:
    """
    Lightweight request.user built from a verified token.
    There is no local user table; the uid is all downstream code needs.
    """
    is_authenticated = True
    is_anonymous = False

    def __init__(self, uid):
        self.uid = uid

    def __str__(self):
        return self.uid


class BearerTokenAuthentication(BaseAuthentication):
    """
    Authorization: Bearer <token>, verified by the identity provider on every request
    """
    keyword = 'Bearer'

    def __init__(self, verifier):
        self.verifier = verifier

    def authenticate(self, request):
        header = get_authorization_header(request).decode(HTTP_HEADER_ENCODING)
        prefix = f'{self.keyword} '
        token = header[len(prefix):] if header.startswith(prefix) else ''

        if not token:
            raise Unauthenticated('Missing Authorization header')

        uid = self.verifier.verify(token)
        return VerifiedUser(uid), token

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'
