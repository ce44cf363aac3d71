import abc
import logging

from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from .exceptions import Unauthenticated

logger = logging.getLogger(__name__)


class IdentityVerifier(abc.ABC):
    @abc.abstractmethod
    def verify(self, token: str) -> str:
        """
        Return the stable user id for a bearer token, or raise Unauthenticated.
        """


class FirebaseIdentityVerifier(IdentityVerifier):
    """
    Verifies Firebase ID tokens. Every call goes to the Admin SDK, nothing is cached.
    """

    def __init__(self, firebase):
        self._firebase = firebase

    def verify(self, token: str) -> str:
        try:
            decoded = auth.verify_id_token(token, app=self._firebase.app)
        except (ValueError, FirebaseError) as e:
            logger.warning(f"Error verifying Firebase ID token: {e}")
            raise Unauthenticated('Invalid or expired token')
        return decoded['uid']
