"""
In-memory stand-ins for the identity provider, S3 and Firestore.

``urlpatterns`` routes the real views against one shared set of fakes;
``VaultAPITestCase`` points ROOT_URLCONF here and resets the fakes before
every test.
"""
import uuid
from datetime import timedelta
from urllib.parse import quote

from django.test import override_settings
from django.urls import include, path
from django.utils import timezone
from rest_framework.test import APISimpleTestCase

from .context import AppContext
from .exceptions import StoreUnavailable, Unauthenticated
from .identity import IdentityVerifier
from .metadata_store import MetadataStoreGateway
from .models import FileRecord, newest_first
from .object_store import PRESIGNED_URL_EXPIRES_IN, ObjectStoreGateway
from .urls import build_urlpatterns

TEST_BUCKET = 'test-bucket'


class StaticIdentityVerifier(IdentityVerifier):
    """
    Accepts only the tokens it was given: token -> uid
    """

    def __init__(self, tokens=None):
        self.tokens = dict(tokens or {})
        self.verified = []

    def verify(self, token):
        self.verified.append(token)
        if token not in self.tokens:
            raise Unauthenticated('Invalid or expired token')
        return self.tokens[token]

    def reset(self):
        self.tokens.clear()
        self.verified.clear()


class InMemoryObjectStore(ObjectStoreGateway):
    def __init__(self):
        self.calls = []
        self.objects = set()
        self.fail = False

    def issue_upload_url(self, bucket, key, content_type):
        self._track('issue_upload_url', bucket, key)
        # The client uploads straight to the store, so the object appears now
        self.objects.add((bucket, key))
        return self._url('PUT', bucket, key)

    def issue_download_url(self, bucket, key):
        self._track('issue_download_url', bucket, key)
        return self._url('GET', bucket, key)

    def delete_object(self, bucket, key):
        self._track('delete_object', bucket, key)
        self.objects.discard((bucket, key))

    def reset(self):
        self.calls.clear()
        self.objects.clear()
        self.fail = False

    def _track(self, operation, bucket, key):
        self.calls.append((operation, bucket, key))
        if self.fail:
            raise StoreUnavailable(f'{operation} failed for {bucket}/{key}')

    @staticmethod
    def _url(method, bucket, key):
        return (
            f'https://{bucket}.s3.amazonaws.com/{quote(key)}'
            f'?X-Amz-Expires={PRESIGNED_URL_EXPIRES_IN}&method={method}'
        )


class InMemoryMetadataStore(MetadataStoreGateway):
    def __init__(self):
        self.calls = []
        self.documents = {}
        self.probes = []
        self.fail = False
        self._last_created_at = None

    def create_record(self, **fields):
        self._track('create_record')
        record = FileRecord(id=uuid.uuid4().hex, created_at=self._now(), **fields)
        self.documents[record.id] = record
        return record

    def list_by_owner(self, uid):
        self._track('list_by_owner')
        return newest_first(r for r in self.documents.values() if r.uid == uid)

    def find_by_owner_and_key(self, uid, object_key):
        self._track('find_by_owner_and_key')
        for record in self.documents.values():
            if record.uid == uid and record.object_key == object_key:
                return record
        return None

    def get_by_id(self, record_id):
        self._track('get_by_id')
        return self.documents.get(record_id)

    def delete_record(self, record_id):
        self._track('delete_record')
        self.documents.pop(record_id, None)

    def write_probe(self):
        self._track('write_probe')
        probe_id = uuid.uuid4().hex
        self.probes.append(probe_id)
        return probe_id

    def add(self, record):
        """
        Seed a record directly, bypassing the API
        """
        self.documents[record.id] = record
        return record

    def reset(self):
        self.calls.clear()
        self.documents.clear()
        self.probes.clear()
        self.fail = False
        self._last_created_at = None

    def _track(self, operation):
        self.calls.append(operation)
        if self.fail:
            raise StoreUnavailable(f'{operation} failed: metadata store unreachable')

    def _now(self):
        # Strictly increasing so newest-first ordering is deterministic
        now = timezone.now()
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now


test_context = AppContext(
    identity=StaticIdentityVerifier(),
    objects=InMemoryObjectStore(),
    metadata=InMemoryMetadataStore(),
    bucket=TEST_BUCKET,
)

urlpatterns = [
    path('api/', include(build_urlpatterns(test_context))),
]

handler404 = 'vault.views.route_not_found'


@override_settings(ROOT_URLCONF='vault.testing')
class VaultAPITestCase(APISimpleTestCase):
    """
    APISimpleTestCase wired to the in-memory fakes
    """

    def setUp(self):
        self.context = test_context
        self.identity = test_context.identity
        self.objects = test_context.objects
        self.metadata = test_context.metadata
        self.bucket = test_context.bucket
        for fake in (self.identity, self.objects, self.metadata):
            fake.reset()

    def register_user(self, uid, token=None):
        """
        Make ``token`` (default ``token-<uid>``) verify as ``uid`` and return it
        """
        token = token or f'token-{uid}'
        self.identity.tokens[token] = uid
        return token

    def authenticate(self, uid):
        token = self.register_user(uid)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return token
