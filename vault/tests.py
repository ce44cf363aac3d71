import os
import re
from datetime import datetime, timedelta, timezone
from unittest import mock

from django.core.management import get_commands, load_command_class
from django.test import SimpleTestCase
from django.urls import reverse
from rest_framework import exceptions, status

from .exceptions import vault_exception_handler
from .models import FileRecord, newest_first
from .naming import STORAGE_ID_LENGTH, build_object_key, sanitize_file_name, user_storage_id
from .testing import VaultAPITestCase

SAFE_NAME = re.compile(r'^[A-Za-z0-9._-]*$')


class UserStorageIdTests(SimpleTestCase):
    """
    Test suite for per-user storage namespaces
    """

    def test_same_uid_same_namespace(self):
        """Test that a uid always maps to the same namespace"""
        self.assertEqual(user_storage_id('U1'), user_storage_id('U1'))

    def test_namespace_is_fixed_length_hex(self):
        """Test namespace length and alphabet"""
        for uid in ['U1', 'a' * 500, 'üñíçødé', '']:
            namespace = user_storage_id(uid)
            self.assertEqual(len(namespace), STORAGE_ID_LENGTH)
            self.assertRegex(namespace, r'^[0-9a-f]+$')

    def test_distinct_uids_distinct_namespaces(self):
        """Test that different users get different namespaces"""
        namespaces = {user_storage_id(f'user-{i}') for i in range(1000)}
        self.assertEqual(len(namespaces), 1000)

    def test_namespace_does_not_contain_uid(self):
        """Test that the uid is not recoverable from the namespace text"""
        self.assertNotIn('firebase-user-42', user_storage_id('firebase-user-42'))

    def test_known_digest(self):
        """Test that the namespace is the truncated SHA-256 of the uid"""
        self.assertEqual(
            user_storage_id('abc'),
            'ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad'[:STORAGE_ID_LENGTH]
        )


class SanitizeFileNameTests(SimpleTestCase):
    """
    Test suite for client-supplied file name sanitizing
    """

    def test_clean_name_unchanged(self):
        """Test that already safe names pass through"""
        self.assertEqual(sanitize_file_name('report-2024_v1.pdf'), 'report-2024_v1.pdf')

    def test_forward_slash_traversal(self):
        """Test that only the last forward-slash segment is kept"""
        self.assertEqual(sanitize_file_name('../../etc/passwd'), 'passwd')
        self.assertEqual(sanitize_file_name('a/b/report.pdf'), 'report.pdf')

    def test_back_slash_traversal(self):
        """Test that only the last back-slash segment is kept"""
        self.assertEqual(sanitize_file_name('a\\b\\c.txt'), 'c.txt')
        self.assertEqual(sanitize_file_name('..\\..\\windows/system32\\cmd.exe'), 'cmd.exe')

    def test_unsafe_characters_replaced(self):
        """Test that characters outside the safe set become underscores"""
        self.assertEqual(sanitize_file_name('my file (1).pdf'), 'my_file__1_.pdf')
        self.assertEqual(sanitize_file_name('résumé?.doc'), 'r_sum__.doc')

    def test_empty_input(self):
        """Test that empty input yields empty output"""
        self.assertEqual(sanitize_file_name(''), '')
        self.assertEqual(sanitize_file_name('dir/'), '')

    def test_output_alphabet_and_idempotence(self):
        """Test output alphabet and that sanitizing twice changes nothing"""
        names = ['../../etc/passwd', 'a\\b\\c.txt', 'hello world!.txt', '💾 backup.tar.gz', 'x:y*z|w"<>']
        for name in names:
            once = sanitize_file_name(name)
            self.assertRegex(once, SAFE_NAME)
            self.assertEqual(sanitize_file_name(once), once)


class BuildObjectKeyTests(SimpleTestCase):
    """
    Test suite for object key composition
    """

    def test_key_layout(self):
        """Test namespace/uuid-name layout"""
        key = build_object_key('U1', 'a/b/report.pdf')
        namespace, rest = key.split('/', 1)
        self.assertEqual(namespace, user_storage_id('U1'))
        self.assertRegex(rest, r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}-report\.pdf$')

    def test_keys_are_unique(self):
        """Test that the same name uploaded twice gets two keys"""
        self.assertNotEqual(build_object_key('U1', 'same.txt'), build_object_key('U1', 'same.txt'))


class FileRecordTests(SimpleTestCase):

    def test_from_document(self):
        """Test mapping of a stored document onto a record"""
        created = datetime(2024, 1, 2, tzinfo=timezone.utc)
        record = FileRecord.from_document('doc1', {
            'uid': 'U1',
            'userStorageId': 'ns',
            'bucket': 'b',
            'objectKey': 'ns/k-a.txt',
            'originalName': 'a.txt',
            'mimeType': 'text/plain',
            'size': None,
            'createdAt': created,
        })
        self.assertEqual(record.id, 'doc1')
        self.assertEqual(record.object_key, 'ns/k-a.txt')
        self.assertIsNone(record.size)
        self.assertEqual(record.created_at, created)

    def test_from_document_missing_object_key(self):
        """Test that a document without objectKey maps to None"""
        record = FileRecord.from_document('doc1', {'uid': 'U1'})
        self.assertIsNone(record.object_key)

    def test_newest_first(self):
        """Test ordering by creation time, pending timestamps last"""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)

        def make(record_id, created_at):
            return FileRecord(record_id, 'U1', 'ns', 'b', f'ns/{record_id}', record_id, 'text/plain', None, created_at)

        records = [make('old', now), make('pending', None), make('new', now + timedelta(hours=1))]
        self.assertEqual([r.id for r in newest_first(records)], ['new', 'old', 'pending'])


class ErrorResponseTests(VaultAPITestCase):
    """
    Test suite for the JSON error envelope
    """

    def test_unexpected_exception_is_json_500(self):
        """Test that an unhandled error still answers with an error body"""
        self.authenticate('U1')
        with mock.patch.object(self.metadata, 'list_by_owner', side_effect=RuntimeError('boom')):
            response = self.client.get(reverse('file_list'))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Internal server error'})

    def test_unknown_route_is_json_404(self):
        """Test that unrouted paths answer with an error body"""
        response = self.client.get('/api/no-such-endpoint')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {'error': 'Not found'})

    def test_validation_error_envelope(self):
        """Test that a field-level validation error still renders a plain error"""
        response = vault_exception_handler(exceptions.ValidationError({'objectKey': ['This field is required.']}), {})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Invalid request.'})


class RunserverCommandTests(SimpleTestCase):

    def test_runserver_is_overridden(self):
        """Test that runserver resolves to the app's command"""
        self.assertEqual(get_commands()['runserver'], 'vault')

    def test_default_port(self):
        """Test that runserver listens on PORT, 4000 unless set"""
        command = load_command_class('vault', 'runserver')

        self.assertEqual(command.default_port, os.getenv('PORT', '4000'))
