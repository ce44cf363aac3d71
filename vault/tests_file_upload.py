from django.urls import reverse
from rest_framework import status

from .naming import user_storage_id
from .testing import VaultAPITestCase


class UploadUrlAPITests(VaultAPITestCase):
    """
    Test suite for upload URL endpoint:
    - POST /api/upload-url
    """

    def setUp(self):
        super().setUp()
        self.upload_url = reverse('upload_url')
        self.authenticate('U1')

    def test_upload_url_success(self):
        """Test successful upload URL request"""
        data = {'fileName': 'a/b/report.pdf', 'fileType': 'application/pdf'}

        response = self.client.post(self.upload_url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(set(response.data), {'uploadUrl', 'objectKey', 'bucket'})
        self.assertEqual(response.data['bucket'], self.bucket)
        self.assertRegex(
            response.data['objectKey'],
            rf'^{user_storage_id("U1")}/[0-9a-f-]{{36}}-report\.pdf$'
        )
        self.assertIn('X-Amz-Expires=300', response.data['uploadUrl'])
        self.assertEqual(
            self.objects.calls,
            [('issue_upload_url', self.bucket, response.data['objectKey'])]
        )

    def test_upload_url_nothing_persisted(self):
        """Test that requesting an upload URL does not create metadata"""
        self.client.post(self.upload_url, {'fileName': 'a.txt', 'fileType': 'text/plain'}, format='json')

        self.assertEqual(self.metadata.calls, [])
        self.assertEqual(self.metadata.documents, {})

    def test_upload_url_sanitizes_name(self):
        """Test traversal and unsafe characters in fileName"""
        data = {'fileName': '..\\..\\my secret (v2).txt', 'fileType': 'text/plain'}

        response = self.client.post(self.upload_url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['objectKey'].endswith('-my_secret__v2_.txt'))
        self.assertEqual(response.data['objectKey'].count('/'), 1)

    def test_upload_url_keeps_surrounding_spaces(self):
        """Test that spaces around fileName are sanitized, not stripped"""
        response = self.client.post(self.upload_url, {'fileName': ' a.pdf ', 'fileType': 'application/pdf'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['objectKey'].endswith('-_a.pdf_'))

    def test_upload_url_whitespace_only_name(self):
        """Test that a whitespace-only fileName is a name, not a missing one"""
        response = self.client.post(self.upload_url, {'fileName': '   ', 'fileType': 'text/plain'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['objectKey'].endswith('-___'))

    def test_upload_url_unique_keys(self):
        """Test that the same file name gets a fresh key every time"""
        data = {'fileName': 'a.txt', 'fileType': 'text/plain'}

        first = self.client.post(self.upload_url, data, format='json')
        second = self.client.post(self.upload_url, data, format='json')

        self.assertNotEqual(first.data['objectKey'], second.data['objectKey'])

    def test_upload_url_namespace_per_user(self):
        """Test that different users upload under different prefixes"""
        data = {'fileName': 'a.txt', 'fileType': 'text/plain'}
        response1 = self.client.post(self.upload_url, data, format='json')

        self.authenticate('U2')
        response2 = self.client.post(self.upload_url, data, format='json')

        self.assertTrue(response1.data['objectKey'].startswith(user_storage_id('U1') + '/'))
        self.assertTrue(response2.data['objectKey'].startswith(user_storage_id('U2') + '/'))

    def test_upload_url_missing_fields(self):
        """Test that fileName and fileType are both required"""
        for data in [{}, {'fileName': 'a.txt'}, {'fileType': 'text/plain'}, {'fileName': '', 'fileType': 'text/plain'}]:
            with self.subTest(data=data):
                response = self.client.post(self.upload_url, data, format='json')

                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data, {'error': 'fileName and fileType are required'})

        self.assertEqual(self.objects.calls, [])

    def test_upload_url_store_failure(self):
        """Test signing failure surfaces as a 500 with an error body"""
        self.objects.fail = True

        response = self.client.post(self.upload_url, {'fileName': 'a.txt', 'fileType': 'text/plain'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Failed to generate upload URL'})


class FileCreateAPITests(VaultAPITestCase):
    """
    Test suite for metadata registration endpoint:
    - POST /api/files
    """

    def setUp(self):
        super().setUp()
        self.files_url = reverse('file_create')
        self.authenticate('U1')
        self.object_key = f'{user_storage_id("U1")}/0b6e3a2c-report.pdf'
        self.valid_data = {
            'objectKey': self.object_key,
            'originalName': 'report.pdf',
            'mimeType': 'application/pdf',
            'size': 2048,
        }

    def test_file_create_success(self):
        """Test successful metadata registration"""
        response = self.client.post(self.files_url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response_data = response.data
        for field in ['id', 'uid', 'userStorageId', 'bucket', 'objectKey', 'originalName', 'mimeType', 'size', 'createdAt']:
            self.assertIn(field, response_data)
        self.assertEqual(response_data['uid'], 'U1')
        self.assertEqual(response_data['userStorageId'], user_storage_id('U1'))
        self.assertEqual(response_data['bucket'], self.bucket)
        self.assertEqual(response_data['objectKey'], self.object_key)
        self.assertEqual(response_data['originalName'], 'report.pdf')
        self.assertEqual(response_data['mimeType'], 'application/pdf')
        self.assertEqual(response_data['size'], 2048)
        self.assertIsInstance(response_data['createdAt'], str)

        # Verify the record was stored
        record = self.metadata.documents[response_data['id']]
        self.assertEqual(record.uid, 'U1')
        self.assertEqual(record.object_key, self.object_key)

    def test_file_create_without_size(self):
        """Test that size is optional and stored as null"""
        data = dict(self.valid_data)
        data.pop('size')

        response = self.client.post(self.files_url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['size'])

    def test_file_create_null_size(self):
        """Test explicit null size"""
        response = self.client.post(self.files_url, {**self.valid_data, 'size': None}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['size'])

    def test_file_create_invalid_size(self):
        """Test negative or non-numeric size"""
        for size in [-1, 'big']:
            with self.subTest(size=size):
                response = self.client.post(self.files_url, {**self.valid_data, 'size': size}, format='json')

                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data, {'error': 'size must be a non-negative integer'})

    def test_file_create_ownership_from_token(self):
        """Test that uid and namespace come from the token, not the body"""
        data = {**self.valid_data, 'uid': 'U2', 'userStorageId': 'forged', 'bucket': 'other-bucket'}

        response = self.client.post(self.files_url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['uid'], 'U1')
        self.assertEqual(response.data['userStorageId'], user_storage_id('U1'))
        self.assertEqual(response.data['bucket'], self.bucket)

    def test_file_create_missing_fields(self):
        """Test that objectKey, originalName and mimeType are required"""
        for field in ['objectKey', 'originalName', 'mimeType']:
            with self.subTest(missing=field):
                data = dict(self.valid_data)
                data.pop(field)

                response = self.client.post(self.files_url, data, format='json')

                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data, {'error': 'objectKey, originalName, and mimeType are required'})

        self.assertEqual(self.metadata.calls, [])

    def test_file_create_store_failure(self):
        """Test metadata store failure"""
        self.metadata.fail = True

        response = self.client.post(self.files_url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Failed to save file metadata'})

    def test_file_create_keeps_values_as_sent(self):
        """Test that client-supplied strings are stored without trimming"""
        data = {**self.valid_data, 'originalName': '  my report.pdf ', 'mimeType': 'application/pdf '}

        response = self.client.post(self.files_url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['originalName'], '  my report.pdf ')
        self.assertEqual(response.data['mimeType'], 'application/pdf ')
        record = self.metadata.documents[response.data['id']]
        self.assertEqual(record.original_name, '  my report.pdf ')
