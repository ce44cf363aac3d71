from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from .models import FileRecord
from .naming import build_object_key, user_storage_id
from .testing import VaultAPITestCase


class FileAPITestCase(VaultAPITestCase):
    """
    Seeds three files for U1 and one for U2 through the API
    """

    def setUp(self):
        super().setUp()
        self.list_url = reverse('file_list')
        self.files_url = reverse('file_create')
        self.download_url = reverse('download_url')

        self.token1 = self.register_user('U1')
        self.token2 = self.register_user('U2')

        self.user1_files = [
            self._register_file(self.token1, 'document.pdf', 'application/pdf', 1024),
            self._register_file(self.token1, 'image.jpg', 'image/jpeg', 2048),
            self._register_file(self.token1, 'text.txt', 'text/plain', None),
        ]
        self.user2_files = [
            self._register_file(self.token2, 'user2_file.txt', 'text/plain', 10),
        ]
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.token1}')

        self.objects.calls.clear()
        self.metadata.calls.clear()

    def _register_file(self, token, name, mime_type, size):
        uid = self.identity.tokens[token]
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        data = {
            'objectKey': build_object_key(uid, name),
            'originalName': name,
            'mimeType': mime_type,
            'size': size,
        }
        response = self.client.post(self.files_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data


class FileListAPITests(FileAPITestCase):
    """
    Test suite for file listing endpoint:
    - GET /api/list-files
    """

    def test_file_list_success(self):
        """Test successful file listing"""
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['uid'], 'U1')
        self.assertEqual(len(response.data['files']), 3)

        # Check response structure
        first_file = response.data['files'][0]
        required_fields = ['id', 'uid', 'userStorageId', 'bucket', 'objectKey', 'originalName', 'mimeType', 'size', 'createdAt']
        for field in required_fields:
            self.assertIn(field, first_file)

    def test_file_list_newest_first(self):
        """Test that files are ordered by creation time, newest first"""
        response = self.client.get(self.list_url)

        names = [f['originalName'] for f in response.data['files']]
        self.assertEqual(names, ['text.txt', 'image.jpg', 'document.pdf'])

    def test_file_list_user_isolation(self):
        """Test that users only see their own files"""
        response = self.client.get(self.list_url)
        self.assertNotIn('user2_file.txt', [f['originalName'] for f in response.data['files']])

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.token2}')
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['uid'], 'U2')
        self.assertEqual([f['originalName'] for f in response.data['files']], ['user2_file.txt'])

    def test_file_list_empty(self):
        """Test listing for a user with no files"""
        self.authenticate('U3')

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'uid': 'U3', 'files': []})

    def test_file_list_unauthenticated(self):
        """Test file listing without authentication"""
        # Create a fresh client instance to avoid authentication pollution
        fresh_client = APIClient()

        response = fresh_client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_file_list_store_failure(self):
        """Test that the store's message is surfaced"""
        self.metadata.fail = True

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'list_by_owner failed: metadata store unreachable'})


class DownloadUrlAPITests(FileAPITestCase):
    """
    Test suite for download URL endpoint:
    - POST /api/download-url
    """

    def test_download_url_success(self):
        """Test successful download URL request"""
        file_data = self.user1_files[0]

        response = self.client.post(self.download_url, {'objectKey': file_data['objectKey']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['objectKey'], file_data['objectKey'])
        self.assertEqual(response.data['originalName'], 'document.pdf')
        self.assertEqual(response.data['mimeType'], 'application/pdf')
        self.assertIn('X-Amz-Expires=300', response.data['downloadUrl'])
        self.assertEqual(
            self.objects.calls,
            [('issue_download_url', self.bucket, file_data['objectKey'])]
        )

    def test_download_url_other_users_file(self):
        """Test that another user's key looks exactly like a missing one"""
        other_key = self.user2_files[0]['objectKey']

        response = self.client.post(self.download_url, {'objectKey': other_key}, format='json')
        missing = self.client.post(self.download_url, {'objectKey': 'no/such-key'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'File not found for this user'})
        self.assertEqual(missing.status_code, response.status_code)
        self.assertEqual(missing.data, response.data)
        self.assertEqual(self.objects.calls, [])

    def test_download_url_missing_object_key(self):
        """Test that objectKey is required"""
        for data in [{}, {'objectKey': ''}]:
            with self.subTest(data=data):
                response = self.client.post(self.download_url, data, format='json')

                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data, {'error': 'objectKey is required'})

        self.assertEqual(self.metadata.calls, [])
        self.assertEqual(self.objects.calls, [])

    def test_download_url_store_failure(self):
        """Test signing failure"""
        self.objects.fail = True

        response = self.client.post(self.download_url, {'objectKey': self.user1_files[0]['objectKey']}, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Failed to generate download URL'})


class FileDeleteAPITests(FileAPITestCase):
    """
    Test suite for file delete endpoint:
    - DELETE /api/files/<id>
    """

    def test_file_delete_success(self):
        """Test successful deletion of object and metadata"""
        file_data = self.user1_files[1]

        response = self.client.delete(reverse('file_delete', args=[file_data['id']]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True})
        self.assertNotIn(file_data['id'], self.metadata.documents)
        self.assertEqual(
            self.objects.calls,
            [('delete_object', self.bucket, file_data['objectKey'])]
        )
        # Object first, then metadata
        self.assertEqual(self.metadata.calls, ['get_by_id', 'delete_record'])

        response = self.client.get(self.list_url)
        self.assertNotIn(file_data['id'], [f['id'] for f in response.data['files']])

    def test_file_delete_not_found(self):
        """Test deleting an id that does not exist"""
        response = self.client.delete(reverse('file_delete', args=['does-not-exist']))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'File not found'})
        self.assertEqual(self.objects.calls, [])

    def test_file_delete_other_users_file(self):
        """Test that deleting another user's file is forbidden, not hidden"""
        other = self.user2_files[0]

        response = self.client.delete(reverse('file_delete', args=[other['id']]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'error': 'Not authorized to delete this file'})
        self.assertIn(other['id'], self.metadata.documents)
        self.assertEqual(self.objects.calls, [])

    def test_file_delete_blank_id(self):
        """Test a whitespace-only id"""
        response = self.client.delete(reverse('file_delete', args=['   ']))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'File id is required'})
        self.assertEqual(self.metadata.calls, [])

    def test_file_delete_record_without_object_key(self):
        """Test a stored record missing its objectKey"""
        broken = self.metadata.add(FileRecord(
            id='broken',
            uid='U1',
            user_storage_id=user_storage_id('U1'),
            bucket=self.bucket,
            object_key=None,
            original_name='lost.bin',
            mime_type='application/octet-stream',
        ))

        response = self.client.delete(reverse('file_delete', args=[broken.id]))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'File metadata missing objectKey'})
        self.assertIn('broken', self.metadata.documents)
        self.assertEqual(self.objects.calls, [])

    def test_file_delete_object_store_failure_keeps_metadata(self):
        """Test that a failed object delete leaves the record in place"""
        file_data = self.user1_files[0]
        self.objects.fail = True

        response = self.client.delete(reverse('file_delete', args=[file_data['id']]))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Failed to delete file'})
        self.assertIn(file_data['id'], self.metadata.documents)
        self.assertNotIn('delete_record', self.metadata.calls)

    def test_file_delete_unauthenticated(self):
        """Test deleting without authentication"""
        fresh_client = APIClient()

        response = fresh_client.delete(reverse('file_delete', args=[self.user1_files[0]['id']]))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn(self.user1_files[0]['id'], self.metadata.documents)
