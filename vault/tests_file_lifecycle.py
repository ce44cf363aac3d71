import re

from django.urls import reverse
from rest_framework import status

from .naming import user_storage_id
from .testing import VaultAPITestCase


class FileLifecycleAPITests(VaultAPITestCase):
    """
    Upload, register, list, download and delete as two different users
    """

    def setUp(self):
        super().setUp()
        self.token1 = self.register_user('U1')
        self.token2 = self.register_user('U2')

    def as_user(self, token):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

    def list_ids(self, token):
        self.as_user(token)
        response = self.client.get(reverse('file_list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return [f['id'] for f in response.data['files']]

    def test_full_lifecycle(self):
        """Test the complete flow for one file across two users"""
        self.as_user(self.token1)
        response = self.client.post(
            reverse('upload_url'),
            {'fileName': 'a/b/report.pdf', 'fileType': 'application/pdf'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        object_key = response.data['objectKey']
        self.assertRegex(object_key, rf'^{re.escape(user_storage_id("U1"))}/[^/]+-report\.pdf$')

        response = self.client.post(
            reverse('file_create'),
            {'objectKey': object_key, 'originalName': 'report.pdf', 'mimeType': 'application/pdf', 'size': 5120},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['uid'], 'U1')
        file_id = response.data['id']

        self.assertIn(file_id, self.list_ids(self.token1))
        self.assertNotIn(file_id, self.list_ids(self.token2))

        self.as_user(self.token2)
        response = self.client.post(reverse('download_url'), {'objectKey': object_key}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.delete(reverse('file_delete', args=[file_id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.as_user(self.token1)
        response = self.client.post(reverse('download_url'), {'objectKey': object_key}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['originalName'], 'report.pdf')

        response = self.client.delete(reverse('file_delete', args=[file_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True})

        self.assertNotIn(file_id, self.list_ids(self.token1))
        self.assertNotIn((self.bucket, object_key), self.objects.objects)

        # Gone for the owner too
        self.as_user(self.token1)
        response = self.client.post(reverse('download_url'), {'objectKey': object_key}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(reverse('file_delete', args=[file_id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
