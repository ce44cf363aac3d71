from django.urls import reverse
from rest_framework import status

from .testing import VaultAPITestCase


class HealthAPITests(VaultAPITestCase):
    """
    Test suite for unauthenticated service checks:
    - GET /api/health
    - GET /api/test-firestore-write
    """

    def test_health(self):
        """Test liveness endpoint"""
        response = self.client.get(reverse('health'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'ok': True})

    def test_firestore_write_success(self):
        """Test that the probe document id is returned"""
        response = self.client.get(reverse('test_firestore_write'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['ok'])
        self.assertEqual(self.metadata.probes, [response.data['id']])

    def test_firestore_write_failure(self):
        """Test probe failure is reported with ok=false"""
        self.metadata.fail = True

        response = self.client.get(reverse('test_firestore_write'))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(response.data['ok'])
        self.assertIn('write_probe failed', response.data['error'])

    def test_health_rejects_post(self):
        """Test that only GET is routed"""
        response = self.client.post(reverse('health'), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertIn('error', response.data)
