from django.test import override_settings
from django.urls import reverse
from rest_framework import status

from .testing import VaultAPITestCase

ORIGIN = 'https://app.example.com'


class CorsAPITests(VaultAPITestCase):
    """
    Test suite for cross-origin access from browser front ends
    """

    def test_preflight(self):
        """Test that a preflight for an authenticated endpoint is answered"""
        response = self.client.options(
            reverse('upload_url'),
            HTTP_ORIGIN=ORIGIN,
            HTTP_ACCESS_CONTROL_REQUEST_METHOD='POST',
            HTTP_ACCESS_CONTROL_REQUEST_HEADERS='authorization,content-type',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')
        self.assertIn('authorization', response['Access-Control-Allow-Headers'])
        self.assertIn('POST', response['Access-Control-Allow-Methods'])
        self.assertEqual(self.identity.verified, [])

    def test_simple_response(self):
        """Test that ordinary responses carry the allow-origin header"""
        response = self.client.get(reverse('health'), HTTP_ORIGIN=ORIGIN)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')

    def test_error_response(self):
        """Test that a 401 is readable cross-origin too"""
        response = self.client.get(reverse('file_list'), HTTP_ORIGIN=ORIGIN)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')

    @override_settings(CORS_ALLOW_ALL_ORIGINS=False, CORS_ALLOWED_ORIGINS=[ORIGIN])
    def test_allowlist(self):
        """Test that a configured allowlist admits only its origins"""
        allowed = self.client.get(reverse('health'), HTTP_ORIGIN=ORIGIN)
        other = self.client.get(reverse('health'), HTTP_ORIGIN='https://evil.example.com')

        self.assertEqual(allowed['Access-Control-Allow-Origin'], ORIGIN)
        self.assertNotIn('Access-Control-Allow-Origin', other)
