from unittest import mock

from django.test import SimpleTestCase
from django.urls import reverse
from firebase_admin import auth
from rest_framework import status
from rest_framework.test import APIRequestFactory

from .authentication import BearerTokenAuthentication, VerifiedUser
from .exceptions import Unauthenticated
from .identity import FirebaseIdentityVerifier
from .testing import StaticIdentityVerifier, VaultAPITestCase


class AuthenticationAPITests(VaultAPITestCase):
    """
    Test suite for bearer-token authentication on protected endpoints:
    - POST /api/upload-url
    - POST /api/files
    - GET /api/list-files
    - POST /api/download-url
    - DELETE /api/files/<id>
    """

    def setUp(self):
        super().setUp()
        self.protected_requests = [
            ('post', reverse('upload_url'), {'fileName': 'a.txt', 'fileType': 'text/plain'}),
            ('post', reverse('file_create'), {'objectKey': 'k', 'originalName': 'a.txt', 'mimeType': 'text/plain'}),
            ('get', reverse('file_list'), None),
            ('post', reverse('download_url'), {'objectKey': 'k'}),
            ('delete', reverse('file_delete', args=['some-id']), None),
        ]

    def _send(self, method, url, data):
        if data is None:
            return getattr(self.client, method)(url)
        return getattr(self.client, method)(url, data, format='json')

    def _assert_no_side_effects(self):
        self.assertEqual(self.objects.calls, [])
        self.assertEqual(self.metadata.calls, [])

    def test_missing_authorization_header(self):
        """Test every protected endpoint without credentials"""
        for method, url, data in self.protected_requests:
            with self.subTest(url=url, method=method):
                response = self._send(method, url, data)

                self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
                self.assertEqual(response.data, {'error': 'Missing Authorization header'})
                self.assertEqual(response['WWW-Authenticate'], 'Bearer realm="api"')

        self.assertEqual(self.identity.verified, [])
        self._assert_no_side_effects()

    def test_invalid_token(self):
        """Test every protected endpoint with a token the provider rejects"""
        self.client.credentials(HTTP_AUTHORIZATION='Bearer invalid_token')

        for method, url, data in self.protected_requests:
            with self.subTest(url=url, method=method):
                response = self._send(method, url, data)

                self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
                self.assertEqual(response.data, {'error': 'Invalid or expired token'})

        self._assert_no_side_effects()

    def test_wrong_scheme(self):
        """Test that non-Bearer schemes are treated as missing credentials"""
        token = self.register_user('U1')
        self.client.credentials(HTTP_AUTHORIZATION=f'Token {token}')

        response = self.client.get(reverse('file_list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Missing Authorization header')

    def test_empty_bearer_token(self):
        """Test 'Bearer ' with nothing after it"""
        self.client.credentials(HTTP_AUTHORIZATION='Bearer ')

        response = self.client.get(reverse('file_list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(self.identity.verified, [])

    def test_valid_token(self):
        """Test that a verified token reaches the handler as its uid"""
        self.authenticate('U1')

        response = self.client.get(reverse('file_list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['uid'], 'U1')

    def test_every_request_is_verified(self):
        """Test that tokens are not cached between requests"""
        token = self.authenticate('U1')

        self.client.get(reverse('file_list'))
        self.client.get(reverse('file_list'))

        self.assertEqual(self.identity.verified, [token, token])

    def test_revoked_token_rejected_on_next_request(self):
        """Test that a token revoked between requests stops working"""
        token = self.authenticate('U1')
        self.assertEqual(self.client.get(reverse('file_list')).status_code, status.HTTP_200_OK)

        del self.identity.tokens[token]

        self.assertEqual(self.client.get(reverse('file_list')).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_public_endpoints_ignore_credentials(self):
        """Test that health endpoints never consult the identity provider"""
        self.client.credentials(HTTP_AUTHORIZATION='Bearer invalid_token')

        self.assertEqual(self.client.get(reverse('health')).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(reverse('test_firestore_write')).status_code, status.HTTP_200_OK)
        self.assertEqual(self.identity.verified, [])


class BearerTokenAuthenticationTests(SimpleTestCase):

    def setUp(self):
        self.factory = APIRequestFactory()
        self.authentication = BearerTokenAuthentication(StaticIdentityVerifier({'good': 'U1'}))

    def test_authenticate_returns_verified_user(self):
        """Test the (user, token) pair for a good token"""
        request = self.factory.get('/', HTTP_AUTHORIZATION='Bearer good')

        user, token = self.authentication.authenticate(request)

        self.assertIsInstance(user, VerifiedUser)
        self.assertEqual(user.uid, 'U1')
        self.assertTrue(user.is_authenticated)
        self.assertEqual(token, 'good')

    def test_authenticate_without_header(self):
        """Test that a missing header raises Unauthenticated"""
        with self.assertRaises(Unauthenticated):
            self.authentication.authenticate(self.factory.get('/'))

    def test_lowercase_scheme_rejected(self):
        """Test that the scheme match is case-sensitive"""
        with self.assertRaises(Unauthenticated):
            self.authentication.authenticate(self.factory.get('/', HTTP_AUTHORIZATION='bearer good'))


class FirebaseIdentityVerifierTests(SimpleTestCase):

    def setUp(self):
        self.firebase = mock.Mock()
        self.verifier = FirebaseIdentityVerifier(self.firebase)

    @mock.patch('vault.identity.auth.verify_id_token')
    def test_verify_returns_uid(self, verify_id_token):
        """Test that the decoded uid is returned"""
        verify_id_token.return_value = {'uid': 'U1', 'email': 'u1@example.com'}

        self.assertEqual(self.verifier.verify('id-token'), 'U1')
        verify_id_token.assert_called_once_with('id-token', app=self.firebase.app)

    @mock.patch('vault.identity.auth.verify_id_token')
    def test_verify_rejected_token(self, verify_id_token):
        """Test that provider rejections become Unauthenticated"""
        rejections = [
            auth.InvalidIdTokenError('Could not verify token signature.'),
            auth.ExpiredIdTokenError('Token expired', cause=None),
            auth.RevokedIdTokenError('Token revoked'),
            ValueError('Illegal ID token provided.'),
        ]
        for error in rejections:
            with self.subTest(error=type(error).__name__):
                verify_id_token.side_effect = error
                with self.assertRaises(Unauthenticated):
                    self.verifier.verify('bad-token')
