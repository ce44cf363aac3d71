import json
import threading

import firebase_admin
from django.core.exceptions import ImproperlyConfigured
from firebase_admin import credentials, firestore

DEFAULT_APP_NAME = '[DEFAULT]'


class FirebaseApp:
    """
    Process-wide handle on a firebase_admin App.

    The app is initialized on first use so that importing the URL
    configuration never needs credentials.
    """

    def __init__(self, service_account_json, name=DEFAULT_APP_NAME):
        self._service_account_json = service_account_json
        self._name = name
        self._app = None
        self._firestore = None
        self._lock = threading.Lock()

    @property
    def app(self):
        with self._lock:
            if self._app is None:
                self._app = self._initialize()
            return self._app

    @property
    def firestore(self):
        app = self.app
        with self._lock:
            if self._firestore is None:
                self._firestore = firestore.client(app=app)
            return self._firestore

    def _initialize(self):
        if not self._service_account_json:
            raise ImproperlyConfigured('FIREBASE_SERVICE_ACCOUNT_JSON is not set')
        try:
            return firebase_admin.get_app(self._name)
        except ValueError:
            pass
        try:
            service_account = json.loads(self._service_account_json)
        except json.JSONDecodeError as e:
            raise ImproperlyConfigured(f'FIREBASE_SERVICE_ACCOUNT_JSON is not valid JSON: {e}')
        return firebase_admin.initialize_app(credentials.Certificate(service_account), name=self._name)
