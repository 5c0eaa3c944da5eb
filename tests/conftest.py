"""Shared test fixtures for the purchase webhook test suite.

Provides:
- firestore_fake: in-memory stand-in for the Firestore client
- app: Flask app configured for testing, bound to firestore_fake
- client: Flask test client
- sign_payload: builds a real Stripe-Signature header for a body
"""

import hashlib
import hmac
import time

import pytest

from purchase_webhook import create_app


class FakeSnapshot:
    def __init__(self, data):
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, store, path):
        self._store = store
        self.path = path

    def set(self, data):
        if self._store.fail_with is not None:
            raise self._store.fail_with
        self._store.writes.append((self.path, dict(data)))
        self._store.documents[self.path] = dict(data)

    def get(self):
        return FakeSnapshot(self._store.documents.get(self.path))


class FakeFirestore:
    """Records every set() and keeps the last value per document path."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.documents = {}
        self.writes = []
        self.fail_with = None

    def document(self, path):
        return FakeDocumentReference(self, path)


@pytest.fixture(scope="session")
def firestore_fake():
    return FakeFirestore()


@pytest.fixture(scope="session")
def app(firestore_fake):
    """Create the Flask application configured for testing."""
    app = create_app("testing", firestore_client=firestore_fake)
    yield app


@pytest.fixture(autouse=True)
def clean_firestore(firestore_fake):
    """Empty the fake store before each test."""
    firestore_fake.reset()
    yield firestore_fake


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def sign_payload(app):
    """Return a helper that signs a body the way Stripe does.

    Header format: t=<unix ts>,v1=<hex HMAC-SHA256 of "<ts>.<body>">.
    """

    def _sign(payload, secret=None, timestamp=None):
        secret = secret or app.config["STRIPE_WEBHOOK_SECRET"]
        timestamp = timestamp or int(time.time())
        signed = f"{timestamp}.".encode() + payload
        signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={signature}"

    return _sign
