"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

import logging

import firebase_admin
from firebase_admin import credentials, firestore
from flask import current_app

logger = logging.getLogger(__name__)


class FirestoreDB:
    """Process-wide Firestore client handle.

    init_app() initialises the default firebase_admin app (once per process)
    and stores the Firestore client in app.extensions. A client passed in
    explicitly is used as-is, which is how tests swap in a fake.
    """

    extension_name = "firestore"

    def __init__(self, app=None, client=None):
        if app is not None:
            self.init_app(app, client=client)

    def init_app(self, app, client=None):
        if client is None:
            client = firestore.client(app=_get_or_create_firebase_app(app.config))
        app.extensions[self.extension_name] = client

    @property
    def client(self):
        """Firestore client bound to the current Flask app."""
        return current_app.extensions[self.extension_name]


def _get_or_create_firebase_app(config):
    """Return the default firebase_admin app, initialising it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred_path = config.get("FIREBASE_CREDENTIALS")
    if cred_path:
        cred = credentials.Certificate(cred_path)
    else:
        cred = credentials.ApplicationDefault()

    options = {}
    if config.get("FIREBASE_PROJECT_ID"):
        options["projectId"] = config["FIREBASE_PROJECT_ID"]

    logger.info(
        "Initialising Firebase app "
        f"({'service account' if cred_path else 'application default credentials'})"
    )
    return firebase_admin.initialize_app(cred, options or None)


firestore_db = FirestoreDB()