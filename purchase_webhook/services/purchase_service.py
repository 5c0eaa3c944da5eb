"""Purchase service — Firestore reads/writes for unlocked purchases.

One document per user per purchase kind:

    users/{user_id}/purchases/{PURCHASE_KIND}

The frontend listens on this document and unlocks content as soon as
`unlocked` flips to true. Writes are full overwrites (no merge, no read
first), so replaying the same Stripe event is harmless.
"""

from firebase_admin import firestore
from flask import current_app

from purchase_webhook.extensions import firestore_db


def purchase_path(user_id, purchase_kind=None):
    """Return the Firestore document path for a user's purchase record."""
    if purchase_kind is None:
        purchase_kind = current_app.config["PURCHASE_KIND"]
    return f"users/{user_id}/purchases/{purchase_kind}"


def unlock_purchase(user_id, stripe_session_id, plan_amount):
    """Mark the configured purchase as unlocked for user_id.

    Overwrites any existing record. purchaseDate is assigned by the
    Firestore server at commit time.

    Raises google.api_core.exceptions.GoogleAPICallError (or whatever the
    client raises) on write failure; callers decide how to surface it.
    """
    path = purchase_path(user_id)
    firestore_db.client.document(path).set({
        "unlocked": True,
        "purchaseDate": firestore.SERVER_TIMESTAMP,
        "stripeSessionId": stripe_session_id,
        "planAmount": plan_amount,
    })
    return path


def get_purchase(user_id):
    """Return the stored purchase record for user_id as a dict, or None."""
    snapshot = firestore_db.client.document(purchase_path(user_id)).get()
    if not snapshot.exists:
        return None
    return snapshot.to_dict()
