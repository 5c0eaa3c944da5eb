"""Stripe service — webhook verification and event dispatch.

Responsible for:
- Verifying webhook signatures against the raw request body
- Dispatching verified events to event-specific handlers
- Turning a completed checkout session into an unlocked purchase
- Retrieving checkout sessions for manual backfills

Only checkout.session.completed is acted on. Every other event type is
acknowledged and ignored: Stripe sends many kinds and we listen for one.
"""

import logging

import stripe
from flask import current_app

from purchase_webhook.services.purchase_service import unlock_purchase

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Webhook Handling
# ──────────────────────────────────────────────

def verify_webhook_signature(payload, sig_header):
    """Verify Stripe webhook signature and construct the event.

    payload must be the raw request body bytes, exactly as received.

    Returns the verified event as a plain dict (StripeObject is not a
    dict, so downstream code works on the converted copy).
    Raises stripe.SignatureVerificationError on invalid signature and
    ValueError on a payload that isn't valid JSON.
    """
    webhook_secret = current_app.config["STRIPE_WEBHOOK_SECRET"]
    event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    return event.to_dict()


def handle_webhook_event(event):
    """Process a verified Stripe webhook event.

    No deduplication: redelivered events are processed again, which is
    safe because the only side effect is an overwrite.

    Returns (success: bool, message: str). success is False only when a
    handler raised; the caller maps that to a 5xx so Stripe retries.
    """
    try:
        event_type = event["type"]

        # --- Route to handler ---
        handlers = {
            "checkout.session.completed": _handle_checkout_completed,
        }

        handler = handlers.get(event_type)
        if handler is None:
            logger.debug(f"Ignoring webhook event {event.get('id')} ({event_type})")
            return True, "ignored"

        handler(event)
    except Exception as e:
        logger.error(f"Error handling webhook event: {e}", exc_info=True)
        return False, str(e)

    return True, "processed"


# ──────────────────────────────────────────────
# Event Handlers
# ──────────────────────────────────────────────

def _handle_checkout_completed(event):
    """Handle checkout.session.completed.

    The user id was passed to the payment link as client_reference_id.
    """
    session = event["data"]["object"]
    apply_checkout_session(session)


def apply_checkout_session(session):
    """Unlock the purchase for the user a checkout session belongs to.

    Returns the user id written for, or None when the session carries no
    client_reference_id (logged, not an error: the payment link was
    opened without the user id).
    """
    user_id = session.get("client_reference_id")
    if not user_id:
        logger.warning(
            "Payment successful, but no client_reference_id (user id) "
            f"was found in session {session.get('id')}"
        )
        return None

    logger.info(f"Payment successful for user: {user_id}")
    unlock_purchase(
        user_id,
        stripe_session_id=session.get("id"),
        plan_amount=session.get("amount_total"),
    )
    logger.info(f"Purchase unlocked for user: {user_id}")
    return user_id


# ──────────────────────────────────────────────
# Manual backfill
# ──────────────────────────────────────────────

def retrieve_checkout_session(session_id):
    """Fetch a checkout session from the Stripe API.

    Returns the session as a plain dict.
    Raises stripe.InvalidRequestError if the session doesn't exist.
    """
    return stripe.checkout.Session.retrieve(session_id).to_dict()
