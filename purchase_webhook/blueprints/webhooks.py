"""Webhooks blueprint — /stripe-webhook

Receives Stripe webhook events. Raw body is required for signature
verification, so the request body is never parsed before that.
"""

import logging

import stripe
from flask import Blueprint, jsonify, request

from purchase_webhook.services.stripe_service import (
    handle_webhook_event,
    verify_webhook_signature,
)

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("webhooks", __name__)


def _webhook_error(message):
    return f"Webhook Error: {message}", 400, {"Content-Type": "text/plain; charset=utf-8"}


@webhooks_bp.route("/stripe-webhook", methods=["POST"])
def stripe_webhook():
    """Receive and process Stripe webhook events.

    1. Get raw body (required for signature verification)
    2. Verify signature with STRIPE_WEBHOOK_SECRET
    3. Pass to handle_webhook_event
    4. Return 200 to acknowledge receipt

    200 means "delivery accepted", not "purchase unlocked". 500 tells
    Stripe to retry later; 400 tells it the delivery is hopeless.
    """
    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature")

    if not sig_header:
        logger.warning("Webhook received without Stripe-Signature header")
        return _webhook_error("Missing Stripe-Signature header")

    # --- Verify signature ---
    try:
        event = verify_webhook_signature(payload, sig_header)
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        return _webhook_error(e)

    # --- Process event ---
    success, message = handle_webhook_event(event)

    if success:
        return jsonify({"received": True}), 200
    else:
        logger.error(f"Webhook processing failed: {message}")
        return jsonify({"error": "Server error"}), 500
