import os
import logging

import click
import stripe
from flask import Flask, jsonify

from purchase_webhook.config import config_by_name
from purchase_webhook.extensions import firestore_db


def create_app(config_name=None, firestore_client=None):
    """Application factory.

    firestore_client overrides the Firestore handle normally built from
    firebase_admin (tests pass a fake here).
    """

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars before any client is built ---
    # Refuse to start rather than fail on the first delivery.
    config_by_name[config_name].validate()

    # --- Stripe ---
    stripe.api_key = app.config["STRIPE_SECRET_KEY"]
    stripe.api_version = app.config["STRIPE_API_VERSION"]

    # --- Init extensions ---
    firestore_db.init_app(app, client=firestore_client)

    # --- Register blueprints ---
    from purchase_webhook.blueprints.webhooks import webhooks_bp

    app.register_blueprint(webhooks_bp)

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "Server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Nothing here is meant to be framed or linked to
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("backfill-purchase")
    @click.argument("session_id")
    @click.option("--user-id", default=None,
                  help="Unlock for this user instead of the session's client_reference_id.")
    def backfill_purchase(session_id, user_id):
        """Unlock a purchase from a completed Stripe Checkout Session.

        For deliveries that never arrived (endpoint down, secret rotated,
        payment link opened without the user id). Writes the same record
        the webhook would.

        Usage:
            flask backfill-purchase cs_live_a1B2c3
            flask backfill-purchase cs_live_a1B2c3 --user-id 8fQk2...
        """
        from purchase_webhook.services.purchase_service import unlock_purchase
        from purchase_webhook.services.stripe_service import retrieve_checkout_session

        try:
            session = retrieve_checkout_session(session_id)
        except stripe.InvalidRequestError as e:
            raise click.ClickException(f"Could not retrieve session {session_id}: {e}")

        if session.get("status") != "complete":
            raise click.ClickException(
                f"Session {session_id} is not complete (status: {session.get('status')})"
            )

        user_id = user_id or session.get("client_reference_id")
        if not user_id:
            raise click.ClickException(
                f"Session {session_id} has no client_reference_id; pass --user-id"
            )

        path = unlock_purchase(
            user_id,
            stripe_session_id=session.get("id"),
            plan_amount=session.get("amount_total"),
        )

        click.echo(f"Unlocked {path}")
        click.echo(f"  Session:  {session.get('id')}")
        click.echo(f"  Amount:   {session.get('amount_total')}")

    @app.cli.command("show-purchase")
    @click.argument("user_id")
    def show_purchase(user_id):
        """Print the stored purchase record for a user.

        Usage:
            flask show-purchase 8fQk2...
        """
        from purchase_webhook.services.purchase_service import get_purchase, purchase_path

        record = get_purchase(user_id)
        if record is None:
            click.echo(f"No purchase record at {purchase_path(user_id)}")
            return

        purchase_date = record.get("purchaseDate")
        if hasattr(purchase_date, "isoformat"):
            purchase_date = purchase_date.isoformat()

        click.echo(purchase_path(user_id))
        click.echo(f"  Unlocked: {record.get('unlocked')}")
        click.echo(f"  Date:     {purchase_date}")
        click.echo(f"  Session:  {record.get('stripeSessionId')}")
        click.echo(f"  Amount:   {record.get('planAmount')}")
