import os
import logging

import click
from flask import Flask, jsonify

from leaddesk.config import config_by_name
from leaddesk.extensions import db, limiter


def create_app(config_name=None, services=None):
    """Application factory.

    Args:
        config_name: Key in config_by_name; defaults to $FLASK_ENV or "development".
        services: Optional prebuilt ServiceRegistry (tests inject their own).
    """

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    limiter.init_app(app)

    # --- Import models so create_all() can discover them ---
    with app.app_context():
        from leaddesk import models  # noqa: F401

    # --- Services (one cached instance per process) ---
    from leaddesk.services.registry import init_services
    init_services(app, services)

    # --- Register blueprints ---
    from leaddesk.blueprints.leads import leads_bp
    from leaddesk.blueprints.messages import messages_bp
    from leaddesk.blueprints.products import products_bp
    from leaddesk.blueprints.dashboard import dashboard_bp

    app.register_blueprint(leads_bp)
    app.register_blueprint(messages_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(dashboard_bp)

    @app.route("/health")
    def health():
        return jsonify(ok=True)

    # --- Error handlers ---
    @app.errorhandler(400)
    def bad_request(e):
        return jsonify(ok=False, error="Bad request."), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify(ok=False, error="Not found."), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify(ok=False, error="Method not allowed."), 405

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify(ok=False, error="Too many requests. Slow down."), 429

    @app.errorhandler(500)
    def server_error(e):
        return jsonify(ok=False, error="Internal server error."), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # JSON only — nothing to load, nothing to frame
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none';"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


DEMO_PRODUCT = {
    "name": "Website Starter",
    "description": (
        "A five-page responsive website for small local businesses, including "
        "domain setup, contact form, Google Maps embed and basic on-page SEO."
    ),
    "sales_prompt": (
        "Ask how customers find the business today. If most come from word of "
        "mouth, explain how a simple site turns searches into calls and visits."
    ),
}

DEMO_LEADS = [
    {
        "name": "Padaria Pão Quente",
        "email": "contato@paoquente.com.br",
        "phone": "11987654321",
        "instagram": "@paoquente",
        "decision_maker": "Marcos Silva",
        "address": "Rua das Flores, 120",
        "city": "São Paulo",
        "state": "SP",
        "status": "maybe",
    },
    {
        "name": "Oficina do Zé",
        "phone": "2134567890",
        "instagram": "oficinadoze",
        "decision_maker": "José Almeida",
        "address": "Av. Brasil, 5000",
        "city": "Rio de Janeiro",
        "state": "RJ",
        "status": "no_response",
    },
]


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("init-db")
    def init_db():
        """Create any missing tables (leads, messages, products)."""
        db.create_all()
        click.echo("Tables created.")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Create a demo product, two leads and a first-contact message each.

        Usage:
            flask seed-demo
        """
        from leaddesk.services.registry import get_services

        services = get_services()

        product = services.products.create_product(DEMO_PRODUCT)
        if product["error"]:
            click.echo(f"ERROR: {product['error']}")
            return
        click.echo(f"Created product: {product['data']['name']} (id: {product['data']['id']})")

        for payload in DEMO_LEADS:
            lead = services.leads.create_lead(
                dict(payload, product_id=product["data"]["id"])
            )
            if lead["error"]:
                click.echo(f"  Skipped {payload['name']}: {lead['error']}")
                continue
            click.echo(f"  Lead:    {lead['data']['name']} (id: {lead['data']['id']})")

            message = services.messages.create_message({
                "lead_id": lead["data"]["id"],
                "body": f"Olá {payload['decision_maker']}, tudo bem?",
                "channel": "instagram",
                "kind": "first_contact",
                "direction": "sent",
            })
            if message["error"]:
                click.echo(f"    Message failed: {message['error']}")
