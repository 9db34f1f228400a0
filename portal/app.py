# portal/app.py
import logging

# Show INFO logs even outside the werkzeug access log
logging.basicConfig(level=logging.INFO)

from flask import Flask, jsonify
from portal.config import Config

# Extensions
from portal.extensions import db, login_manager, migrate, cors, init_mail
from portal.services.auth_gateway import AuthGateway

# Blueprints
from portal.api.routes.stats_routes import api_stats
from portal.api.routes.order_routes import order_bp, mail_bp
from portal.api.routes.product_routes import api_products
from portal.api.routes.auth_routes import api_auth
from portal import models as _models  # noqa: F401


def create_app(config_object=Config, auth_gateway: AuthGateway | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    (auth_gateway or AuthGateway()).init_app(app)
    init_mail(app)

    cors.init_app(
        app,
        resources={
            r"/api/*": {
                "origins": app.config.get("CORS_ORIGINS") or [],
                "supports_credentials": True,
            }
        },
    )

    # Register blueprints
    app.register_blueprint(api_stats)
    app.register_blueprint(order_bp)
    app.register_blueprint(mail_bp)
    app.register_blueprint(api_products)
    app.register_blueprint(api_auth)

    @app.after_request
    def _content_language(resp):
        resp.headers.setdefault("Content-Language", "cs-CZ")
        return resp

    @app.errorhandler(404)
    def _not_found(e):
        return jsonify({"error": "Nenalezeno"}), 404

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return jsonify({"error": "Metoda není povolena"}), 405

    @app.get("/health")
    def health():
        return {"ok": True, "service": "portal"}, 200

    # Diagnostics: list all routes
    @app.get("/__routes")
    def __routes():
        lines = []
        for r in sorted(app.url_map.iter_rules(), key=lambda x: x.rule):
            methods = ",".join(
                sorted(m for m in r.methods if m in {"GET", "POST", "PUT", "DELETE", "PATCH"})
            )
            lines.append(f"{r.rule:40s} -> {r.endpoint} [{methods}]")
        return "<pre>" + "\n".join(lines) + "</pre>"

    return app
