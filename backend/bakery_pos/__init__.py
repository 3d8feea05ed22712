# backend/bakery_pos/__init__.py
from flask import Flask, current_app, jsonify, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.pos import pos_bp
    from .routes.debts import debts_bp
    from .routes.cake_orders import cake_orders_bp
    from .routes.shifts import shifts_bp
    from .routes.reports import reports_bp
    from .routes.uploads import uploads_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(debts_bp)
    app.register_blueprint(cake_orders_bp)
    app.register_blueprint(shifts_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(uploads_bp)

    from .datastore import BackendError, PartialWriteError

    @app.errorhandler(BackendError)
    def handle_backend_error(e):
        # Store failures that no route turned into a domain response
        current_app.logger.exception("Backend error on %s %s", request.method, request.path)
        body = {"error": "Data store unavailable", "table": e.table}
        if isinstance(e, PartialWriteError):
            body.update({
                "error": "Write was only partially applied",
                "failed_step": e.failed_step,
                "completed_steps": list(e.completed_steps),
                "partially_applied": True,
            })
        return jsonify(body), 502

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-Client-Ref"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
