# --- compras/__init__.py ---
import logging

from flask import Flask, current_app, jsonify

from .config import Config
from .extensions import db, jwt, cors, migrate
from .utils.api import err
from .utils.blocklist import RevokedTokens


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("compras").setLevel(level)
    app.logger.setLevel(level)


def _register_jwt_handlers():
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return err("No autorizado", 401)

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return err("No autorizado", 401)

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return err("Sesión expirada", 401)

    @jwt.revoked_token_loader
    def _revoked_token(jwt_header, jwt_payload):
        return err("Sesión cerrada", 401)

    @jwt.token_in_blocklist_loader
    def _is_revoked(jwt_header, jwt_payload):
        return jwt_payload.get("jti") in current_app.extensions["compras"]["revoked_tokens"]


def create_app(overrides=None, backend_factory=None):
    """
    overrides        -> dict applied on top of ``Config`` (tests, scripts)
    backend_factory  -> callable(session=None) returning a ``Backend``;
                        defaults to the database/disk backed ``LocalBackend``
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    Config.init_app(app)
    _configure_logging(app)
    app.json.ensure_ascii = False

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": app.config["CORS_ORIGINS"]}})
    migrate.init_app(app, db)

    if backend_factory is None:
        from .backend import local_backend_factory
        backend_factory = local_backend_factory(app)
    app.extensions["compras"] = {
        "backend_factory": backend_factory,
        "revoked_tokens": RevokedTokens(),
    }
    _register_jwt_handlers()

    # Register blueprints
    from .form import bp as form_bp; app.register_blueprint(form_bp)
    from .admin import bp as admin_bp; app.register_blueprint(admin_bp)
    from .storage import bp as storage_bp; app.register_blueprint(storage_bp)

    from .cli import register_cli
    register_cli(app)

    @app.errorhandler(413)
    def too_large(e):
        return err("El archivo no debe superar 5MB", 413)

    @app.get("/health")
    def health():
        return jsonify(ok=True, msg="API running")

    with app.app_context():
        from . import model  # noqa: F401
        db.create_all()

    app.logger.info("compras ready: db=%s storage=%s tz=%s",
                    app.config["SQLALCHEMY_DATABASE_URI"], app.config["STORAGE_ROOT"], app.config["TIMEZONE"])
    return app
