import logging
from flask import Flask

from .extensions import db, jwt, cors, migrate
from .config import Config
from .errors import UnicartError
from .utils.api import ok, err

def create_app(config_object=None, **overrides):
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(config_object or Config)
    app.config.update(overrides)
    (config_object or Config).init_app(app)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": "*"}})
    migrate.init_app(app, db)

    # Register blueprints
    from .menu import bp as menu_bp; app.register_blueprint(menu_bp)
    from .batch import bp as batch_bp; app.register_blueprint(batch_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)

    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return ok("API running")

    with app.app_context():
        db.create_all()

    app.logger.debug("blueprints: %s", sorted(app.blueprints.keys()))
    return app


def register_error_handlers(app):
    @app.errorhandler(UnicartError)
    def handle_unicart_error(e):
        level = logging.ERROR if e.status >= 500 else logging.INFO
        app.logger.log(level, "%s: %s", e.code, e.message)
        return err(e.message, e.status, e.as_data())
