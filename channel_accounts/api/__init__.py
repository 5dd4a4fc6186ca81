from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import check_secrets, get_config
from .errors import register_error_handlers
from channel_accounts import __version__
from channel_accounts.models import storage
from channel_accounts.utils.security import init_hasher

# Exposes /swagger.json and the UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Channel Accounts API",
        "version": __version__,
        "description": "Account registration, login, token refresh and profile management.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\".",
        },
        "CookieAuth": {
            "type": "apiKey",
            "name": "access_token",
            "in": "cookie",
            "description": "httpOnly access-token cookie set by login and refresh-token.",
        },
    },
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    ``overrides`` is applied on top of the selected config class (tests use it
    to point DATABASE_URL at a temporary database).
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    check_secrets(app.config)

    # Tokens travel in cookies, so CORS must allow credentials
    CORS(
        app,
        resources={r"/*": {"origins": [o.strip() for o in app.config.get("CORS_ORIGINS", "*").split(",")]}},
        supports_credentials=True,
    )

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    storage.reload(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    init_hasher(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/users")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Channel Accounts API",
            "version": __version__,
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
