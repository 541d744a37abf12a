from flask import Flask, current_app
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .logging_config import setup_logging
from models.db_storage import DBStorage
from services.auth_service import AuthService
from services.session_store import SessionStore
from utils.security import PasswordVault, TokenIssuer


def build_services(config) -> dict:
    """
    Construct the storage and auth objects once per application. They are
    kept in app.extensions and handed to request handlers from there.
    """
    storage = DBStorage(config["DATABASE_URL"], echo=config.get("SQLALCHEMY_ECHO", False))
    storage.reload()

    vault = PasswordVault(
        time_cost=config.get("ARGON2_TIME_COST"),
        memory_cost=config.get("ARGON2_MEMORY_COST"),
        parallelism=config.get("ARGON2_PARALLELISM"),
    )
    issuer = TokenIssuer(
        access_secret=config.get("ACCESS_TOKEN_SECRET"),
        refresh_secret=config.get("REFRESH_TOKEN_SECRET"),
        algorithm=config["JWT_ALGORITHM"],
        access_ttl=config["ACCESS_TOKEN_EXPIRES"],
        refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
    )
    sessions = SessionStore(storage)
    auth_service = AuthService(storage, vault, issuer, sessions)
    return {
        "storage": storage,
        "password_vault": vault,
        "token_issuer": issuer,
        "session_store": sessions,
        "auth_service": auth_service,
    }


def get_storage() -> DBStorage:
    return current_app.extensions["storage"]


def get_auth_service() -> AuthService:
    return current_app.extensions["auth_service"]


def get_token_issuer() -> TokenIssuer:
    return current_app.extensions["token_issuer"]


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    A fresh set of services (and database engine) is built per app, so every
    test gets an isolated instance.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    setup_logging(app.config["LOG_LEVEL"])

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    register_error_handlers(app)

    app.extensions.update(build_services(app.config))

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .posts import bp as posts_bp
    from .comments import bp as comments_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/users")
    app.register_blueprint(posts_bp, url_prefix="/api/v1/posts")
    app.register_blueprint(comments_bp, url_prefix="/api/v1/comments")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        app.extensions["storage"].close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Blog API",
            "health": "/api/v1/health",
        }, 200

    return app
