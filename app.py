import os
import logging
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_compress import Compress
from sqlalchemy.orm import DeclarativeBase
from werkzeug.exceptions import HTTPException
from datetime import timedelta

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

db = SQLAlchemy(model_class=Base)
jwt = JWTManager()
compress = Compress()

def _env(name, default):
    value = os.environ.get(name)
    return value if value not in (None, '') else default

def create_app(test_config=None):
    """
    Application factory.

    Args:
        test_config: Mapping applied over the environment-derived config
    """
    app = Flask(__name__)

    # Configure the database - use PostgreSQL in production, SQLite for development
    database_url = os.environ.get("DATABASE_URL") or "sqlite:///fleet_discipline.db"
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    app.config.from_mapping(
        SQLALCHEMY_DATABASE_URI=database_url,
        JWT_SECRET_KEY=os.environ.get("JWT_SECRET_KEY"),
        JWT_ACCESS_TOKEN_EXPIRES=timedelta(hours=1),
        JWT_ALGORITHM='HS256',
        WARNING_THRESHOLD=_env('WARNING_THRESHOLD', 3),
        PAGINATION_DEFAULT_LIMIT=10,
        PAGINATION_MAX_LIMIT=_env('PAGINATION_MAX_LIMIT', 100),
        BACKGROUND_TASK_MODE=os.environ.get('BACKGROUND_TASK_MODE', 'thread'),
        BACKGROUND_MAX_WORKERS=int(_env('BACKGROUND_MAX_WORKERS', 4)),
        ACTIVITY_RETENTION_DAYS=int(_env('ACTIVITY_RETENTION_DAYS', 180)),
        ENABLE_SCHEDULER=os.environ.get('ENABLE_SCHEDULER', 'false').lower() == 'true',
    )

    if database_url.startswith("postgresql"):
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_size": 10,
            "pool_recycle": 280,  # Slightly less than 5 minutes to prevent stale connections
            "pool_pre_ping": True,
            "max_overflow": 15,
            "pool_timeout": 20,
            "connect_args": {
                "connect_timeout": 10,
                "application_name": "fleet_discipline",
            }
        }

    if test_config:
        app.config.update(test_config)

    if not app.config.get('JWT_SECRET_KEY'):
        raise RuntimeError("JWT_SECRET_KEY environment variable is required but not set")

    from utils.logging_config import setup_logging, log_request_start, log_request_end
    from utils.config_validator import check_config
    from utils.background_tasks import init_background_tasks

    setup_logging(app)
    check_config(app.config)

    # CORS Configuration (restricted origins)
    production_origins = os.environ.get('ALLOWED_ORIGINS', '').split(',')
    allowed_origins = [origin.strip() for origin in production_origins if origin.strip()]

    # Fallback to localhost for development only if no origins set
    if not allowed_origins:
        allowed_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    CORS(app, origins=allowed_origins,
         supports_credentials=False,
         allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
         methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"])

    app.config['COMPRESS_MIMETYPES'] = ['application/json']
    app.config['COMPRESS_LEVEL'] = 6
    app.config['COMPRESS_MIN_SIZE'] = 500
    compress.init_app(app)

    # Initialize extensions
    db.init_app(app)
    jwt.init_app(app)

    init_background_tasks(app)

    app.before_request(log_request_start)
    app.after_request(log_request_end)

    _register_error_handlers(app)

    # Register blueprints
    from warning_routes import warning_bp
    from complaint_routes import complaint_bp
    from activity_routes import activity_bp
    from personnel_routes import personnel_bp

    app.register_blueprint(warning_bp, url_prefix='/warnings')
    app.register_blueprint(complaint_bp, url_prefix='/complaints')
    app.register_blueprint(activity_bp, url_prefix='/activities')
    app.register_blueprint(personnel_bp)

    # Health check endpoint for deployment
    @app.route('/health')
    def health():
        """Simple health check endpoint for deployment readiness"""
        from timezone_utils import get_local_time_naive, to_iso
        return {'status': 'ok', 'timestamp': to_iso(get_local_time_naive())}, 200

    with app.app_context():
        import models  # noqa: F401
        db.create_all()

    return app

def _register_error_handlers(app):
    from services.errors import ServiceError

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        logger.warning(f"{type(error).__name__}: {error.message}")
        return jsonify({'error': error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.error(f"Unhandled error: {str(error)}", exc_info=True)
        db.session.rollback()
        body = {'error': 'Internal server error'}
        if os.environ.get('FLASK_ENV') != 'production':
            body['message'] = str(error)
        return jsonify(body), 500

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'error': reason}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'error': reason}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'error': 'Token has expired'}), 401
