"""
Zawadii Rewards Messaging Service
Flask application factory
"""
import os
import logging
from flask import Flask
from flask_cors import CORS

from .extensions import db, migrate
from .config import get_config, validate_config
from .utils.logging_config import setup_logging
from .utils.errors import from_exception, error_response, internal_error, ErrorCode
from .utils.exceptions import ZawadiiError

logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Setup logging before anything else
    setup_logging()
    validate_config(config_name)

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Dashboard origins come from the environment, comma separated
    cors_origins = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:5173').split(',')
        if origin.strip()
    ]
    CORS(app, origins=cors_origins, allow_headers=['Content-Type', 'Authorization', 'X-Business-ID'])

    # Register blueprints
    register_blueprints(app)

    # Register CLI commands
    from .commands import init_app as init_commands
    init_commands(app)

    # Background reservation reclaim (production or ENABLE_SCHEDULER=true)
    from .utils.scheduler import init_scheduler
    init_scheduler(app)

    # Register error handlers
    register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'zawadii'}

    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    from .api.messages import messages_bp
    from .api.sms import sms_bp
    from .api.rewards import rewards_bp

    app.register_blueprint(messages_bp, url_prefix='/api/messages')
    app.register_blueprint(sms_bp, url_prefix='/api/sms')
    app.register_blueprint(rewards_bp, url_prefix='/api/rewards')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""

    @app.errorhandler(ZawadiiError)
    def domain_error(error):
        if error.status_code >= 500:
            db.session.rollback()
        return from_exception(error)

    @app.errorhandler(400)
    def bad_request(error):
        return error_response('Bad request', ErrorCode.INVALID_REQUEST, 400, log_error=False)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Not found', ErrorCode.NOT_FOUND, 404, log_error=False)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', ErrorCode.INVALID_REQUEST, 405, log_error=False)

    @app.errorhandler(500)
    def server_error(error):
        db.session.rollback()
        return internal_error('Internal server error')
