from flask import Flask, request
from flask_cors import CORS
import logging
import click

from config import get_config
from models import db
from database import init_database
from utils.error_handling import register_error_handlers
from utils.health_monitor import create_health_routes

logger = logging.getLogger(__name__)


def configure_logging(level_name):
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )


def create_app(config_name=None):
    """Application factory"""
    config_class = get_config(config_name)
    configure_logging(config_class.LOG_LEVEL)

    # Raises ConfigurationError for fatal problems (production without secrets)
    for warning in config_class.validate():
        logger.warning(f"Insecure configuration: {warning}")

    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config['TOKEN_SECRET'] = config_class.token_secret()

    # CORS: single trusted frontend origin, credentials allowed
    CORS(app,
         resources={r'/api/*': {'origins': [app.config['CORS_ORIGIN']]}},
         supports_credentials=True,
         allow_headers=['Content-Type', 'Authorization'],
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    )

    db.init_app(app)

    # Security headers
    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        return response

    # Request logging middleware
    @app.before_request
    def log_request_info():
        logger.info(f"Request: {request.method} {request.url} from {request.remote_addr}")

    from routes.auth import auth_bp
    from routes.profiles import profiles_bp
    from routes.blogs import blogs_bp
    from routes.donations import donations_bp
    from routes.volunteers import volunteers_bp

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/api')
    app.register_blueprint(profiles_bp, url_prefix='/api')
    app.register_blueprint(blogs_bp, url_prefix='/api')
    app.register_blueprint(donations_bp, url_prefix='/api')
    app.register_blueprint(volunteers_bp, url_prefix='/api')

    register_error_handlers(app)
    create_health_routes(app)

    @app.cli.command('init-db')
    def init_db_command():
        """Create missing tables and columns"""
        init_database(app)
        click.echo('Database tables initialized')

    if not app.config.get('SKIP_DB_INIT'):
        init_database(app)

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['DEBUG'], host='0.0.0.0', port=app.config['PORT'])
