# Production deployment entry point
import os
import sys
import logging

# Set environment variables for production
os.environ.setdefault('APP_ENV', 'production')

from app import create_app
from config import ConfigurationError
from database import DatabaseUnavailableError

logger = logging.getLogger(__name__)


def build_app():
    """Create the app; refuse to serve traffic on bad config or a broken database"""
    try:
        return create_app()
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)
    except DatabaseUnavailableError as e:
        logger.critical(f"Database initialization failed: {e}")
        sys.exit(1)


app = build_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', app.config['PORT']))
    host = os.environ.get('HOST', '0.0.0.0')
    logger.info(f"Server running on port {port}")
    app.run(host=host, port=port, debug=False)
