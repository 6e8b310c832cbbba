"""
Health Monitoring and System Status Utilities
Provides the liveness endpoint and a detailed database/process check
"""

import psutil
import time
import logging
from datetime import datetime
from flask import jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import db

logger = logging.getLogger(__name__)


class HealthMonitor:
    """System health monitoring class"""

    def __init__(self):
        self.alert_thresholds = {
            'cpu_usage': 80.0,  # CPU usage percentage
            'memory_usage': 85.0,  # Memory usage percentage
            'response_time': 5.0,  # Database round trip in seconds
        }

    def check_system_resources(self):
        """Check process and host resource usage"""
        try:
            process = psutil.Process()
            memory = psutil.virtual_memory()
            return {
                'cpu_usage': psutil.cpu_percent(interval=None),
                'memory_usage': memory.percent,
                'process_rss_bytes': process.memory_info().rss,
                'process_threads': process.num_threads(),
            }
        except (psutil.Error, OSError) as e:
            logger.error(f"Error checking system resources: {e}")
            return None

    def check_database_health(self):
        """Check database connectivity and connection pool usage"""
        try:
            start_time = time.time()
            db.session.execute(text('SELECT 1'))
            response_time = time.time() - start_time

            pool_stats = {
                'status': 'healthy',
                'response_time': round(response_time, 4),
            }

            # Only QueuePool exposes sizing; SQLite test pools do not
            pool = db.engine.pool
            if hasattr(pool, 'checkedout') and hasattr(pool, 'overflow'):
                pool_stats.update({
                    'pool_size': pool.size(),
                    'checked_out': pool.checkedout(),
                    'overflow': pool.overflow(),
                })
            return pool_stats
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return {'status': 'unhealthy', 'error': 'Database unavailable'}
        finally:
            db.session.remove()

    def run_health_check(self):
        """Run comprehensive health check"""
        health_status = {
            'status': 'healthy',
            'checks': {},
            'timestamp': datetime.utcnow().isoformat()
        }

        db_health = self.check_database_health()
        health_status['checks']['database'] = db_health
        if db_health['status'] == 'unhealthy':
            health_status['status'] = 'unhealthy'
        elif db_health['response_time'] > self.alert_thresholds['response_time']:
            health_status['status'] = 'degraded'
            logger.warning(f"Slow database response: {db_health['response_time']}s")

        system_resources = self.check_system_resources()
        if system_resources:
            health_status['checks']['system_resources'] = system_resources
            if health_status['status'] == 'healthy' and (
                system_resources['cpu_usage'] > self.alert_thresholds['cpu_usage']
                or system_resources['memory_usage'] > self.alert_thresholds['memory_usage']
            ):
                health_status['status'] = 'degraded'
                logger.warning(f"High resource usage: {system_resources}")

        return health_status


# Global health monitor instance
health_monitor = HealthMonitor()


def create_health_routes(app):
    """Create health check routes for the Flask app"""

    @app.route('/api/health')
    def health_check():
        """Liveness check"""
        return jsonify({'status': 'healthy'})

    @app.route('/api/health/detailed')
    def health_detailed():
        """Database round trip, pool usage and process resources"""
        health_status = health_monitor.run_health_check()
        status_code = 503 if health_status['status'] == 'unhealthy' else 200
        return jsonify(health_status), status_code
