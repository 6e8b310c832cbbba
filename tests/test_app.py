import logging
import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError

from app import create_app
from config import ProductionConfig, ConfigurationError, get_config, TestingConfig
from database import apply_additive_migrations, query, transaction
from models import Volunteer, db
from utils.error_handling import ErrorHandler, InternalError, safe_route_handler


def test_health(client):
    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.get_json() == {'status': 'healthy'}


def test_detailed_health_checks_database(client):
    response = client.get('/api/health/detailed')

    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] in ('healthy', 'degraded')
    assert body['checks']['database']['status'] == 'healthy'


def test_unknown_route_returns_json(client):
    response = client.get('/api/nope')

    assert response.status_code == 404
    assert 'error' in response.get_json()


def test_cors_allows_configured_origin_only(client):
    allowed = client.get('/api/health', headers={'Origin': 'http://localhost:3000'})
    other = client.get('/api/health', headers={'Origin': 'http://evil.example'})

    assert allowed.headers['Access-Control-Allow-Origin'] == 'http://localhost:3000'
    assert allowed.headers['Access-Control-Allow-Credentials'] == 'true'
    assert 'Access-Control-Allow-Origin' not in other.headers


def test_security_headers(client):
    response = client.get('/api/health')

    assert response.headers['X-Content-Type-Options'] == 'nosniff'
    assert response.headers['X-Frame-Options'] == 'DENY'


def test_uncaught_error_returns_generic_500(app):
    @app.route('/api/boom')
    def boom():
        raise RuntimeError('secret internals')

    response = app.test_client().get('/api/boom')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Something went wrong!'}
    assert b'secret internals' not in response.data


def test_additive_migration_adds_missing_columns(app):
    with app.app_context():
        db.drop_all()
        db.session.execute(text('CREATE TABLE blogs (id INTEGER PRIMARY KEY, title VARCHAR(255))'))
        db.session.execute(text("INSERT INTO blogs (id, title) VALUES (1, 'Legacy post')"))
        db.session.commit()

        applied = apply_additive_migrations()

        columns = {c['name'] for c in inspect(db.engine).get_columns('blogs')}
        assert {'reviews', 'version'} <= columns
        assert applied == [('blogs', 'reviews'), ('blogs', 'version')]
        assert query('SELECT version FROM blogs WHERE id = 1') == [{'version': 1}]
        # Second run is a no-op
        assert apply_additive_migrations() == []


def test_transaction_rolls_back_on_error(app):
    with app.app_context():
        with pytest.raises(RuntimeError):
            with transaction() as session:
                session.add(Volunteer(
                    first_name='A', last_name='B', email='a@example.org',
                    phone='1', interest='x', availability='y',
                ))
                session.flush()
                raise RuntimeError('second statement failed')

        assert Volunteer.query.count() == 0


def test_production_requires_secrets(monkeypatch):
    monkeypatch.setattr(ProductionConfig, 'JWT_SECRET', None)
    monkeypatch.delenv('DB_PASSWORD', raising=False)
    monkeypatch.delenv('DATABASE_URL', raising=False)

    with pytest.raises(ConfigurationError):
        create_app('production')


def test_get_config_by_name(monkeypatch):
    assert get_config('testing') is TestingConfig
    monkeypatch.setenv('APP_ENV', 'production')
    assert get_config() is ProductionConfig
    with pytest.raises(ConfigurationError):
        get_config('staging')


def test_route_failure_reports_route_message(app, caplog):
    @app.route('/api/flaky')
    @safe_route_handler('Failed to load flaky resource')
    def flaky():
        raise OperationalError('SELECT 1', {}, Exception('connection reset'))

    with caplog.at_level(logging.ERROR):
        response = app.test_client().get('/api/flaky')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to load flaky resource'}
    assert b'connection reset' not in response.data
    assert 'Database connection error' in caplog.text


def test_internal_error_is_an_api_error(app):
    with app.test_request_context():
        response, status = InternalError('Failed to fetch blogs').to_response()

    assert status == 500
    assert response.get_json() == {'error': 'Failed to fetch blogs'}
    assert ErrorHandler.handle_generic_error(RuntimeError('boom')) is None
