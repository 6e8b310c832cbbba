import pytest

from app import create_app
from models import db


@pytest.fixture
def app():
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def signup(client):
    """Create an account and return the submitted payload"""
    def _signup(email='jane@example.org', password='correct-horse', **overrides):
        payload = {
            'firstName': 'Jane',
            'lastName': 'Doe',
            'email': email,
            'password': password,
            'confirmPassword': password,
        }
        payload.update(overrides)
        response = client.post('/api/signup', json=payload)
        assert response.status_code == 201, response.get_json()
        return payload
    return _signup


@pytest.fixture
def auth_headers(client, signup):
    """Sign up, log in and return an Authorization header for that user"""
    def _auth_headers(email='jane@example.org', password='correct-horse'):
        signup(email=email, password=password)
        response = client.post('/api/login', json={'email': email, 'password': password})
        assert response.status_code == 200
        return {'Authorization': f"Bearer {response.get_json()['token']}"}
    return _auth_headers
