"""
Authentication and credential utilities
Password hashing, signed bearer tokens, sensitive-value digests and the auth gate
"""

import hashlib
import re
import logging
from functools import wraps
from flask import request, current_app, g
from itsdangerous import URLSafeTimedSerializer, SignatureExpired, BadData
from werkzeug.security import generate_password_hash, check_password_hash

from utils.error_handling import UnauthorizedError, ForbiddenError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
TOKEN_SALT = 'kandoo-auth-token'
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def check_password_strength(password):
    """Check password strength"""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return True, "Password is strong"


def is_valid_email(email):
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def hash_password(password):
    """Hash password securely (salted, cost-factored)"""
    return generate_password_hash(password)


def verify_password(password, hashed):
    """Verify password against hash"""
    if not hashed or not isinstance(password, str):
        return False
    return check_password_hash(hashed, password)


def hash_sensitive(value):
    """Unsalted SHA-256 digest for card numbers and CVVs.

    Only keeps raw values out of storage; not suitable for passwords.
    """
    return hashlib.sha256(str(value).encode('utf-8')).hexdigest()


def _serializer():
    return URLSafeTimedSerializer(current_app.config['TOKEN_SECRET'], salt=TOKEN_SALT)


def issue_token(claims):
    """Sign claims into a timestamped bearer token"""
    return _serializer().dumps(dict(claims))


def verify_token(token, max_age=None):
    """Return the token's claims; raise ForbiddenError if forged or older than max_age"""
    if max_age is None:
        max_age = current_app.config.get('TOKEN_EXPIRATION_SECONDS', 3600)
    try:
        claims = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.info("Rejected expired token")
        raise ForbiddenError('Invalid or expired token')
    except BadData:
        raise ForbiddenError('Invalid or expired token')

    if not isinstance(claims, dict):
        raise ForbiddenError('Invalid or expired token')
    return claims


def extract_bearer_token(header):
    """Pull the token out of an "Authorization: Bearer <token>" header"""
    if not header:
        raise UnauthorizedError('Access token required')
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer' or not parts[1]:
        raise UnauthorizedError('Access token required')
    return parts[1]


def token_required(f):
    """Decorator to require a valid bearer token; claims land in g.current_user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            token = extract_bearer_token(request.headers.get('Authorization'))
            g.current_user = verify_token(token)
        except (UnauthorizedError, ForbiddenError) as e:
            logger.warning(f"Rejected token for {request.method} {request.path}: {e.message}")
            raise
        return f(*args, **kwargs)
    return decorated_function
