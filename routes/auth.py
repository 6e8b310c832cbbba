from flask import Blueprint, jsonify
from sqlalchemy.exc import IntegrityError
from models import User, db
from utils.error_handling import (
    ValidationError, UnauthorizedError, ConflictError,
    safe_route_handler, validate_request_data, is_unique_violation,
)
from utils.security import (
    hash_password, verify_password, issue_token, check_password_strength, is_valid_email,
)
import logging

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid email or password'


@auth_bp.route('/signup', methods=['POST'])
@safe_route_handler()
@validate_request_data(
    required_fields=['firstName', 'lastName', 'email', 'password', 'confirmPassword'],
    message='All fields are required',
)
def signup(validated_data):
    data = validated_data
    email = str(data['email']).strip().lower()
    password = data['password']

    if password != data['confirmPassword']:
        raise ValidationError('Passwords do not match')

    strong_enough, message = check_password_strength(password)
    if not strong_enough:
        raise ValidationError(message)

    if not is_valid_email(email):
        raise ValidationError('Invalid email format')

    # Check if user already exists
    if User.query.filter_by(email=email).first():
        logger.info(f"Signup rejected, email already registered: {email}")
        raise ConflictError('Email already in use')

    user = User(
        first_name=str(data['firstName']).strip(),
        last_name=str(data['lastName']).strip(),
        email=email,
        password=hash_password(password),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        # Lost a race with a concurrent signup for the same email
        if is_unique_violation(e):
            raise ConflictError('Email already in use')
        raise

    logger.info(f"User {user.id} created")
    return jsonify({
        'message': 'User created successfully',
        'userId': user.id
    }), 201


@auth_bp.route('/login', methods=['POST'])
@safe_route_handler()
@validate_request_data(required_fields=['email', 'password'], message='Email and password are required')
def login(validated_data):
    email = str(validated_data['email']).strip().lower()
    password = validated_data['password']

    user = User.query.filter_by(email=email).first()

    # Same response for unknown email and wrong password
    if not user or not verify_password(password, user.password):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    token = issue_token({'userId': user.id, 'email': user.email})

    return jsonify({
        'message': 'Login successful',
        'user': {
            'id': user.id,
            'firstName': user.first_name,
            'lastName': user.last_name,
            'email': user.email
        },
        'token': token
    }), 200
