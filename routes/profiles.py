"""
User profile routes: bio read/update and password change
"""

from flask import Blueprint, jsonify, g
from sqlalchemy.exc import IntegrityError
from models import User, Bio, db
from database import query
from utils.error_handling import (
    ValidationError, UnauthorizedError, NotFoundError,
    safe_route_handler, validate_request_data, is_unique_violation,
)
from utils.security import token_required, hash_password, verify_password, check_password_strength
import logging

profiles_bp = Blueprint('profiles', __name__)
logger = logging.getLogger(__name__)


@profiles_bp.route('/user/bio', methods=['GET'])
@token_required
@safe_route_handler('Failed to load profile')
def get_bio():
    """Current user's details with bio (empty when never written)"""
    rows = query(
        """
        SELECT u.id, u.first_name, u.last_name, u.email, b.bio
        FROM users u
        LEFT JOIN bios b ON b.user_id = u.id
        WHERE u.id = :user_id
        """,
        {'user_id': g.current_user['userId']},
    )
    if not rows:
        raise NotFoundError('User not found')

    row = rows[0]
    return jsonify({
        'id': row['id'],
        'firstName': row['first_name'],
        'lastName': row['last_name'],
        'email': row['email'],
        'bio': row['bio'] or ''
    })


@profiles_bp.route('/user/bio', methods=['PUT'])
@token_required
@safe_route_handler('Failed to update bio')
@validate_request_data()
def update_bio(validated_data):
    bio_text = validated_data.get('bio')
    if bio_text is None:
        bio_text = ''
    if not isinstance(bio_text, str):
        raise ValidationError('Bio must be text')

    user_id = g.current_user['userId']
    if not db.session.get(User, user_id):
        raise NotFoundError('User not found')

    bio = Bio.query.filter_by(user_id=user_id).first()
    if bio:
        bio.bio = bio_text
        db.session.commit()
    else:
        db.session.add(Bio(user_id=user_id, bio=bio_text))
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if not is_unique_violation(e):
                raise
            # A concurrent request inserted the row first; overwrite it
            Bio.query.filter_by(user_id=user_id).update({'bio': bio_text})
            db.session.commit()

    return jsonify({'message': 'Bio updated successfully'})


@profiles_bp.route('/user/password', methods=['PUT'])
@token_required
@safe_route_handler('Failed to update password')
@validate_request_data(
    required_fields=['currentPassword', 'newPassword'],
    message='Current and new password are required',
)
def update_password(validated_data):
    current_password = validated_data['currentPassword']
    new_password = validated_data['newPassword']

    strong_enough, message = check_password_strength(new_password)
    if not strong_enough:
        raise ValidationError(message)

    user = db.session.get(User, g.current_user['userId'])
    if not user:
        raise NotFoundError('User not found')

    if not verify_password(current_password, user.password):
        raise UnauthorizedError('Current password is incorrect')

    user.password = hash_password(new_password)
    db.session.commit()
    logger.info(f"Password updated for user {user.id}")

    return jsonify({'message': 'Password updated successfully'})
