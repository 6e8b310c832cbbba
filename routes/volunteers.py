from flask import Blueprint, jsonify
from sqlalchemy.exc import IntegrityError
from models import Volunteer, db
from utils.error_handling import ConflictError, safe_route_handler, validate_request_data, is_unique_violation
import logging

volunteers_bp = Blueprint('volunteers', __name__)
logger = logging.getLogger(__name__)

# Served from memory; not stored in the database
OPPORTUNITIES = [
    {
        'id': 1,
        'title': 'Community Outreach Coordinator',
        'description': 'Organize local events and connect families with foundation programs.',
        'location': 'On-site',
        'commitment': '10 hours/week',
        'category': 'Community'
    },
    {
        'id': 2,
        'title': 'Education Mentor',
        'description': 'Tutor and mentor students in after-school learning sessions.',
        'location': 'On-site',
        'commitment': '4 hours/week',
        'category': 'Education'
    },
    {
        'id': 3,
        'title': 'Fundraising Assistant',
        'description': 'Help plan fundraising campaigns and reach out to new donors.',
        'location': 'Remote',
        'commitment': '5 hours/week',
        'category': 'Fundraising'
    },
    {
        'id': 4,
        'title': 'Content Writer',
        'description': 'Write blog posts and stories about the impact of our programs.',
        'location': 'Remote',
        'commitment': 'Flexible',
        'category': 'Communications'
    },
]


@volunteers_bp.route('/opportunities', methods=['GET'])
def list_opportunities():
    return jsonify(OPPORTUNITIES)


@volunteers_bp.route('/volunteers', methods=['POST'])
@safe_route_handler('Failed to submit application')
@validate_request_data(
    required_fields=['firstName', 'lastName', 'email', 'phone', 'interest', 'availability'],
    message='Missing required fields',
)
def apply(validated_data):
    data = validated_data
    volunteer = Volunteer(
        first_name=str(data['firstName']).strip(),
        last_name=str(data['lastName']).strip(),
        email=str(data['email']).strip().lower(),
        phone=str(data['phone']).strip(),
        interest=str(data['interest']).strip(),
        availability=str(data['availability']).strip(),
        experience=str(data['experience']).strip() if data.get('experience') else None
    )
    db.session.add(volunteer)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if is_unique_violation(e):
            logger.info(f"Duplicate volunteer application for {volunteer.email}")
            raise ConflictError('You have already applied with this email')
        raise

    return jsonify({
        'message': 'Application submitted successfully',
        'id': volunteer.id
    }), 201
