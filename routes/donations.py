"""
Donation routes: intake with card storage, lookup and per-donor history
"""

import re
import logging
from decimal import Decimal, InvalidOperation
from flask import Blueprint, jsonify, request, g
from models import Donation, PaymentMethod, DONATION_FREQUENCIES
from database import query, transaction
from utils.error_handling import (
    ValidationError, ForbiddenError, NotFoundError, safe_route_handler, validate_request_data,
)
from utils.security import token_required, hash_sensitive

donations_bp = Blueprint('donations', __name__)
logger = logging.getLogger(__name__)

MISSING_FIELDS = 'Missing required fields'

# Prefix rules checked in order; anything else is "unknown"
CARD_TYPE_PATTERNS = (
    ('amex', re.compile(r'^3[47]')),
    ('visa', re.compile(r'^4')),
    ('mastercard', re.compile(r'^(5[1-5]|2(2[2-9]|[3-6]\d|7[01]|720))')),
    ('discover', re.compile(r'^(6011|65|64[4-9])')),
)

REDACTED_COLUMNS = """
    d.id, d.amount, d.frequency, d.email, d.card_last_four, d.cardholder_name,
    d.country, d.payment_status, pm.card_type, d.created_at
"""


def detect_card_type(card_number):
    for card_type, pattern in CARD_TYPE_PATTERNS:
        if pattern.match(card_number):
            return card_type
    return 'unknown'


CARD_NUMBER_PATTERN = re.compile(r'[0-9]{12,19}')


def normalize_card_number(raw):
    digits = re.sub(r'[\s-]', '', str(raw))
    if not CARD_NUMBER_PATTERN.fullmatch(digits):
        raise ValidationError('Invalid card number')
    return digits


def parse_amount(raw):
    if isinstance(raw, bool):
        raise ValidationError('Amount must be a positive number')
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise ValidationError('Amount must be a positive number')
    if not amount.is_finite() or amount <= 0:
        raise ValidationError('Amount must be a positive number')
    return amount.quantize(Decimal('0.01'))


def parse_expiry(month, year):
    try:
        month = int(month)
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError('Invalid card expiry date')
    if not 1 <= month <= 12:
        raise ValidationError('Invalid card expiry date')
    if year < 100:
        year += 2000
    return month, year


def serialize_donation(row):
    """Redacted projection: never includes card or CVV digests"""
    created_at = row['created_at']
    return {
        'id': row['id'],
        'amount': float(row['amount']) if row['amount'] is not None else None,
        'frequency': row['frequency'],
        'email': row['email'],
        'card_last_four': row['card_last_four'],
        'cardholder_name': row['cardholder_name'],
        'country': row['country'],
        'payment_status': row['payment_status'],
        'card_type': row['card_type'],
        'created_at': created_at.isoformat() if hasattr(created_at, 'isoformat') else created_at
    }


def build_payment_method(donation, card_number, card_info, expiry_month, expiry_year):
    return PaymentMethod(
        donation_id=donation.id,
        card_type=str(card_info.get('cardType') or detect_card_type(card_number)).strip().lower()[:20],
        card_number_hash=hash_sensitive(card_number),
        expiry_month=expiry_month,
        expiry_year=expiry_year,
        cvv_hash=hash_sensitive(card_info['cvv'])
    )


@donations_bp.route('/donations', methods=['POST'])
@safe_route_handler('Failed to process donation')
@validate_request_data(
    required_fields=['amount', 'email', 'cardInfo', 'cardholderName', 'country'],
    message=MISSING_FIELDS,
)
def create_donation(validated_data):
    data = validated_data
    card_info = data['cardInfo']
    if not isinstance(card_info, dict):
        raise ValidationError(MISSING_FIELDS)
    for field in ('cardNumber', 'expiryMonth', 'expiryYear', 'cvv'):
        if card_info.get(field) in (None, ''):
            raise ValidationError(MISSING_FIELDS)

    amount = parse_amount(data['amount'])
    frequency = data.get('frequency') or 'one-time'
    if frequency not in DONATION_FREQUENCIES:
        raise ValidationError(f"Frequency must be one of: {', '.join(DONATION_FREQUENCIES)}")
    card_number = normalize_card_number(card_info['cardNumber'])
    expiry_month, expiry_year = parse_expiry(card_info['expiryMonth'], card_info['expiryYear'])

    # Both rows are written or neither is
    with transaction() as session:
        donation = Donation(
            amount=amount,
            frequency=frequency,
            email=str(data['email']).strip().lower(),
            card_last_four=card_number[-4:],
            cardholder_name=str(data['cardholderName']).strip(),
            country=str(data['country']).strip(),
            payment_status='completed'
        )
        session.add(donation)
        session.flush()

        session.add(build_payment_method(donation, card_number, card_info, expiry_month, expiry_year))
        session.flush()
        donation_id = donation.id

    logger.info(f"Donation {donation_id} recorded ({frequency})")
    return jsonify({
        'message': 'Donation processed successfully',
        'donationId': donation_id
    }), 201


@donations_bp.route('/donations/<int:donation_id>', methods=['GET'])
@safe_route_handler('Failed to fetch donation')
def get_donation(donation_id):
    rows = query(
        f"""
        SELECT {REDACTED_COLUMNS}
        FROM donations d
        LEFT JOIN payment_methods pm ON pm.donation_id = d.id
        WHERE d.id = :donation_id
        """,
        {'donation_id': donation_id},
    )
    if not rows:
        raise NotFoundError('Donation not found')
    return jsonify(serialize_donation(rows[0]))


@donations_bp.route('/donations', methods=['GET'])
@token_required
@safe_route_handler('Failed to fetch donations')
def list_donations():
    email = (request.args.get('email') or '').strip().lower()
    if not email:
        raise ValidationError('Email is required')

    # Donors may only list their own history
    if email != str(g.current_user.get('email', '')).lower():
        raise ForbiddenError('You can only view your own donations')

    rows = query(
        f"""
        SELECT {REDACTED_COLUMNS}
        FROM donations d
        LEFT JOIN payment_methods pm ON pm.donation_id = d.id
        WHERE d.email = :email
        ORDER BY d.created_at DESC, d.id DESC
        """,
        {'email': email},
    )
    return jsonify([serialize_donation(row) for row in rows])
