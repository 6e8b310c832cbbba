from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, date

db = SQLAlchemy()

DONATION_FREQUENCIES = ('one-time', 'monthly', 'quarterly', 'yearly')
PAYMENT_STATUSES = ('pending', 'completed', 'failed', 'refunded')


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)  # Hash, never plaintext
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    bio = db.relationship('Bio', backref='user', uselist=False, cascade='all, delete-orphan', passive_deletes=True)

    def __repr__(self):
        return f'<User {self.email}>'


class Bio(db.Model):
    """Free-text profile bio, one row per user"""
    __tablename__ = 'bios'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    bio = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Blog(db.Model):
    """Blog post with its reviews embedded as a JSON array"""
    __tablename__ = 'blogs'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    content = db.Column(db.Text, nullable=False)
    date = db.Column(db.Date, default=date.today, nullable=False)
    category = db.Column(db.String(100))
    image_url = db.Column(db.String(500))
    reviews = db.Column(db.JSON, default=list)  # [{id, author, rating, date}]
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # UPDATEs compare-and-swap on version; a stale write raises StaleDataError
    __mapper_args__ = {'version_id_col': version}

    def __repr__(self):
        return f'<Blog {self.id} {self.title!r}>'


class Donation(db.Model):
    __tablename__ = 'donations'

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    frequency = db.Column(db.Enum(*DONATION_FREQUENCIES, name='donation_frequency'), nullable=False, default='one-time')
    email = db.Column(db.String(100), nullable=False, index=True)
    card_last_four = db.Column(db.String(4), nullable=False)
    cardholder_name = db.Column(db.String(100), nullable=False)
    country = db.Column(db.String(100), nullable=False)
    # Recorded as completed although no payment gateway is called
    payment_status = db.Column(db.Enum(*PAYMENT_STATUSES, name='donation_payment_status'), nullable=False, default='completed')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    payment_method = db.relationship('PaymentMethod', backref='donation', uselist=False, cascade='all, delete-orphan', passive_deletes=True)

    def __repr__(self):
        return f'<Donation {self.id} amount={self.amount}>'


class PaymentMethod(db.Model):
    """Card details for a donation; only digests of the number and CVV are kept"""
    __tablename__ = 'payment_methods'

    id = db.Column(db.Integer, primary_key=True)
    donation_id = db.Column(db.Integer, db.ForeignKey('donations.id', ondelete='CASCADE'), nullable=False, unique=True)
    card_type = db.Column(db.String(20), nullable=False, default='unknown')
    card_number_hash = db.Column(db.String(64), nullable=False)
    expiry_month = db.Column(db.Integer, nullable=False)
    expiry_year = db.Column(db.Integer, nullable=False)
    cvv_hash = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Volunteer(db.Model):
    __tablename__ = 'volunteers'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    interest = db.Column(db.String(100), nullable=False)
    availability = db.Column(db.String(100), nullable=False)
    experience = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
