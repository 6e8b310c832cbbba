"""
Review service utilities for blog ratings stored as an embedded JSON array
"""

import json
import time
import logging
from datetime import date
from numbers import Real
from sqlalchemy.orm.exc import StaleDataError

from models import db
from utils.error_handling import ValidationError, ConcurrentUpdateError

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def format_long_date(value):
    """Format a date like "January 5, 2025" """
    if not value:
        return None
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return f"{value:%B} {value.day}, {value.year}"


class ReviewService:
    """Service class for blog review operations"""

    @staticmethod
    def parse_reviews(raw):
        """Return the reviews column as a list, tolerating NULL and legacy strings"""
        if raw is None:
            return []
        if isinstance(raw, str):
            try:
                raw = json.loads(raw) if raw.strip() else []
            except ValueError:
                logger.warning("Discarding unparseable reviews column")
                return []
        return list(raw) if isinstance(raw, list) else []

    @staticmethod
    def summarize(reviews):
        """Average rating (0 when empty) and count for a list of reviews.

        Older rows may carry ratings as strings; those are coerced, and entries
        that are not a number between 1 and 5 are left out of the aggregate.
        """
        ratings = []
        for review in reviews:
            if not isinstance(review, dict):
                continue
            rating = ReviewService._coerce_rating(review.get('rating'))
            if rating is None:
                logger.warning(f"Skipping review {review.get('id')} with unusable rating {review.get('rating')!r}")
                continue
            ratings.append(rating)
        count = len(ratings)
        if count == 0:
            return 0, 0
        return round(sum(ratings) / count, 1), count

    @staticmethod
    def _coerce_rating(value):
        if isinstance(value, bool) or value is None:
            return None
        try:
            rating = float(value)
        except (TypeError, ValueError):
            return None
        # NaN fails both comparisons
        if not MIN_RATING <= rating <= MAX_RATING:
            return None
        return rating

    @staticmethod
    def validate_rating(rating):
        # bool is a subclass of int but never a rating
        if isinstance(rating, bool) or not isinstance(rating, Real):
            raise ValidationError('Rating must be a number between 1 and 5')
        if rating != rating or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError('Rating must be a number between 1 and 5')
        return rating

    @staticmethod
    def next_review_id(reviews):
        """Millisecond timestamp, bumped past any id already on the blog"""
        candidate = int(time.time() * 1000)
        existing = [r.get('id') for r in reviews if isinstance(r, dict) and isinstance(r.get('id'), int)]
        if existing and max(existing) >= candidate:
            candidate = max(existing) + 1
        return candidate

    @staticmethod
    def add_review(blog, rating, author=None):
        """Append a review and persist the whole array under the blog's version check"""
        rating = ReviewService.validate_rating(rating)
        if not isinstance(author, str) or not author.strip():
            author = 'Anonymous'

        reviews = ReviewService.parse_reviews(blog.reviews)
        review = {
            'id': ReviewService.next_review_id(reviews),
            'author': author.strip(),
            'rating': rating,
            'date': date.today().isoformat(),
        }
        # Assign a new list so the JSON column is flagged as modified
        blog.reviews = reviews + [review]

        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            logger.warning(f"Concurrent review update on blog {blog.id}")
            raise ConcurrentUpdateError('Blog was updated by another request, please retry')

        average_rating, review_count = ReviewService.summarize(blog.reviews)
        return {
            'reviews': blog.reviews,
            'average_rating': average_rating,
            'review_count': review_count,
        }
