from flask import Blueprint, jsonify
from datetime import date
from models import Blog, db
from utils.error_handling import ValidationError, NotFoundError, safe_route_handler, validate_request_data
from utils.review_service import ReviewService, format_long_date
import logging

blogs_bp = Blueprint('blogs', __name__)
logger = logging.getLogger(__name__)

TEXT_FIELDS = ('title', 'description', 'content', 'category', 'image_url')


def serialize_blog(blog):
    """Blog as JSON with reviews and the derived rating fields"""
    reviews = ReviewService.parse_reviews(blog.reviews)
    average_rating, review_count = ReviewService.summarize(reviews)
    return {
        'id': blog.id,
        'title': blog.title,
        'description': blog.description,
        'content': blog.content,
        'date': format_long_date(blog.date),
        'category': blog.category,
        'image_url': blog.image_url,
        'reviews': reviews,
        'average_rating': average_rating,
        'review_count': review_count,
        'created_at': blog.created_at.isoformat() if blog.created_at else None,
        'updated_at': blog.updated_at.isoformat() if blog.updated_at else None
    }


@blogs_bp.route('/blogs', methods=['GET'])
@safe_route_handler('Failed to fetch blogs')
def list_blogs():
    blogs = Blog.query.order_by(Blog.date.desc(), Blog.id.desc()).all()
    return jsonify([serialize_blog(blog) for blog in blogs])


@blogs_bp.route('/blogs/<int:blog_id>', methods=['GET'])
@safe_route_handler('Failed to fetch blog')
def get_blog(blog_id):
    blog = db.session.get(Blog, blog_id)
    if not blog:
        raise NotFoundError('Blog not found')
    return jsonify(serialize_blog(blog))


@blogs_bp.route('/blogs', methods=['POST'])
@safe_route_handler('Failed to create blog')
@validate_request_data(required_fields=['title', 'content'], message='Title and content are required')
def create_blog(validated_data):
    data = validated_data
    for field in TEXT_FIELDS:
        if data.get(field) is not None and not isinstance(data[field], str):
            raise ValidationError(f"{field} must be a string")

    blog_date = date.today()
    if data.get('date'):
        try:
            blog_date = date.fromisoformat(str(data['date'])[:10])
        except ValueError:
            raise ValidationError('Date must be in YYYY-MM-DD format')

    blog = Blog(
        title=str(data['title']).strip(),
        description=data.get('description'),
        content=data['content'],
        category=data.get('category'),
        image_url=data.get('image_url'),
        date=blog_date,
        reviews=[]
    )
    db.session.add(blog)
    db.session.commit()
    logger.info(f"Blog {blog.id} created")

    return jsonify(serialize_blog(blog)), 201


@blogs_bp.route('/blogs/<int:blog_id>/reviews', methods=['POST'])
@safe_route_handler('Failed to add review')
@validate_request_data()
def add_review(blog_id, validated_data):
    # Validate before touching the database
    rating = ReviewService.validate_rating(validated_data.get('rating'))

    blog = db.session.get(Blog, blog_id)
    if not blog:
        raise NotFoundError('Blog not found')

    result = ReviewService.add_review(blog, rating, validated_data.get('author'))
    return jsonify(result), 201
