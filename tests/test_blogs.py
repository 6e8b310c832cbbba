import pytest
from datetime import date
from sqlalchemy import text

from models import Blog, db
from utils.error_handling import ConcurrentUpdateError
from utils.review_service import ReviewService


def create_blog(client, **overrides):
    payload = {
        'title': 'Clean water for Kandoo',
        'description': 'Progress update',
        'category': 'Projects',
        'image_url': 'https://example.org/water.jpg',
        'content': 'We finished the second well this month.',
    }
    payload.update(overrides)
    response = client.post('/api/blogs', json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def test_create_blog_starts_without_reviews(client):
    blog = create_blog(client, date='2025-01-05')

    assert blog['title'] == 'Clean water for Kandoo'
    assert blog['date'] == 'January 5, 2025'
    assert blog['reviews'] == []
    assert blog['average_rating'] == 0
    assert blog['review_count'] == 0


def test_create_blog_requires_title_and_content(client):
    response = client.post('/api/blogs', json={'title': 'No content'})

    assert response.status_code == 400


def test_create_blog_rejects_bad_date(client):
    response = client.post('/api/blogs', json={'title': 't', 'content': 'c', 'date': '05/01/2025'})

    assert response.status_code == 400


def test_list_blogs_newest_first(client):
    create_blog(client, title='Older', date='2024-03-01')
    create_blog(client, title='Newer', date='2025-06-15')

    response = client.get('/api/blogs')

    assert response.status_code == 200
    titles = [blog['title'] for blog in response.get_json()]
    assert titles == ['Newer', 'Older']


def test_get_blog_not_found(client):
    response = client.get('/api/blogs/999')

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Blog not found'}


def test_add_reviews_recomputes_average(client):
    blog = create_blog(client)

    first = client.post(f"/api/blogs/{blog['id']}/reviews", json={'author': 'Ama', 'rating': 4})
    second = client.post(f"/api/blogs/{blog['id']}/reviews", json={'rating': 2})

    assert first.status_code == second.status_code == 201
    body = second.get_json()
    assert body['average_rating'] == 3.0
    assert body['review_count'] == 2
    assert [r['author'] for r in body['reviews']] == ['Ama', 'Anonymous']
    assert body['reviews'][1]['id'] > body['reviews'][0]['id']

    detail = client.get(f"/api/blogs/{blog['id']}").get_json()
    assert detail['average_rating'] == 3.0
    assert detail['review_count'] == 2
    assert len(detail['reviews']) == 2


@pytest.mark.parametrize('rating', [0, 6, 'five', '4', None, True, 4.5e10])
def test_add_review_rejects_invalid_rating(client, rating):
    blog = create_blog(client)

    response = client.post(f"/api/blogs/{blog['id']}/reviews", json={'rating': rating})

    assert response.status_code == 400
    assert response.get_json() == {'error': 'Rating must be a number between 1 and 5'}


def test_add_review_to_missing_blog(client):
    response = client.post('/api/blogs/999/reviews', json={'rating': 5})

    assert response.status_code == 404


def test_summarize_reviews():
    assert ReviewService.summarize([{'rating': 4}, {'rating': 2}]) == (3.0, 2)
    assert ReviewService.summarize([]) == (0, 0)


def test_parse_reviews_tolerates_null_and_legacy_text():
    assert ReviewService.parse_reviews(None) == []
    assert ReviewService.parse_reviews('') == []
    assert ReviewService.parse_reviews('[{"rating": 5}]') == [{'rating': 5}]
    assert ReviewService.parse_reviews('{broken') == []


def test_concurrent_review_update_is_rejected(app, client):
    blog_id = create_blog(client)['id']

    with app.app_context():
        blog = db.session.get(Blog, blog_id)
        # Another writer bumps the version after this request read the row
        db.session.execute(text('UPDATE blogs SET version = version + 1 WHERE id = :id'), {'id': blog_id})

        with pytest.raises(ConcurrentUpdateError):
            ReviewService.add_review(blog, 5, 'Late writer')

        db.session.expire_all()
        assert ReviewService.parse_reviews(db.session.get(Blog, blog_id).reviews) == []


def test_next_review_id_is_unique():
    far_future = 10 ** 15
    assert ReviewService.next_review_id([{'id': far_future}]) == far_future + 1


def test_blog_default_date_is_today(client):
    blog = create_blog(client)
    today = date.today()

    assert blog['date'] == f"{today:%B} {today.day}, {today.year}"


@pytest.mark.parametrize('field', ['title', 'content', 'description', 'category', 'image_url'])
def test_create_blog_rejects_non_text_fields(app, client, field):
    payload = {'title': 't', 'content': 'c', field: {'a': 1}}

    response = client.post('/api/blogs', json=payload)

    assert response.status_code == 400
    assert response.get_json() == {'error': f"{field} must be a string"}
    with app.app_context():
        assert Blog.query.count() == 0


def test_summarize_skips_unusable_ratings():
    reviews = [
        {'id': 1, 'rating': '4'},
        {'id': 2, 'rating': 'great'},
        {'id': 3, 'rating': 9},
        {'id': 4, 'rating': True},
        {'id': 5},
        {'id': 6, 'rating': 2},
    ]

    assert ReviewService.summarize(reviews) == (3.0, 2)


def test_legacy_string_ratings_do_not_break_listing(app, client):
    blog_id = create_blog(client)['id']
    legacy = (
        '[{"id": 1, "author": "x", "rating": "4", "date": "2020-01-01"},'
        ' {"id": 2, "author": "y", "rating": "n/a", "date": "2020-01-02"}]'
    )
    with app.app_context():
        db.session.execute(text('UPDATE blogs SET reviews = :reviews WHERE id = :id'),
                           {'reviews': legacy, 'id': blog_id})
        db.session.commit()

    listing = client.get('/api/blogs')

    assert listing.status_code == 200
    blog = listing.get_json()[0]
    assert blog['average_rating'] == 4.0
    assert blog['review_count'] == 1
    assert len(blog['reviews']) == 2

    review = client.post(f"/api/blogs/{blog_id}/reviews", json={'rating': 2})
    assert review.status_code == 201
    assert review.get_json()['average_rating'] == 3.0
    assert client.get(f"/api/blogs/{blog_id}").status_code == 200
