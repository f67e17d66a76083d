"""
Rating routes for normal users.

POST submits a first rating, PUT changes an existing one and DELETE removes
it. Submit and modify are deliberately separate so the client can tell
"already rated" apart from "never rated".
"""

from flask import Blueprint, request, jsonify, g

from storerating.models import Rating, Store
from storerating.routes.auth import login_required, get_json_payload
from storerating.services.rating_store import rating_store
from storerating.validation import validate_id, parse_pagination, pagination_dict

ratings_bp = Blueprint('ratings', __name__, url_prefix='/api/ratings')


@ratings_bp.route('', methods=['POST'])
@login_required
def submit_rating():
    """Submit a new rating for a store."""
    data = get_json_payload()
    store_id = validate_id(data.get('store_id'))

    rating, summary = rating_store.submit(g.user, store_id, data.get('rating'))

    return jsonify({
        'success': True,
        'message': 'Rating submitted successfully',
        'rating': {
            'id': rating.id,
            'user_id': rating.user_id,
            'store_id': rating.store_id,
            'rating': rating.rating,
            'created_at': rating.created_at.isoformat(),
        },
        'store_updated': summary.to_dict()
    }), 201


@ratings_bp.route('', methods=['PUT'])
@login_required
def modify_rating():
    """Modify the user's existing rating for a store."""
    data = get_json_payload()
    store_id = validate_id(data.get('store_id'))

    rating, old_score, summary = rating_store.modify(g.user, store_id, data.get('rating'))

    return jsonify({
        'success': True,
        'message': 'Rating updated successfully',
        'rating': {
            'id': rating.id,
            'user_id': rating.user_id,
            'store_id': rating.store_id,
            'old_rating': old_score,
            'new_rating': rating.rating,
            'created_at': rating.created_at.isoformat(),
            'updated_at': rating.updated_at.isoformat(),
        },
        'store_updated': summary.to_dict()
    })


@ratings_bp.route('/<int:store_id>', methods=['DELETE'])
@login_required
def delete_rating(store_id):
    """Delete the user's rating for a store."""
    deleted, summary = rating_store.delete(g.user, store_id)

    return jsonify({
        'success': True,
        'message': 'Rating deleted successfully',
        'deleted_rating': deleted,
        'store_updated': summary.to_dict()
    })


@ratings_bp.route('/my-ratings')
@login_required
def my_ratings():
    """Current user's ratings with store info, most recently updated first."""
    page, limit = parse_pagination(request.args)

    pagination = Rating.query.join(Store).filter(
        Rating.user_id == g.user.id
    ).order_by(Rating.updated_at.desc(), Rating.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )

    ratings = []
    for rating in pagination.items:
        ratings.append({
            'id': rating.id,
            'rating': rating.rating,
            'created_at': rating.created_at.isoformat(),
            'updated_at': rating.updated_at.isoformat(),
            'store_id': rating.store.id,
            'store_name': rating.store.name,
            'store_address': rating.store.address,
            'store_avg_rating': float(rating.store.rating or 0),
        })

    return jsonify({
        'ratings': ratings,
        'pagination': pagination_dict(pagination)
    })
