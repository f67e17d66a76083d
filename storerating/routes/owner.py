"""
Store owner routes - dashboard, rating list and trend analytics.

Every route resolves the caller's own store first; an owner without a store
gets a 404 rather than someone else's data.
"""

from flask import Blueprint, request, jsonify, g

from storerating import db
from storerating.models import Rating, User, ROLE_OWNER
from storerating.routes.auth import role_required
from storerating.services.analytics import analytics_engine
from storerating.validation import parse_pagination, parse_sorting, pagination_dict, validate_period_days

owner_bp = Blueprint('owner', __name__, url_prefix='/api/owner')

RATING_SORT_COLUMNS = {
    'rating': Rating.rating,
    'created_at': Rating.created_at,
    'updated_at': Rating.updated_at,
    'user_name': User.name,
}


def rater_dict(rating, user):
    return {
        'id': rating.id,
        'rating': rating.rating,
        'created_at': rating.created_at.isoformat(),
        'updated_at': rating.updated_at.isoformat(),
        'user_id': user.id,
        'user_name': user.name,
        'user_email': user.email,
        'user_address': user.address,
    }


@owner_bp.route('/dashboard')
@role_required(ROLE_OWNER)
def dashboard():
    """Store summary, score breakdown and everyone who rated the store."""
    store = analytics_engine.owned_store(g.user)

    rows = db.session.query(Rating, User).join(User, Rating.user_id == User.id).filter(
        Rating.store_id == store.id
    ).order_by(Rating.updated_at.desc(), Rating.id.desc()).all()

    users_who_rated = [rater_dict(rating, user) for rating, user in rows]
    recent_ratings = [
        {
            'user_name': user.name,
            'rating': rating.rating,
            'created_at': rating.created_at.isoformat(),
            'updated_at': rating.updated_at.isoformat(),
        }
        for rating, user in rows[:10]
    ]

    return jsonify({
        'store': store.to_dict(),
        'statistics': {
            'total_ratings': store.total_ratings,
            'average_rating': float(store.rating or 0),
            'rating_breakdown': analytics_engine.rating_breakdown(store.id),
        },
        'users_who_rated': users_who_rated,
        'recent_ratings': recent_ratings
    })


@owner_bp.route('/store')
@role_required(ROLE_OWNER)
def store_info():
    """The owner's store."""
    store = analytics_engine.owned_store(g.user)
    return jsonify({'store': store.to_dict()})


@owner_bp.route('/ratings')
@role_required(ROLE_OWNER)
def ratings():
    """Paginated ratings for the owner's store (default: last updated first)."""
    store = analytics_engine.owned_store(g.user)
    if 'order' not in request.args:
        args = request.args.copy()
        args['order'] = 'desc'
    else:
        args = request.args
    sort, descending = parse_sorting(args, RATING_SORT_COLUMNS, default='updated_at')
    page, limit = parse_pagination(request.args)

    sort_column = RATING_SORT_COLUMNS[sort]
    pagination = db.session.query(Rating, User).join(User, Rating.user_id == User.id).filter(
        Rating.store_id == store.id
    ).order_by(
        sort_column.desc() if descending else sort_column.asc(), Rating.id
    ).paginate(page=page, per_page=limit, error_out=False)

    return jsonify({
        'ratings': [rater_dict(rating, user) for rating, user in pagination.items],
        'pagination': pagination_dict(pagination)
    })


@owner_bp.route('/analytics')
@role_required(ROLE_OWNER)
def analytics():
    """
    Rating trends for the owner's store.

    Query params:
        period: window length in days (default 30)
    """
    period_days = validate_period_days(request.args.get('period'))
    return jsonify(analytics_engine.report(g.user, period_days))
