from flask import Blueprint, request, jsonify, g
from sqlalchemy import and_

from storerating import db
from storerating.errors import InvalidInput, NotFound, STORE_NOT_FOUND_MESSAGE
from storerating.models import Store, Rating, User
from storerating.routes.auth import login_required
from storerating.validation import MAX_ID, parse_pagination, parse_sorting, pagination_dict

stores_bp = Blueprint('stores', __name__, url_prefix='/api/stores')

STORE_SORT_COLUMNS = {
    'name': Store.name,
    'address': Store.address,
    'rating': Store.rating,
    'created_at': Store.created_at,
}


def store_with_user_rating(store, user_rating):
    """Store JSON plus the caller's own rating and which action they can take."""
    data = store.to_dict()
    data['user_rating'] = user_rating
    data['can_rate'] = user_rating is None and g.user.can_rate
    data['can_modify'] = user_rating is not None
    return data


@stores_bp.route('')
@login_required
def list_stores():
    """
    List stores with the caller's rating attached.

    Query params:
        name, address: case-insensitive substring filters
        sort: name | address | rating | created_at
        order: asc | desc
        page, limit: pagination
    """
    name = request.args.get('name', '').strip()
    address = request.args.get('address', '').strip()
    if len(name) > 60:
        raise InvalidInput('Name filter too long')
    sort, descending = parse_sorting(request.args, STORE_SORT_COLUMNS, default='name')
    page, limit = parse_pagination(request.args)

    query = db.session.query(Store, Rating.rating.label('user_rating')).outerjoin(
        Rating, and_(Rating.store_id == Store.id, Rating.user_id == g.user.id)
    )
    if name:
        query = query.filter(Store.name.ilike(f'%{name}%'))
    if address:
        query = query.filter(Store.address.ilike(f'%{address}%'))

    sort_column = STORE_SORT_COLUMNS[sort]
    query = query.order_by(sort_column.desc() if descending else sort_column.asc(), Store.id)
    pagination = query.paginate(page=page, per_page=limit, error_out=False)

    return jsonify({
        'stores': [store_with_user_rating(store, user_rating) for store, user_rating in pagination.items],
        'pagination': pagination_dict(pagination)
    })


@stores_bp.route('/<int:store_id>')
@login_required
def store_details(store_id):
    """Store details with the caller's rating and the 10 most recent ratings."""
    store = db.session.get(Store, store_id) if store_id <= MAX_ID else None
    if store is None:
        raise NotFound(STORE_NOT_FOUND_MESSAGE)

    own_rating = Rating.query.filter_by(store_id=store.id, user_id=g.user.id).first()

    recent = db.session.query(Rating.rating, Rating.created_at, User.name).join(
        User, Rating.user_id == User.id
    ).filter(Rating.store_id == store.id).order_by(Rating.created_at.desc()).limit(10).all()

    return jsonify({
        'store': store_with_user_rating(store, own_rating.rating if own_rating else None),
        'recent_ratings': [
            {
                'rating': rating,
                'created_at': created_at.isoformat(),
                'user_name': user_name,
            }
            for rating, created_at, user_name in recent
        ]
    })
