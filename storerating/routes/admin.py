"""
Administrator routes - platform statistics and user/store management.

Deleting a user or a store goes through the rating store service so the
ratings that depend on it are removed, and the affected store summaries are
recomputed, in the same transaction.
"""

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import IntegrityError

from storerating import db
from storerating.errors import AlreadyExists, InvalidInput, NotFound, STORE_NOT_FOUND_MESSAGE
from storerating.models import User, Store, Rating, ROLE_ADMIN, ROLE_USER, ROLE_OWNER
from storerating.routes.auth import role_required, get_json_payload
from storerating.services.rating_store import rating_store
from storerating.validation import (
    validate_name,
    validate_store_name,
    validate_email,
    validate_password,
    validate_address,
    validate_role,
    validate_id,
    MAX_ID,
    parse_pagination,
    parse_sorting,
    pagination_dict,
)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

USER_SORT_COLUMNS = {
    'name': User.name,
    'email': User.email,
    'role': User.role,
    'created_at': User.created_at,
}

STORE_SORT_COLUMNS = {
    'name': Store.name,
    'email': Store.email,
    'rating': Store.rating,
    'created_at': Store.created_at,
}


def get_managed_user(user_id):
    """Users the admin may view or change (admins are excluded)."""
    user = None
    if user_id <= MAX_ID:
        user = User.query.filter(User.id == user_id, User.role != ROLE_ADMIN).first()
    if user is None:
        raise NotFound('User not found')
    return user


def resolve_owner(owner_id, store=None):
    """Validate an owner_id for a store; None means the store has no owner."""
    if owner_id in (None, ''):
        return None
    owner = db.session.get(User, validate_id(owner_id, 'owner_id'))
    if owner is None or owner.role != ROLE_OWNER:
        raise InvalidInput('owner_id must be a valid Store Owner')
    if owner.store is not None and owner.store is not store:
        raise AlreadyExists('This owner already has a store')
    return owner


def commit_or_conflict(message):
    """Commit, turning a unique constraint violation into a 409."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise AlreadyExists(message)


# ============== DASHBOARD ==============

@admin_bp.route('/dashboard')
@role_required(ROLE_ADMIN)
def dashboard():
    """Platform totals and recent activity."""
    recent_users = User.query.filter(User.role != ROLE_ADMIN).order_by(
        User.created_at.desc(), User.id.desc()
    ).limit(5).all()
    recent_stores = Store.query.order_by(Store.created_at.desc(), Store.id.desc()).limit(5).all()

    return jsonify({
        'statistics': {
            'totalUsers': User.query.filter(User.role != ROLE_ADMIN).count(),
            'totalStores': Store.query.count(),
            'totalRatings': Rating.query.count(),
        },
        'recentActivity': {
            'recentUsers': [user.to_dict() for user in recent_users],
            'recentStores': [store.to_dict() for store in recent_stores],
        }
    })


# ============== STORES ==============

@admin_bp.route('/stores', methods=['POST'])
@role_required(ROLE_ADMIN)
def create_store():
    """Add a new store, optionally assigned to a store owner."""
    data = get_json_payload()
    name = validate_store_name(data.get('name'))
    email = validate_email(data.get('email'))
    address = validate_address(data.get('address'))
    owner = resolve_owner(data.get('owner_id'))

    if Store.query.filter_by(email=email).first():
        raise AlreadyExists('Store with this email already exists')

    store = Store(name=name, email=email, address=address,
                  owner_id=owner.id if owner else None,
                  rating=0.0, total_ratings=0)
    db.session.add(store)
    commit_or_conflict('Store with this email already exists')

    current_app.logger.info(f"Admin {g.user.id} created store {store.id}")
    return jsonify({
        'success': True,
        'message': 'Store added successfully',
        'store': store.to_dict()
    }), 201


@admin_bp.route('/stores')
@role_required(ROLE_ADMIN)
def list_stores():
    """List stores with name/email/address filters, sorting and pagination."""
    sort, descending = parse_sorting(request.args, STORE_SORT_COLUMNS, default='name')
    page, limit = parse_pagination(request.args)

    query = Store.query
    for field in ('name', 'email', 'address'):
        value = request.args.get(field, '').strip()
        if value:
            query = query.filter(getattr(Store, field).ilike(f'%{value}%'))

    sort_column = STORE_SORT_COLUMNS[sort]
    pagination = query.order_by(
        sort_column.desc() if descending else sort_column.asc(), Store.id
    ).paginate(page=page, per_page=limit, error_out=False)

    return jsonify({
        'stores': [store.to_dict() for store in pagination.items],
        'pagination': pagination_dict(pagination)
    })


@admin_bp.route('/stores/<int:store_id>', methods=['PUT'])
@role_required(ROLE_ADMIN)
def update_store(store_id):
    """Update a store's details and owner. Rating summary fields are not editable."""
    store = db.session.get(Store, store_id) if store_id <= MAX_ID else None
    if store is None:
        raise NotFound(STORE_NOT_FOUND_MESSAGE)

    data = get_json_payload()
    name = validate_store_name(data.get('name'))
    email = validate_email(data.get('email'))
    address = validate_address(data.get('address'))

    if Store.query.filter(Store.email == email, Store.id != store.id).first():
        raise AlreadyExists('Email already taken by another store')

    if 'owner_id' in data:
        owner = resolve_owner(data.get('owner_id'), store)
        store.owner_id = owner.id if owner else None

    store.name = name
    store.email = email
    store.address = address
    commit_or_conflict('Email already taken by another store')

    current_app.logger.info(f"Admin {g.user.id} updated store {store.id}")
    return jsonify({
        'success': True,
        'message': 'Store updated successfully',
        'store': store.to_dict()
    })


@admin_bp.route('/stores/<int:store_id>', methods=['DELETE'])
@role_required(ROLE_ADMIN)
def delete_store(store_id):
    """Delete a store and all of its ratings."""
    store = db.session.get(Store, store_id) if store_id <= MAX_ID else None
    if store is None:
        raise NotFound(STORE_NOT_FOUND_MESSAGE)

    rating_store.remove_store(store)
    return jsonify({'success': True, 'message': 'Store deleted successfully'})


# ============== USERS ==============

@admin_bp.route('/users', methods=['POST'])
@role_required(ROLE_ADMIN)
def create_user():
    """Add a user of any role."""
    data = get_json_payload()
    name = validate_name(data.get('name'))
    email = validate_email(data.get('email'))
    password = validate_password(data.get('password'))
    address = validate_address(data.get('address'))
    role = validate_role(data.get('role') or ROLE_USER)

    if User.query.filter_by(email=email).first():
        raise AlreadyExists('User with this email already exists')

    user = User(name=name, email=email, address=address, role=role)
    user.set_password(password)
    db.session.add(user)
    commit_or_conflict('User with this email already exists')

    current_app.logger.info(f"Admin {g.user.id} created {role} {user.id}")
    return jsonify({
        'success': True,
        'message': 'User added successfully',
        'user': user.to_dict()
    }), 201


@admin_bp.route('/users')
@role_required(ROLE_ADMIN)
def list_users():
    """List non-admin users with filters, sorting and pagination."""
    sort, descending = parse_sorting(request.args, USER_SORT_COLUMNS, default='name')
    page, limit = parse_pagination(request.args)

    query = User.query.filter(User.role != ROLE_ADMIN)
    for field in ('name', 'email', 'address'):
        value = request.args.get(field, '').strip()
        if value:
            query = query.filter(getattr(User, field).ilike(f'%{value}%'))

    role = request.args.get('role')
    if role:
        query = query.filter(User.role == validate_role(role))

    sort_column = USER_SORT_COLUMNS[sort]
    pagination = query.order_by(
        sort_column.desc() if descending else sort_column.asc(), User.id
    ).paginate(page=page, per_page=limit, error_out=False)

    return jsonify({
        'users': [user.to_dict() for user in pagination.items],
        'pagination': pagination_dict(pagination)
    })


@admin_bp.route('/users/<int:user_id>')
@role_required(ROLE_ADMIN)
def user_details(user_id):
    """User details plus their store (owners) or their ratings (users)."""
    user = get_managed_user(user_id)
    data = user.to_dict()

    if user.is_owner and user.store is not None:
        data['store'] = {
            'id': user.store.id,
            'name': user.store.name,
            'rating': float(user.store.rating or 0),
            'total_ratings': user.store.total_ratings,
        }

    if user.can_rate:
        rows = db.session.query(Rating.rating, Rating.created_at, Store.name).join(
            Store, Rating.store_id == Store.id
        ).filter(Rating.user_id == user.id).order_by(Rating.created_at.desc()).all()
        data['ratings'] = [
            {'rating': rating, 'created_at': created_at.isoformat(), 'store_name': store_name}
            for rating, created_at, store_name in rows
        ]

    return jsonify({'user': data})


@admin_bp.route('/users/<int:user_id>', methods=['PUT'])
@role_required(ROLE_ADMIN)
def update_user(user_id):
    """Update a user's details and role."""
    user = get_managed_user(user_id)

    data = get_json_payload()
    name = validate_name(data.get('name'))
    email = validate_email(data.get('email'))
    address = validate_address(data.get('address'))
    role = validate_role(data.get('role') or user.role)

    if User.query.filter(User.email == email, User.id != user.id).first():
        raise AlreadyExists('Email already taken by another user')

    # An account that stops being an owner releases its store
    if role != ROLE_OWNER and user.store is not None:
        user.store.owner_id = None

    user.name = name
    user.email = email
    user.address = address
    user.role = role
    commit_or_conflict('Email already taken by another user')

    current_app.logger.info(f"Admin {g.user.id} updated user {user.id}")
    return jsonify({
        'success': True,
        'message': 'User updated successfully',
        'user': user.to_dict()
    })


@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@role_required(ROLE_ADMIN)
def delete_user(user_id):
    """Delete a user and their ratings; rated stores are recomputed."""
    user = get_managed_user(user_id)
    rating_store.remove_user(user)
    return jsonify({'success': True, 'message': 'User deleted successfully'})
