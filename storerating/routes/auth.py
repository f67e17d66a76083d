"""
Authentication routes and access decorators.

Sessions are cookie based: a successful login stores the user id in the
signed Flask session, and every protected route reloads the user from the
database so role changes and deletions take effect immediately.
"""

from functools import wraps
from flask import Blueprint, request, jsonify, session, g, current_app
from sqlalchemy.exc import IntegrityError

from storerating import db
from storerating.errors import AlreadyExists, Forbidden, InvalidInput, Unauthorized
from storerating.models import User, ROLE_USER
from storerating.validation import validate_name, validate_email, validate_password, validate_address

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

ROLE_DENIED_MESSAGES = {
    ('admin',): 'Access denied. Admin role required.',
    ('user',): 'Access denied. User role required.',
    ('owner',): 'Access denied. Store owner role required.',
}


# ============== SESSION HELPERS ==============

def get_current_user():
    """Get the currently logged-in user."""
    user_id = session.get('user_id')
    if user_id:
        return db.session.get(User, user_id)
    return None


def set_user_session(user):
    """Set session variables for a logged-in user."""
    session.clear()
    session['user_id'] = user.id
    session['role'] = user.role
    session.permanent = True


def login_required(f):
    """Decorator to require an authenticated user, exposed as g.user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if user is None:
            session.clear()
            raise Unauthorized('Access denied. Please log in.')
        g.user = user
        return f(*args, **kwargs)
    return decorated_function


def role_required(*roles):
    """Decorator to require one of the given roles."""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if g.user.role not in roles:
                raise Forbidden(ROLE_DENIED_MESSAGES.get(tuple(roles), 'Access denied'))
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def get_json_payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput('Request body must be a JSON object')
    return data


# ============== ROUTES ==============

@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Register a new normal user and log them in."""
    data = get_json_payload()
    name = validate_name(data.get('name'))
    email = validate_email(data.get('email'))
    password = validate_password(data.get('password'))
    address = validate_address(data.get('address'))

    if User.query.filter_by(email=email).first():
        raise AlreadyExists('User with this email already exists')

    user = User(name=name, email=email, address=address, role=ROLE_USER)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise AlreadyExists('User with this email already exists')

    set_user_session(user)
    current_app.logger.info(f"New user registered: {user.id}")

    return jsonify({
        'success': True,
        'message': 'User registered successfully',
        'user': user.to_dict()
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Log in with email and password."""
    data = get_json_payload()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        raise InvalidInput('Email and password are required')

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        current_app.logger.warning(f"Failed login attempt for {email}")
        raise Unauthorized('Invalid email or password')

    set_user_session(user)

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'user': user.to_dict()
    })


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Log out the current user."""
    session.clear()
    return jsonify({'success': True, 'message': 'Logged out'})


@auth_bp.route('/me')
@login_required
def me():
    """Return the logged-in user."""
    return jsonify({'success': True, 'user': g.user.to_dict()})
