from flask import Blueprint, jsonify, g, current_app

from storerating import db
from storerating.errors import InvalidInput
from storerating.routes.auth import login_required, get_json_payload
from storerating.validation import validate_name, validate_address, validate_password

users_bp = Blueprint('users', __name__, url_prefix='/api/users')


@users_bp.route('/profile')
@login_required
def get_profile():
    """Current user's profile."""
    return jsonify({'user': g.user.to_dict()})


@users_bp.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    """Update name and/or address."""
    data = get_json_payload()

    if 'name' not in data and 'address' not in data:
        raise InvalidInput('No fields to update')

    if data.get('name'):
        g.user.name = validate_name(data['name'])
    if 'address' in data:
        g.user.address = validate_address(data['address'])
    db.session.commit()

    return jsonify({
        'success': True,
        'message': 'Profile updated successfully',
        'user': g.user.to_dict()
    })


@users_bp.route('/update-password', methods=['PUT'])
@login_required
def update_password():
    """Change password after verifying the current one."""
    data = get_json_payload()
    current_password = data.get('currentPassword') or ''
    if not current_password:
        raise InvalidInput('Current password is required')
    new_password = validate_password(data.get('newPassword'), field='New password')

    if not g.user.check_password(current_password):
        raise InvalidInput('Current password is incorrect')

    g.user.set_password(new_password)
    db.session.commit()
    current_app.logger.info(f"Password updated for user {g.user.id}")

    return jsonify({'success': True, 'message': 'Password updated successfully'})
