from datetime import datetime
from flask import Blueprint, jsonify

main_bp = Blueprint('main', __name__)


@main_bp.route('/api/health')
def health():
    """Health check endpoint for deployment monitoring."""
    return jsonify({
        'status': 'OK',
        'message': 'Store Rating API is running',
        'timestamp': datetime.utcnow().isoformat()
    })
