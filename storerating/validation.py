"""
Request payload checks shared by the API routes.

Every helper either returns the cleaned value or raises InvalidInput with a
message the web client can show next to the offending field.
"""

import re
from flask import current_app

from storerating.errors import InvalidInput
from storerating.models import ROLES

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PASSWORD_RE = re.compile(r'^(?=.*[A-Z])(?=.*[!@#$%^&*(),.?":{}|<>])')

# Largest value a 32-bit INTEGER primary key column can hold
MAX_ID = 2 ** 31 - 1

# Longest analytics window, ten years
MAX_PERIOD_DAYS = 3650


def validate_name(name) -> str:
    name = (name or '').strip()
    if not 20 <= len(name) <= 60:
        raise InvalidInput('Name must be between 20 and 60 characters')
    return name


def validate_store_name(name) -> str:
    name = (name or '').strip()
    if not 1 <= len(name) <= 60:
        raise InvalidInput('Store name must be between 1 and 60 characters')
    return name


def validate_email(email) -> str:
    email = (email or '').strip().lower()
    if not EMAIL_RE.match(email):
        raise InvalidInput('Please provide a valid email')
    return email


def validate_password(password, field='Password') -> str:
    password = password or ''
    if not 8 <= len(password) <= 16:
        raise InvalidInput(f'{field} must be between 8 and 16 characters')
    if not PASSWORD_RE.match(password):
        raise InvalidInput(f'{field} must contain at least one uppercase letter and one special character')
    return password


def validate_address(address):
    if address is None:
        return None
    address = str(address).strip()
    if len(address) > 400:
        raise InvalidInput('Address must not exceed 400 characters')
    return address or None


def validate_role(role) -> str:
    if role not in ROLES:
        raise InvalidInput('Role must be admin, user, or owner')
    return role


def validate_score(value) -> int:
    """A rating must be a whole number from 1 to 5; bools and floats are refused."""
    if isinstance(value, bool):
        raise InvalidInput('Rating must be between 1 and 5')
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not 1 <= value <= 5:
        raise InvalidInput('Rating must be between 1 and 5')
    return value


def validate_id(value, field='store_id') -> int:
    if isinstance(value, bool):
        raise InvalidInput(f'Valid {field} is required')
    try:
        value = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInput(f'Valid {field} is required')
    if not 1 <= value <= MAX_ID:
        raise InvalidInput(f'Valid {field} is required')
    return value


def validate_period_days(value) -> int:
    if value is None or value == '':
        return current_app.config['ANALYTICS_DEFAULT_PERIOD_DAYS']
    try:
        days = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInput('Period must be a positive number of days')
    if not 1 <= days <= MAX_PERIOD_DAYS:
        raise InvalidInput(f'Period must be between 1 and {MAX_PERIOD_DAYS} days')
    return days


def parse_sorting(args, allowed, default):
    """Return (sort_field, descending) from ?sort=&order= query params."""
    sort = args.get('sort', default)
    order = args.get('order', 'asc').lower()
    if sort not in allowed:
        raise InvalidInput('Invalid sort field')
    if order not in ('asc', 'desc'):
        raise InvalidInput('Order must be asc or desc')
    return sort, order == 'desc'


def parse_pagination(args):
    """Return (page, limit) from ?page=&limit= query params."""
    try:
        page = int(args.get('page', 1))
        limit = int(args.get('limit', current_app.config['DEFAULT_PAGE_SIZE']))
    except (TypeError, ValueError):
        raise InvalidInput('Page and limit must be numbers')
    if page < 1 or limit < 1:
        raise InvalidInput('Page and limit must be positive')
    return page, min(limit, current_app.config['MAX_PAGE_SIZE'])


def pagination_dict(pagination):
    """Pagination envelope shared by the list endpoints."""
    return {
        'page': pagination.page,
        'limit': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages,
    }
