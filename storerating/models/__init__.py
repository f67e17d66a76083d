# Import all models here so they're registered with SQLAlchemy
from storerating.models.user import User, ROLE_ADMIN, ROLE_USER, ROLE_OWNER, ROLES
from storerating.models.store import Store
from storerating.models.rating import Rating

__all__ = ['User', 'Store', 'Rating', 'ROLE_ADMIN', 'ROLE_USER', 'ROLE_OWNER', 'ROLES']
