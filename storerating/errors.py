"""
Error types raised by the services and rendered by the API.

Each error carries an HTTP status code and a stable message. The web client
branches on these messages (e.g. offering "submit" vs "modify"), so they are
part of the API contract and should not be reworded casually.
"""

ALREADY_RATED_MESSAGE = 'You have already rated this store. Use PUT to modify your rating.'
RACE_LOST_MESSAGE = 'You have already rated this store.'
NOT_RATED_YET_MESSAGE = 'You have not rated this store yet. Use POST to submit a new rating.'
NOT_RATED_MESSAGE = 'You have not rated this store'
STORE_NOT_FOUND_MESSAGE = 'Store not found'
OWNER_STORE_NOT_FOUND_MESSAGE = 'No store found for this owner'


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500
    default_message = 'Something went wrong'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ServiceError):
    status_code = 401
    default_message = 'Authentication required'


class Forbidden(ServiceError):
    """Wrong role for the operation."""
    status_code = 403
    default_message = 'Access denied'


class NotFound(ServiceError):
    """Referenced store, user or rating does not exist."""
    status_code = 404
    default_message = 'Not found'


class InvalidInput(ServiceError):
    status_code = 400
    default_message = 'Validation failed'


class AlreadyExists(ServiceError):
    status_code = 409
    default_message = 'Already exists'


class AlreadyRated(AlreadyExists):
    """Submit against a (user, store) pair that already has a rating."""
    default_message = ALREADY_RATED_MESSAGE


class Conflict(AlreadyRated):
    """The storage layer rejected a write the existence check had allowed."""
    default_message = RACE_LOST_MESSAGE


class Unavailable(ServiceError):
    """The database failed to complete the transaction."""
    status_code = 503
    default_message = 'Database unavailable, please try again'
