"""
Rating writes and store summary maintenance.

Every mutation of the ratings table runs as one unit of work:

1. Lock the parent store row (SELECT ... FOR UPDATE where supported)
2. Check whether the user already rated the store
3. Insert / update / delete the rating row
4. Recompute the store's rating and total_ratings from the ratings table
5. Commit

The summary on the store is never patched incrementally. It is recalculated
with COUNT/AVG after the write is flushed, so it always matches the rows the
same transaction can see. The unique (user_id, store_id) constraint is what
actually stops duplicate ratings; the existence check in step 2 only exists to
give the caller a friendlier message.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import NamedTuple

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storerating import db
from storerating.errors import (
    AlreadyExists,
    AlreadyRated,
    Conflict,
    Forbidden,
    NotFound,
    Unavailable,
    NOT_RATED_MESSAGE,
    NOT_RATED_YET_MESSAGE,
    STORE_NOT_FOUND_MESSAGE,
)
from storerating.models import Rating, Store
from storerating.validation import MAX_ID, validate_score


class StoreSummary(NamedTuple):
    """Refreshed aggregate returned alongside every rating mutation."""
    average_rating: float
    total_ratings: int

    def to_dict(self) -> dict:
        return {
            'new_average_rating': self.average_rating,
            'total_ratings': self.total_ratings,
        }


class RatingStore:
    """Service owning rating rows and the cached summary on each store."""

    def submit(self, user, store_id: int, score) -> tuple:
        """
        Record a first rating from `user` for a store.

        Returns:
            tuple: (Rating, StoreSummary)

        Raises:
            Forbidden: user is not a rater
            InvalidInput: score is not an integer from 1 to 5
            NotFound: store does not exist
            AlreadyRated: the user has already rated this store
            Conflict: a concurrent submit for the same pair won the race
        """
        self._require_rater(user, 'Only normal users can submit ratings')
        score = validate_score(score)

        with self._unit_of_work():
            store = self._lock_store(store_id)
            if self._find_rating(user.id, store.id) is not None:
                raise AlreadyRated()

            now = datetime.utcnow()
            rating = Rating(user_id=user.id, store_id=store.id, rating=score,
                            created_at=now, updated_at=now)
            db.session.add(rating)
            db.session.flush()  # unique constraint fires here for a lost race
            summary = self.recompute(store)

        current_app.logger.info(f"Rating submitted: user={user.id} store={store_id} rating={score}")
        return rating, summary

    def modify(self, user, store_id: int, new_score) -> tuple:
        """
        Change the score of an existing rating. Never creates one.

        Returns:
            tuple: (Rating, old_score, StoreSummary)
        """
        self._require_rater(user, 'Only normal users can modify ratings')
        new_score = validate_score(new_score)

        with self._unit_of_work():
            store = self._lock_store(store_id)
            rating = self._find_rating(user.id, store.id)
            if rating is None:
                raise NotFound(NOT_RATED_YET_MESSAGE)

            old_score = rating.rating
            rating.rating = new_score
            rating.updated_at = datetime.utcnow()
            db.session.flush()
            summary = self.recompute(store)

        current_app.logger.info(
            f"Rating modified: user={user.id} store={store_id} rating={old_score}->{new_score}"
        )
        return rating, old_score, summary

    def delete(self, user, store_id: int) -> tuple:
        """
        Remove the user's rating for a store.

        Returns:
            tuple: (dict of the deleted rating, StoreSummary)
        """
        self._require_rater(user, 'Only normal users can delete ratings')

        with self._unit_of_work():
            store = self._lock_store(store_id)
            rating = self._find_rating(user.id, store.id)
            if rating is None:
                raise NotFound(NOT_RATED_MESSAGE)

            deleted = rating.to_dict()
            db.session.delete(rating)
            db.session.flush()
            summary = self.recompute(store)

        current_app.logger.info(f"Rating deleted: user={user.id} store={store_id}")
        return deleted, summary

    def recompute(self, store) -> StoreSummary:
        """Rewrite the store's cached summary from the ratings table (0 when empty)."""
        count, average = db.session.query(
            func.count(Rating.id),
            func.avg(Rating.rating),
        ).filter(Rating.store_id == store.id).one()

        store.total_ratings = count or 0
        store.rating = float(average) if store.total_ratings else 0.0
        return StoreSummary(store.rating, store.total_ratings)

    def recompute_all(self) -> int:
        """Refresh every store's summary. Returns the number of stores touched."""
        with self._unit_of_work(on_conflict=AlreadyExists):
            stores = Store.query.order_by(Store.id).with_for_update().all()
            for store in stores:
                self.recompute(store)

        current_app.logger.info(f"Recomputed rating summaries for {len(stores)} stores")
        return len(stores)

    def remove_user(self, user):
        """
        Delete a user together with their ratings.

        Stores the user had rated are recomputed in the same transaction, and a
        store the user owned is kept but left without an owner.
        """
        user_id = user.id
        with self._unit_of_work(on_conflict=AlreadyExists):
            rated_store_ids = [row.store_id for row in
                               db.session.query(Rating.store_id).filter(Rating.user_id == user_id)]
            stores = []
            if rated_store_ids:
                stores = Store.query.filter(Store.id.in_(rated_store_ids)).order_by(
                    Store.id
                ).with_for_update().all()

            Rating.query.filter(Rating.user_id == user_id).delete(synchronize_session='fetch')
            db.session.delete(user)
            db.session.flush()

            for store in stores:
                self.recompute(store)

        current_app.logger.info(f"User {user_id} deleted, {len(stores)} store summaries refreshed")

    def remove_store(self, store):
        """Delete a store together with its ratings."""
        store_id = store.id
        with self._unit_of_work(on_conflict=AlreadyExists):
            Rating.query.filter(Rating.store_id == store_id).delete(synchronize_session='fetch')
            db.session.delete(store)

        current_app.logger.info(f"Store {store_id} deleted")

    # ============== HELPERS ==============

    @contextmanager
    def _unit_of_work(self, on_conflict=Conflict):
        """Commit on success, roll back on any failure and translate database errors."""
        try:
            yield
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.warning(f"Write rejected by database constraint: {e.orig}")
            raise on_conflict() from e
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Rating transaction failed: {e}")
            raise Unavailable() from e
        except Exception:
            db.session.rollback()
            raise

    def _require_rater(self, user, message):
        if user is None or not user.can_rate:
            raise Forbidden(message)

    def _lock_store(self, store_id):
        if not 1 <= store_id <= MAX_ID:
            raise NotFound(STORE_NOT_FOUND_MESSAGE)
        store = Store.query.filter(Store.id == store_id).with_for_update().first()
        if store is None:
            raise NotFound(STORE_NOT_FOUND_MESSAGE)
        return store

    def _find_rating(self, user_id, store_id):
        return Rating.query.filter_by(user_id=user_id, store_id=store_id).first()


# Singleton instance
rating_store = RatingStore()
