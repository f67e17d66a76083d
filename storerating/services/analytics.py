"""
Read-only rating analytics for store owners.

Provides:
- Daily rating counts/averages since a given date
- Current vs. previous period comparison (by rating creation time)
- Score breakdown for the owner dashboard

Nothing in here writes to the database.
"""

from datetime import date, datetime, timedelta
from itertools import groupby
from typing import Iterator, NamedTuple, Optional

from sqlalchemy import func

from storerating import db
from storerating.errors import Forbidden, InvalidInput, NotFound, OWNER_STORE_NOT_FOUND_MESSAGE
from storerating.models import Rating, Store
from storerating.validation import MAX_PERIOD_DAYS

NOT_AVAILABLE = 'N/A'


class DailyRatings(NamedTuple):
    date: date
    count: int
    average: float


class PeriodStats(NamedTuple):
    count: int
    average: float

    def to_dict(self) -> dict:
        return {
            'total_ratings': self.count,
            'average_rating': round(self.average, 2),
        }


class PeriodComparison(NamedTuple):
    current: PeriodStats
    previous: PeriodStats
    count_change: int
    count_percentage: Optional[float]  # None when the previous period is empty
    average_change: float
    average_percentage: Optional[float]

    def to_dict(self) -> dict:
        return {
            'current_period': self.current.to_dict(),
            'previous_period': self.previous.to_dict(),
            'changes': {
                'rating_count_change': self.count_change,
                'rating_count_percentage': format_percentage(self.count_percentage),
                'average_rating_change': f"{self.average_change:.2f}",
                'average_rating_percentage': format_percentage(self.average_percentage),
            },
        }


def format_percentage(value) -> str:
    """One decimal place, or 'N/A' when there was nothing to compare against."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.1f}"


def percent_change(current, previous, previous_count) -> Optional[float]:
    if not previous_count or not previous:
        return None
    return (current - previous) / previous * 100


class AnalyticsEngine:
    """Trend statistics over a store's ratings."""

    def owned_store(self, owner, store_id: int = None):
        """Return the store `owner` owns, optionally checking it is `store_id`."""
        if owner is None or not owner.is_owner:
            raise Forbidden('Access denied. Store owner role required.')

        query = Store.query.filter(Store.owner_id == owner.id)
        if store_id is not None:
            query = query.filter(Store.id == store_id)
        store = query.first()
        if store is None:
            raise NotFound(OWNER_STORE_NOT_FOUND_MESSAGE)
        return store

    def ratings_over_time(self, store_id: int, since: datetime) -> Iterator[DailyRatings]:
        """
        Yield one DailyRatings per calendar day with at least one rating
        created on or after `since`, oldest day first.

        Days without ratings are skipped, not zero-filled.
        """
        rows = db.session.query(Rating.created_at, Rating.rating).filter(
            Rating.store_id == store_id,
            Rating.created_at >= since,
        ).order_by(Rating.created_at.asc())

        for day, day_rows in groupby(rows, key=lambda row: row.created_at.date()):
            scores = [row.rating for row in day_rows]
            yield DailyRatings(day, len(scores), sum(scores) / len(scores))

    def period_stats(self, store_id: int, start: datetime, end: datetime) -> PeriodStats:
        """Count and mean score of ratings created in [start, end)."""
        count, average = db.session.query(
            func.count(Rating.id),
            func.avg(Rating.rating),
        ).filter(
            Rating.store_id == store_id,
            Rating.created_at >= start,
            Rating.created_at < end,
        ).one()
        return PeriodStats(count or 0, float(average) if count else 0.0)

    def period_comparison(self, store_id: int, period_days: int, now: datetime = None) -> PeriodComparison:
        """
        Compare the last `period_days` with the `period_days` before that.

        Current period is [now - p, now), previous is [now - 2p, now - p).
        A rating created exactly at now - p belongs to the current period.
        """
        if isinstance(period_days, bool) or not isinstance(period_days, int):
            raise InvalidInput('Period must be a positive number of days')
        if not 1 <= period_days <= MAX_PERIOD_DAYS:
            raise InvalidInput(f'Period must be between 1 and {MAX_PERIOD_DAYS} days')

        now = now or datetime.utcnow()
        period = timedelta(days=period_days)
        boundary = now - period

        current = self.period_stats(store_id, boundary, now)
        previous = self.period_stats(store_id, boundary - period, boundary)

        return PeriodComparison(
            current=current,
            previous=previous,
            count_change=current.count - previous.count,
            count_percentage=percent_change(current.count, previous.count, previous.count),
            average_change=current.average - previous.average,
            average_percentage=percent_change(current.average, previous.average, previous.count),
        )

    def rating_breakdown(self, store_id: int) -> list:
        """Count and share of each score, 5 stars first."""
        counts = dict(
            db.session.query(Rating.rating, func.count(Rating.id))
            .filter(Rating.store_id == store_id)
            .group_by(Rating.rating)
            .all()
        )
        total = sum(counts.values())

        breakdown = []
        for score in range(5, 0, -1):
            count = counts.get(score, 0)
            breakdown.append({
                'rating': score,
                'count': count,
                'percentage': f"{count / total * 100:.1f}" if total else '0.0',
            })
        return breakdown

    def report(self, owner, period_days: int, now: datetime = None) -> dict:
        """Analytics payload for the owner dashboard."""
        store = self.owned_store(owner)
        now = now or datetime.utcnow()
        comparison = self.period_comparison(store.id, period_days, now)  # validates period_days
        since = now - timedelta(days=period_days)

        return {
            'store_name': store.name,
            'period_days': period_days,
            'ratings_over_time': [
                {
                    'date': day.date.isoformat(),
                    'count': day.count,
                    'avg_rating': round(day.average, 2),
                }
                for day in self.ratings_over_time(store.id, since)
            ],
            'trends': comparison.to_dict(),
        }


# Singleton instance
analytics_engine = AnalyticsEngine()
