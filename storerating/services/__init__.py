# Business logic services
from storerating.services.rating_store import rating_store, RatingStore, StoreSummary
from storerating.services.analytics import (
    analytics_engine,
    AnalyticsEngine,
    DailyRatings,
    PeriodStats,
    PeriodComparison,
)

__all__ = [
    'rating_store',
    'RatingStore',
    'StoreSummary',
    'analytics_engine',
    'AnalyticsEngine',
    'DailyRatings',
    'PeriodStats',
    'PeriodComparison',
]
