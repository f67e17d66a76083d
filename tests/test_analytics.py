"""Tests for owner analytics: daily series, period comparison and breakdown."""

import types
from datetime import date, datetime, timedelta

import pytest

from storerating import db
from storerating.errors import Forbidden, InvalidInput, NotFound
from storerating.models import Rating
from storerating.services.analytics import analytics_engine, format_percentage
from storerating.services.rating_store import rating_store

NOW = datetime(2026, 3, 15, 12, 0, 0)


def add_rating(user, store, score, created_at):
    rating = Rating(user_id=user.id, store_id=store.id, rating=score,
                    created_at=created_at, updated_at=created_at)
    db.session.add(rating)
    db.session.commit()
    return rating


def test_owned_store_resolves_owner(store, owner):
    assert analytics_engine.owned_store(owner).id == store.id
    assert analytics_engine.owned_store(owner, store.id).id == store.id


def test_owned_store_rejects_foreign_store(store, owner, other_store):
    with pytest.raises(NotFound):
        analytics_engine.owned_store(owner, other_store.id)


def test_owner_without_store_is_not_found(owner):
    with pytest.raises(NotFound):
        analytics_engine.owned_store(owner)


def test_non_owner_is_forbidden(store, rater):
    with pytest.raises(Forbidden):
        analytics_engine.owned_store(rater)


def test_ratings_over_time_groups_by_day_and_skips_gaps(store, raters):
    add_rating(raters[0], store, 5, NOW - timedelta(days=3, hours=2))
    add_rating(raters[1], store, 2, NOW - timedelta(days=3, hours=1))
    add_rating(raters[2], store, 4, NOW - timedelta(days=1))
    add_rating(raters[3], store, 1, NOW - timedelta(days=40))  # before `since`

    series = analytics_engine.ratings_over_time(store.id, NOW - timedelta(days=30))

    assert isinstance(series, types.GeneratorType)
    days = list(series)
    assert [day.date for day in days] == [date(2026, 3, 12), date(2026, 3, 14)]
    assert [day.count for day in days] == [2, 1]
    assert days[0].average == pytest.approx(3.5)
    assert days[1].average == pytest.approx(4.0)


def test_ratings_over_time_empty(store):
    assert list(analytics_engine.ratings_over_time(store.id, NOW - timedelta(days=30))) == []


def test_period_boundary_belongs_to_current_period(store, raters):
    add_rating(raters[0], store, 5, NOW - timedelta(days=7))  # exactly on the boundary
    add_rating(raters[1], store, 1, NOW - timedelta(days=7, microseconds=1))
    add_rating(raters[2], store, 3, NOW - timedelta(days=14))  # previous period start, inclusive
    add_rating(raters[3], store, 4, NOW)  # upper bound is exclusive

    comparison = analytics_engine.period_comparison(store.id, 7, now=NOW)

    assert comparison.current.count == 1
    assert comparison.current.average == 5.0
    assert comparison.previous.count == 2
    assert comparison.previous.average == pytest.approx(2.0)
    assert comparison.count_change == -1
    assert comparison.count_percentage == pytest.approx(-50.0)
    assert comparison.average_change == pytest.approx(3.0)
    assert comparison.average_percentage == pytest.approx(150.0)


def test_period_comparison_uses_creation_not_update_time(store, raters):
    rating = add_rating(raters[0], store, 2, NOW - timedelta(days=20))
    rating.updated_at = NOW - timedelta(days=1)
    db.session.commit()

    comparison = analytics_engine.period_comparison(store.id, 7, now=NOW)

    assert comparison.current.count == 0
    assert comparison.previous.count == 0


def test_empty_previous_period_gives_sentinel(store, raters):
    add_rating(raters[0], store, 4, NOW - timedelta(days=2))

    comparison = analytics_engine.period_comparison(store.id, 30, now=NOW)
    changes = comparison.to_dict()['changes']

    assert comparison.count_percentage is None
    assert comparison.average_percentage is None
    assert changes['rating_count_percentage'] == 'N/A'
    assert changes['average_rating_percentage'] == 'N/A'
    assert changes['rating_count_change'] == 1
    assert changes['average_rating_change'] == '4.00'


@pytest.mark.parametrize('period_days', [0, -3, 1.5, True, '7', 3651, 1000000])
def test_period_must_be_positive_integer(store, period_days):
    with pytest.raises(InvalidInput):
        analytics_engine.period_comparison(store.id, period_days, now=NOW)


def test_report_for_concrete_scenario(store, owner, raters):
    """Four ratings ten days ago, one deleted, nothing in the prior window."""
    for user, score in zip(raters, [5, 4, 5, 3]):
        rating_store.submit(user, store.id, score)
    rating_store.delete(raters[3], store.id)

    now = datetime.utcnow()
    Rating.query.filter_by(store_id=store.id).update({'created_at': now - timedelta(days=10)})
    db.session.commit()

    report = analytics_engine.report(owner, 30, now=now)

    assert report['store_name'] == 'Corner Store'
    assert report['period_days'] == 30
    assert report['ratings_over_time'] == [{
        'date': (now - timedelta(days=10)).date().isoformat(),
        'count': 3,
        'avg_rating': 4.67,
    }]
    trends = report['trends']
    assert trends['current_period'] == {'total_ratings': 3, 'average_rating': 4.67}
    assert trends['previous_period'] == {'total_ratings': 0, 'average_rating': 0.0}
    assert trends['changes'] == {
        'rating_count_change': 3,
        'rating_count_percentage': 'N/A',
        'average_rating_change': '4.67',
        'average_rating_percentage': 'N/A',
    }


def test_rating_breakdown(store, raters):
    for user, score in zip(raters, [5, 5, 4, 1]):
        rating_store.submit(user, store.id, score)

    breakdown = analytics_engine.rating_breakdown(store.id)

    assert [row['rating'] for row in breakdown] == [5, 4, 3, 2, 1]
    assert breakdown[0] == {'rating': 5, 'count': 2, 'percentage': '50.0'}
    assert breakdown[2] == {'rating': 3, 'count': 0, 'percentage': '0.0'}
    assert breakdown[4] == {'rating': 1, 'count': 1, 'percentage': '25.0'}


def test_rating_breakdown_without_ratings(store):
    assert all(row['percentage'] == '0.0' for row in analytics_engine.rating_breakdown(store.id))


def test_format_percentage():
    assert format_percentage(None) == 'N/A'
    assert format_percentage(12.345) == '12.3'
    assert format_percentage(-50) == '-50.0'
