"""
Unit tests for the relative-time labels attached to notifications.
"""
import datetime as dt

from eventflow.services.notifications import time_ago

NOW = dt.datetime(2024, 5, 20, 12, 0, 0, tzinfo=dt.timezone.utc)


def test_seconds():
    assert time_ago(NOW - dt.timedelta(seconds=30), NOW) == "30 seconds ago"
    assert time_ago(NOW - dt.timedelta(seconds=1), NOW) == "1 second ago"


def test_minutes_hours_days_use_singular_and_plural():
    assert time_ago(NOW - dt.timedelta(minutes=1), NOW) == "1 minute ago"
    assert time_ago(NOW - dt.timedelta(hours=2, minutes=5), NOW) == "2 hours ago"
    assert time_ago(NOW - dt.timedelta(days=3), NOW) == "3 days ago"


def test_old_dates_are_rendered_as_calendar_date():
    assert time_ago(NOW - dt.timedelta(days=40), NOW) == "10/04/2024"


def test_naive_datetimes_are_taken_as_utc():
    created = (NOW - dt.timedelta(minutes=5)).replace(tzinfo=None)
    assert time_ago(created, NOW) == "5 minutes ago"


def test_future_dates_do_not_go_negative():
    assert time_ago(NOW + dt.timedelta(seconds=10), NOW) == "0 seconds ago"
