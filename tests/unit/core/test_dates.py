"""Unit tests for core/utils/dates.py"""

import datetime

import pytest

from mdsite.core.utils.dates import format_date, parse_date


@pytest.mark.parametrize("value", [
    "2020-12-07",
    "07-12-2020",
    "2020/12/07",
    "2020-12-07T10:30:00",
    "December 07, 2020",
    datetime.date(2020, 12, 7),
    datetime.datetime(2020, 12, 7, 8, 0),
])
def test_parse_date_formats(value):
    """parse_date accepts the supported date spellings."""
    assert parse_date(value) == datetime.date(2020, 12, 7)


@pytest.mark.parametrize("value", ["", None, "someday", "2020-13-45", 42])
def test_parse_date_unparseable(value):
    """parse_date returns None for values that are not calendar dates."""
    assert parse_date(value) is None


def test_format_date():
    """format_date renders with the given pattern, None when unparseable."""
    assert format_date("2020-12-07", "%d-%m-%Y") == "07-12-2020"
    assert format_date("soon", "%d-%m-%Y") is None
