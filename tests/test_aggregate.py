import random
import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from server.aggregate import Bucket, Period, aggregate, bucket_key
from server.errors import ValidationError
from server.models import CountRecord

from conftest import utc


def rows(buckets):
    return [b.to_row() for b in buckets]


def test_day_scenario(sample_records):
    assert rows(aggregate(sample_records, "day")) == [
        {"date": "2024-01-01", "sumTea": 5, "sumOther": 1},
        {"date": "2024-01-08", "sumTea": 1, "sumOther": 5},
    ]


def test_week_scenario(sample_records):
    assert rows(aggregate(sample_records, "week")) == [
        {"yearWeek": "2024-01-01", "sumTea": 5, "sumOther": 1},
        {"yearWeek": "2024-01-08", "sumTea": 1, "sumOther": 5},
    ]


def test_month_scenario(sample_records):
    assert rows(aggregate(sample_records, Period.MONTH)) == [
        {"yearMonth": "2024-01", "sumTea": 6, "sumOther": 6},
    ]


@pytest.mark.parametrize("period", ["day", "week", "month"])
def test_empty_input(period):
    assert aggregate([], period) == []


@pytest.mark.parametrize("value", [None, "", "year", "DAYS"])
def test_unknown_period_defaults_to_day(value, sample_records):
    assert Period.parse(value) is Period.DAY
    assert rows(aggregate(sample_records, value))[0] == {"date": "2024-01-01", "sumTea": 5, "sumOther": 1}


@pytest.mark.parametrize("value", ["WEEK", " week", "Month"])
def test_period_parse_matches_exactly(value):
    assert Period.parse(value) is Period.DAY


def test_week_key_is_monday_on_or_before():
    # 2024-01-07 is a Sunday, 2024-01-08 a Monday
    assert bucket_key(utc(2024, 1, 7, 23, 59), Period.WEEK) == "2024-01-01"
    assert bucket_key(utc(2024, 1, 8, 0, 0), Period.WEEK) == "2024-01-08"
    # week spanning a year boundary
    assert bucket_key(utc(2025, 1, 2), Period.WEEK) == "2024-12-30"


def test_month_key_format():
    assert bucket_key(utc(2024, 12, 31, 23, 0), Period.MONTH) == "2024-12"


def test_iso_strings_are_accepted():
    assert bucket_key("2024-03-05T10:00:00+00:00", Period.DAY) == "2024-03-05"
    assert bucket_key("2024-03-05T10:00:00Z", Period.DAY) == "2024-03-05"


def test_naive_timestamp_is_read_as_utc():
    tokyo = ZoneInfo("Asia/Tokyo")
    assert bucket_key(datetime(2024, 1, 31, 20, 0), Period.DAY, tokyo) == "2024-02-01"


def test_reporting_timezone_moves_bucket_boundaries():
    late = CountRecord(id=1, created_at=utc(2024, 1, 31, 23, 30), tea=4, other=2)
    assert rows(aggregate([late], "month")) == [{"yearMonth": "2024-01", "sumTea": 4, "sumOther": 2}]
    assert rows(aggregate([late], "month", tz=ZoneInfo("Asia/Tokyo"))) == [
        {"yearMonth": "2024-02", "sumTea": 4, "sumOther": 2}
    ]


def test_malformed_timestamp_is_skipped(sample_records):
    bad = CountRecord(id=99, created_at="not-a-date", tea=100, other=100)
    result = aggregate(sample_records + [bad], "month")
    assert rows(result) == [{"yearMonth": "2024-01", "sumTea": 6, "sumOther": 6}]


def test_malformed_timestamp_strict_raises(sample_records):
    bad = CountRecord(id=99, created_at="2024-13-45", tea=1, other=1)
    with pytest.raises(ValidationError):
        aggregate(sample_records + [bad], "day", strict=True)


def test_order_of_input_is_irrelevant(sample_records):
    assert aggregate(list(reversed(sample_records)), "day") == aggregate(sample_records, "day")


def test_bucket_serializes_key_column_per_period():
    assert Bucket(Period.WEEK, "2024-01-01", 1, 2).to_row() == {"yearWeek": "2024-01-01", "sumTea": 1, "sumOther": 2}


@pytest.mark.parametrize("period", list(Period))
def test_conservation_uniqueness_and_order(period):
    rng = random.Random(1234)
    start = utc(2023, 11, 20)
    records = [
        CountRecord(
            id=i,
            created_at=start + timedelta(hours=rng.randrange(0, 24 * 120)),
            tea=rng.randrange(0, 50),
            other=rng.randrange(0, 50),
        )
        for i in range(500)
    ]

    buckets = aggregate(records, period)
    keys = [b.key for b in buckets]

    assert sum(b.sum_tea for b in buckets) == sum(r.tea for r in records)
    assert sum(b.sum_other for b in buckets) == sum(r.other for r in records)
    assert len(keys) == len(set(keys))
    assert keys == sorted(keys)

    for key in keys:
        if period is Period.MONTH:
            assert re.fullmatch(r"\d{4}-\d{2}", key)
        else:
            assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", key)
            if period is Period.WEEK:
                assert date.fromisoformat(key).weekday() == 0
