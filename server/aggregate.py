"""Group count records into day, week or month buckets.

Timestamps are converted into the reporting timezone before the bucket key
is taken; naive timestamps are read as UTC.  Keys are strings whose
lexicographic order is chronological, so sorting the keys sorts the buckets.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from server.errors import ValidationError
from server.models import CountRecord


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Period":
        """Exact match only; unknown or missing values fall back to ``day``."""
        try:
            return cls(value)
        except ValueError:
            return cls.DAY

    @property
    def key_column(self) -> str:
        return KEY_COLUMNS[self]


KEY_COLUMNS = {
    Period.DAY: "date",
    Period.WEEK: "yearWeek",
    Period.MONTH: "yearMonth",
}


@dataclass(frozen=True)
class Bucket:
    period: Period
    key: str
    sum_tea: int = 0
    sum_other: int = 0

    def to_row(self) -> Dict[str, Any]:
        return {
            self.period.key_column: self.key,
            "sumTea": self.sum_tea,
            "sumOther": self.sum_other,
        }


def to_datetime(value: Union[datetime, str], tz: tzinfo = timezone.utc) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(f"malformed timestamp {value!r}") from exc
    elif not isinstance(value, datetime):
        raise ValidationError(f"malformed timestamp {value!r}")

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def bucket_key(
    created_at: Union[datetime, str],
    period: Period = Period.DAY,
    tz: tzinfo = timezone.utc,
) -> str:
    local = to_datetime(created_at, tz)
    day = local.date()
    if period is Period.WEEK:
        # weeks start on Monday
        monday = day - timedelta(days=day.weekday())
        return monday.isoformat()
    if period is Period.MONTH:
        return day.strftime("%Y-%m")
    return day.isoformat()


def aggregate(
    records: Iterable[CountRecord],
    period: Union[Period, str, None] = Period.DAY,
    tz: tzinfo = timezone.utc,
    strict: bool = False,
) -> List[Bucket]:
    """Sum ``tea`` and ``other`` per bucket, sorted ascending by key.

    A record with a malformed timestamp is skipped with a warning, unless
    ``strict`` is set, in which case its ValidationError propagates.
    """
    if not isinstance(period, Period):
        period = Period.parse(period)

    grouped: Dict[str, List[int]] = {}
    for record in records:
        try:
            key = bucket_key(record.created_at, period, tz)
        except ValidationError:
            if strict:
                raise
            logger.warning("Skipping record {}: bad createdAt {!r}", record.id, record.created_at)
            continue

        sums = grouped.setdefault(key, [0, 0])
        sums[0] += record.tea
        sums[1] += record.other

    return [
        Bucket(period=period, key=key, sum_tea=tea, sum_other=other)
        for key, (tea, other) in sorted(grouped.items())
    ]
