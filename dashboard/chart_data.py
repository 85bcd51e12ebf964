"""Reshape aggregated thrips rows for charts and CSV export.

Rows are the objects returned by ``GET /thrips``: one key column named
after the period (``date``, ``yearWeek`` or ``yearMonth``) plus ``sumTea``
and ``sumOther``.  Nothing here touches the network or the disk.
"""

import csv
import io
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

KEY_COLUMNS: Dict[str, str] = {"day": "date", "week": "yearWeek", "month": "yearMonth"}
TITLES: Dict[str, str] = {"day": "Daily", "week": "Weekly", "month": "Monthly"}
SERIES_LABELS = ("チャノキイロ", "別種")


def normalize_period(period: Optional[str]) -> str:
    return period if period in KEY_COLUMNS else "day"


def key_column(period: Optional[str]) -> str:
    return KEY_COLUMNS[normalize_period(period)]


def safe_int(x) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return 0


@dataclass
class ChartSeries:
    labels: List[str] = field(default_factory=list)
    tea_values: List[int] = field(default_factory=list)
    other_values: List[int] = field(default_factory=list)


def series(rows: Sequence[Mapping], period: Optional[str]) -> ChartSeries:
    col = key_column(period)
    out = ChartSeries()
    for row in rows:
        out.labels.append(str(row.get(col, "")))
        out.tea_values.append(safe_int(row.get("sumTea", 0)))
        out.other_values.append(safe_int(row.get("sumOther", 0)))
    return out


def to_csv(rows: Sequence[Mapping], period: Optional[str]) -> str:
    col = key_column(period)
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow([col, "sumTea", "sumOther"])
    for row in rows:
        writer.writerow([row.get(col, ""), safe_int(row.get("sumTea", 0)), safe_int(row.get("sumOther", 0))])
    return output.getvalue()


def csv_filename(period: Optional[str]) -> str:
    return f"thrips_{normalize_period(period)}.csv"


def export_csv(rows: Sequence[Mapping], period: Optional[str]) -> Tuple[bytes, str]:
    """CSV bytes plus the suggested download filename."""
    return to_csv(rows, period).encode("utf-8"), csv_filename(period)


def pie_totals(chart: ChartSeries, month: Optional[str] = None) -> Tuple[int, int]:
    """(tea, other) for one month's bucket, or summed over every bucket.

    An unknown ``month`` falls back to the overall totals.
    """
    if month is not None and month in chart.labels:
        i = chart.labels.index(month)
        return chart.tea_values[i], chart.other_values[i]
    return sum(chart.tea_values), sum(chart.other_values)


def y_axis_max(chart: ChartSeries) -> int:
    """Largest plotted value rounded up to the next multiple of 10."""
    values = chart.tea_values + chart.other_values
    if not values:
        return 0
    return int(math.ceil(max(values) / 10.0) * 10)
