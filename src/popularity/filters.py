"""Downloads and recency filters for popularity records, with their CLI parsers."""

from __future__ import annotations

import argparse
import calendar
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .ecosystems import PopularPackage

_RECENCY_RE = re.compile(r"([^a-z]+)([ywmd])", re.IGNORECASE)


def parse_int_arg(value: str) -> int:
    """argparse type for integer thresholds."""
    try:
        return int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value} is not a number") from exc


def _months_before(moment: datetime, months: int) -> datetime:
    total = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def parse_recency(value: str, now: Optional[datetime] = None) -> datetime:
    """Turn a relative period such as ``6m`` or ``2y`` into a UTC cutoff.

    Units are years, months, weeks and days. Month and year arithmetic
    clamps to the last day of the target month.

    Raises:
        argparse.ArgumentTypeError: If the period can't be parsed.
    """
    match = _RECENCY_RE.search(value or "")
    if not match:
        raise argparse.ArgumentTypeError("Failed to parse relative time")
    number, unit = match.groups()
    try:
        amount = float(number)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Failed to parse relative time") from exc

    moment = now or datetime.now(timezone.utc)
    try:
        return _period_before(moment, amount, unit.lower())
    except (OverflowError, ValueError) as exc:
        raise argparse.ArgumentTypeError(f"Relative time {value} is out of range") from exc


def _period_before(moment: datetime, amount: float, unit: str) -> datetime:
    if unit == "y":
        return _months_before(moment, int(amount) * 12)
    if unit == "m":
        return _months_before(moment, int(amount))
    if unit == "w":
        return moment - timedelta(weeks=amount)
    return moment - timedelta(days=amount)


def filter_packages(
    packages: Iterable[PopularPackage],
    min_downloads: Optional[int] = None,
    updated_since: Optional[datetime] = None,
) -> List[PopularPackage]:
    """Drop records below the download threshold or not released recently.

    Records missing the relevant field are kept.
    """
    kept = []
    for pkg in packages:
        if min_downloads is not None and pkg.downloads and pkg.downloads < min_downloads:
            continue
        if updated_since is not None:
            published = pkg.published_at()
            if published is not None and published < updated_since:
                continue
        kept.append(pkg)
    return kept
