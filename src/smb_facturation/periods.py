# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for SMB Facturation.

This module defines a Period value object and helpers to derive the
reporting periods offered by the statistics (last 7 / 30 days, last 3 / 6
months, current year to date, previous year, full current year) from CLI
arguments.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd

PERIOD_CHOICES = ("7d", "30d", "3m", "6m", "ytd", "last-year", "year")


@dataclass
class Period:
    """Represents a reporting period with a human-readable label."""

    start: date
    end: date
    label: str


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def _months_before(day: date, months: int) -> date:
    return (pd.Timestamp(day) - pd.DateOffset(months=months)).date()


def period_last_days(days: int) -> Period:
    """The last `days` days, today included."""
    today = _today()
    return Period(
        start=today - timedelta(days=days),
        end=today,
        label=f"Last {days} days",
    )


def period_last_months(months: int) -> Period:
    """The last `months` months up to today."""
    today = _today()
    return Period(
        start=_months_before(today, months),
        end=today,
        label=f"Last {months} months",
    )


def period_ytd() -> Period:
    """From 1 January of the current year to today."""
    today = _today()
    return Period(start=date(today.year, 1, 1), end=today, label="Year to date")


def period_last_year() -> Period:
    """Previous calendar year."""
    prev_year = _today().year - 1
    return Period(
        start=date(prev_year, 1, 1),
        end=date(prev_year, 12, 31),
        label=f"Previous year ({prev_year})",
    )


def period_year() -> Period:
    """Full current calendar year, including days still to come."""
    year = _today().year
    return Period(
        start=date(year, 1, 1),
        end=date(year, 12, 31),
        label=f"Year {year}",
    )


def period_from_choice(choice: str) -> Period:
    """Build one of the predefined periods listed in PERIOD_CHOICES."""
    if choice == "7d":
        return period_last_days(7)
    if choice == "30d":
        return period_last_days(30)
    if choice == "3m":
        return period_last_months(3)
    if choice == "6m":
        return period_last_months(6)
    if choice == "ytd":
        return period_ytd()
    if choice == "last-year":
        return period_last_year()
    if choice == "year":
        return period_year()
    raise ValueError(f"Unknown period: {choice!r}")


def determine_period_from_args(args) -> Optional[Period]:
    """
    Determine the reporting period to use based on CLI args.

    Priority (highest to lowest):

        1. args.from_date / args.to_date (custom period)
        2. args.period (7d, 30d, 3m, 6m, ytd, last-year, year)
        3. None: no period filtering at all
    """
    from_raw: Optional[str] = getattr(args, "from_date", None)
    to_raw: Optional[str] = getattr(args, "to_date", None)

    if from_raw or to_raw:
        start = date.fromisoformat(from_raw) if from_raw else date.min
        end = date.fromisoformat(to_raw) if to_raw else date.max

        if end < start:
            raise ValueError("Custom period end date cannot be before start date.")

        label = f"Custom period ({from_raw or '…'} → {to_raw or '…'})"
        return Period(start=start, end=end, label=label)

    if getattr(args, "period", None):
        return period_from_choice(args.period)

    return None


def filter_frame_by_period(
    frame: pd.DataFrame,
    period: Optional[Period],
    column: str = "issue_date",
) -> pd.DataFrame:
    """
    Keep only the rows whose `column` date falls within the period.

    The column is expected to be of type datetime64[ns] (as produced by
    `io.read_invoice_lines` or `stats.invoices_to_frame`). Bounds are
    inclusive. A None period returns the frame unchanged (as a copy).
    """
    if period is None:
        return frame.copy()

    dates = frame[column].dt.date
    mask = (dates >= period.start) & (dates <= period.end)
    return frame.loc[mask].copy()
