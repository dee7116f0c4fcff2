from __future__ import annotations

from datetime import datetime, timedelta, timezone

from volunteer_dashboard.dataset import as_utc, month_label, shift_months, trailing_months


def test_as_utc_treats_naive_as_utc():
    naive = datetime(2024, 1, 1, 8, 0)
    assert as_utc(naive) == datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)

    berlin = datetime(2024, 1, 1, 9, 0, tzinfo=timezone(timedelta(hours=1)))
    assert as_utc(berlin).hour == 8


def test_shift_months_clamps_day():
    assert shift_months(datetime(2024, 3, 31), -1) == datetime(2024, 2, 29)
    assert shift_months(datetime(2024, 1, 15), -6) == datetime(2023, 7, 15)
    assert shift_months(datetime(2023, 11, 30), 3) == datetime(2024, 2, 29)


def test_trailing_months_cross_year_boundary():
    assert trailing_months(datetime(2024, 2, 29), 4) == [(2023, 11), (2023, 12), (2024, 1), (2024, 2)]


def test_month_label():
    assert month_label(2024, 6) == "Jun"
    assert month_label(2024, 6, with_year=True) == "Jun 2024"
