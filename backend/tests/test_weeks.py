from datetime import date

from resource_planning.core.weeks import is_week_start, week_bounds, week_start


def test_week_bounds_for_midweek_date():
    assert week_bounds(date(2024, 3, 6)) == (date(2024, 3, 4), date(2024, 3, 10))


def test_monday_is_its_own_week_start():
    assert week_start(date(2024, 3, 4)) == date(2024, 3, 4)
    assert is_week_start(date(2024, 3, 4))


def test_sunday_maps_to_previous_monday():
    assert week_start(date(2024, 3, 10)) == date(2024, 3, 4)
    assert not is_week_start(date(2024, 3, 10))


def test_week_spanning_month_and_year_boundary():
    assert week_start(date(2025, 1, 1)) == date(2024, 12, 30)
