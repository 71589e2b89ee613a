"""Tests for initial program placement."""

from datetime import date

import pytest

from coachcal.scheduling.blocked_dates import is_blocked
from coachcal.scheduling.errors import NoAvailableDateError
from coachcal.scheduling.placement import find_next_available_date, place_program
from coachcal.scheduling.types import BlockRule, TemplateEntry

SATURDAY = date(2024, 1, 6)


def _entries(count: int, days_per_week: int = 3) -> list[TemplateEntry]:
    return [
        TemplateEntry(template_id=f"t{i}", week_number=i // days_per_week + 1, day_number=i % days_per_week + 1)
        for i in range(count)
    ]


class TestPlaceProgram:
    """Tests for place_program."""

    def test_empty_input(self):
        assert place_program([], SATURDAY, "c1", []) == []

    def test_consecutive_days_without_rules(self):
        drafts = place_program(_entries(3), SATURDAY, "c1", [])
        assert [d.scheduled_date for d in drafts] == [date(2024, 1, 6), date(2024, 1, 7), date(2024, 1, 8)]
        assert not any(d.fallback for d in drafts)

    def test_skips_blocked_sundays(self):
        """Saturday start with Sundays blocked places Saturday, Monday, Tuesday."""
        rules = [BlockRule.on_weekday(0, client_id="c1")]
        drafts = place_program(_entries(3), SATURDAY, "c1", rules)
        assert [d.scheduled_date for d in drafts] == [date(2024, 1, 6), date(2024, 1, 8), date(2024, 1, 9)]
        assert [d.template_id for d in drafts] == ["t0", "t1", "t2"]

    def test_other_clients_rules_ignored(self):
        rules = [BlockRule.on_weekday(0, client_id="c2")]
        drafts = place_program(_entries(2), SATURDAY, "c1", rules)
        assert [d.scheduled_date for d in drafts] == [date(2024, 1, 6), date(2024, 1, 7)]

    def test_entries_sorted_by_week_and_day(self):
        entries = [
            TemplateEntry("w2d1", 2, 1),
            TemplateEntry("w1d2", 1, 2),
            TemplateEntry("w1d1", 1, 1),
        ]
        drafts = place_program(entries, SATURDAY, "c1", [])
        assert [d.template_id for d in drafts] == ["w1d1", "w1d2", "w2d1"]

    def test_dates_strictly_increasing_and_unblocked(self):
        rules = [
            BlockRule.on_weekday(0),
            BlockRule.on_weekday(3, client_id="c1"),
            BlockRule.on_date(date(2024, 1, 9), client_id="c1"),
        ]
        drafts = place_program(_entries(12), SATURDAY, "c1", rules)
        dates = [d.scheduled_date for d in drafts]
        assert all(a < b for a, b in zip(dates, dates[1:]))
        assert not any(is_blocked(day, "c1", rules) for day in dates)

    def test_fully_blocked_calendar_falls_back(self):
        rules = [BlockRule.on_weekday(weekday, client_id="c1") for weekday in range(7)]
        drafts = place_program(_entries(2), SATURDAY, "c1", rules)
        assert all(d.fallback for d in drafts)
        assert [d.scheduled_date for d in drafts] == [date(2024, 1, 6), date(2024, 1, 7)]

    def test_fallback_when_window_too_small(self):
        rules = [BlockRule.on_date(date(2024, 1, 6)), BlockRule.on_date(date(2024, 1, 7))]
        drafts = place_program(_entries(1), SATURDAY, "c1", rules, search_window_days=2)
        assert drafts[0].fallback is True
        assert drafts[0].scheduled_date == SATURDAY

        drafts = place_program(_entries(1), SATURDAY, "c1", rules, search_window_days=3)
        assert drafts[0].fallback is False
        assert drafts[0].scheduled_date == date(2024, 1, 8)

    def test_strict_mode_raises(self):
        rules = [BlockRule.on_weekday(weekday) for weekday in range(7)]
        with pytest.raises(NoAvailableDateError) as exc_info:
            place_program(_entries(1), SATURDAY, "c1", rules, strict=True, search_window_days=5)
        assert exc_info.value.template_id == "t0"
        assert exc_info.value.search_start == SATURDAY
        assert exc_info.value.window_days == 5


class TestFindNextAvailableDate:
    """Tests for the bounded open-day search."""

    def test_returns_start_when_open(self):
        assert find_next_available_date(SATURDAY, "c1", [], 30) == SATURDAY

    def test_returns_none_when_exhausted(self):
        rules = [BlockRule.on_weekday(weekday) for weekday in range(7)]
        assert find_next_available_date(SATURDAY, "c1", rules, 30) is None
