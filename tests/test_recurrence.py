"""Series expansion and shifting."""
from datetime import datetime, date

import pytest

from therapy_practice.errors import ValidationError
from therapy_practice.models.appointment import RECURRING_WEEKLY, RECURRING_BIWEEKLY, RECURRING_MONTHLY
from therapy_practice.services.recurrence import expand_occurrences, shift_occurrence, MAX_OCCURRENCES


class TestExpandOccurrences:

    def test_weekly_includes_the_end_date(self):
        occurrences = expand_occurrences(
            datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0),
            RECURRING_WEEKLY, datetime(2030, 1, 28, 0, 0),
        )
        assert [start.date() for start, _ in occurrences] == [
            date(2030, 1, 7), date(2030, 1, 14), date(2030, 1, 21), date(2030, 1, 28),
        ]

    def test_biweekly_spacing(self):
        occurrences = expand_occurrences(
            datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0),
            RECURRING_BIWEEKLY, date(2030, 2, 10),
        )
        assert [start.day for start, _ in occurrences] == [7, 21, 4]

    def test_monthly_clamps_to_month_end(self):
        occurrences = expand_occurrences(
            datetime(2030, 1, 31, 9, 0), datetime(2030, 1, 31, 10, 0),
            RECURRING_MONTHLY, date(2030, 4, 30),
        )
        assert [start.date() for start, _ in occurrences] == [
            date(2030, 1, 31), date(2030, 2, 28), date(2030, 3, 31), date(2030, 4, 30),
        ]

    def test_duration_is_preserved(self):
        occurrences = expand_occurrences(
            datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 30),
            RECURRING_WEEKLY, date(2030, 3, 1),
        )
        assert all(end - start == occurrences[0][1] - occurrences[0][0] for start, end in occurrences)
        assert occurrences[0][1] - occurrences[0][0] == datetime(2030, 1, 1, 1, 30) - datetime(2030, 1, 1)

    def test_capped_at_max_occurrences(self):
        occurrences = expand_occurrences(
            datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0),
            RECURRING_WEEKLY, date(2040, 1, 1),
        )
        assert len(occurrences) == MAX_OCCURRENCES

    def test_end_before_start_date_gives_nothing(self):
        assert expand_occurrences(
            datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0),
            RECURRING_WEEKLY, date(2030, 1, 6),
        ) == []

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            expand_occurrences(datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0), 'DAILY', date(2030, 2, 1))

    def test_rejects_inverted_times(self):
        with pytest.raises(ValidationError):
            expand_occurrences(datetime(2030, 1, 7, 11, 0), datetime(2030, 1, 7, 10, 0),
                               RECURRING_WEEKLY, date(2030, 2, 1))


class TestShiftOccurrence:

    def test_day_and_minute_deltas(self):
        start, end = shift_occurrence(datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0),
                                      day_difference=2, start_diff=30, end_diff=60)
        assert start == datetime(2030, 1, 9, 10, 30)
        assert end == datetime(2030, 1, 9, 12, 0)

    def test_negative_days(self):
        start, end = shift_occurrence(datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0), day_difference=-7)
        assert (start, end) == (datetime(2029, 12, 31, 10, 0), datetime(2029, 12, 31, 11, 0))

    def test_rejects_collapsed_interval(self):
        with pytest.raises(ValidationError):
            shift_occurrence(datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 11, 0), start_diff=60)
