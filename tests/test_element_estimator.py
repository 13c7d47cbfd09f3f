"""Tests for the birth date/time element estimator."""

import logging
from datetime import date

import pytest

from destination_scorer.element_estimator import (
    BRANCH_HIDDEN_BLEND,
    BRANCH_TO_ELEMENT,
    STEM_TO_ELEMENT,
    estimate,
    hour_branch_index,
    is_valid_birth_time,
    month_pillar,
    neutral_elements,
    parse_birth_time,
    year_pillar,
)
from destination_scorer.schema import ELEMENT_KEYS, UNKNOWN_PILLAR


SAMPLE_DATES = [
    date(1984, 1, 15),
    date(1990, 5, 17),
    date(1999, 12, 31),
    date(2000, 2, 29),
    date(1975, 7, 4),
    date(2012, 10, 1),
]


def _l1(a, b):
    return sum(abs(a[k] - b[k]) for k in ELEMENT_KEYS)


class TestLookupTables:
    """Sanity checks on the fixed calendar tables."""

    def test_table_sizes(self):
        assert len(STEM_TO_ELEMENT) == 10
        assert len(BRANCH_TO_ELEMENT) == 12
        assert set(BRANCH_HIDDEN_BLEND) == set(range(12))

    def test_tables_use_known_elements(self):
        assert set(STEM_TO_ELEMENT) <= set(ELEMENT_KEYS)
        assert set(BRANCH_TO_ELEMENT) <= set(ELEMENT_KEYS)

    @pytest.mark.parametrize("branch", range(12))
    def test_hidden_blend_rows_sum_to_one(self, branch):
        assert sum(r for _, r in BRANCH_HIDDEN_BLEND[branch]) == pytest.approx(1.0)


class TestPillars:
    """Tests for the year, month and hour pillar indices."""

    def test_reference_year_is_cycle_start(self):
        assert year_pillar(1984) == (0, 0)

    def test_year_cycles(self):
        assert year_pillar(1994) == (0, 10)
        assert year_pillar(1996) == (2, 0)
        assert year_pillar(1983) == (9, 11)

    def test_month_pillar(self):
        assert month_pillar(1) == (2, 1)
        assert month_pillar(11) == (2, 11)
        assert month_pillar(12) == (3, 0)

    @pytest.mark.parametrize("hour,expected", [
        (23, 0),
        (0, 0),
        (1, 1),
        (2, 1),
        (3, 2),
        (12, 6),
        (21, 11),
        (22, 11),
    ])
    def test_hour_branch_wraps_at_midnight(self, hour, expected):
        assert hour_branch_index(hour) == expected


class TestBirthTimeParsing:
    """Tests for the strict HH:MM birth time format."""

    @pytest.mark.parametrize("value,expected", [
        ("00:00", (0, 0)),
        ("07:30", (7, 30)),
        ("23:59", (23, 59)),
    ])
    def test_valid(self, value, expected):
        assert parse_birth_time(value) == expected
        assert is_valid_birth_time(value)

    @pytest.mark.parametrize("value", [
        None, "", "7:30", "07:3", "24:00", "12:60", "noon", "07:30:00", " 07:30",
        "07:30\n", "٠٧:٣٠", "０７:３０",
    ])
    def test_invalid(self, value):
        assert parse_birth_time(value) is None
        assert not is_valid_birth_time(value)


class TestEstimate:
    """Tests for estimate."""

    def test_no_birth_date_is_uniform(self):
        result = estimate(None)
        assert result.elements == {k: 0.2 for k in ELEMENT_KEYS}
        assert result.has_hour is False

    def test_no_birth_date_pillars_unknown(self):
        pillars = estimate(None, "07:30").pillars
        assert pillars.year_stem == UNKNOWN_PILLAR
        assert pillars.year_branch == UNKNOWN_PILLAR
        assert pillars.month_stem == UNKNOWN_PILLAR
        assert pillars.month_branch == UNKNOWN_PILLAR
        assert pillars.hour_branch == UNKNOWN_PILLAR

    def test_neutral_elements_sum_to_one(self):
        assert sum(neutral_elements().values()) == pytest.approx(1.0)

    @pytest.mark.parametrize("birth_date", SAMPLE_DATES)
    @pytest.mark.parametrize("birth_time", [None, "07:30", "23:10", "bad"])
    def test_distribution_sums_to_one(self, birth_date, birth_time):
        elements = estimate(birth_date, birth_time).elements
        assert set(elements) == set(ELEMENT_KEYS)
        assert sum(elements.values()) == pytest.approx(1.0, abs=1e-6)
        assert all(v >= 0.0 for v in elements.values())

    def test_reference_date_weights(self):
        # jia (wood, 1) + zi (water, 1) + bing (fire, 2) + chou (earth, 2)
        elements = estimate(date(1984, 1, 15)).elements
        assert elements["wood"] == pytest.approx(1 / 6)
        assert elements["water"] == pytest.approx(1 / 6)
        assert elements["fire"] == pytest.approx(2 / 6)
        assert elements["earth"] == pytest.approx(2 / 6)
        assert elements["metal"] == pytest.approx(0.0)

    def test_date_without_time_has_concrete_year_and_month(self):
        result = estimate(date(1990, 5, 17))
        assert result.pillars.year_stem == "geng"
        assert result.pillars.year_branch == "wu"
        assert result.pillars.month_stem == "geng"
        assert result.pillars.month_branch == "si"
        assert result.pillars.hour_branch == UNKNOWN_PILLAR
        assert result.has_hour is False

    @pytest.mark.parametrize("birth_time", ["7:30", "25:00", "12:61", "evening"])
    def test_malformed_time_degrades_to_no_time(self, birth_time):
        birth_date = date(1990, 5, 17)
        with_bad_time = estimate(birth_date, birth_time)
        without_time = estimate(birth_date)
        assert with_bad_time.elements == without_time.elements
        assert with_bad_time.pillars.hour_branch == UNKNOWN_PILLAR
        assert with_bad_time.pillars.year_stem != UNKNOWN_PILLAR
        assert with_bad_time.has_hour is False

    def test_trailing_newline_skips_hour_pillar(self):
        result = estimate(date(1990, 5, 1), "07:30\n")
        assert result.has_hour is False
        assert result.pillars.hour_branch == UNKNOWN_PILLAR
        assert result.elements == estimate(date(1990, 5, 1)).elements

    def test_malformed_time_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="destination_scorer.element_estimator"):
            estimate(date(1990, 5, 17), "7pm")
        assert "malformed birth time" in caplog.text

    def test_valid_time_sets_hour_branch(self):
        result = estimate(date(1990, 5, 17), "08:30")
        assert result.pillars.hour_branch == "chen"
        assert result.has_hour is True

    @pytest.mark.parametrize("birth_date", SAMPLE_DATES)
    @pytest.mark.parametrize("birth_time", ["00:15", "07:30", "12:00", "18:45"])
    def test_valid_time_changes_distribution(self, birth_date, birth_time):
        with_time = estimate(birth_date, birth_time).elements
        without_time = estimate(birth_date).elements
        assert _l1(with_time, without_time) > 0

    def test_deterministic(self):
        assert estimate(date(2001, 3, 9), "14:05") == estimate(date(2001, 3, 9), "14:05")
