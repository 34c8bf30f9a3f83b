"""
Formula-focused unit tests for the pure parts of the engine.

Covers the leveling curve, set XP and progression bonus, adherence rates,
calendar windows and set-string parsing.  Values are hand-computed so the
tests double as worked examples.
"""

from datetime import date, datetime
from fractions import Fraction

import pytest

from lifttrack.core.config import XP_THRESHOLDS
from lifttrack.core.consistency import (
    monthly_rate,
    round_half_up,
    session_completion_rate,
    session_set_ratio,
    weekly_rate,
)
from lifttrack.core.errors import ValidationError
from lifttrack.core.leveling import level_for_xp, threshold_for_level, xp_progress
from lifttrack.core.windows import day_window, month_window, program_week, week_window
from lifttrack.core.xp import SetPerformance, SetVolume, base_xp, has_progressed, progression_bonus, set_xp
from lifttrack.io.serializers import default_reps_from_target, parse_sets_string


# ===========================================================================
# leveling.py
# ===========================================================================

class TestThresholds:
    """Table for levels 1..20, then floor(25600 * 1.15^(n-20))."""

    def test_level_one_needs_no_xp(self):
        assert threshold_for_level(1) == 0

    def test_table_levels(self):
        assert threshold_for_level(2) == 100
        assert threshold_for_level(10) == 4600
        assert threshold_for_level(20) == 25600

    def test_table_strictly_increasing(self):
        assert all(a < b for a, b in zip(XP_THRESHOLDS, XP_THRESHOLDS[1:]))

    def test_level_21_is_exact(self):
        # 25600 * 1.15 = 29440 exactly; float math would give 29439.999…
        assert threshold_for_level(21) == 29440

    def test_level_22_and_23(self):
        # 25600 * 1.3225 = 33856; 25600 * 1.520875 = 38934.4 → 38934
        assert threshold_for_level(22) == 33856
        assert threshold_for_level(23) == 38934

    def test_curve_keeps_growing(self):
        for level in range(20, 60):
            assert threshold_for_level(level + 1) > threshold_for_level(level)

    def test_non_positive_level_is_zero(self):
        assert threshold_for_level(0) == 0
        assert threshold_for_level(-3) == 0


class TestLevelForXp:

    @pytest.mark.parametrize(
        "xp, level",
        [(0, 1), (99, 1), (100, 2), (249, 2), (250, 3), (25599, 19), (25600, 20)],
    )
    def test_table_boundaries(self, xp, level):
        assert level_for_xp(xp) == level

    def test_beyond_table(self):
        assert level_for_xp(29439) == 20
        assert level_for_xp(29440) == 21
        assert level_for_xp(33856) == 22

    def test_negative_xp_is_level_one(self):
        assert level_for_xp(-500) == 1

    def test_level_brackets_xp(self):
        for xp in list(range(0, 3000, 37)) + [25600, 29440, 50_000, 250_000, 1_000_000]:
            level = level_for_xp(xp)
            assert level >= 1
            assert threshold_for_level(level) <= xp < threshold_for_level(level + 1)

    def test_non_decreasing(self):
        levels = [level_for_xp(xp) for xp in range(0, 40_000, 50)]
        assert levels == sorted(levels)


class TestXpProgress:

    def test_halfway_through_level_two(self):
        # Level 2 spans 100..250: 175 is 75/150 = 50%
        p = xp_progress(175)
        assert (p.level, p.xp_into_level, p.xp_to_next_level, p.percent_to_next) == (2, 75, 150, 50)

    def test_percent_is_floored(self):
        # 199: 99/150 = 66.0% → 66
        assert xp_progress(199).percent_to_next == 66

    def test_negative_xp_reports_level_one(self):
        p = xp_progress(-5)
        assert (p.level, p.xp_into_level, p.xp_to_next_level, p.percent_to_next) == (1, 0, 100, 0)

    def test_beyond_table(self):
        # Level 21 spans 29440..33856 (4416 XP)
        p = xp_progress(29440 + 2208)
        assert p.level == 21
        assert p.xp_to_next_level == 4416
        assert p.percent_to_next == 50


# ===========================================================================
# xp.py
# ===========================================================================

class TestBaseXp:
    """weighted: floor(weight * reps); bodyweight or zero weight: floor(reps * mult * 10)"""

    def test_weighted_set(self):
        assert base_xp(SetVolume(weight=100, reps=10)) == 1000

    def test_weighted_set_floors(self):
        # 102.5 * 3 = 307.5 → 307
        assert base_xp(SetVolume(weight=102.5, reps=3)) == 307

    def test_bodyweight_set(self):
        # 12 * 1.5 * 10 = 180
        assert base_xp(SetVolume(weight=0, reps=12, is_bodyweight=True, difficulty_multiplier=1.5)) == 180

    def test_bodyweight_flag_ignores_logged_weight(self):
        assert base_xp(SetVolume(weight=20, reps=10, is_bodyweight=True)) == 100

    def test_zero_weight_counts_as_bodyweight(self):
        assert base_xp(SetVolume(weight=0, reps=10)) == 100

    def test_decimal_multiplier_is_exact(self):
        # 3 * 0.3 * 10 = 9 exactly; binary floats give 8.999…
        assert base_xp(SetVolume(weight=0, reps=3, is_bodyweight=True, difficulty_multiplier=0.3)) == 9

    def test_result_is_non_negative_int(self):
        for weight, reps in [(0, 1), (0.5, 1), (250, 1), (60, 20)]:
            value = base_xp(SetVolume(weight=weight, reps=reps))
            assert isinstance(value, int)
            assert value >= 0


class TestProgressionBonus:
    """floor(base * 0.2) when heavier, or same weight with more reps."""

    def test_no_previous_record(self):
        assert progression_bonus(1000, SetPerformance(100, 10), None) == 0

    def test_heavier_weight(self):
        assert progression_bonus(1000, SetPerformance(100, 10), SetPerformance(90, 10)) == 200

    def test_heavier_weight_fewer_reps_still_counts(self):
        assert progression_bonus(800, SetPerformance(100, 8), SetPerformance(90, 10)) == 160

    def test_same_weight_more_reps(self):
        assert progression_bonus(1100, SetPerformance(100, 11), SetPerformance(100, 10)) == 220

    def test_same_performance(self):
        assert progression_bonus(1000, SetPerformance(100, 10), SetPerformance(100, 10)) == 0

    def test_lighter_weight_more_reps(self):
        assert progression_bonus(1080, SetPerformance(90, 12), SetPerformance(100, 10)) == 0

    def test_same_weight_fewer_reps(self):
        assert progression_bonus(900, SetPerformance(100, 9), SetPerformance(100, 10)) == 0

    def test_bonus_floors(self):
        # 999 * 0.2 = 199.8 → 199
        assert progression_bonus(999, SetPerformance(111, 9), SetPerformance(110, 9)) == 199

    def test_both_axes_earn_flat_rate(self):
        assert has_progressed(SetPerformance(105, 12), SetPerformance(100, 10))
        assert progression_bonus(1260, SetPerformance(105, 12), SetPerformance(100, 10)) == 252


class TestSetXp:

    def test_composes_base_and_bonus(self):
        result = set_xp(SetVolume(100, 10), SetPerformance(90, 10))
        assert (result.base_xp, result.progression_bonus, result.total_xp) == (1000, 200, 1200)

    def test_first_time_has_no_bonus(self):
        result = set_xp(SetVolume(100, 10), None)
        assert (result.base_xp, result.progression_bonus, result.total_xp) == (1000, 0, 1000)


# ===========================================================================
# consistency.py: pure rate helpers
# ===========================================================================

class TestRates:

    def test_weekly_full(self):
        assert weekly_rate(3, 3) == 100

    def test_weekly_clamped(self):
        # 4/3 = 133% → 100
        assert weekly_rate(4, 3) == 100

    def test_weekly_partial(self):
        assert weekly_rate(1, 3) == 33
        assert weekly_rate(2, 3) == 67

    def test_monthly_uses_four_weeks(self):
        # 6 / (3 * 4) = 50%
        assert monthly_rate(6, 3) == 50

    def test_half_rounds_up(self):
        # 1 / (2 * 4) = 12.5% → 13 (Python's round() would give 12)
        assert monthly_rate(1, 2) == 13
        assert round_half_up(Fraction(5, 2)) == 3

    def test_nothing_expected(self):
        assert weekly_rate(2, 0) == 0


class TestSessionCompletion:

    def test_extra_sets_do_not_count(self):
        # targets 3 + 2; logged 5 (capped at 3) + 1 → 4/5 = 80%
        assert session_set_ratio([(1, 3), (2, 2)], {1: 5, 2: 1}) == Fraction(80)

    def test_unlogged_exercise_counts_zero(self):
        assert session_set_ratio([(1, 4)], {}) == Fraction(0)

    def test_no_target_is_skipped(self):
        assert session_set_ratio([], {1: 3}) is None
        assert session_set_ratio([(1, 0)], {1: 3}) is None

    def test_average_skips_none(self):
        assert session_completion_rate([Fraction(100), Fraction(50), None]) == 75

    def test_empty_is_zero(self):
        assert session_completion_rate([]) == 0
        assert session_completion_rate([None]) == 0


# ===========================================================================
# windows.py
# ===========================================================================

class TestWindows:

    def test_day_window(self):
        assert day_window(date(2026, 3, 4)) == (datetime(2026, 3, 4), datetime(2026, 3, 5))

    def test_week_starts_monday(self):
        wednesday = datetime(2026, 3, 4, 15, 0)
        assert week_window(wednesday) == (datetime(2026, 3, 2), datetime(2026, 3, 9))

    def test_sunday_belongs_to_previous_monday(self):
        sunday = datetime(2026, 3, 8, 23, 59)
        assert week_window(sunday)[0] == datetime(2026, 3, 2)

    def test_month_window_rolls_year(self):
        assert month_window(datetime(2026, 12, 15)) == (datetime(2026, 12, 1), datetime(2027, 1, 1))

    def test_program_week(self):
        start = date(2026, 3, 2)
        assert program_week(start, start) == 1
        assert program_week(start, date(2026, 3, 8)) == 1
        assert program_week(start, date(2026, 3, 9)) == 2
        assert program_week(start, date(2026, 3, 23)) == 4


# ===========================================================================
# serializers.py: set strings
# ===========================================================================

class TestParseSets:

    def test_comma_list(self):
        assert parse_sets_string("100x10, 100x8, 95x8") == [(100.0, 10), (100.0, 8), (95.0, 8)]

    def test_repeat_count(self):
        assert parse_sets_string("80x8x3") == [(80.0, 8)] * 3

    def test_bare_reps_is_bodyweight(self):
        assert parse_sets_string("12") == [(0.0, 12)]

    def test_decimal_weight(self):
        assert parse_sets_string("102.5x5") == [(102.5, 5)]

    @pytest.mark.parametrize("bad", ["", "abc", "100x", "100x0", "-5x10"])
    def test_invalid(self, bad):
        with pytest.raises(ValidationError):
            parse_sets_string(bad)

    def test_default_reps_from_target(self):
        assert default_reps_from_target("8-12", 8) == 8
        assert default_reps_from_target("5", 8) == 5
        assert default_reps_from_target("AMRAP", 8) == 8
