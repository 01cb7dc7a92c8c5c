"""
月相計算單元測試

測試 LunarPhaseCalculator 的核心功能：
- 已知新月/滿月日期
- 月角、照明度與月距範圍
- 影響力與魚群活躍度
- 最佳作業時段與月相事件
"""

import pytest
from datetime import date, datetime, timedelta

from marine_calendar.lunar import (
    FishActivityLevel,
    LunarPhaseCalculator,
    LunarPhaseType,
    round_half_up
)


class TestRoundHalfUp:
    """四捨五入測試"""

    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.125, 2) == 0.13

    def test_below_half_rounds_down(self):
        assert round_half_up(2.49) == 2
        assert round_half_up(0.234, 2) == 0.23


class TestKnownPhases:
    """已知月相日期測試"""

    def test_new_moon_2024_01_11(self, calculator):
        """2024-01-11 為新月"""
        phase = calculator.calculate(date(2024, 1, 11))

        assert phase.phase_type == LunarPhaseType.NEW_MOON
        assert phase.illumination < 5
        assert phase.name_zh == "新月"

    def test_full_moon_2024_01_25(self, calculator):
        """2024-01-25 為滿月"""
        phase = calculator.calculate(date(2024, 1, 25))

        assert phase.phase_type == LunarPhaseType.FULL_MOON
        assert phase.illumination > 95

    def test_datetime_uses_date_part(self, calculator):
        """datetime 只取日期部分"""
        by_date = calculator.calculate(date(2024, 3, 10))
        by_datetime = calculator.calculate(datetime(2024, 3, 10, 23, 59))

        assert by_date == by_datetime

    def test_deterministic(self, calculator):
        """同一日期重複計算結果相同"""
        first = calculator.calculate(date(2024, 7, 4))
        second = LunarPhaseCalculator().calculate(date(2024, 7, 4))

        assert first.to_dict() == second.to_dict()


class TestPhaseRanges:
    """數值範圍測試"""

    def test_ranges_over_a_year(self, calculator):
        """一年內每日的月角、照明度、月距皆在合理範圍"""
        phases = calculator.phases_for_period(date(2024, 1, 1), date(2024, 12, 31))

        assert len(phases) == 366
        for phase in phases:
            assert 0 <= phase.angle < 360
            assert 0 <= phase.illumination <= 100
            assert 356000 < phase.distance_km < 407000
            assert 0.48 < phase.apparent_diameter < 0.57

    def test_all_phase_types_appear(self, calculator):
        """一個朔望月內八種月相都會出現"""
        phases = calculator.phases_for_period(date(2024, 2, 1), date(2024, 3, 2))
        types = {p.phase_type for p in phases}

        assert types == set(LunarPhaseType)

    @pytest.mark.parametrize("angle,expected", [
        (0.0, LunarPhaseType.NEW_MOON),
        (22.4, LunarPhaseType.NEW_MOON),
        (22.5, LunarPhaseType.WAXING_CRESCENT),
        (90.0, LunarPhaseType.FIRST_QUARTER),
        (180.0, LunarPhaseType.FULL_MOON),
        (270.0, LunarPhaseType.LAST_QUARTER),
        (337.5, LunarPhaseType.NEW_MOON),
    ])
    def test_phase_sectors(self, angle, expected):
        """45° 扇區邊界"""
        assert LunarPhaseCalculator.phase_type_for_angle(angle) == expected


class TestInfluence:
    """影響力測試"""

    def test_new_moon_influence(self, calculator):
        """新月照明度低，影響力加成後為極高活躍"""
        phase = calculator.calculate(date(2024, 1, 11))
        influence = phase.influence

        assert influence.strength == pytest.approx(9.4)
        assert influence.fish_activity == FishActivityLevel.VERY_HIGH
        assert "響珠米諾" in influence.recommended_tackle

    def test_full_moon_tackle(self, calculator):
        """滿月建議夜釣裝備"""
        influence = calculator.calculate(date(2024, 1, 25)).influence

        assert influence.strength == pytest.approx(9.9)
        assert "夜光擬餌" in influence.recommended_tackle

    @pytest.mark.parametrize("strength,expected", [
        (9.0, FishActivityLevel.VERY_HIGH),
        (8.5, FishActivityLevel.VERY_HIGH),
        (7.0, FishActivityLevel.HIGH),
        (6.0, FishActivityLevel.MODERATE),
        (4.0, FishActivityLevel.LOW),
        (3.9, FishActivityLevel.VERY_LOW),
    ])
    def test_activity_thresholds(self, strength, expected):
        assert LunarPhaseCalculator.activity_for_strength(strength) == expected

    def test_strength_within_bounds(self, calculator):
        for phase in calculator.phases_for_period(date(2024, 5, 1), date(2024, 6, 30)):
            assert 0 <= phase.influence.strength <= 10


class TestBestHours:
    """最佳作業時段測試"""

    def test_new_moon_has_midnight_window(self, calculator):
        """新月包含深夜時段且排第一"""
        phase = calculator.calculate(date(2024, 1, 11))
        windows = calculator.best_fishing_hours(phase.date, phase)

        assert len(windows) == 3
        assert windows[0].label() == "23:00-01:00"
        assert windows[0].rating == 10
        assert "新月" in windows[0].description

    def test_quarter_has_two_windows(self, calculator):
        """非新月/滿月只有清晨與黃昏"""
        phase = calculator.calculate(date(2024, 1, 18))
        windows = calculator.best_fishing_hours(phase.date, phase)

        assert phase.phase_type == LunarPhaseType.FIRST_QUARTER
        assert [w.label() for w in windows] == ["19:00-21:00", "05:00-07:00"]

    def test_sorted_by_rating(self, calculator):
        for phase in calculator.phases_for_period(date(2024, 4, 1), date(2024, 4, 30)):
            ratings = [w.rating for w in calculator.best_fishing_hours(phase.date, phase)]
            assert ratings == sorted(ratings, reverse=True)


class TestLunarEvents:
    """月相事件測試"""

    def test_january_2024_events(self, calculator):
        events = calculator.upcoming_lunar_events(date(2024, 1, 1), 30)

        assert [d.date() for d in events.new_moons] == [date(2024, 1, 11)]
        assert len(events.full_moons) == 1
        assert date(2024, 1, 25) <= events.full_moons[0].date() <= date(2024, 1, 26)
        assert len(events.quarters) == 2

    def test_events_ordered_and_in_range(self, calculator):
        start = datetime(2024, 6, 1)
        events = calculator.upcoming_lunar_events(start, 60)

        moments = events.new_moons + events.full_moons + events.quarters
        for moment in moments:
            assert start.date() <= moment.date() <= (start + timedelta(days=60)).date()
        assert events.new_moons == sorted(events.new_moons)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
