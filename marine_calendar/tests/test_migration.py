"""
洄游機率模型單元測試

測試 MigrationProbabilityModel 與事件後處理：
- 旺季隸屬度與水溫曲線
- 機率計算與位置係數
- 洄游事件產生、排序、合併與篩選
- 建議與趨勢分析
"""

import pytest
from datetime import date

from marine_calendar.config import SPECIES, get_species
from marine_calendar.config.species import PeakWindow
from marine_calendar.exceptions import UnknownSpeciesError
from marine_calendar.algorithms import (
    MigrationEvent,
    MigrationEventType,
    MigrationProbabilityModel,
    analyze_migration_trends,
    filter_events,
    group_events_by_date,
    merge_events,
    migration_recommendations
)
from marine_calendar.algorithms.migration import sort_events


@pytest.fixture
def model():
    return MigrationProbabilityModel()


def _event(species="TUNA", day=date(2024, 5, 1), probability=0.5,
           event_type=MigrationEventType.ARRIVAL, lat=38.6979, lon=-9.4215, **kwargs):
    return MigrationEvent(
        species=species,
        event_type=event_type,
        date=day,
        probability=probability,
        latitude=lat,
        longitude=lon,
        **kwargs
    )


class TestSeasonalMembership:
    """旺季隸屬度測試"""

    def test_inside_window(self, model):
        assert model.seasonal_membership(get_species("SEABASS"), date(2024, 5, 15)) == 1.0

    def test_far_outside_window(self, model):
        assert model.seasonal_membership(get_species("SEABASS"), date(2024, 8, 15)) == 0.0

    def test_taper_decreases_with_distance(self, model):
        """窗口外逐漸遞減"""
        seabass = get_species("SEABASS")
        near = model.seasonal_membership(seabass, date(2024, 7, 3))
        far = model.seasonal_membership(seabass, date(2024, 7, 12))

        assert 0 < far < near < 1

    def test_window_cannot_cross_year_end(self):
        """旺季窗口不跨年"""
        with pytest.raises(ValueError):
            PeakWindow(11, 1, 2, 28)

        assert PeakWindow(3, 1, 3, 1).start_month == 3


class TestWaterTemperature:
    """季節水溫測試"""

    def test_anchor_values(self):
        assert MigrationProbabilityModel.water_temperature(date(2023, 8, 15)) == pytest.approx(23.0)
        assert MigrationProbabilityModel.water_temperature(date(2023, 1, 15)) == pytest.approx(15.0)

    def test_wraps_across_year_end(self):
        """12 月底介於 12 月 (16°C) 與 1 月 (15°C) 之間"""
        temp = MigrationProbabilityModel.water_temperature(date(2023, 12, 31))
        assert 15.0 <= temp <= 16.0


class TestProbability:
    """洄游機率測試"""

    def test_peak_season_near_shore_clamped(self, model, cascais_location):
        """旺季 + 近岸溯河性加成後截斷為 1.0"""
        assert model.probability("SEABASS", date(2024, 5, 15), cascais_location) == 1.0

    def test_off_season_value(self, model, cascais_location):
        """淡季：0.3 × 0.6 × 1.0 × 1.3 = 0.234 -> 0.23"""
        assert model.probability("SEABASS", date(2024, 8, 15), cascais_location) == 0.23

    def test_explicit_water_temperature(self, model, cascais_location):
        """水溫偏離可接受範圍時降低機率"""
        normal = model.probability("TUNA", date(2024, 5, 20), cascais_location, 22.0)
        cold = model.probability("TUNA", date(2024, 5, 20), cascais_location, 12.0)

        assert cold < normal

    def test_lowercase_code_accepted(self, model, cascais_location):
        day = date(2024, 6, 1)
        assert model.probability("tuna", day, cascais_location) == \
            model.probability("TUNA", day, cascais_location)

    def test_unknown_species(self, model, cascais_location):
        with pytest.raises(UnknownSpeciesError) as exc_info:
            model.probability("KRAKEN", date(2024, 6, 1), cascais_location)
        assert exc_info.value.species == "KRAKEN"

    def test_all_species_in_range(self, model, cascais_location, offshore_location):
        for code in SPECIES:
            for day in (date(2024, 1, 10), date(2024, 5, 20), date(2024, 9, 1)):
                for location in (cascais_location, offshore_location):
                    value = model.probability(code, day, location)
                    assert 0.0 <= value <= 1.0

    def test_location_multiplier(self, cascais_location, offshore_location):
        tuna = get_species("TUNA")
        seabass = get_species("SEABASS")

        assert MigrationProbabilityModel.location_multiplier(tuna, offshore_location) == 1.2
        assert MigrationProbabilityModel.location_multiplier(tuna, cascais_location) == 1.0
        assert MigrationProbabilityModel.location_multiplier(seabass, cascais_location) == 1.3


class TestRecommendation:
    """魚種建議測試"""

    def test_oceanodromous_recommendation(self, model, cascais_location):
        rec = model.get_recommendation("TUNA", date(2024, 5, 20), cascais_location)

        assert rec.species == "TUNA"
        assert rec.recommended_depths == [20, 30, 40, 50]
        assert rec.best_locations[:2] == ["外海", "大陸棚"]
        assert "深水拖釣" in rec.tactics

    def test_seasonal_availability(self, model):
        availability = model.seasonal_availability("TUNA")

        assert availability.available_months == [5, 6, 9, 10, 11]
        assert len(availability.peak_periods) == 2


class TestUpcomingEvents:
    """洄游事件測試"""

    def test_events_within_range(self, model, cascais_location):
        start, end = date(2024, 4, 1), date(2024, 6, 30)
        events = model.upcoming_events(start, end, cascais_location, ["SEABASS"])

        assert {e.event_type for e in events} == set(MigrationEventType)
        for event in events:
            assert start <= event.date <= end
            assert event.species == "SEABASS"
            assert event.direction == "進入河口與潟湖"

    def test_sorted_by_probability_then_date(self, model, cascais_location):
        events = model.upcoming_events(date(2024, 1, 1), date(2024, 6, 29), cascais_location)
        keys = [(-e.probability, e.date) for e in events]

        assert keys == sorted(keys)

    def test_unknown_species_filter(self, model, cascais_location):
        with pytest.raises(UnknownSpeciesError):
            model.upcoming_events(date(2024, 1, 1), date(2024, 2, 1), cascais_location, ["KRAKEN"])

    def test_empty_range(self, model, cascais_location):
        """窗口之間的空檔沒有事件"""
        events = model.upcoming_events(date(2024, 7, 2), date(2024, 7, 10), cascais_location, ["TUNA"])
        assert events == []


class TestEventPostProcessing:
    """事件後處理測試"""

    def test_sort_equal_probability_earlier_date_first(self):
        """機率相同時日期早者在前"""
        later = _event(species="SEABASS", day=date(2024, 5, 20), probability=0.6)
        earlier = _event(species="SARDINE", day=date(2024, 5, 3), probability=0.6)
        top = _event(species="TUNA", day=date(2024, 5, 30), probability=0.8)

        ordered = sort_events([later, top, earlier])

        assert [e.species for e in ordered] == ["TUNA", "SARDINE", "SEABASS"]

    def test_merge_stored_overrides_computed(self):
        computed = [_event(probability=0.4), _event(day=date(2024, 5, 2), probability=0.3)]
        stored = [_event(probability=0.9, data_source="API Input")]

        merged = merge_events(computed, stored)

        assert len(merged) == 2
        assert merged[0].probability == 0.9
        assert merged[0].data_source == "API Input"

    def test_filter_by_type_and_probability(self):
        events = [
            _event(probability=0.8),
            _event(probability=0.2),
            _event(probability=0.9, event_type=MigrationEventType.PEAK),
        ]

        filtered = filter_events(events, ["arrival"], 0.5)

        assert len(filtered) == 1
        assert filtered[0].probability == 0.8

    def test_group_by_date(self):
        events = [_event(), _event(species="SARDINE"), _event(day=date(2024, 5, 3))]
        grouped = group_events_by_date(events)

        assert list(grouped) == ["2024-05-01", "2024-05-03"]
        assert len(grouped["2024-05-01"]) == 2

    def test_recommendations(self, cascais_location):
        events = [
            _event(probability=0.9, depth=20),
            _event(species="SARDINE", probability=0.7, depth=10),
        ]
        lines = migration_recommendations(events, cascais_location, today=date(2024, 5, 10))

        assert lines[0].startswith("最可能的洄游：tuna (90%)")
        assert "建議作業深度：15m (範圍 10-20m)" in lines
        assert "目前季節有利於洄游活動" in lines
        assert len(lines) <= 5

    def test_recommendations_empty(self, offshore_location):
        lines = migration_recommendations([], offshore_location, today=date(2024, 5, 10))
        assert lines == ["深水區域：鎖定大洋性魚種 (鮪魚、金頭鯛、槍魚)"]

    def test_trends(self):
        events = [
            _event(probability=0.9),
            _event(species="SARDINE", probability=0.5, event_type=MigrationEventType.PEAK),
            _event(species="SARDINE", day=date(2024, 6, 1), probability=0.6),
        ]
        trends = analyze_migration_trends(events)

        assert trends["dominant_species"][0]["species"] == "SARDINE"
        assert trends["event_type_distribution"]["arrival"] == 2

    def test_trends_empty(self):
        trends = analyze_migration_trends([])
        assert trends["dominant_species"] == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
