"""
歷史漁獲分析單元測試

測試 HistoricalCorrelationAnalyzer 與 CatchHistoryAnalyzer：
- 同期查詢窗口
- 無紀錄/紀錄不足時的行為
- 最佳月相與最佳日期
- 摘要、相關性與趨勢
"""

import copy
import pytest
from datetime import date, datetime

from marine_calendar.config import get_settings
from marine_calendar.algorithms import CatchHistoryAnalyzer, HistoricalCorrelationAnalyzer
from marine_calendar.algorithms.historical import season_of, shift_years


class TestHelpers:
    """輔助函數測試"""

    def test_shift_years_leap_day(self):
        assert shift_years(date(2024, 2, 29), -1) == date(2023, 2, 28)
        assert shift_years(date(2024, 6, 1), -3) == date(2021, 6, 1)

    @pytest.mark.parametrize("month,season", [
        (1, "winter"), (3, "spring"), (7, "summer"), (10, "autumn"), (12, "winter"),
    ])
    def test_season_of(self, month, season):
        assert season_of(month) == season


class TestHistoricalCorrelationAnalyzer:
    """歷史同期分析測試"""

    def test_window(self, static_source):
        analyzer = HistoricalCorrelationAnalyzer(static_source([]))

        assert analyzer.window(date(2024, 6, 1)) == (date(2021, 5, 25), date(2023, 6, 8))

    def test_no_records_returns_none(self, static_source, cascais_location):
        source = static_source([])
        analyzer = HistoricalCorrelationAnalyzer(source)

        assert analyzer.analyze(date(2024, 6, 1), cascais_location) is None
        assert source.calls == [(date(2021, 5, 25), date(2023, 6, 8), 50)]

    def test_summary_values(self, static_source, make_record):
        records = [
            make_record(date(2023, 6, 2), weight=4.0),
            make_record(date(2022, 5, 30), weight=10.0),
            make_record(date(2021, 6, 5), weight=0.0, count=0),
        ]
        summary = HistoricalCorrelationAnalyzer(static_source(records)).analyze(date(2024, 6, 1))

        assert summary.total_records == 3
        assert summary.average_weight == pytest.approx(4.67)
        assert summary.success_rate == 67
        assert summary.best_previous_date == datetime(2022, 5, 30, 7, 0)
        assert summary.lunar_correlation is None

    def test_best_date_tie_keeps_first(self, static_source, make_record):
        records = [
            make_record(datetime(2022, 6, 1, 6, 0), weight=5.0),
            make_record(datetime(2023, 6, 1, 6, 0), weight=5.0),
        ]
        summary = HistoricalCorrelationAnalyzer(static_source(records)).analyze(date(2024, 6, 1))

        assert summary.best_previous_date == datetime(2022, 6, 1, 6, 0)

    def test_correlation_requires_ten_records(self, static_source, make_record):
        nine = [
            make_record(datetime(2023, 6, 1, h, 0), weight=2.0, lunar_phase="NEW_MOON")
            for h in range(9)
        ]
        analyzer = HistoricalCorrelationAnalyzer(static_source(nine))
        assert analyzer.analyze(date(2024, 6, 1)).lunar_correlation is None

        ten = nine + [make_record(datetime(2023, 6, 2, 6, 0), weight=9.0, lunar_phase="FULL_MOON")]
        correlation = HistoricalCorrelationAnalyzer(static_source(ten)).analyze(
            date(2024, 6, 1)
        ).lunar_correlation

        assert correlation.best_phase == "FULL_MOON"
        assert correlation.avg_weight_in_best_phase == 9.0
        assert correlation.observation_count == 1

    def test_best_phase_ignores_records_without_phase(self, static_source, make_record):
        """未連結月相的紀錄不參與最佳月相"""
        records = [
            make_record(datetime(2023, 6, 1, h, 0), weight=50.0) for h in range(2)
        ] + [
            make_record(datetime(2023, 6, 2, h, 0), weight=1.0, lunar_phase="FULL_MOON")
            for h in range(8)
        ]
        correlation = HistoricalCorrelationAnalyzer(static_source(records)).analyze(
            date(2024, 6, 1)
        ).lunar_correlation

        assert correlation.best_phase == "FULL_MOON"
        assert correlation.avg_weight_in_best_phase == 1.0
        assert correlation.observation_count == 8

    def test_no_phase_linked_records_gives_no_correlation(self, static_source, make_record):
        records = [make_record(datetime(2023, 6, 1, h, 0), weight=3.0) for h in range(10)]
        summary = HistoricalCorrelationAnalyzer(static_source(records)).analyze(date(2024, 6, 1))

        assert summary.total_records == 10
        assert summary.lunar_correlation is None

    def test_radius_filter(self, static_source, make_record, cascais_location):
        settings = copy.deepcopy(get_settings())
        settings.forecast.history_radius_km = 5.0

        records = [
            make_record(date(2023, 6, 1), latitude=38.70, longitude=-9.42),
            make_record(date(2023, 6, 2), latitude=37.0, longitude=-9.0),
            make_record(date(2023, 6, 3), latitude=None, longitude=None),
        ]
        summary = HistoricalCorrelationAnalyzer(static_source(records), settings).analyze(
            date(2024, 6, 1), cascais_location
        )

        assert summary.total_records == 2


class TestCatchHistoryAnalyzer:
    """漁獲紀錄分析測試"""

    @pytest.fixture
    def records(self, make_record):
        return [
            make_record(datetime(2023, 1, 10, 6, 0), weight=2.0, lunar_phase="NEW_MOON",
                        illumination=1.0, weather={"wind_speed": 8}),
            make_record(datetime(2023, 1, 24, 19, 0), weight=6.0, species="TUNA",
                        lunar_phase="FULL_MOON", illumination=99.0),
            make_record(datetime(2023, 7, 3, 6, 0), weight=8.0, lunar_phase="FULL_MOON",
                        illumination=97.0),
            make_record(datetime(2023, 7, 20, 6, 0), weight=0.0, count=0,
                        lunar_phase="NEW_MOON", illumination=3.0),
        ]

    def test_empty_summary(self):
        assert CatchHistoryAnalyzer([]).summary()["total_records"] == 0

    def test_summary(self, records):
        summary = CatchHistoryAnalyzer(records).summary()

        assert summary["total_records"] == 4
        assert summary["total_weight"] == 16.0
        assert summary["success_rate"] == 75
        assert summary["best_lunar_phase"]["phase"] == "FULL_MOON"
        assert summary["best_lunar_phase"]["avg_weight"] == 7.0

    def test_summary_best_phase_skips_unknown(self, make_record):
        """未知月相不列為最佳月相"""
        records = [
            make_record(datetime(2023, 3, 1, 6, 0), weight=50.0),
            make_record(datetime(2023, 3, 2, 6, 0), weight=1.0, lunar_phase="NEW_MOON"),
        ]
        analyzer = CatchHistoryAnalyzer(records)
        summary = analyzer.summary()

        assert summary["lunar_phase_analysis"]["UNKNOWN"]["count"] == 1
        assert summary["best_lunar_phase"]["phase"] == "NEW_MOON"
        assert analyzer.correlations()["insights"][0].startswith("表現最佳的月相為 NEW_MOON")

    def test_summary_without_any_phase(self, make_record):
        summary = CatchHistoryAnalyzer([make_record(date(2023, 3, 1))]).summary()

        assert summary["total_records"] == 1
        assert summary["best_lunar_phase"] is None

    def test_detailed(self, records):
        detailed = CatchHistoryAnalyzer(records).detailed()

        assert detailed["monthly_breakdown"][1]["count"] == 2
        assert detailed["hourly_distribution"][6] == 3
        assert detailed["top_catches"][0]["weight"] == 8.0

    def test_correlations(self, records):
        result = CatchHistoryAnalyzer(records).correlations()

        assert result["lunar_phase_correlation"]["NEW_MOON"]["successful"] == 1
        assert set(result["seasonal_correlation"]) == {"winter", "summer"}
        assert result["weather_correlation"]["records_with_weather"] == 1
        assert result["illumination_correlation"]["sample_size"] == 4
        assert result["illumination_correlation"]["coefficient"] > 0
        assert result["insights"][0].startswith("表現最佳的月相為 FULL_MOON")

    def test_illumination_needs_three_samples(self, records):
        result = CatchHistoryAnalyzer(records[:2]).correlations()
        assert result["illumination_correlation"] is None

    def test_trends_by_month(self, records):
        trends = CatchHistoryAnalyzer(records).trends("month")

        assert [t["period"] for t in trends["trends"]] == ["2023-01", "2023-07"]
        assert trends["summary"]["most_active_period"]["record_count"] == 2

    def test_trends_by_species_uses_catches(self, records):
        trends = CatchHistoryAnalyzer(records).trends("species")
        periods = {t["period"]: t for t in trends["trends"]}

        assert set(periods) == {"SEABASS", "TUNA"}
        assert periods["SEABASS"]["record_count"] == 2

    def test_invalid_group_by(self, records):
        with pytest.raises(ValueError):
            CatchHistoryAnalyzer(records).trends("weekday")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
