"""
每日漁況彙整

整合月相、潮汐、洄游機率與歷史同期表現，產生每日漁況報告：
- 總評分 (1-10)
- 最佳作業時段 (前 3 名)
- 各魚種活躍度、建議深度、作業區與餌料
- 文字建議

輸出：FishingConditionsReport
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Iterable
from datetime import date, timedelta
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging

from ..config import Location, SPECIES, get_settings, get_species
from ..config.settings import Settings
from ..lunar import (
    LunarPhase,
    LunarPhaseCalculator,
    LunarPhaseType,
    TimeWindow,
    round_half_up
)
from .tides import TidalApproximator, TidalInfluence
from .migration import MigrationProbabilityModel
from .historical import HistoricalCorrelationAnalyzer, HistoricalSummary

logger = logging.getLogger(__name__)


@dataclass
class SpeciesInfluence:
    """
    單一魚種當日表現

    Attributes:
        species: 魚種代碼
        activity: 活躍度 (0-10)
        preferred_depth: 建議深度 (例如 "20-30-40 m")
        best_locations: 建議作業區 (前 3)
        recommended_baits: 建議餌料
    """
    species: str
    activity: int
    preferred_depth: str
    best_locations: List[str]
    recommended_baits: List[str]

    @property
    def display_name(self) -> str:
        return self.species.lower().replace("_", " ")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species": self.species,
            "activity": self.activity,
            "preferred_depth": self.preferred_depth,
            "best_locations": self.best_locations,
            "recommended_baits": self.recommended_baits
        }


@dataclass
class FishingConditionsReport:
    """每日漁況報告"""
    date: date
    overall_rating: int
    lunar_phase: LunarPhase
    best_hours: List[TimeWindow]
    species_influence: List[SpeciesInfluence]
    recommendations: List[str]
    tidal_influence: TidalInfluence
    historical_data: Optional[HistoricalSummary] = None
    weather_impact: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        influence = self.lunar_phase.influence
        return {
            "date": self.date.isoformat(),
            "overall_rating": self.overall_rating,
            "lunar_phase": {
                "type": self.lunar_phase.phase_type.value,
                "illumination": self.lunar_phase.illumination,
                "influence": influence.to_dict() if influence else None
            },
            "best_hours": [w.to_dict() for w in self.best_hours],
            "species_influence": [s.to_dict() for s in self.species_influence],
            "recommendations": self.recommendations,
            "tidal_influence": self.tidal_influence.to_dict(),
            "historical_data": self.historical_data.to_dict() if self.historical_data else None,
            "weather_impact": self.weather_impact
        }


def recommended_baits(species_code: str, phase_type: LunarPhaseType) -> List[str]:
    """魚種餌料，依月相追加夜光或響珠擬餌"""
    baits = list(get_species(species_code).baits)

    if phase_type == LunarPhaseType.FULL_MOON:
        baits.append("夜光擬餌")
    elif phase_type == LunarPhaseType.NEW_MOON:
        baits.append("響珠擬餌")
    return baits


def overall_rating(phase: LunarPhase, species: List[SpeciesInfluence]) -> int:
    """
    當日總評分

    以月相影響力為基礎 (無影響力資料時為 5)，
    有魚種資料時與平均活躍度取平均，截斷至 [1, 10]。
    """
    rating = 5
    if phase.influence is not None:
        rating = int(round_half_up(phase.influence.strength))

    if species:
        mean_activity = sum(s.activity for s in species) / len(species)
        rating = int(round_half_up((rating + mean_activity) / 2))

    return max(1, min(10, rating))


def day_recommendations(
    phase: LunarPhase,
    species: List[SpeciesInfluence],
    best_hours: List[TimeWindow]
) -> List[str]:
    """當日文字建議 (月相說明、最佳時段、最活躍魚種)"""
    recommendations = []

    if phase.influence is not None and phase.influence.description:
        recommendations.append(phase.influence.description)

    if best_hours:
        best = best_hours[0]
        recommendations.append(f"最佳時段：{best.description} ({best.label()})")

    top = species[:2]
    if top:
        recommendations.append(f"最活躍魚種：{'、'.join(s.display_name for s in top)}")

    return recommendations


class FishingConditionsAggregator:
    """
    漁況彙整器

    Args:
        lunar_source: 提供 get_or_compute(date) 的月相來源 (例如 LunarPhaseCache)，
            None 則直接計算不儲存
        historical: 歷史同期分析器，None 則不提供歷史資料
        settings: 系統設定

    Example:
        >>> aggregator = FishingConditionsAggregator(lunar_cache, historical=analyzer)
        >>> report = aggregator.compute_day_report(date(2024, 6, 1), location, ["TUNA"])
        >>> print(report.overall_rating)
    """

    def __init__(
        self,
        lunar_source=None,
        migration_model: Optional[MigrationProbabilityModel] = None,
        tides: Optional[TidalApproximator] = None,
        historical: Optional[HistoricalCorrelationAnalyzer] = None,
        calculator: Optional[LunarPhaseCalculator] = None,
        settings: Optional[Settings] = None
    ):
        self.calculator = calculator or LunarPhaseCalculator()
        self.lunar_source = lunar_source
        self.migration_model = migration_model or MigrationProbabilityModel()
        self.tides = tides or TidalApproximator()
        self.historical = historical
        self.settings = settings or get_settings()

    def _lunar_phase(self, day: date) -> LunarPhase:
        if self.lunar_source is None:
            return self.calculator.calculate(day)
        return self.lunar_source.get_or_compute(day)

    def compute_day_report(
        self,
        day: date,
        location: Location,
        species_list: Optional[Iterable[str]] = None,
        include_historical: bool = False
    ) -> FishingConditionsReport:
        """
        計算單日漁況

        Args:
            day: 日期
            location: 查詢位置
            species_list: 目標魚種 (只評估前 5 種)，None 則為全部註冊魚種
            include_historical: 是否附上歷史同期摘要

        Returns:
            FishingConditionsReport
        """
        phase = self._lunar_phase(day)
        best_hours = self.calculator.best_fishing_hours(day, phase)

        if species_list is None:
            species_list = list(SPECIES.keys())
        targets = list(species_list)[:self.settings.forecast.max_species_per_day]

        species = self._evaluate_species(targets, day, location, phase.phase_type)
        species.sort(key=lambda s: s.activity, reverse=True)

        historical = None
        if include_historical and self.historical is not None:
            historical = self.historical.analyze(day, location, targets)

        return FishingConditionsReport(
            date=day,
            overall_rating=overall_rating(phase, species),
            lunar_phase=phase,
            best_hours=best_hours[:3],
            species_influence=species,
            recommendations=day_recommendations(phase, species, best_hours),
            tidal_influence=self.tides.approximate(day, location),
            historical_data=historical
        )

    def _evaluate_species(
        self,
        targets: List[str],
        day: date,
        location: Location,
        phase_type: LunarPhaseType
    ) -> List[SpeciesInfluence]:
        """並行評估各魚種；失敗的魚種記錄警告後略過，結果保持輸入順序"""
        if not targets:
            return []

        results: Dict[int, SpeciesInfluence] = {}
        workers = max(1, min(self.settings.forecast.species_workers, len(targets)))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self._species_influence, code, day, location, phase_type): i
                for i, code in enumerate(targets)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    logger.warning(f"Species {targets[index]} skipped for {day}: {e}")

        return [results[i] for i in sorted(results)]

    def _species_influence(
        self,
        code: str,
        day: date,
        location: Location,
        phase_type: LunarPhaseType
    ) -> SpeciesInfluence:
        rec = self.migration_model.get_recommendation(code, day, location)

        return SpeciesInfluence(
            species=rec.species,
            activity=int(round_half_up(rec.probability * 10)),
            preferred_depth="-".join(f"{d:g}" for d in rec.recommended_depths) + " m",
            best_locations=rec.best_locations[:3],
            recommended_baits=recommended_baits(rec.species, phase_type)
        )

    def compute_period(
        self,
        start: date,
        end: date,
        location: Location,
        species_list: Optional[Iterable[str]] = None,
        include_historical: bool = False
    ) -> List[FishingConditionsReport]:
        """逐日計算期間內的漁況 (依日期遞增)"""
        species_list = list(species_list) if species_list is not None else None
        reports = []

        current = start
        while current <= end:
            reports.append(
                self.compute_day_report(current, location, species_list, include_historical)
            )
            current += timedelta(days=1)

        logger.info(f"Computed {len(reports)} day reports for {location.name}")
        return reports


def calculate_conditions(
    day: date,
    latitude: float,
    longitude: float,
    species_list: Optional[Iterable[str]] = None
) -> FishingConditionsReport:
    """
    便捷函數：計算單日漁況 (不使用資料庫)

    Example:
        >>> report = calculate_conditions(date(2024, 6, 1), 38.69, -9.42, ["TUNA"])
        >>> print(report.overall_rating)
    """
    location = Location.from_coordinates(latitude, longitude)
    return FishingConditionsAggregator().compute_day_report(day, location, species_list)
