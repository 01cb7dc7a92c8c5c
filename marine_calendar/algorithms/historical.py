"""
歷史漁獲相關性分析

- HistoricalCorrelationAnalyzer: 以過去 1-3 年同期 (±7 天) 的出海紀錄
  摘要指定日期的歷史表現，紀錄足夠時找出表現最佳的月相
- CatchHistoryAnalyzer: 對任意一組紀錄做摘要/明細/相關性/趨勢分析
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Any, Iterable, Tuple
import logging

import numpy as np
import pandas as pd
from scipy import stats

from ..config import Location, get_settings, haversine_distance
from ..config.settings import Settings
from ..lunar import round_half_up

logger = logging.getLogger(__name__)


def shift_years(day: date, years: int) -> date:
    """平移年份；2/29 落在平年時改為 2/28"""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def season_of(month: int) -> str:
    """月份 -> 季節 (3-5 春、6-8 夏、9-11 秋、其餘冬)"""
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "autumn"
    return "winter"


SEASON_NAMES_ZH = {
    "spring": "春季",
    "summer": "夏季",
    "autumn": "秋季",
    "winter": "冬季",
}

# 未連結月相的紀錄 (僅列於分組統計，不參與最佳月相)
UNKNOWN_PHASE = "UNKNOWN"


def _best_known_phase(
    phase_stats: Dict[str, Dict[str, Any]]
) -> Optional[Tuple[str, Dict[str, Any]]]:
    known = [(phase, s) for phase, s in phase_stats.items() if phase != UNKNOWN_PHASE]
    if not known:
        return None
    return max(known, key=lambda kv: kv[1]["avg_weight"])


@dataclass
class LunarCorrelation:
    """表現最佳的月相"""
    best_phase: str
    avg_weight_in_best_phase: float
    observation_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "best_phase": self.best_phase,
            "avg_weight_in_best_phase": self.avg_weight_in_best_phase,
            "observation_count": self.observation_count
        }


@dataclass
class HistoricalSummary:
    """
    歷史同期摘要

    Attributes:
        total_records: 紀錄數
        average_weight: 平均漁獲重量 (kg，0.01 精度)
        success_rate: 有漁獲比例 (%，整數)
        best_previous_date: 漁獲最重的出海時間
        lunar_correlation: 紀錄足夠時的最佳月相
    """
    total_records: int
    average_weight: float
    success_rate: int
    best_previous_date: datetime
    lunar_correlation: Optional[LunarCorrelation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_records": self.total_records,
            "average_weight": self.average_weight,
            "success_rate": self.success_rate,
            "best_previous_date": self.best_previous_date.isoformat(),
            "lunar_correlation": self.lunar_correlation.to_dict() if self.lunar_correlation else None
        }


class HistoricalCorrelationAnalyzer:
    """
    歷史同期分析器

    Args:
        record_source: 提供 find_between(start, end, limit) 的紀錄來源
            (例如 CatchRecordStore)
        settings: 系統設定

    Example:
        >>> analyzer = HistoricalCorrelationAnalyzer(store)
        >>> summary = analyzer.analyze(date(2025, 6, 1), location)
    """

    def __init__(self, record_source, settings: Optional[Settings] = None):
        self.record_source = record_source
        self.settings = settings or get_settings()

    def window(self, day: date) -> Tuple[date, date]:
        """查詢窗口：[day-7d 往前 3 年, day+7d 往前 1 年]"""
        forecast = self.settings.forecast
        nearest, farthest = forecast.history_years_back
        delta = timedelta(days=forecast.history_window_days)
        return (
            shift_years(day - delta, -farthest),
            shift_years(day + delta, -nearest)
        )

    def analyze(
        self,
        day: date,
        location: Optional[Location] = None,
        species_list: Optional[Iterable[str]] = None
    ) -> Optional[HistoricalSummary]:
        """
        分析歷史同期表現

        Args:
            day: 目標日期
            location: 查詢位置 (設定 history_radius_km 時用於距離過濾)
            species_list: 目標魚種 (目前不參與過濾)

        Returns:
            HistoricalSummary，無紀錄時返回 None
        """
        forecast = self.settings.forecast
        start, end = self.window(day)

        records = self.record_source.find_between(start, end, forecast.history_record_limit)

        radius = forecast.history_radius_km
        if radius is not None and location is not None:
            records = [
                r for r in records
                if r.latitude is None or r.longitude is None
                or haversine_distance(
                    location.latitude, location.longitude, r.latitude, r.longitude
                ) <= radius
            ]

        if not records:
            logger.debug(f"No historical records for {day} ({start}..{end})")
            return None

        total = len(records)
        weights = [r.total_weight for r in records]
        successes = sum(1 for r in records if r.success)

        best = records[0]
        for record in records[1:]:
            if record.total_weight > best.total_weight:
                best = record

        summary = HistoricalSummary(
            total_records=total,
            average_weight=round_half_up(sum(weights) / total, 2),
            success_rate=int(round_half_up(successes / total * 100)),
            best_previous_date=best.date
        )

        if total >= forecast.correlation_min_records:
            summary.lunar_correlation = self._best_phase(records)

        return summary

    @staticmethod
    def _best_phase(records) -> Optional[LunarCorrelation]:
        """平均重量最高的月相；未連結月相的紀錄不列入"""
        phased = [r for r in records if r.lunar_phase]
        if not phased:
            return None

        df = pd.DataFrame({
            "phase": [r.lunar_phase for r in phased],
            "weight": [r.total_weight for r in phased]
        })
        stats_by_phase = df.groupby("phase", sort=False)["weight"].agg(["mean", "count"])
        best_phase = stats_by_phase["mean"].idxmax()

        return LunarCorrelation(
            best_phase=str(best_phase),
            avg_weight_in_best_phase=round_half_up(float(stats_by_phase.loc[best_phase, "mean"]), 2),
            observation_count=int(stats_by_phase.loc[best_phase, "count"])
        )


class CatchHistoryAnalyzer:
    """
    漁獲紀錄分析

    Args:
        records: CatchRecord 列表

    Example:
        >>> analyzer = CatchHistoryAnalyzer(records)
        >>> analyzer.summary()["success_rate"]
    """

    GROUP_BY_OPTIONS = ("date", "species", "lunar_phase", "month", "season")

    def __init__(self, records: List):
        self.records = list(records)
        self.df = self._to_frame(self.records)

    @staticmethod
    def _to_frame(records: List) -> pd.DataFrame:
        columns = ["date", "weight", "count", "success", "phase", "illumination", "has_weather"]
        if not records:
            return pd.DataFrame(columns=columns)

        df = pd.DataFrame([
            {
                "date": r.date,
                "weight": float(r.total_weight),
                "count": int(r.total_count),
                "success": bool(r.success),
                "phase": r.lunar_phase or UNKNOWN_PHASE,
                "illumination": r.illumination,
                "has_weather": bool(r.weather)
            }
            for r in records
        ])
        df["date"] = pd.to_datetime(df["date"])
        return df

    # --------------------------------------------
    # 摘要
    # --------------------------------------------

    def summary(self) -> Dict[str, Any]:
        """總量、成功率、各月相統計與最佳月相"""
        df = self.df
        if df.empty:
            return {"total_records": 0, "summary": "無資料可供分析"}

        phase_stats = self._phase_stats(df)
        best = _best_known_phase(phase_stats)

        return {
            "total_records": len(df),
            "total_weight": round_half_up(df["weight"].sum(), 2),
            "average_weight": round_half_up(df["weight"].mean(), 2),
            "success_rate": int(round_half_up(df["success"].mean() * 100)),
            "lunar_phase_analysis": phase_stats,
            "best_lunar_phase": {
                "phase": best[0],
                "avg_weight": best[1]["avg_weight"],
                "success_rate": best[1]["success_rate"]
            } if best else None,
            "date_range": {
                "earliest": df["date"].min().isoformat(),
                "latest": df["date"].max().isoformat()
            }
        }

    @staticmethod
    def _phase_stats(df: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
        grouped = df.groupby("phase", sort=False).agg(
            count=("weight", "size"),
            avg_weight=("weight", "mean"),
            success_rate=("success", "mean")
        )
        return {
            str(phase): {
                "count": int(row["count"]),
                "avg_weight": round_half_up(float(row["avg_weight"]), 2),
                "success_rate": int(round_half_up(float(row["success_rate"]) * 100))
            }
            for phase, row in grouped.iterrows()
        }

    def detailed(self) -> Dict[str, Any]:
        """摘要 + 月別統計、時段分布與前 10 大漁獲"""
        result = self.summary()
        df = self.df
        if df.empty:
            return result

        monthly = df.groupby(df["date"].dt.month).agg(
            count=("weight", "size"),
            avg_weight=("weight", "mean")
        )
        hourly = df.groupby(df["date"].dt.hour).size()

        top = sorted(self.records, key=lambda r: r.total_weight, reverse=True)[:10]

        result.update({
            "monthly_breakdown": {
                int(month): {
                    "count": int(row["count"]),
                    "avg_weight": round_half_up(float(row["avg_weight"]), 2)
                }
                for month, row in monthly.iterrows()
            },
            "hourly_distribution": {int(h): int(c) for h, c in hourly.items()},
            "top_catches": [
                {
                    "date": r.date.isoformat(),
                    "weight": r.total_weight,
                    "count": r.total_count,
                    "lunar_phase": r.lunar_phase,
                    "location": {
                        "name": r.location_name,
                        "latitude": r.latitude,
                        "longitude": r.longitude
                    }
                }
                for r in top
            ]
        })
        return result

    # --------------------------------------------
    # 相關性
    # --------------------------------------------

    def correlations(self) -> Dict[str, Any]:
        """月相、季節、天氣與照明度對漁獲的關係"""
        df = self.df
        if df.empty:
            return {
                "lunar_phase_correlation": {},
                "seasonal_correlation": {},
                "weather_correlation": None,
                "illumination_correlation": None,
                "insights": []
            }

        lunar = {
            str(phase): {
                "total": int(row["total"]),
                "successful": int(row["successful"]),
                "avg_weight": round_half_up(float(row["avg_weight"]), 2)
            }
            for phase, row in df.groupby("phase", sort=False).agg(
                total=("weight", "size"),
                successful=("success", "sum"),
                avg_weight=("weight", "mean")
            ).iterrows()
        }

        seasons = df["date"].dt.month.map(season_of)
        seasonal = {
            str(season): {
                "total": int(row["total"]),
                "avg_weight": round_half_up(float(row["avg_weight"]), 2)
            }
            for season, row in df.groupby(seasons, sort=False).agg(
                total=("weight", "size"),
                avg_weight=("weight", "mean")
            ).iterrows()
        }

        with_weather = df[df["has_weather"]]
        weather = None
        if not with_weather.empty:
            weather = {
                "records_with_weather": len(with_weather),
                "avg_weight_with_weather": round_half_up(float(with_weather["weight"].mean()), 2)
            }

        return {
            "lunar_phase_correlation": lunar,
            "seasonal_correlation": seasonal,
            "weather_correlation": weather,
            "illumination_correlation": self._illumination_correlation(df),
            "insights": self._insights(lunar, seasonal)
        }

    @staticmethod
    def _illumination_correlation(df: pd.DataFrame) -> Optional[Dict[str, Any]]:
        """照明度與漁獲重量的 Pearson 相關 (至少 3 筆且兩者皆有變異)"""
        sample = df.dropna(subset=["illumination"])
        if len(sample) < 3:
            return None

        x = sample["illumination"].astype(float).to_numpy()
        y = sample["weight"].astype(float).to_numpy()
        if np.std(x) == 0 or np.std(y) == 0:
            return None

        r, p_value = stats.pearsonr(x, y)
        return {
            "coefficient": round_half_up(float(r), 3),
            "p_value": round_half_up(float(p_value), 4),
            "sample_size": len(sample)
        }

    @staticmethod
    def _insights(lunar: Dict[str, Dict], seasonal: Dict[str, Dict]) -> List[str]:
        insights = []

        best = _best_known_phase(lunar)
        if best:
            phase, stats_ = best
            insights.append(f"表現最佳的月相為 {phase} (平均 {stats_['avg_weight']:.1f} kg)")

        if seasonal:
            season, _ = max(seasonal.items(), key=lambda kv: kv[1]["avg_weight"])
            insights.append(f"漁獲最豐的季節：{SEASON_NAMES_ZH.get(season, season)}")

        return insights

    # --------------------------------------------
    # 趨勢
    # --------------------------------------------

    def trends(self, group_by: str = "date") -> Dict[str, Any]:
        """
        依期間分組的趨勢

        Args:
            group_by: date / species / lunar_phase / month / season
        """
        if group_by not in self.GROUP_BY_OPTIONS:
            raise ValueError(f"Unsupported group_by: {group_by}")

        frame = self._trend_frame(group_by)
        if frame.empty:
            return {
                "group_by": group_by,
                "trends": [],
                "summary": {"best_period": None, "most_active_period": None}
            }

        grouped = frame.groupby("period", sort=True).agg(
            record_count=("weight", "size"),
            total_weight=("weight", "sum"),
            avg_weight=("weight", "mean"),
            success_rate=("success", "mean")
        )

        trends = [
            {
                "period": str(period),
                "record_count": int(row["record_count"]),
                "total_weight": round_half_up(float(row["total_weight"]), 2),
                "avg_weight": round_half_up(float(row["avg_weight"]), 2),
                "success_rate": int(round_half_up(float(row["success_rate"]) * 100))
            }
            for period, row in grouped.iterrows()
        ]

        return {
            "group_by": group_by,
            "trends": trends,
            "summary": {
                "best_period": max(trends, key=lambda t: t["avg_weight"]),
                "most_active_period": max(trends, key=lambda t: t["record_count"])
            }
        }

    def _trend_frame(self, group_by: str) -> pd.DataFrame:
        df = self.df
        if df.empty:
            return pd.DataFrame(columns=["period", "weight", "success"])

        if group_by == "species":
            rows = [
                {"period": entry.species, "weight": entry.weight, "success": entry.count > 0}
                for r in self.records
                for entry in r.catches
            ]
            return pd.DataFrame(rows, columns=["period", "weight", "success"])

        if group_by == "date":
            period = df["date"].dt.strftime("%Y-%m-%d")
        elif group_by == "month":
            period = df["date"].dt.strftime("%Y-%m")
        elif group_by == "season":
            period = df["date"].dt.month.map(season_of)
        else:
            period = df["phase"]

        return pd.DataFrame({
            "period": period,
            "weight": df["weight"],
            "success": df["success"]
        })
