"""
查詢參數模型

以 Pydantic 模型描述 API 查詢字串 / CLI 參數：
- 欄位別名對應 camelCase 查詢鍵 (startDate, targetSpecies ...)
- 範圍以 Field 限制，跨欄位規則以 validator 檢查
- parse_query() 將 ValidationError 轉為 QueryValidationError，不做靜默修正
"""

import logging
from datetime import date
from typing import Any, List, Literal, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from .config import Location, get_settings, is_known_species, normalize_species_code
from .exceptions import QueryValidationError
from .lunar import LunarPhaseType
from .algorithms.migration import MigrationEventType

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 500

Q = TypeVar("Q", bound="QueryModel")


# ============================================
# 共用
# ============================================

def _split_csv(value: Any) -> Optional[List[str]]:
    """逗號分隔字串轉為列表；空值回傳 None"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    items = [str(item).strip() for item in value if str(item).strip()]
    return items or None


def _check_range(start: Optional[date], end: Optional[date], max_days: Optional[int] = None) -> None:
    if start is None or end is None:
        return
    if end < start:
        raise PydanticCustomError("date_order", "endDate must not be before startDate")
    if max_days is not None and (end - start).days > max_days:
        raise PydanticCustomError(
            "period_too_long",
            "Maximum query period is {max_days} days",
            {"max_days": max_days}
        )


class QueryModel(BaseModel):
    """查詢模型基底：拒絕 NaN / 無限大，日期可帶時間部分"""

    model_config = ConfigDict(
        populate_by_name=True,
        allow_inf_nan=False,
        str_strip_whitespace=True
    )


def _date_only(value):
    # "2024-06-01T10:00:00" 只取日期
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


def parse_query(model: Type[Q], params: Mapping[str, Any]) -> Q:
    """
    驗證查詢參數

    Args:
        model: 查詢模型類別
        params: 以別名為鍵的參數 (QueryParams 或 dict)

    Raises:
        QueryValidationError: 參數錯誤，details 為 [{"field", "message"}]
    """
    data = {
        key: value for key, value in params.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }
    try:
        return model.model_validate(data)
    except ValidationError as e:
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "query",
                "message": err["msg"]
            }
            for err in e.errors()
        ]
        logger.debug(f"{model.__name__} rejected: {details}")
        raise QueryValidationError("Invalid query parameters", details) from None


# ============================================
# 查詢模型
# ============================================

class ConditionsQuery(QueryModel):
    """漁況查詢 (單日 date 或 startDate+endDate)"""
    start: Optional[date] = Field(None, alias="startDate")
    end: Optional[date] = Field(None, alias="endDate")
    day: Optional[date] = Field(None, alias="date", validate_default=True)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    species: Optional[List[str]] = Field(None, alias="targetSpecies")
    include_historical: bool = Field(False, alias="includeHistorical")

    coerce_dates = field_validator("start", "end", "day", mode="before")(_date_only)

    @field_validator("end")
    @classmethod
    def end_in_range(cls, value, info: ValidationInfo):
        _check_range(info.data.get("start"), value, get_settings().forecast.max_conditions_days)
        return value

    @field_validator("day")
    @classmethod
    def day_or_range(cls, value, info: ValidationInfo):
        if value is not None:
            return value
        # 起訖日已個別報錯時不重複
        if "start" not in info.data or "end" not in info.data:
            return value
        if info.data["start"] is None or info.data["end"] is None:
            raise PydanticCustomError("date_required", "Provide date or startDate+endDate")
        return value

    @field_validator("species", mode="before")
    @classmethod
    def species_list(cls, value):
        items = _split_csv(value)
        return [normalize_species_code(s) for s in items] if items else None

    def model_post_init(self, __context) -> None:
        if self.day is not None:
            self.start = self.end = self.day

    @property
    def location(self) -> Location:
        return Location.from_coordinates(self.latitude, self.longitude)


class LunarQuery(QueryModel):
    """月相查詢"""
    start: date = Field(..., alias="startDate")
    end: date = Field(..., alias="endDate")
    force_recalculate: bool = Field(False, alias="forceRecalculate")

    coerce_dates = field_validator("start", "end", mode="before")(_date_only)

    @field_validator("end")
    @classmethod
    def end_in_range(cls, value, info: ValidationInfo):
        _check_range(info.data.get("start"), value, get_settings().forecast.max_lunar_days)
        return value


class MigrationQuery(QueryModel):
    """洄游事件查詢"""
    start: date = Field(..., alias="startDate")
    end: date = Field(..., alias="endDate")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    species: Optional[List[str]] = None
    event_types: Optional[List[str]] = Field(None, alias="eventTypes")
    min_probability: Optional[float] = Field(None, alias="minProbability", ge=0, le=1)

    coerce_dates = field_validator("start", "end", mode="before")(_date_only)

    @field_validator("end")
    @classmethod
    def end_in_range(cls, value, info: ValidationInfo):
        _check_range(info.data.get("start"), value, get_settings().forecast.max_migration_days)
        return value

    @field_validator("species", mode="before")
    @classmethod
    def species_list(cls, value):
        items = _split_csv(value)
        return [normalize_species_code(s) for s in items] if items else None

    @field_validator("species")
    @classmethod
    def known_species(cls, value):
        for code in value or []:
            if not is_known_species(code):
                raise PydanticCustomError("unknown_species", "Unknown species: {code}", {"code": code})
        return value

    @field_validator("event_types", mode="before")
    @classmethod
    def event_type_list(cls, value):
        return _split_csv(value)

    @field_validator("event_types")
    @classmethod
    def known_event_types(cls, value):
        allowed = [t.value for t in MigrationEventType]
        for event_type in value or []:
            if event_type not in allowed:
                raise PydanticCustomError(
                    "unknown_event_type",
                    "Must be one of: {allowed}",
                    {"allowed": ", ".join(allowed)}
                )
        return value

    @property
    def location(self) -> Location:
        return Location.from_coordinates(self.latitude, self.longitude)


class HistoryQuery(QueryModel):
    """歷史漁獲查詢"""
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: float = Field(10.0, alias="radius", gt=0)
    species: Optional[List[str]] = None
    lunar_phase: Optional[str] = Field(None, alias="lunarPhase")
    min_weight: Optional[float] = Field(None, alias="minWeight", ge=0)
    analysis_type: Literal["summary", "detailed", "correlations", "trends"] = Field(
        "summary", alias="analysisType"
    )
    group_by: Literal["date", "species", "lunar_phase", "month", "season"] = Field(
        "date", alias="groupBy"
    )
    limit: int = Field(100, ge=1, le=MAX_HISTORY_LIMIT)

    coerce_dates = field_validator("start_date", "end_date", mode="before")(_date_only)

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, value, info: ValidationInfo):
        _check_range(info.data.get("start_date"), value)
        return value

    @field_validator("species", mode="before")
    @classmethod
    def species_list(cls, value):
        items = _split_csv(value)
        return [normalize_species_code(s) for s in items] if items else None

    @field_validator("lunar_phase")
    @classmethod
    def known_phase(cls, value):
        if value is None:
            return value
        value = value.upper()
        if value not in LunarPhaseType.__members__:
            raise PydanticCustomError("unknown_lunar_phase", "Unknown lunar phase: {phase}", {"phase": value})
        return value

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
