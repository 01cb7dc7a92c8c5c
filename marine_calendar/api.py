"""
Marine Calendar REST API

使用 FastAPI 提供 RESTful API 服務。

啟動方式：
    uvicorn marine_calendar.api:app --reload --port 8000

API 文檔：
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import SPECIES, configure_logging, get_species, list_all_species
from .exceptions import QueryValidationError, UnknownSpeciesError, StorageError
from .algorithms import (
    CatchHistoryAnalyzer,
    MigrationEvent,
    MigrationEventType,
    analyze_migration_trends,
    filter_events,
    group_events_by_date,
    merge_events,
    migration_recommendations
)
from .queries import ConditionsQuery, LunarQuery, MigrationQuery, HistoryQuery, parse_query
from .services import Services, get_services
from .storage import (
    CatchSearch,
    CatchRecord,
    CatchEntry,
    filter_by_radius
)

logger = logging.getLogger(__name__)

# ============================================
# Pydantic Models
# ============================================

class HealthResponse(BaseModel):
    """健康檢查響應"""
    status: str
    version: str
    timestamp: str


class ErrorResponse(BaseModel):
    """錯誤響應"""
    error: str
    details: Optional[Any] = None
    timestamp: str


class EventLocation(BaseModel):
    """事件位置"""
    latitude: float = Field(..., ge=-90, le=90, description="緯度")
    longitude: float = Field(..., ge=-180, le=180, description="經度")
    name: Optional[str] = Field(None, description="位置名稱")


class MigrationEventRequest(BaseModel):
    """洄游事件新增/更新請求"""
    species: str = Field(..., description="魚種代碼")
    eventType: MigrationEventType = Field(..., description="arrival / peak / departure")
    date: datetime = Field(..., description="事件日期")
    location: EventLocation
    probability: float = Field(0.5, ge=0, le=1, description="機率")
    description: Optional[str] = None
    dataSource: str = Field("API Input", description="資料來源")
    waterTemperature: Optional[float] = Field(None, description="水溫 (°C)")
    depth: Optional[float] = Field(None, ge=0, description="深度 (m)")


class CatchLocation(BaseModel):
    """漁獲位置"""
    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    depth: Optional[float] = Field(None, ge=0)


class CatchInput(BaseModel):
    """單一魚種漁獲"""
    species: str
    count: int = Field(..., ge=0)
    totalWeight: float = Field(..., ge=0, description="總重 (kg)")
    depth: Optional[float] = Field(None, ge=0)
    bait: Optional[str] = None


class CatchRecordRequest(BaseModel):
    """漁獲紀錄新增請求"""
    date: datetime
    location: CatchLocation
    catches: List[CatchInput] = Field(..., min_length=1)
    weather: Optional[Dict[str, Any]] = None
    success: bool = True
    notes: Optional[str] = None
    angler: Optional[str] = None
    verified: bool = False
    dataSource: str = "USER_REPORT"


def _now() -> str:
    return datetime.now().isoformat()


def query_params(model):
    """從請求查詢字串解析指定查詢模型的依賴"""
    def dependency(request: Request):
        return parse_query(model, request.query_params)
    return dependency


# ============================================
# Application Setup
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """應用程式生命週期管理"""
    logger.info("Marine Calendar API starting up...")
    yield
    logger.info("Marine Calendar API shutting down...")


app = FastAPI(
    title="Marine Calendar API",
    description="""
## 海洋漁況日曆 API (卡斯凱什)

提供以下功能：
- 🌙 **月相** - 每日月相、照明度與魚群活躍度
- 🎣 **每日漁況** - 綜合月相、潮汐與洄游的評分與建議
- 🐟 **洄游事件** - 魚種抵達、高峰與離開的機率預測
- 📊 **歷史漁獲** - 漁獲紀錄查詢與統計分析

### 支援魚種
- 歐洲鱸魚 (SEABASS)
- 金頭鯛 (DORADO)
- 鯖魚 (MACKEREL)
- 沙丁魚 (SARDINE)
- 鮪魚 (TUNA)
- 以及其他沿岸常見魚種
    """,
    version=__version__,
    lifespan=lifespan
)

# CORS 設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================
# Endpoints
# ============================================

@app.get("/", tags=["Root"])
async def root():
    """API 根路徑"""
    return {
        "name": "Marine Calendar API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health"
    }


@app.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """健康檢查"""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=_now()
    )


@app.get("/api/v1/fishing-conditions", tags=["Conditions"])
def get_fishing_conditions(
    query: ConditionsQuery = Depends(query_params(ConditionsQuery)),
    services: Services = Depends(get_services)
):
    """
    獲取每日漁況

    參數：date 或 startDate+endDate (最多 30 天)、latitude、longitude、
    targetSpecies (逗號分隔)、includeHistorical。
    """
    reports = services.aggregator.compute_period(
        query.start,
        query.end,
        query.location,
        query.species,
        query.include_historical
    )

    logger.info(
        f"Fishing conditions {query.start}..{query.end} at "
        f"({query.location.latitude}, {query.location.longitude}): {len(reports)} days"
    )

    return {
        "period": {
            "start_date": query.start.isoformat(),
            "end_date": query.end.isoformat()
        },
        "location": query.location.to_dict(),
        "conditions": [r.to_dict() for r in reports],
        "metadata": {
            "calculated_at": _now(),
            "include_historical": query.include_historical,
            "target_species": query.species or "all"
        }
    }


@app.get("/api/v1/lunar-phases", tags=["Lunar"])
def get_lunar_phases(
    query: LunarQuery = Depends(query_params(LunarQuery)),
    services: Services = Depends(get_services)
):
    """
    獲取月相

    逐日返回月相 (經由快取，forceRecalculate=true 時重算並覆寫)，
    並附上期間內的新月、滿月與上下弦月時刻。
    """
    load = services.lunar_cache.refresh if query.force_recalculate else services.lunar_cache.get_or_compute
    phases = []
    day = query.start
    while day <= query.end:
        phases.append(load(day))
        day += timedelta(days=1)

    events = services.calculator.upcoming_lunar_events(
        query.start, (query.end - query.start).days + 1
    )

    logger.info(f"Lunar phases {query.start}..{query.end}: {len(phases)} days")

    return {
        "period": {
            "start_date": query.start.isoformat(),
            "end_date": query.end.isoformat()
        },
        "phases": [p.to_dict() for p in phases],
        "events": events.to_dict(),
        "metadata": {
            "total_days": len(phases),
            "force_recalculate": query.force_recalculate,
            "calculated_at": _now()
        }
    }


@app.get("/api/v1/migration-events", tags=["Migration"])
def get_migration_events(
    query: MigrationQuery = Depends(query_params(MigrationQuery)),
    services: Services = Depends(get_services)
):
    """
    獲取洄游事件

    計算期間內的洄游事件並與已儲存事件合併 (同識別鍵以已儲存者為準)，
    再依事件類型與最低機率篩選。
    """
    location = query.location

    computed = services.migration_model.upcoming_events(
        query.start, query.end, location, query.species
    )
    stored = services.migration_store.query(
        query.start, query.end, query.species, location.latitude, location.longitude
    )
    events = filter_events(
        merge_events(computed, stored),
        query.event_types,
        query.min_probability
    )

    species_details = []
    for code in dict.fromkeys(e.species for e in events):
        if code not in SPECIES:
            continue
        species_details.append({
            "species": code,
            "pattern": get_species(code).to_dict(),
            "seasonal_availability": services.migration_model.seasonal_availability(code).to_dict()
        })

    logger.info(
        f"Migration events {query.start}..{query.end}: "
        f"{len(computed)} computed, {len(stored)} stored, {len(events)} returned"
    )

    return {
        "period": {
            "start_date": query.start.isoformat(),
            "end_date": query.end.isoformat()
        },
        "location": location.to_dict(),
        "events": [e.to_dict() for e in events],
        "events_by_date": group_events_by_date(events),
        "species_details": species_details,
        "recommendations": migration_recommendations(events, location),
        "trends": analyze_migration_trends(events),
        "metadata": {
            "total_events": len(events),
            "unique_species": len({e.species for e in events}),
            "calculated_at": _now(),
            "filters": {
                "min_probability": query.min_probability or 0,
                "event_types": query.event_types or [t.value for t in MigrationEventType],
                "species": query.species or "all"
            }
        }
    }


@app.post("/api/v1/migration-events", tags=["Migration"])
def upsert_migration_event(
    payload: MigrationEventRequest,
    services: Services = Depends(get_services)
):
    """
    新增或更新洄游事件

    以 (species, date, eventType, latitude, longitude) 為識別鍵。
    """
    species = get_species(payload.species)
    event_type = payload.eventType

    event = MigrationEvent(
        species=species.code,
        event_type=event_type,
        date=payload.date.date(),
        probability=payload.probability,
        latitude=payload.location.latitude,
        longitude=payload.location.longitude,
        location_name=payload.location.name,
        water_temperature=payload.waterTemperature,
        depth=payload.depth,
        description=payload.description or f"{event_type.value} for {species.code}",
        data_source=payload.dataSource,
        confidence=0.8
    )
    stored = services.migration_store.upsert(event)

    return {
        "message": "Migration event created or updated",
        "event": stored.to_dict()
    }


@app.get("/api/v1/historical-data", tags=["History"])
def get_historical_data(
    query: HistoryQuery = Depends(query_params(HistoryQuery)),
    services: Services = Depends(get_services)
):
    """
    查詢歷史漁獲

    analysisType：summary / detailed / correlations / trends；
    trends 依 groupBy 分組 (date / species / lunar_phase / month / season)。
    """
    records = services.catch_store.search(CatchSearch(
        start_date=query.start_date,
        end_date=query.end_date,
        species=query.species,
        lunar_phase=query.lunar_phase,
        min_weight=query.min_weight,
        limit=query.limit
    ))
    original_count = len(records)

    if query.has_location:
        records = filter_by_radius(records, query.latitude, query.longitude, query.radius_km)

    analyzer = CatchHistoryAnalyzer(records)
    if query.analysis_type == "detailed":
        data = analyzer.detailed()
    elif query.analysis_type == "correlations":
        data = analyzer.correlations()
    elif query.analysis_type == "trends":
        data = analyzer.trends(query.group_by)
    else:
        data = analyzer.summary()

    logger.info(
        f"Historical data ({query.analysis_type}): "
        f"{len(records)} of {original_count} records"
    )

    return {
        "period": {
            "start_date": query.start_date.isoformat() if query.start_date else None,
            "end_date": query.end_date.isoformat() if query.end_date else None
        },
        "location": {
            "latitude": query.latitude,
            "longitude": query.longitude,
            "radius_km": query.radius_km
        } if query.has_location else None,
        "filters": {
            "species": query.species,
            "lunar_phase": query.lunar_phase,
            "min_weight": query.min_weight
        },
        "analysis_type": query.analysis_type,
        "group_by": query.group_by,
        "data": data,
        "metadata": {
            "total_records": len(records),
            "original_records": original_count,
            "filtered_by_location": query.has_location,
            "calculated_at": _now()
        }
    }


@app.post("/api/v1/historical-data", tags=["History"])
def add_catch_record(
    payload: CatchRecordRequest,
    services: Services = Depends(get_services)
):
    """
    新增漁獲紀錄

    總重與總尾數由各魚種漁獲加總；當日月相由月相快取決定。
    """
    catches = [
        CatchEntry(
            species=c.species.upper(),
            count=c.count,
            weight=c.totalWeight,
            depth=c.depth if c.depth is not None else payload.location.depth,
            bait=c.bait
        )
        for c in payload.catches
    ]

    record = services.catch_store.add(CatchRecord(
        date=payload.date,
        latitude=payload.location.latitude,
        longitude=payload.location.longitude,
        location_name=payload.location.name,
        angler=payload.angler,
        total_weight=sum(c.weight for c in catches),
        total_count=sum(c.count for c in catches),
        success=payload.success,
        catches=catches,
        weather=payload.weather,
        notes=payload.notes,
        verified=payload.verified,
        data_source=payload.dataSource,
        confidence=1.0 if payload.verified else 0.8
    ))

    logger.info(f"Catch record {record.id} added for {record.date.date()}")

    return {
        "message": "Catch record added",
        "catch_record": {
            "id": record.id,
            "date": record.date.isoformat(),
            "total_weight": record.total_weight,
            "total_count": record.total_count,
            "success": record.success,
            "lunar_phase": record.lunar_phase
        }
    }


@app.get("/api/v1/species", tags=["Reference"])
async def list_species():
    """列出支援的魚種"""
    return {"species": list_all_species()}


# ============================================
# Error Handlers
# ============================================

def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            details=details,
            timestamp=_now()
        ).model_dump()
    )


@app.exception_handler(QueryValidationError)
async def query_validation_handler(request: Request, exc: QueryValidationError):
    logger.info(f"Rejected {request.url.path}: {exc.details}")
    return _error(400, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg", "")
        }
        for err in exc.errors()
    ]
    logger.info(f"Rejected {request.url.path}: {details}")
    return _error(400, "Invalid request body", details)


@app.exception_handler(UnknownSpeciesError)
async def unknown_species_handler(request: Request, exc: UnknownSpeciesError):
    return _error(400, str(exc), [{"field": "species", "message": str(exc)}])


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error(exc.status_code, f"HTTP {exc.status_code}", exc.detail)


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.url.path}: {exc}")
    return _error(500, "Internal Server Error", "Storage unavailable")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
    return _error(500, "Internal Server Error", "Unexpected server error")


# ============================================
# Main
# ============================================

if __name__ == "__main__":
    import uvicorn

    configure_logging()

    uvicorn.run(
        "marine_calendar.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
