"""
資料庫模型

SQLAlchemy ORM 資料表與對應的領域物件：
- lunar_phases: 每日一筆月相 (日期唯一)
- migration_events: 洄游事件 (魚種/日期/類型/座標 複合唯一鍵)
- catch_records: 漁獲紀錄 (關聯當日月相)
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, Boolean, Text, JSON,
    ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from ..lunar import LunarPhase, LunarPhaseType, LunarInfluence
from ..algorithms.migration import MigrationEvent, MigrationEventType

Base = declarative_base()


class LunarPhaseRow(Base):
    """每日月相快取"""
    __tablename__ = "lunar_phases"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, unique=True)
    phase_type = Column(String(20), nullable=False)
    angle = Column(Float, nullable=False)
    illumination = Column(Float, nullable=False)
    distance_km = Column(Float, nullable=False)
    apparent_diameter = Column(Float, nullable=False)
    influence = Column(JSON)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    catch_records = relationship("CatchRecordRow", back_populates="lunar_phase")

    @classmethod
    def from_domain(cls, phase: LunarPhase) -> "LunarPhaseRow":
        row = cls(date=phase.date)
        row.apply(phase)
        return row

    def apply(self, phase: LunarPhase) -> None:
        """以計算結果覆寫欄位"""
        self.phase_type = phase.phase_type.value
        self.angle = phase.angle
        self.illumination = phase.illumination
        self.distance_km = phase.distance_km
        self.apparent_diameter = phase.apparent_diameter
        self.influence = phase.influence.to_dict() if phase.influence else None

    def to_domain(self) -> LunarPhase:
        return LunarPhase(
            date=self.date,
            phase_type=LunarPhaseType(self.phase_type),
            angle=self.angle,
            illumination=self.illumination,
            distance_km=self.distance_km,
            apparent_diameter=self.apparent_diameter,
            influence=LunarInfluence.from_dict(self.influence) if self.influence else None
        )


class MigrationEventRow(Base):
    """洄游事件"""
    __tablename__ = "migration_events"

    id = Column(Integer, primary_key=True)
    species = Column(String(30), nullable=False)
    event_type = Column(String(20), nullable=False)
    date = Column(Date, nullable=False)
    probability = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    location_name = Column(String(200))
    water_temperature = Column(Float)
    depth = Column(Float)
    direction = Column(String(200))
    description = Column(Text)
    data_source = Column(String(100))
    confidence = Column(Float)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        UniqueConstraint(
            "species", "date", "event_type", "latitude", "longitude",
            name="uq_migration_event_key"
        ),
        Index("idx_migration_date", "date"),
    )

    def apply(self, event: MigrationEvent) -> None:
        """寫入非識別鍵欄位"""
        self.probability = event.probability
        self.location_name = event.location_name
        self.water_temperature = event.water_temperature
        self.depth = event.depth
        self.direction = event.direction
        self.description = event.description
        self.data_source = event.data_source
        self.confidence = event.confidence

    def to_domain(self) -> MigrationEvent:
        return MigrationEvent(
            species=self.species,
            event_type=MigrationEventType(self.event_type),
            date=self.date,
            probability=self.probability,
            latitude=self.latitude,
            longitude=self.longitude,
            location_name=self.location_name,
            water_temperature=self.water_temperature,
            depth=self.depth,
            direction=self.direction,
            description=self.description,
            data_source=self.data_source,
            confidence=self.confidence
        )


class CatchRecordRow(Base):
    """漁獲紀錄"""
    __tablename__ = "catch_records"

    id = Column(Integer, primary_key=True)
    date = Column(DateTime, nullable=False)
    latitude = Column(Float)
    longitude = Column(Float)
    location_name = Column(String(200))
    angler = Column(String(100))
    lunar_phase_id = Column(Integer, ForeignKey("lunar_phases.id"))
    total_weight = Column(Float, nullable=False, default=0.0)
    total_count = Column(Integer, nullable=False, default=0)
    success = Column(Boolean, default=True)
    catches = Column(JSON)
    weather = Column(JSON)
    notes = Column(Text)
    verified = Column(Boolean, default=False)
    data_source = Column(String(50), default="USER_REPORT")
    confidence = Column(Float, default=0.8)
    created_at = Column(DateTime, default=datetime.now)

    lunar_phase = relationship("LunarPhaseRow", back_populates="catch_records")

    __table_args__ = (
        Index("idx_catch_date", "date"),
    )

    def to_domain(self) -> "CatchRecord":
        phase = self.lunar_phase
        return CatchRecord(
            id=self.id,
            date=self.date,
            latitude=self.latitude,
            longitude=self.longitude,
            location_name=self.location_name,
            angler=self.angler,
            lunar_phase=phase.phase_type if phase else None,
            illumination=phase.illumination if phase else None,
            total_weight=self.total_weight,
            total_count=self.total_count,
            success=bool(self.success),
            catches=[CatchEntry.from_dict(c) for c in (self.catches or [])],
            weather=self.weather,
            notes=self.notes,
            verified=bool(self.verified),
            data_source=self.data_source,
            confidence=self.confidence
        )


@dataclass
class CatchEntry:
    """單一魚種的漁獲"""
    species: str
    count: int
    weight: float
    depth: Optional[float] = None
    bait: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species": self.species,
            "count": self.count,
            "weight": self.weight,
            "depth": self.depth,
            "bait": self.bait
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatchEntry":
        return cls(
            species=data["species"],
            count=int(data.get("count", 0)),
            weight=float(data.get("weight", 0.0)),
            depth=data.get("depth"),
            bait=data.get("bait")
        )


@dataclass
class CatchRecord:
    """
    漁獲紀錄

    Attributes:
        date: 出海時間
        latitude / longitude: 作業位置
        lunar_phase: 當日月相類型 (由月相快取決定)
        illumination: 當日照明度
        total_weight: 總重 (kg)
        total_count: 總尾數
        success: 是否有漁獲
        catches: 各魚種漁獲
    """
    date: datetime
    latitude: Optional[float]
    longitude: Optional[float]
    total_weight: float
    total_count: int
    success: bool = True
    catches: List[CatchEntry] = field(default_factory=list)
    location_name: Optional[str] = None
    angler: Optional[str] = None
    lunar_phase: Optional[str] = None
    illumination: Optional[float] = None
    weather: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    verified: bool = False
    data_source: str = "USER_REPORT"
    confidence: float = 0.8
    id: Optional[int] = None

    @property
    def species(self) -> List[str]:
        return [c.species for c in self.catches]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "location": {
                "name": self.location_name,
                "latitude": self.latitude,
                "longitude": self.longitude
            },
            "angler": self.angler,
            "lunar_phase": self.lunar_phase,
            "illumination": self.illumination,
            "total_weight": self.total_weight,
            "total_count": self.total_count,
            "success": self.success,
            "catches": [c.to_dict() for c in self.catches],
            "weather": self.weather,
            "notes": self.notes,
            "verified": self.verified,
            "data_source": self.data_source,
            "confidence": self.confidence
        }
