"""
資料庫連線管理

封裝 SQLAlchemy engine 與 session 工廠，提供交易範圍 (session_scope)。
"""

from contextlib import contextmanager
from typing import Iterator, Optional
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_settings
from ..exceptions import StorageError
from .models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    資料庫

    Example:
        >>> db = Database("sqlite://")
        >>> db.create_all()
        >>> with db.session_scope() as session:
        ...     session.add(row)
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        config = get_settings().database
        self.url = url or config.url

        kwargs = {}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # 記憶體資料庫需共用同一連線
                kwargs["poolclass"] = StaticPool

        self.engine = create_engine(
            self.url,
            echo=config.echo if echo is None else echo,
            **kwargs
        )
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        """建立所有資料表 (已存在則略過)"""
        Base.metadata.create_all(self.engine)
        logger.info(f"Database schema ready ({self.engine.url.get_backend_name()})")

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        交易範圍

        正常結束時 commit，例外時 rollback；
        SQLAlchemy 錯誤轉為 StorageError 拋出。
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database transaction failed: {e}")
            raise StorageError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


_database: Optional[Database] = None


def get_database() -> Database:
    """獲取預設資料庫 (依設定建立並初始化資料表)"""
    global _database
    if _database is None:
        _database = Database()
        _database.create_all()
    return _database
