"""
Marine Calendar 例外定義

所有模組共用的錯誤類型：
- 查詢參數驗證錯誤 (對應 HTTP 400)
- 未知魚種
- 儲存層錯誤 (對應 HTTP 500)
"""

from typing import Any, Dict, List, Optional


class MarineCalendarError(Exception):
    """系統基礎例外"""


class QueryValidationError(MarineCalendarError):
    """
    查詢參數驗證失敗

    Attributes:
        message: 錯誤摘要
        details: 結構化錯誤列表 [{"field": ..., "message": ...}, ...]
    """

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class UnknownSpeciesError(MarineCalendarError):
    """魚種不在註冊表中"""

    def __init__(self, species: str):
        super().__init__(f"Unknown species: {species}")
        self.species = species


class StorageError(MarineCalendarError):
    """資料庫讀寫失敗"""
