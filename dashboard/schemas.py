"""
Pydantic schemas for Dashboard API requests and responses.
"""
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field

# =======================
# COMMON
# =======================

def _utc_now() -> datetime:
    return datetime.now(timezone.utc)

class BaseResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utc_now)

# =======================
# 1. INGESTION
# =======================

class PipelineRun(BaseModel):
    status: str  # created, already_exists, failed
    state: str
    date_tag: Optional[str] = None
    snapshot_id: Optional[str] = None
    stock_count: int = 0
    skipped_rows: int = 0
    batches_committed: int = 0
    failed_state: Optional[str] = None
    error_type: Optional[str] = None
    duration_seconds: float = 0.0
    timings: Dict[str, float] = {}

class IngestionResponse(BaseResponse):
    data: PipelineRun

# =======================
# 2. MARKET DATA
# =======================

class TradingDay(BaseModel):
    date: str
    display_date: str
    imported_at: Optional[str] = None
    stock_count: int

class DatesResponse(BaseResponse):
    data: List[str]

class TradingDayResponse(BaseResponse):
    data: TradingDay

class StocksResponse(BaseResponse):
    data: List[Dict[str, Any]]

class HistoryResponse(BaseResponse):
    symbol: str
    data: List[Dict[str, Any]]

# =======================
# 3. PRICE ALERTS
# =======================

class AlertCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: Any = None
    target_price: Any = Field(default=None, alias="targetPrice")
    condition: Any = None
    user_id: str = Field(default="", alias="userId")
    user_email: Optional[str] = Field(default=None, alias="userEmail")
    fcm_token: Optional[str] = Field(default=None, alias="fcmToken")

class AlertRecord(BaseModel):
    alert_id: str
    symbol: str
    target_price: float
    condition: str
    status: str
    user_id: str
    created_at: Optional[str] = None

class AlertResponse(BaseResponse):
    data: AlertRecord

class AlertsResponse(BaseResponse):
    data: List[AlertRecord]
