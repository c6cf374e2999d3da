from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from dashboard.dependencies import get_store
from dashboard.schemas import DatesResponse, TradingDayResponse, StocksResponse, HistoryResponse, TradingDay
from data_ingestion.normalizers.date_tag import DateTagParser
from storage.document_store import DocumentStore
from storage.repositories.exceptions import RepositoryException, ValidationError
from storage.repositories.market_data import MarketDataReader

router = APIRouter(prefix="/market", tags=["Market Data"])
trends_router = APIRouter(prefix="/trends", tags=["Market Data"])

def get_reader(store: DocumentStore = Depends(get_store)) -> MarketDataReader:
    return MarketDataReader(store)

@router.get("/dates", response_model=DatesResponse)
def get_available_dates(reader: MarketDataReader = Depends(get_reader)):
    """
    Trading days with stored data, oldest first.
    """
    try:
        return DatesResponse(success=True, data=reader.available_dates())
    except RepositoryException as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{date_tag}", response_model=TradingDayResponse)
def get_trading_day(date_tag: str, reader: MarketDataReader = Depends(get_reader)):
    """
    Summary of one trading day.
    """
    try:
        day = reader.get_trading_day(date_tag)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except RepositoryException as e:
        raise HTTPException(status_code=500, detail=str(e))
    if day is None:
        raise HTTPException(status_code=404, detail=f"No data for {date_tag}")
    return TradingDayResponse(
        success=True,
        data=TradingDay(
            date=day["date"],
            display_date=DateTagParser.format_display(day["date"]),
            imported_at=day.get("importedAt"),
            stock_count=day.get("stockCount", 0),
        ),
    )

@router.get("/{date_tag}/stocks", response_model=StocksResponse)
def get_trading_day_stocks(date_tag: str, reader: MarketDataReader = Depends(get_reader)):
    """
    Raw and derived metrics of every instrument for one trading day.
    """
    try:
        if reader.get_trading_day(date_tag) is None:
            raise HTTPException(status_code=404, detail=f"No data for {date_tag}")
        return StocksResponse(success=True, data=reader.list_stocks(date_tag))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except RepositoryException as e:
        raise HTTPException(status_code=500, detail=str(e))

@trends_router.get("/{symbol}/history", response_model=HistoryResponse)
def get_symbol_history(
    symbol: str,
    limit: Optional[int] = Query(default=None, ge=1),
    reader: MarketDataReader = Depends(get_reader),
):
    """
    Per-day history of one symbol, oldest first.
    """
    try:
        history = reader.symbol_history(symbol, limit=limit)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except RepositoryException as e:
        raise HTTPException(status_code=500, detail=str(e))
    return HistoryResponse(success=True, symbol=symbol, data=history)
