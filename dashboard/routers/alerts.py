from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from alerts.types import AlertRule, AlertValidationError
from dashboard.dependencies import get_store
from dashboard.schemas import AlertCreateRequest, AlertRecord, AlertResponse, AlertsResponse
from storage.document_store import DocumentStore
from storage.repositories.alerts import AlertRepository
from storage.repositories.exceptions import RepositoryException

router = APIRouter(prefix="/alerts", tags=["Price Alerts"])

def get_repository(store: DocumentStore = Depends(get_store)) -> AlertRepository:
    return AlertRepository(store)

def _record(rule: AlertRule) -> AlertRecord:
    return AlertRecord(
        alert_id=rule.alert_id,
        symbol=rule.symbol,
        target_price=rule.target_price,
        condition=rule.condition.value,
        status=rule.status.value,
        user_id=rule.user_id,
        created_at=rule.created_at,
    )

@router.post("", response_model=AlertResponse)
def create_alert(request: AlertCreateRequest, repository: AlertRepository = Depends(get_repository)):
    """
    Create an ACTIVE price alert.
    """
    try:
        rule = AlertRule.create(
            symbol=request.symbol,
            target_price=request.target_price,
            condition=request.condition,
            user_id=request.user_id,
            user_email=request.user_email,
            fcm_token=request.fcm_token,
        )
    except AlertValidationError as e:
        raise HTTPException(status_code=400, detail=e.reason)

    try:
        stored = repository.create_alert(rule)
    except RepositoryException as e:
        raise HTTPException(status_code=500, detail=f"Failed to save alert: {e.message}")
    return AlertResponse(success=True, data=_record(stored))

@router.get("/active", response_model=AlertsResponse)
def get_active_alerts(user_id: Optional[str] = None, repository: AlertRepository = Depends(get_repository)):
    """
    ACTIVE alerts, optionally for one user.
    """
    try:
        data = [_record(rule) for rule in repository.list_active(user_id=user_id)]
    except RepositoryException as e:
        raise HTTPException(status_code=500, detail=str(e))
    return AlertsResponse(success=True, data=data)
