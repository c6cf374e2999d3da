from fastapi import APIRouter, HTTPException, Depends
from dashboard.dependencies import get_config, get_store
from dashboard.schemas import IngestionResponse, PipelineRun
from orchestrator.live_pipeline import LiveQuotePipeline
from orchestrator.models import PipelineConfig, PipelineResult
from orchestrator.pipeline import DailyMarketPipeline
from storage.document_store import DocumentStore

router = APIRouter(prefix="/ingestion", tags=["Ingestion"])

def require_manual_ingestion(config: PipelineConfig = Depends(get_config)) -> PipelineConfig:
    """Manual triggers are disabled in production; the scheduler owns ingestion there."""
    if config.is_production:
        raise HTTPException(status_code=403, detail="Manual ingestion is disabled in production")
    return config

def _to_response(result: PipelineResult) -> IngestionResponse:
    data = result.to_dict()
    return IngestionResponse(
        success=result.success,
        message=result.message,
        data=PipelineRun(**{key: data[key] for key in PipelineRun.model_fields}),
    )

@router.post("/daily", response_model=IngestionResponse)
async def trigger_daily(
    config: PipelineConfig = Depends(require_manual_ingestion),
    store: DocumentStore = Depends(get_store),
):
    """
    Scrape the market summary now and store the trading day.
    """
    result = await DailyMarketPipeline(store, config=config).run()
    return _to_response(result)

@router.post("/live", response_model=IngestionResponse)
async def trigger_live(
    config: PipelineConfig = Depends(require_manual_ingestion),
    store: DocumentStore = Depends(get_store),
):
    """
    Store a snapshot of the live price feed now.
    """
    result = await LiveQuotePipeline(store, config=config).run()
    return _to_response(result)
