"""
Dashboard API dependencies.

The store and config are process-wide; tests replace them via
app.dependency_overrides.
"""
from functools import lru_cache

from orchestrator.models import PipelineConfig
from storage.document_store import DocumentStore
from storage.sql_document_store import create_sql_document_store


@lru_cache(maxsize=1)
def get_config() -> PipelineConfig:
    return PipelineConfig.from_env()


@lru_cache(maxsize=1)
def get_store() -> DocumentStore:
    config = get_config()
    return create_sql_document_store(config.database_url, config.max_batch_operations)
