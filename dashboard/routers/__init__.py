"""
Dashboard API Routers.
"""
from . import alerts, ingestion, market

__all__ = ["alerts", "ingestion", "market"]
