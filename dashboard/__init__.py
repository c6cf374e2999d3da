"""
Dashboard Package.

FastAPI application exposing manual ingestion triggers, read
access to stored market data, and price alert management.

Modules:
- main: FastAPI application and router wiring
- dependencies: Shared store and configuration
- schemas: Response and request models
- routers/: ingestion, market, alerts
"""
