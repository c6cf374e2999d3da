from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dashboard.routers import alerts, ingestion, market

app = FastAPI(
    title="DSE Market Data API",
    description="Manual ingestion triggers and read access to stored market data.",
    version="1.0.0",
)

# CORS (Allow local frontend development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(ingestion.router)
app.include_router(market.router)
app.include_router(market.trends_router)
app.include_router(alerts.router)

@app.get("/")
def root():
    return {"status": "ok", "message": "DSE Market Data API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
