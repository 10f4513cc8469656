"""
SpendSight FastAPI Application
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spendsight.api.deps import get_analysis_engine
from spendsight.api.v1.router import api_router
from spendsight.config import settings
from spendsight.core.logging import configure_logging
from spendsight.services.analysis import AnalysisEngine

logger = structlog.get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, clean up on shutdown"""
    configure_logging()
    logger.info("Starting application", project=settings.PROJECT_NAME, version=settings.VERSION)
    yield
    logger.info("Shutting down")

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Spending forecasts, anomaly detection and risk insights",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Change in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "SpendSight API",
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health"
    }

@app.get("/health")
def health_check(engine: AnalysisEngine = Depends(get_analysis_engine)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "ml_models": {
            "trained_categories": len(engine.registry),
            "warm_start": engine.warm_start
        }
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "spendsight.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
