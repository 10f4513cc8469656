"""
ML Analysis API Endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from typing import List, Optional
from datetime import date

from spendsight.api.deps import get_analysis_engine
from spendsight.schemas.analysis import AnalysisResult, ModelStatsResponse
from spendsight.schemas.transaction import Transaction
from spendsight.services.analysis import AnalysisEngine

router = APIRouter()

@router.post("/analyze", response_model=AnalysisResult)
async def analyze_transactions(
    transactions: List[Transaction],
    as_of: Optional[date] = Query(None, description="Reference date for recency scoring"),
    engine: AnalysisEngine = Depends(get_analysis_engine)
):
    """
    Forecast spending per category, flag anomalies and summarize risk
    """
    try:
        return await run_in_threadpool(engine.analyze, transactions, as_of)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Analysis error: {str(e)}")

# Registry reads wait on the analysis lock, so these run in the threadpool
@router.get("/model-stats", response_model=ModelStatsResponse)
def get_model_stats(
    engine: AnalysisEngine = Depends(get_analysis_engine)
):
    """
    Get statistics about the trained per-category models
    """
    return ModelStatsResponse(
        trained_categories=engine.registry.categories(),
        warm_start=engine.warm_start,
        last_analysis_at=engine.last_analysis_at
    )

@router.post("/reset-models")
def reset_models(
    engine: AnalysisEngine = Depends(get_analysis_engine)
):
    """
    Drop every retained per-category model
    """
    with engine.registry.lock:
        dropped = len(engine.registry)
        engine.registry.clear()
    return {
        "message": "Models reset",
        "dropped": dropped
    }
