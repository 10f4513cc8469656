"""
FastAPI Dependencies
"""

from spendsight.services.analysis import AnalysisEngine

analysis_engine = AnalysisEngine()

def get_analysis_engine() -> AnalysisEngine:
    """Analysis engine dependency"""
    return analysis_engine
