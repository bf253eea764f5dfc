"""AI analysis module."""

from .engine import (
    ANALYSIS_TYPES,
    AnalysisContext,
    AnalysisResult,
    AnalysisService,
    AnalysisType,
)

__all__ = [
    "ANALYSIS_TYPES",
    "AnalysisContext",
    "AnalysisResult",
    "AnalysisService",
    "AnalysisType",
]
