"""Similar-trip analysis and fare aggregation."""

from .similarity import AnalyzeQuery, AnalyzeResult, SimilarityAnalyzer
from .statistics import TripStatistics, fare_histogram, summarize_trips

__all__ = [
    "AnalyzeQuery",
    "AnalyzeResult",
    "SimilarityAnalyzer",
    "TripStatistics",
    "fare_histogram",
    "summarize_trips",
]
