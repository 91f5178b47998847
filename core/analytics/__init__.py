"""Analytics Module - Read-only reports over matching history."""
from core.analytics.models import (
    DateRange, TrendBucket, SuccessRateReport, AccuracyReport, TrendPoint,
    RankPerformance, RankEffectivenessReport, FailureAnalysisReport, CandidatePerformance
)
from core.analytics.service import MatchingAnalytics

__all__ = [
    'MatchingAnalytics',
    'DateRange',
    'TrendBucket',
    'SuccessRateReport',
    'AccuracyReport',
    'TrendPoint',
    'RankPerformance',
    'RankEffectivenessReport',
    'FailureAnalysisReport',
    'CandidatePerformance',
]
