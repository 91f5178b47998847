"""Analytics Models - report structures returned by MatchingAnalytics."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from core.exceptions import ValidationError


class TrendBucket(str, Enum):
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"


@dataclass(frozen=True)
class DateRange:
    """Half-open interval [start, end) over history created_at."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValidationError(f"Date range end {self.end} must be after start {self.start}")


@dataclass
class SuccessRateReport:
    total: int
    successful: int
    failed: int
    cancelled: int
    pending: int
    success_rate: float


@dataclass
class AccuracyReport:
    top_k: int
    selected: int
    selected_within_top_k: int
    accuracy: float
    selections_by_rank: Dict[int, int] = field(default_factory=dict)


@dataclass
class TrendPoint:
    bucket_start: date
    total: int
    successful: int
    failed: int
    success_rate: float


@dataclass
class RankPerformance:
    rank: int
    shown: int
    viewed: int
    contacted: int
    selected: int
    view_rate: float
    contact_rate: float
    selection_rate: float


@dataclass
class RankEffectivenessReport:
    ranks: List[RankPerformance]
    overall_view_rate: float
    overall_selection_rate: float
    # rank-1 selection rate divided by rank-2 selection rate
    top_rank_advantage: Optional[float]


@dataclass
class FailureAnalysisReport:
    high_score_threshold: float
    low_score_threshold: float
    missed_opportunities: List[int]
    unexpected_successes: List[int]
    algorithm_accuracy: float
    suggestions: List[str] = field(default_factory=list)


@dataclass
class CandidatePerformance:
    candidate_id: str
    candidate_kind: str
    total: int
    successful: int
    failed: int
    # successful / total
    success_rate: float
    # mean over rows with a recorded satisfaction score; None when no row has one
    average_satisfaction: Optional[float]
    # mean initial score on a 0-100 scale
    average_match_score: float
    performance_score: float
    grade: str
