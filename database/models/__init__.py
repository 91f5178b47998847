from .base import Base, JSONType
from .assessment import CareAssessmentRecord
from .candidate import MatchCandidateRecord, CandidateRegion
from .history import MatchingHistory, MatchingHistoryEvent

__all__ = [
    'Base',
    'JSONType',
    'CareAssessmentRecord',
    'MatchCandidateRecord',
    'CandidateRegion',
    'MatchingHistory',
    'MatchingHistoryEvent',
]
