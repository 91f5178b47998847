"""Matcher Module - Care need normalization, eligibility filtering and ranking."""
from core.matcher.models import (
    CandidateKind, ScoringStrategy, CareAssessment, CareNeedSummary,
    LanguageSkill, MatchCandidate, MatchingPreference, ScoredCandidate, MatchResult
)
from core.matcher.normalizer import normalize
from core.matcher.constraint_filter import filter_candidates, explain_rejection
from core.matcher.ranking import assemble

__all__ = [
    'CandidateKind', 'ScoringStrategy', 'CareAssessment', 'CareNeedSummary',
    'LanguageSkill', 'MatchCandidate', 'MatchingPreference', 'ScoredCandidate', 'MatchResult',
    'normalize', 'filter_candidates', 'explain_rejection', 'assemble',
]
