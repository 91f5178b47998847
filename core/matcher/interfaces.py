"""
Matcher Interfaces - Abstract sources the matching engine reads from.

Implementations live in database/repositories (SQLAlchemy) and
core/cache (Redis-backed candidate pools).
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from core.matcher.models import (
    CandidateKind, CareAssessment, MatchingPreference, MatchResult, ScoringStrategy
)


class AssessmentSource(ABC):
    """
    Read access to stored health assessments.
    """

    @abstractmethod
    def get_assessment(self, assessment_id: str) -> CareAssessment:
        """
        Fetch one assessment.

        Raises:
            NotFoundError: if no assessment has this id
        """
        pass


class CandidateStore(ABC):
    """
    Read access to the current coordinator and facility pools.
    """

    @abstractmethod
    def list_candidates_by_region(self, region: str, kind: CandidateKind) -> List:
        """Candidates of a kind serving the region."""
        pass

    @abstractmethod
    def list_all_candidates(self, kind: CandidateKind) -> List:
        """Every candidate of a kind."""
        pass


class HistorySink(ABC):
    """
    Receives the shown result set after a match completes.

    Implementations must not raise: a failed write never fails a match.
    """

    @abstractmethod
    def submit_shown(
        self,
        assessment: CareAssessment,
        results: List[MatchResult],
        preference: MatchingPreference,
        strategy: ScoringStrategy,
        care_grade_level: Optional[int] = None,
    ) -> None:
        pass
