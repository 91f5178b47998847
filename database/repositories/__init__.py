from database.repositories.base import BaseRepository
from database.repositories.assessment import AssessmentRepository
from database.repositories.candidate import CandidateRepository
from database.repositories.history import HistoryRepository

__all__ = [
    'BaseRepository',
    'AssessmentRepository',
    'CandidateRepository',
    'HistoryRepository',
]
