import contextlib
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from database.database import SessionLocal, get_engine
from database.repositories import AssessmentRepository, CandidateRepository, HistoryRepository

logger = logging.getLogger(__name__)


@dataclass
class MatchingUnitOfWork:
    """Repositories sharing one Session (and so one transaction)."""
    session: Session
    assessments: AssessmentRepository
    candidates: CandidateRepository
    history: HistoryRepository


@contextlib.contextmanager
def matching_uow():
    """Per-unit-of-work transaction scope.

    Yields a MatchingUnitOfWork bound to a fresh Session. Commits on
    success, rolls back on exception, always closes.

    Usage:
        with matching_uow() as uow:
            assessment = uow.assessments.get_assessment(assessment_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    get_engine()
    session = SessionLocal()
    try:
        yield MatchingUnitOfWork(
            session=session,
            assessments=AssessmentRepository(session),
            candidates=CandidateRepository(session),
            history=HistoryRepository(session),
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextlib.contextmanager
def history_uow():
    """Transaction scope for history writes only."""
    with matching_uow() as uow:
        yield uow.history
