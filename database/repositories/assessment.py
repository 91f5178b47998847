import logging
from typing import List, Optional

from sqlalchemy import select

from core.config_loader import NormalizerConfig
from core.exceptions import NotFoundError
from core.matcher.interfaces import AssessmentSource
from core.matcher.models import CareAssessment
from core.matcher.normalizer import normalize
from database.models import CareAssessmentRecord
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class AssessmentRepository(BaseRepository, AssessmentSource):
    def get_record(self, assessment_id: str) -> Optional[CareAssessmentRecord]:
        stmt = select(CareAssessmentRecord).where(CareAssessmentRecord.id == assessment_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_assessment(self, assessment_id: str) -> CareAssessment:
        record = self.get_record(assessment_id)
        if record is None:
            raise NotFoundError(f"Assessment not found: {assessment_id}")
        return record.to_domain()

    def get_latest_for_subject(self, subject_id: str) -> Optional[CareAssessment]:
        stmt = (
            select(CareAssessmentRecord)
            .where(CareAssessmentRecord.subject_id == subject_id)
            .order_by(CareAssessmentRecord.created_at.desc(), CareAssessmentRecord.id.desc())
            .limit(1)
        )
        record = self.db.execute(stmt).scalar_one_or_none()
        return record.to_domain() if record else None

    def list_for_subject(self, subject_id: str) -> List[CareAssessment]:
        stmt = (
            select(CareAssessmentRecord)
            .where(CareAssessmentRecord.subject_id == subject_id)
            .order_by(CareAssessmentRecord.created_at.asc(), CareAssessmentRecord.id.asc())
        )
        return [r.to_domain() for r in self.db.execute(stmt).scalars().all()]

    def save_assessment(
        self,
        assessment: CareAssessment,
        config: Optional[NormalizerConfig] = None
    ) -> CareAssessmentRecord:
        """
        Store a new assessment version with its derived care-need values.

        Raises:
            InvalidAssessmentError: if the assessment does not normalize
        """
        summary = normalize(assessment, config)
        record = CareAssessmentRecord.from_domain(assessment)
        record.care_need_score = summary.care_need_score
        record.care_severity_label = summary.severity_label
        self.db.add(record)
        self.db.flush()
        logger.info(
            f"Stored assessment {assessment.id} for subject {assessment.subject_id}: "
            f"{summary.severity_label} (score {summary.care_need_score:.0f})"
        )
        return record
