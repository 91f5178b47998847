from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Integer, Numeric, Index

from core.matcher.models import CareAssessment
from .base import Base, JSONType, utcnow


class CareAssessmentRecord(Base):
    """
    Stored health assessment.

    Rows are never updated in place; a re-assessment is a new row for the
    same subject. care_need_score and care_severity_label cache the
    normalizer output at write time.
    """
    __tablename__ = 'care_assessment'

    id = Column(Text, primary_key=True)
    subject_id = Column(Text, nullable=False)

    mobility_level = Column(Integer, nullable=False)
    eating_level = Column(Integer, nullable=False)
    toilet_level = Column(Integer, nullable=False)
    communication_level = Column(Integer, nullable=False)
    ltci_grade = Column(Integer, nullable=True)
    care_target_status = Column(Integer, nullable=False, default=4)
    meal_type = Column(Integer, nullable=False, default=1)
    disease_types = Column(JSONType, default=list)
    cognitive_difficulty = Column(Boolean, nullable=False, default=False)

    care_need_score = Column(Numeric(7, 2), nullable=True)
    care_severity_label = Column(Text, nullable=True)

    assessed_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index('idx_care_assessment_subject', 'subject_id'),
    )

    def to_domain(self) -> CareAssessment:
        return CareAssessment(
            id=self.id,
            subject_id=self.subject_id,
            mobility_level=self.mobility_level,
            eating_level=self.eating_level,
            toilet_level=self.toilet_level,
            communication_level=self.communication_level,
            ltci_grade=self.ltci_grade,
            care_target_status=self.care_target_status if self.care_target_status is not None else 4,
            meal_type=self.meal_type if self.meal_type is not None else 1,
            disease_types=tuple(self.disease_types or ()),
            cognitive_difficulty=bool(self.cognitive_difficulty),
            assessed_at=self.assessed_at,
        )

    @classmethod
    def from_domain(cls, assessment: CareAssessment) -> "CareAssessmentRecord":
        return cls(
            id=assessment.id,
            subject_id=assessment.subject_id,
            mobility_level=assessment.mobility_level,
            eating_level=assessment.eating_level,
            toilet_level=assessment.toilet_level,
            communication_level=assessment.communication_level,
            ltci_grade=assessment.ltci_grade,
            care_target_status=assessment.care_target_status,
            meal_type=assessment.meal_type,
            disease_types=list(assessment.disease_types),
            cognitive_difficulty=assessment.cognitive_difficulty,
            assessed_at=assessment.assessed_at,
        )
