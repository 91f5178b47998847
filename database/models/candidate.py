from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, Float, Numeric, Index
from sqlalchemy.orm import relationship

from core.matcher.models import CandidateKind, LanguageSkill, MatchCandidate
from .base import Base, JSONType, utcnow


class MatchCandidateRecord(Base):
    """
    Care coordinator or care facility available for matching.

    Facility-only columns (evaluation, fee) stay NULL for coordinators.
    Served regions live in candidate_region for indexed region lookups.
    """
    __tablename__ = 'match_candidate'

    id = Column(Text, primary_key=True)
    kind = Column(Text, nullable=False)
    name = Column(Text, nullable=False)

    specialties = Column(JSONType, default=list)
    languages = Column(JSONType, default=list)  # [{"code": "ko", "proficiency": "native"}]

    weekend_available = Column(Boolean, nullable=False, default=False)
    emergency_available = Column(Boolean, nullable=False, default=False)

    current_load = Column(Integer, nullable=False, default=0)
    max_load = Column(Integer, nullable=False, default=1)

    experience_years = Column(Float, nullable=False, default=0.0)
    successful_cases = Column(Integer, nullable=False, default=0)
    customer_satisfaction = Column(Float, nullable=False, default=0.0)

    evaluation_grade = Column(Text, nullable=True)
    evaluation_score = Column(Float, nullable=True)
    monthly_fee = Column(Numeric(12, 2), nullable=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    region_links = relationship(
        "CandidateRegion",
        back_populates="candidate",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index('idx_match_candidate_kind', 'kind'),
    )

    @property
    def regions(self):
        return sorted(link.region for link in self.region_links)

    def to_domain(self) -> MatchCandidate:
        return MatchCandidate(
            id=self.id,
            kind=CandidateKind(self.kind),
            name=self.name,
            specialties=frozenset(self.specialties or ()),
            regions=frozenset(self.regions),
            languages=tuple(
                LanguageSkill(code=s['code'], proficiency=s.get('proficiency', 'native'))
                for s in (self.languages or ())
            ),
            weekend_available=bool(self.weekend_available),
            emergency_available=bool(self.emergency_available),
            current_load=self.current_load or 0,
            max_load=self.max_load if self.max_load is not None else 1,
            experience_years=float(self.experience_years or 0.0),
            successful_cases=self.successful_cases or 0,
            customer_satisfaction=float(self.customer_satisfaction or 0.0),
            evaluation_grade=self.evaluation_grade,
            evaluation_score=self.evaluation_score,
            monthly_fee=float(self.monthly_fee) if self.monthly_fee is not None else None,
            latitude=self.latitude,
            longitude=self.longitude,
        )

    @classmethod
    def from_domain(cls, candidate: MatchCandidate) -> "MatchCandidateRecord":
        record = cls(
            id=candidate.id,
            kind=candidate.kind.value,
            name=candidate.name,
            specialties=sorted(candidate.specialties),
            languages=[{'code': s.code, 'proficiency': s.proficiency} for s in candidate.languages],
            weekend_available=candidate.weekend_available,
            emergency_available=candidate.emergency_available,
            current_load=candidate.current_load,
            max_load=candidate.max_load,
            experience_years=candidate.experience_years,
            successful_cases=candidate.successful_cases,
            customer_satisfaction=candidate.customer_satisfaction,
            evaluation_grade=candidate.evaluation_grade,
            evaluation_score=candidate.evaluation_score,
            monthly_fee=candidate.monthly_fee,
            latitude=candidate.latitude,
            longitude=candidate.longitude,
        )
        record.region_links = [CandidateRegion(region=r) for r in sorted(candidate.regions)]
        return record


class CandidateRegion(Base):
    __tablename__ = 'candidate_region'

    candidate_id = Column(Text, ForeignKey('match_candidate.id', ondelete='CASCADE'), primary_key=True)
    region = Column(Text, primary_key=True)

    candidate = relationship("MatchCandidateRecord", back_populates="region_links")

    __table_args__ = (
        Index('idx_candidate_region_region', 'region'),
    )
