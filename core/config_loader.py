import yaml
import os
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///carematch.db"


class CacheConfig(BaseModel):
    """Redis cache for region-keyed candidate pools."""
    enabled: bool = True
    redis_url: str = "redis://localhost:6379/0"
    # Short TTL only bounds memory; writes invalidate explicitly
    ttl_seconds: int = 300


class NormalizerConfig(BaseModel):
    """
    Weights turning ADL levels and LTCI grade into a care-need score.

    care_need_score = sum(level * adl weight) + (7 - ltci_grade) * ltci_weight
    """
    mobility_weight: float = 25.0
    eating_weight: float = 20.0
    toilet_weight: float = 30.0
    communication_weight: float = 25.0
    ltci_weight: float = 10.0

    # ADL thresholds used to estimate a grade when no LTCI grade is present
    grade_thresholds: List[float] = Field(default_factory=lambda: [250.0, 220.0, 180.0, 140.0])

    @field_validator(
        'mobility_weight', 'eating_weight', 'toilet_weight',
        'communication_weight', 'ltci_weight'
    )
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("normalizer weights must be non-negative")
        return value


class HealthWeights(BaseModel):
    """Weights for the health-based strategy components."""
    specialty: float = 0.30
    experience: float = 0.20
    satisfaction: float = 0.25
    availability: float = 0.10
    workload: float = 0.15
    evaluation: float = 0.0

    @field_validator('*')
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("strategy weights must be non-negative")
        return value


def _facility_weights() -> HealthWeights:
    return HealthWeights(
        specialty=0.25,
        experience=0.10,
        satisfaction=0.15,
        availability=0.05,
        workload=0.15,
        evaluation=0.30,
    )


class ScorerConfig(BaseModel):
    """
    Configuration for the scoring strategies.

    Strategies produce a value in [0, 1]; the engine rescales it to the
    presentation scale of the candidate kind.
    """
    coordinator_weights: HealthWeights = Field(default_factory=HealthWeights)
    facility_weights: HealthWeights = Field(default_factory=_facility_weights)

    # Caps for the experience component
    experience_years_cap: float = 10.0
    successful_cases_cap: float = 200.0

    # Specialty score when the assessment implies no specialty
    neutral_specialty_score: float = 0.5

    # Distance at which the distance strategy yields 0.5
    distance_half_score_km: float = 5.0

    coordinator_scale: float = 5.0
    facility_scale: float = 100.0


class MatchingConfig(BaseModel):
    """
    Top-level matching configuration.
    """
    default_max_results: int = 10
    # Pools larger than this are scored in a thread pool
    parallel_threshold: int = 200
    scoring_workers: int = 4
    # Decimal places kept on presented scores
    score_precision: int = 4

    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)
    scorer: ScorerConfig = Field(default_factory=ScorerConfig)


class HistoryConfig(BaseModel):
    """
    Configuration for recording shown recommendations.

    Writes go through an RQ queue when Redis is reachable, else a
    background thread pool in-process.
    """
    enabled: bool = True
    use_async_queue: bool = True
    redis_url: Optional[str] = None
    queue_name: str = "matching_history"
    worker_threads: int = 2
    retry_attempts: int = 3
    retry_wait_seconds: float = 0.5


class AnalyticsConfig(BaseModel):
    default_top_k: int = 3
    high_score_threshold: float = 80.0
    low_score_threshold: float = 60.0
    facility_min_matches: int = 5
    coordinator_min_matches: int = 1


class SimulationConfig(BaseModel):
    seed: int = 42
    regions: List[str] = Field(default_factory=lambda: ["seoul", "gyeonggi", "incheon", "busan"])
    max_results: int = 10


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from another dir), use the repo root file
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        data.setdefault('database', {})
        data['database']['url'] = env_db_url

    # Allow env var override for Redis URL (cache and history queue share it)
    env_redis_url = os.environ.get("REDIS_URL")
    if env_redis_url:
        data.setdefault('cache', {})
        data['cache']['redis_url'] = env_redis_url
        data.setdefault('history', {})
        data['history']['redis_url'] = env_redis_url

    return AppConfig(**data)
