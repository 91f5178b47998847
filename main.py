import json
import logging
import argparse
import sys
from datetime import datetime, timedelta, timezone

from core.analytics.models import DateRange, TrendBucket
from core.app_context import AppContext
from core.config_loader import load_config
from core.exceptions import MatchingError
from core.matcher.models import CandidateKind, MatchingPreference, ScoringStrategy
from core.matcher.service import MatchingEngine
from core.matcher.simulation import SimulationRequest
from database.database import configure_database
from database.init_db import init_db
from database.uow import matching_uow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_simulation(config, args):
    request = SimulationRequest(
        assessment_count=args.assessments,
        candidate_count=args.candidates,
        strategy=args.strategy,
        candidate_kind=CandidateKind(args.kind),
        seed=args.seed,
    )
    engine = MatchingEngine(assessments=None, candidates=None, config=config.matching)
    result = engine.simulate(request, config.simulation)
    print(json.dumps(result.to_dict(), indent=2))


def run_match(config, args):
    preference = MatchingPreference.create(
        preferred_language=args.language,
        preferred_region=args.region,
        min_customer_satisfaction=args.min_satisfaction,
        needs_weekend_availability=args.weekend,
        needs_emergency_availability=args.emergency,
        max_monthly_fee=args.max_fee,
        min_facility_grade=args.min_grade,
        max_results=args.max_results or config.matching.default_max_results,
        latitude=args.lat,
        longitude=args.lon,
    )
    context = AppContext.build(config)
    try:
        with matching_uow() as uow:
            engine = context.matching_engine(uow)
            results = engine.match(args.assessment_id, preference, args.strategy, CandidateKind(args.kind))
        print(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
    finally:
        context.close()


def run_report(config, args):
    context = AppContext.build(config)
    try:
        end = datetime.now(timezone.utc)
        date_range = DateRange(start=end - timedelta(days=args.days), end=end)
        analytics = context.analytics
        success = analytics.get_success_rate(date_range)
        accuracy = analytics.get_recommendation_accuracy(date_range, args.top_k)
        trend = analytics.get_trend(date_range, TrendBucket(args.bucket))
        performance = analytics.get_candidate_performance(date_range, args.kind)
        report = {
            'success_rate': success.success_rate,
            'total': success.total,
            'successful': success.successful,
            'failed': success.failed,
            'top_k': accuracy.top_k,
            'accuracy': accuracy.accuracy,
            'trend': [
                {'bucket_start': p.bucket_start.isoformat(), 'total': p.total, 'success_rate': p.success_rate}
                for p in trend
            ],
            'performance': [
                {'candidate_id': p.candidate_id, 'grade': p.grade, 'performance_score': p.performance_score}
                for p in performance
            ],
        }
        print(json.dumps(report, indent=2))
    finally:
        context.close()


def main():
    parser = argparse.ArgumentParser(description="Care matching engine")
    parser.add_argument('--config', default='config.yaml')
    subparsers = parser.add_subparsers(dest='command', required=True)

    init = subparsers.add_parser('init-db', help='Create tables')
    init.add_argument('--drop', action='store_true', help='Drop existing tables first')

    sim = subparsers.add_parser('simulate', help='Run matching over a synthetic pool')
    sim.add_argument('--assessments', type=int, default=100)
    sim.add_argument('--candidates', type=int, default=500)
    sim.add_argument('--strategy', default=ScoringStrategy.HEALTH_BASED.value,
                     choices=[s.value for s in ScoringStrategy])
    sim.add_argument('--kind', default=CandidateKind.COORDINATOR.value,
                     choices=[k.value for k in CandidateKind])
    sim.add_argument('--seed', type=int, default=None)

    match = subparsers.add_parser('match', help='Recommend candidates for a stored assessment')
    match.add_argument('assessment_id')
    match.add_argument('--strategy', default=ScoringStrategy.HEALTH_BASED.value,
                       choices=[s.value for s in ScoringStrategy])
    match.add_argument('--kind', default=CandidateKind.COORDINATOR.value,
                       choices=[k.value for k in CandidateKind])
    match.add_argument('--language')
    match.add_argument('--region')
    match.add_argument('--min-satisfaction', type=float, default=0.0)
    match.add_argument('--weekend', action='store_true')
    match.add_argument('--emergency', action='store_true')
    match.add_argument('--max-fee', type=float)
    match.add_argument('--min-grade')
    match.add_argument('--max-results', type=int)
    match.add_argument('--lat', type=float)
    match.add_argument('--lon', type=float)

    report = subparsers.add_parser('report', help='Print success and accuracy figures')
    report.add_argument('--days', type=int, default=30)
    report.add_argument('--top-k', type=int, default=None)
    report.add_argument('--bucket', default=TrendBucket.DAY.value, choices=[b.value for b in TrendBucket])
    report.add_argument('--kind', default=CandidateKind.COORDINATOR.value, choices=[k.value for k in CandidateKind])

    args = parser.parse_args()
    config = load_config(args.config)
    configure_database(config.database.url)

    try:
        if args.command == 'init-db':
            init_db(drop_existing=args.drop)
        elif args.command == 'simulate':
            run_simulation(config, args)
        elif args.command == 'match':
            run_match(config, args)
        elif args.command == 'report':
            run_report(config, args)
    except MatchingError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
