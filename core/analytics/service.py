#!/usr/bin/env python3
"""
Matching Analytics - read-only aggregation over matching history.

Every report folds the history rows created inside a DateRange into
their current state and aggregates in memory. Nothing here writes.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional

from core.analytics.models import (
    AccuracyReport, CandidatePerformance, DateRange, FailureAnalysisReport, RankEffectivenessReport,
    RankPerformance, SuccessRateReport, TrendBucket, TrendPoint
)
from core.config_loader import AnalyticsConfig, ScorerConfig
from core.exceptions import ValidationError
from core.matcher.models import CandidateKind
from database.uow import history_uow
from history.models import MatchingHistoryView, Outcome

logger = logging.getLogger(__name__)


def _rate(part: int, total: int) -> float:
    return round(part / total, 4) if total else 0.0


# success weight, then (floor, grade) pairs checked top down
_PERFORMANCE_GRADES = {
    CandidateKind.FACILITY: (0.7, [(90.0, "A+"), (80.0, "A"), (70.0, "B+"), (60.0, "B"), (50.0, "C"), (0.0, "D")]),
    CandidateKind.COORDINATOR: (0.6, [
        (85.0, "EXCELLENT"), (75.0, "VERY_GOOD"), (65.0, "GOOD"), (50.0, "FAIR"), (0.0, "NEEDS_IMPROVEMENT")
    ]),
}


def bucket_start(moment: datetime, bucket: TrendBucket) -> date:
    day = moment.date()
    if bucket == TrendBucket.WEEK:
        # ISO weeks start on Monday
        return day - timedelta(days=day.weekday())
    if bucket == TrendBucket.MONTH:
        return day.replace(day=1)
    return day


class MatchingAnalytics:

    def __init__(
        self,
        uow_factory: Callable = history_uow,
        config: Optional[AnalyticsConfig] = None,
        scorer_config: Optional[ScorerConfig] = None,
    ):
        self._uow = uow_factory
        self.config = config or AnalyticsConfig()
        self.scorer_config = scorer_config or ScorerConfig()

    def _load(self, date_range: DateRange) -> List[MatchingHistoryView]:
        with self._uow() as repo:
            records = repo.list_between(date_range.start, date_range.end)
            return [MatchingHistoryView.from_record(r) for r in records]

    def _score_percent(self, view: MatchingHistoryView) -> float:
        """Initial score on a 0-100 scale regardless of candidate kind."""
        if view.candidate_kind == 'FACILITY':
            scale = self.scorer_config.facility_scale
        else:
            scale = self.scorer_config.coordinator_scale
        return view.initial_match_score / scale * 100.0 if scale else 0.0

    @staticmethod
    def _success_report(views: List[MatchingHistoryView]) -> SuccessRateReport:
        counts = defaultdict(int)
        for view in views:
            counts[view.outcome] += 1
        successful = counts[Outcome.SUCCESSFUL]
        failed = counts[Outcome.FAILED]
        return SuccessRateReport(
            total=len(views),
            successful=successful,
            failed=failed,
            cancelled=counts[Outcome.CANCELLED],
            pending=counts[Outcome.PENDING],
            success_rate=_rate(successful, successful + failed),
        )

    def get_success_rate(self, date_range: DateRange) -> SuccessRateReport:
        """successful / (successful + failed); 0.0 when neither exists."""
        report = self._success_report(self._load(date_range))
        logger.debug(f"Success rate {report.success_rate} over {report.total} rows")
        return report

    def get_recommendation_accuracy(self, date_range: DateRange, top_k: Optional[int] = None) -> AccuracyReport:
        """Share of selected recommendations that were shown within the top K."""
        top_k = top_k if top_k is not None else self.config.default_top_k
        if top_k <= 0:
            raise ValidationError(f"top_k must be positive, got {top_k}")

        selected = [v for v in self._load(date_range) if v.selected]
        by_rank: Dict[int, int] = defaultdict(int)
        for view in selected:
            by_rank[view.rank] += 1
        within = sum(1 for v in selected if v.rank <= top_k)

        return AccuracyReport(
            top_k=top_k,
            selected=len(selected),
            selected_within_top_k=within,
            accuracy=_rate(within, len(selected)),
            selections_by_rank=dict(sorted(by_rank.items())),
        )

    def get_trend(self, date_range: DateRange, bucket: TrendBucket = TrendBucket.DAY) -> List[TrendPoint]:
        """Success rate per day, week or month, for buckets that have rows."""
        bucket = TrendBucket(bucket)
        grouped: Dict[date, List[MatchingHistoryView]] = defaultdict(list)
        for view in self._load(date_range):
            grouped[bucket_start(view.created_at, bucket)].append(view)

        points = []
        for start in sorted(grouped):
            report = self._success_report(grouped[start])
            points.append(TrendPoint(
                bucket_start=start,
                total=report.total,
                successful=report.successful,
                failed=report.failed,
                success_rate=report.success_rate,
            ))
        return points

    def get_rank_effectiveness(self, date_range: DateRange) -> RankEffectivenessReport:
        """View, contact and selection rates per shown rank."""
        by_rank: Dict[int, List[MatchingHistoryView]] = defaultdict(list)
        views = self._load(date_range)
        for view in views:
            by_rank[view.rank].append(view)

        ranks = []
        for rank in sorted(by_rank):
            rows = by_rank[rank]
            viewed = sum(1 for v in rows if v.viewed)
            contacted = sum(1 for v in rows if v.contacted)
            selected = sum(1 for v in rows if v.selected)
            ranks.append(RankPerformance(
                rank=rank,
                shown=len(rows),
                viewed=viewed,
                contacted=contacted,
                selected=selected,
                view_rate=_rate(viewed, len(rows)),
                contact_rate=_rate(contacted, len(rows)),
                selection_rate=_rate(selected, len(rows)),
            ))

        rates = {p.rank: p.selection_rate for p in ranks}
        advantage = None
        if rates.get(2):
            advantage = round(rates.get(1, 0.0) / rates[2], 4)

        return RankEffectivenessReport(
            ranks=ranks,
            overall_view_rate=_rate(sum(p.viewed for p in ranks), len(views)),
            overall_selection_rate=_rate(sum(p.selected for p in ranks), len(views)),
            top_rank_advantage=advantage,
        )

    def get_failure_analysis(
        self,
        date_range: DateRange,
        high_score_threshold: Optional[float] = None,
        low_score_threshold: Optional[float] = None,
    ) -> FailureAnalysisReport:
        """
        Find where the initial score disagreed with the outcome.

        missed opportunities: score >= high threshold but FAILED
        unexpected successes: score <= low threshold but SUCCESSFUL
        Thresholds are on a 0-100 scale for both candidate kinds.
        """
        high = high_score_threshold if high_score_threshold is not None else self.config.high_score_threshold
        low = low_score_threshold if low_score_threshold is not None else self.config.low_score_threshold

        missed, unexpected = [], []
        for view in self._load(date_range):
            percent = self._score_percent(view)
            if view.outcome == Outcome.FAILED and percent >= high:
                missed.append(view.id)
            elif view.outcome == Outcome.SUCCESSFUL and percent <= low:
                unexpected.append(view.id)

        disagreements = len(missed) + len(unexpected)
        if disagreements:
            accuracy = round((1.0 - max(len(missed), len(unexpected)) / disagreements) * 100.0, 2)
        else:
            accuracy = 100.0

        suggestions = []
        if len(missed) > len(unexpected):
            suggestions.append("High-scoring matches fail often: revisit preference weights")
            suggestions.append("Check that candidate capacity and availability data is current")
        elif len(unexpected) > len(missed):
            suggestions.append("Low-scoring matches succeed often: look for unweighted preferences")
            suggestions.append("Review the score components for under-weighted factors")

        return FailureAnalysisReport(
            high_score_threshold=high,
            low_score_threshold=low,
            missed_opportunities=missed,
            unexpected_successes=unexpected,
            algorithm_accuracy=accuracy,
            suggestions=suggestions,
        )

    def get_candidate_performance(
        self,
        date_range: DateRange,
        kind: str,
        min_matches: Optional[int] = None,
    ) -> List[CandidatePerformance]:
        """
        Per-candidate success, satisfaction and a letter grade.

        Candidates with fewer than min_matches rows in the range are left out.
        Facilities weigh success 0.7 and satisfaction 0.3, coordinators 0.6
        and 0.4; satisfaction is lifted to 0-100 by a factor of 20. Ordered
        by performance score, best first.
        """
        try:
            kind = CandidateKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown candidate kind: {kind!r}")
        if min_matches is None:
            if kind == CandidateKind.FACILITY:
                min_matches = self.config.facility_min_matches
            else:
                min_matches = self.config.coordinator_min_matches
        if min_matches <= 0:
            raise ValidationError(f"min_matches must be positive, got {min_matches}")

        grouped: Dict[str, List[MatchingHistoryView]] = defaultdict(list)
        for view in self._load(date_range):
            if view.candidate_kind == kind.value:
                grouped[view.candidate_id].append(view)

        success_weight, grades = _PERFORMANCE_GRADES[kind]
        reports = []
        for candidate_id, rows in grouped.items():
            if len(rows) < min_matches:
                continue
            successful = sum(1 for v in rows if v.outcome == Outcome.SUCCESSFUL)
            rated = [v.satisfaction_score for v in rows if v.satisfaction_score is not None]
            satisfaction = round(sum(rated) / len(rated), 2) if rated else None
            success_rate = _rate(successful, len(rows))

            score = round(
                success_rate * 100.0 * success_weight + (satisfaction or 0.0) * 20.0 * (1.0 - success_weight), 2
            )
            grade = next((label for floor, label in grades if score >= floor), grades[-1][1])
            reports.append(CandidatePerformance(
                candidate_id=candidate_id,
                candidate_kind=kind.value,
                total=len(rows),
                successful=successful,
                failed=sum(1 for v in rows if v.outcome == Outcome.FAILED),
                success_rate=success_rate,
                average_satisfaction=satisfaction,
                average_match_score=round(sum(self._score_percent(v) for v in rows) / len(rows), 2),
                performance_score=score,
                grade=grade,
            ))

        reports.sort(key=lambda r: (-r.performance_score, r.candidate_id))
        logger.debug(f"Performance for {len(reports)} {kind.value} candidates over {len(grouped)} seen")
        return reports
