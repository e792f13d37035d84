"""Rhythm planning service: runs the planner, maps failures and persists results."""
from __future__ import annotations

import logging
import random
from datetime import date, timezone, tzinfo
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from rhythm.core.config import Settings, settings
from rhythm.observability.metrics import log_metric
from rhythm.observability.tracing import trace
from rhythm.planner.blocks import Block, UserRhythm
from rhythm.planner.complexity import ComplexityAnalyzer
from rhythm.planner.errors import FlowStateError, GenericServiceError, RhythmError
from rhythm.planner.generator import StagedFlowGenerator
from rhythm.planner.optimizer import GeneticSettings
from rhythm.planner.planner import RhythmPlanner, TrivialRhythmPlanner
from rhythm.planner.result import Result
from rhythm.planner.time_window import DailyTimeWindow
from rhythm.services.repositories.base import RhythmRepository
from rhythm.services.repositories.factory import get_rhythm_repository

logger = logging.getLogger(__name__)


def planner_timezone(app_settings: Optional[Settings] = None) -> tzinfo:
    name = (app_settings or settings).planner_timezone
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def daily_window(cfg: Settings, day: Optional[date] = None) -> DailyTimeWindow:
    return DailyTimeWindow(day, start_hour=cfg.day_start_hour, end_hour=cfg.day_end_hour, tz=planner_timezone(cfg))


def build_rhythm_planner(
    app_settings: Optional[Settings] = None,
    *,
    day: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> RhythmPlanner:
    """Wire a planner from settings: daily horizon, genetic search parameters and seed."""
    cfg = app_settings or settings
    genetic = GeneticSettings(
        population_size=cfg.ga_population_size,
        generations=cfg.ga_generations,
        mutation_rate=cfg.ga_mutation_rate,
        preserve_hard_placements=cfg.ga_preserve_hard_placements,
    )
    generator = StagedFlowGenerator(
        genetic_settings=genetic,
        rng=rng or random.Random(cfg.ga_random_seed),
        buffer_minutes=cfg.buffer_minutes,
    )
    # The staged pipeline handles every level once tiers are on.
    generators = {level: generator for level in ("simple", "moderate", "complex")}
    return RhythmPlanner(
        daily_window(cfg, day),
        generators=generators if cfg.planner_complexity_tiers else {"simple": generator},
        analyzer=ComplexityAnalyzer(tiered=cfg.planner_complexity_tiers),
    )


def build_fallback_planner(app_settings: Optional[Settings] = None, *, day: Optional[date] = None) -> RhythmPlanner:
    return TrivialRhythmPlanner(daily_window(app_settings or settings, day))


class RhythmService:
    """
    Boundary between callers and the planning engine.

    Every engine failure comes back as ``Result.failure(GenericServiceError)``;
    nothing planner-specific escapes. Storage errors are not planning
    failures and propagate.
    """

    def __init__(
        self,
        planner: RhythmPlanner,
        repository: RhythmRepository,
        *,
        fallback_planner: Optional[RhythmPlanner] = None,
    ) -> None:
        self.planner = planner
        self.repository = repository
        self.fallback_planner = fallback_planner

    def plan_rhythm(
        self,
        user_id: UUID,
        blocks: Sequence[Block],
        *,
        request_id: Optional[str] = None,
    ) -> Result[UserRhythm, GenericServiceError]:
        metadata: Dict[str, Any] = {
            "user_id": str(user_id),
            "input_blocks": len(blocks),
            "fallback_enabled": self.fallback_planner is not None,
            "request_id": request_id,
        }
        started = perf_counter()
        with trace("rhythm.plan", metadata=metadata, user_id=str(user_id), request_id=request_id) as opik_trace:
            outcome = self._run(self.planner, user_id, blocks)
            used_fallback = False
            if outcome.is_failure and self.fallback_planner is not None:
                logger.warning(
                    "Planning failed for user %s (%s: %s); retrying with fallback planner",
                    user_id,
                    outcome.error.name,
                    outcome.error.message,
                )
                outcome = self._run(self.fallback_planner, user_id, blocks)
                used_fallback = True

            if outcome.is_success:
                self.repository.save(outcome.value)

            if opik_trace:
                opik_trace.update(
                    output={
                        "success": outcome.is_success,
                        "fallback": used_fallback,
                        "blocks": len(outcome.value.blocks) if outcome.is_success else 0,
                        "error": outcome.error.name if outcome.is_failure else None,
                    }
                )

        latency_ms = (perf_counter() - started) * 1000
        metric_metadata = {"user_id": str(user_id), "fallback": used_fallback}
        log_metric("rhythm.plan.success", 1 if outcome.is_success else 0, metadata=metric_metadata)
        log_metric("rhythm.plan.latency_ms", round(latency_ms, 2), metadata=metric_metadata)
        if outcome.is_success:
            log_metric("rhythm.plan.block_count", len(outcome.value.blocks), metadata=metric_metadata)
            logger.info(
                "Rhythm %s planned for user %s in %.1f ms", outcome.value.id, user_id, latency_ms
            )
        return outcome

    def get_rhythm(self, user_id: UUID, rhythm_id: UUID) -> Optional[UserRhythm]:
        return self.repository.find_by_id(user_id, rhythm_id)

    def list_rhythms(self, user_id: UUID) -> List[UserRhythm]:
        return self.repository.find_all_by_user(user_id)

    def delete_rhythm(self, user_id: UUID, rhythm_id: UUID) -> bool:
        deleted = self.repository.delete(user_id, rhythm_id)
        if deleted:
            logger.info("Deleted rhythm %s for user %s", rhythm_id, user_id)
        return deleted

    def _run(
        self, planner: RhythmPlanner, user_id: UUID, blocks: Sequence[Block]
    ) -> Result[UserRhythm, GenericServiceError]:
        try:
            result = planner.plan(user_id, blocks)
        except (RhythmError, FlowStateError) as exc:
            logger.warning("Planner raised %s for user %s: %s", type(exc).__name__, user_id, exc)
            return Result.failure(GenericServiceError.from_exception(exc))
        if result.is_failure:
            logger.warning("Planner returned %s for user %s: %s", type(result.error).__name__, user_id, result.error)
        return result.map_error(GenericServiceError.from_exception)


def build_rhythm_service(db: Session, *, day: Optional[date] = None) -> RhythmService:
    """Service wired from settings for one request."""
    fallback = build_fallback_planner(settings, day=day) if settings.planner_fallback_enabled else None
    return RhythmService(
        build_rhythm_planner(settings, day=day),
        get_rhythm_repository(db),
        fallback_planner=fallback,
    )
