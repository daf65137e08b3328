"""Orchestrates capacity -> throughput -> yield -> bottleneck forecasting.

Every stage is a pure function over frozen values; this service only
sequences them, records one audit entry per completed stage, and assembles
the final report. A failure in any stage propagates and no partial report is
returned. Audit writes are best-effort: a sink failure is logged and the
forecast continues.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional
from uuid import uuid4

from backend.domain.constraints import (
    ForecastingPolicy,
    InvalidProfileError,
    validate_engine_input,
    validate_forecasting_policy,
)
from backend.domain.models import (
    ForecastingEngineInput,
    ForecastingLogEntry,
    ForecastingReport,
)
from backend.repository.forecast_log import (
    ForecastLogSink,
    build_forecast_log,
    utc_now_iso,
)
from backend.services.bottleneck_service import analyze_bottlenecks, build_insights
from backend.services.capacity_service import compute_capacity_snapshot
from backend.services.throughput_service import estimate_throughput
from backend.services.yield_service import calculate_yield_ranges
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def policy_from_settings(settings: Settings) -> ForecastingPolicy:
    policy = ForecastingPolicy(
        throughput_min_ratio=settings.throughput_min_ratio,
        yield_min_ratio=settings.yield_min_ratio,
        bottleneck_threshold=settings.bottleneck_threshold,
        low_throughput_threshold=settings.low_throughput_threshold,
    )
    validate_forecasting_policy(policy)
    return policy


def _default_report_id(facility_id: str) -> str:
    return f"{facility_id}-{uuid4().hex[:12]}"


class ForecastingService:
    """Builds deterministic forecasting reports and exposes the audit log."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        log_sink: Optional[ForecastLogSink] = None,
        clock: Optional[Callable[[], str]] = None,
        report_id_factory: Optional[Callable[[str], str]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._policy = policy_from_settings(self._settings)
        self._log = (
            log_sink
            if log_sink is not None
            else build_forecast_log(
                database_path=self._settings.forecast_log_database_path,
                capacity=self._settings.forecast_log_capacity,
            )
        )
        self._clock = clock or utc_now_iso
        self._report_id_factory = report_id_factory or _default_report_id

    @property
    def policy(self) -> ForecastingPolicy:
        return self._policy

    @property
    def log_sink(self) -> ForecastLogSink:
        return self._log

    def _record(
        self,
        category: str,
        message: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        try:
            self._log.append(category, message, context)
        except Exception as exc:
            logger.warning(
                "Forecast log write dropped | category=%s | error_type=%s | error=%s",
                category,
                type(exc).__name__,
                exc,
            )

    def _record_degradations(self, payload: ForecastingEngineInput) -> None:
        for label, items in (
            ("rooms", payload.rooms),
            ("equipment", payload.equipment),
            ("labor", payload.labor),
        ):
            if not items:
                self._record(
                    "warning",
                    f"No {label} supplied; treating dimension as empty",
                    {"facility_id": payload.facility_id, "resource": label},
                )

    def build_deterministic_forecast(self, payload: ForecastingEngineInput) -> ForecastingReport:
        facility_id = payload.facility_id
        try:
            validate_engine_input(payload)
        except InvalidProfileError as exc:
            self._record(
                "error",
                "Forecast aborted: invalid profile",
                {"facility_id": facility_id, **exc.to_dict()},
            )
            logger.warning(
                "Forecast rejected | facility_id=%s | profile=%s | field=%s",
                facility_id,
                exc.profile,
                exc.field,
            )
            raise

        timestamp = self._clock()
        self._record_degradations(payload)

        capacity = compute_capacity_snapshot(
            facility_id=facility_id,
            horizon_days=payload.horizon_days,
            rooms=payload.rooms,
            equipment=payload.equipment,
            substrate=payload.substrate,
            labor=payload.labor,
            timestamp=timestamp,
        )
        self._record(
            "capacity-snapshot",
            "Capacity snapshot generated",
            {"facility_id": facility_id},
        )

        throughput = estimate_throughput(
            capacity,
            payload.workflows,
            horizon_days=payload.horizon_days,
            policy=self._policy,
        )
        self._record(
            "throughput-estimate",
            "Throughput estimated",
            {"facility_id": facility_id},
        )
        for estimate in throughput:
            if estimate.unknown_rooms or estimate.unknown_equipment:
                self._record(
                    "warning",
                    "Workflow references unknown resources; treated as zero capacity",
                    {
                        "facility_id": facility_id,
                        "workflow_id": estimate.workflow_id,
                        "unknown_rooms": list(estimate.unknown_rooms),
                        "unknown_equipment": list(estimate.unknown_equipment),
                    },
                )

        yield_ranges = calculate_yield_ranges(
            throughput,
            payload.substrate,
            policy=self._policy,
        )
        self._record(
            "yield-range",
            "Yield ranges calculated",
            {"facility_id": facility_id},
        )

        bottlenecks = analyze_bottlenecks(capacity, throughput, policy=self._policy)
        insights = build_insights(
            capacity,
            bottlenecks,
            throughput,
            yield_ranges,
            policy=self._policy,
            timestamp=timestamp,
        )
        self._record(
            "bottleneck-analysis",
            "Bottlenecks analyzed",
            {"facility_id": facility_id, "bottlenecks": len(bottlenecks.bottlenecks)},
        )

        report = ForecastingReport(
            report_id=self._report_id_factory(facility_id),
            facility_id=facility_id,
            timestamp=timestamp,
            capacity=capacity,
            throughput=throughput,
            yield_ranges=yield_ranges,
            bottlenecks=bottlenecks,
            insights=insights,
        )
        self._record(
            "report",
            "Forecast report compiled",
            {"facility_id": facility_id, "report_id": report.report_id},
        )
        logger.info(
            "Forecast report compiled | report_id=%s | workflows=%s | bottlenecks=%s | insights=%s",
            report.report_id,
            len(throughput),
            len(bottlenecks.bottlenecks),
            len(insights),
        )
        return report

    def get_forecast_log(self, limit: int) -> list[ForecastingLogEntry]:
        """Return the most recent `limit` entries, newest first."""
        return self._log.recent(limit)

    def filter_forecast_log(self, category: str) -> list[ForecastingLogEntry]:
        return self._log.filter(category)
