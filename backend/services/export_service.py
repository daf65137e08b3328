"""Tabular export of forecasting reports."""

from __future__ import annotations

import pandas as pd

from backend.domain.models import ForecastingReport


EXPORT_COLUMNS = [
    "workflow_id",
    "workflow_name",
    "cycle_time_days",
    "governing_constraint",
    "batches_min",
    "batches_max",
    "volume_min",
    "volume_max",
    "explain",
]


def report_to_frame(report: ForecastingReport) -> pd.DataFrame:
    """One row per workflow joining throughput with its yield range."""
    yield_by_workflow = {item.workflow_id: item for item in report.yield_ranges}
    rows = []
    for estimate in report.throughput:
        yield_range = yield_by_workflow.get(estimate.workflow_id)
        rows.append(
            {
                "workflow_id": estimate.workflow_id,
                "workflow_name": estimate.workflow_name,
                "cycle_time_days": estimate.cycle_time_days,
                "governing_constraint": estimate.governing_constraint,
                "batches_min": estimate.batches_min,
                "batches_max": estimate.batches_max,
                "volume_min": yield_range.volume_min if yield_range else 0,
                "volume_max": yield_range.volume_max if yield_range else 0,
                "explain": estimate.explain,
            }
        )
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def report_to_csv(report: ForecastingReport) -> str:
    return report_to_frame(report).to_csv(index=False)
