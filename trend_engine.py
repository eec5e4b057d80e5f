import pandas as pd

import utils

TRACKED_KPIS = [
    "budget_utilization",
    "task_completion_rate",
    "quality_score",
    "resource_utilization",
    "overall_health_score",
]

KPI_TARGETS = {
    "budget_utilization": 100,
    "task_completion_rate": 100,
    "quality_score": 90,
    "resource_utilization": 90,
    "overall_health_score": 85,
    "cost_variance_percentage": 0,
    "schedule_variance_percentage": 0,
    "defect_rate": 2,
    "rework_percentage": 5,
    "productivity_index": 100,
    "team_efficiency": 90,
    "risk_exposure": 25,
    "issue_resolution_time": 5,
    "contingency_utilization": 20,
    "return_on_investment": 20,
    "milestone_adherence": 95,
}
DEFAULT_TARGET = 100


def get_kpi_target(metric):
    return KPI_TARGETS.get(metric, DEFAULT_TARGET)


def _unpack_point(point):
    # (timestamp, metrics) or {"date": ..., "metrics": ...}
    if isinstance(point, dict):
        return point["date"], point["metrics"]
    timestamp, metrics = point
    return timestamp, metrics


def format_period(timestamp):
    """
    ISO calendar date of a timestamp; tz-aware stamps are read in UTC.
    """
    ts = pd.Timestamp(timestamp)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC")
    return ts.strftime("%Y-%m-%d")


def generate_kpi_trends(history):
    """
    Projects each tracked KPI of every historical point against its target.
    Input order is kept; callers sort chronologically.
    Returns dict: { metric: [ {period, value, target, variance}, ... ] }
    """
    points = [_unpack_point(p) for p in history]
    trends = {}
    for metric in TRACKED_KPIS:
        target = get_kpi_target(metric)
        series = []
        for timestamp, metrics in points:
            value = utils.to_number(metrics.get(metric))
            series.append({
                "period": format_period(timestamp),
                "value": value,
                "target": target,
                "variance": value - target,
            })
        trends[metric] = series
    return trends


def trends_to_dataframe(trends):
    """
    Long-format frame (metric, period, value, target, variance) for charting.
    """
    rows = []
    for metric, series in trends.items():
        for entry in series:
            rows.append({"metric": metric, **entry})
    return pd.DataFrame(rows, columns=["metric", "period", "value", "target", "variance"])
