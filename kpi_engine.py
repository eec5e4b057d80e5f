"""
KPI Engine
Turns task, cost, quality, resource and risk observations into category KPIs,
a weighted overall health score and a performance trend verdict.
"""

import logging
import math

import numpy as np
import pandas as pd

import evm_engine
import utils

logger = logging.getLogger(__name__)

# --- Business Rule Constants ---

COMPLETED_STATUSES = ("done", "completed")
MILESTONE_PRIORITIES = ("high",)

# Assumed value created per unit of spend (30%)
VALUE_CREATION_FACTOR = 1.30

HOURS_PER_DAY = 8
TEAM_EFFICIENCY_BOUNDS = (0.0, 150.0)

QUALITY_DEFAULTS = {
    "defect_rate": 0.0,
    "rework_percentage": 0.0,
    "quality_score": 85.0,
}
DEFECT_PENALTY = 10
REWORK_PENALTY = 5

RESOURCE_DEFAULTS = {
    "resource_utilization": 85.0,
    "productivity_index": 100.0,
    "team_efficiency": 90.0,
}

ISSUE_RESOLUTION_DAYS = 5.0
RISK_DEFAULTS = {
    "risk_exposure": 20.0,
    "issue_resolution_time": ISSUE_RESOLUTION_DAYS,
    "contingency_utilization": 15.0,
}

HEALTH_SCORE_WEIGHTS = {
    "budget": 0.25,
    "schedule": 0.25,
    "quality": 0.25,
    "resource": 0.15,
    "risk": 0.10,
}

TREND_IMPROVING = "Improving"
TREND_STABLE = "Stable"
TREND_DECLINING = "Declining"

INDICATOR_POSITIVE = "positive"
INDICATOR_NEGATIVE = "negative"
INDICATOR_NEUTRAL = "neutral"

TREND_THRESHOLDS = {
    "financial": {"positive_min": -5, "negative_below": -10},
    "schedule": {"positive_min": -5, "negative_below": -10},
    "quality": {"positive_min": 80, "negative_below": 60},
    "resource": {"positive_range": (80, 120), "negative_outside": (60, 140)},
    "risk": {"positive_max": 30, "negative_above": 50},
}

# Indicators on one side must outnumber the other by more than this
TREND_MARGIN = 1

# (minimum score, label), checked top-down
HEALTH_STATUS_BANDS = [
    (85, "Excellent"),
    (70, "Good"),
    (55, "Fair"),
]
HEALTH_STATUS_FLOOR = "Poor"


def _round2(val):
    # half-up, matching the health score rounding
    return math.floor(float(val) * 100 + 0.5) / 100


def _to_task_frame(tasks):
    """
    Accepts a list of task dicts or a DataFrame.
    Always returns a DataFrame carrying normalized 'status' and 'priority' columns.
    """
    if tasks is None:
        logger.warning("tasks is None, treating as an empty task list")
        df = pd.DataFrame()
    elif isinstance(tasks, pd.DataFrame):
        df = tasks.copy()
    else:
        df = pd.DataFrame(list(tasks))

    for col in ("status", "priority"):
        if col not in df.columns:
            df[col] = None
        df[col] = df[col].fillna("").astype(str).str.strip().str.lower()
    return df


def _total_actual_cost(actual_costs):
    if actual_costs is None:
        logger.warning("actual_costs is None, treating as no spend")
        return 0.0
    if isinstance(actual_costs, pd.Series):
        values = actual_costs
    elif isinstance(actual_costs, dict):
        values = pd.Series(list(actual_costs.values()), dtype=object)
    else:
        values = pd.Series(list(actual_costs), dtype=object)
    return float(pd.to_numeric(values, errors="coerce").fillna(0).sum())


def _task_duration_days(df_tasks):
    """
    Per-task duration in days. 'duration_days' wins; otherwise end_date - start_date
    (fractional days). Tasks with neither contribute 0.
    """
    if "duration_days" in df_tasks.columns:
        durations = pd.to_numeric(df_tasks["duration_days"], errors="coerce")
    else:
        durations = pd.Series(np.nan, index=df_tasks.index, dtype=float)

    if "start_date" in df_tasks.columns and "end_date" in df_tasks.columns:
        start = pd.to_datetime(df_tasks["start_date"], errors="coerce", utc=True, format="ISO8601")
        end = pd.to_datetime(df_tasks["end_date"], errors="coerce", utc=True, format="ISO8601")
        from_dates = (end - start).dt.total_seconds() / 86400.0
        durations = durations.fillna(from_dates)

    return durations.fillna(0)


# --- Category Calculators ---

def calculate_financial_kpis(actual_costs, budget_at_completion, evm_metrics=None):
    """
    budget_utilization, cost_variance_percentage and return_on_investment.
    evm_metrics is the output of evm_engine.calculate_evm_metrics, or None.
    """
    budget = utils.to_number(budget_at_completion)
    total_actual_cost = _total_actual_cost(actual_costs)

    budget_utilization = 0.0
    if budget > 0:
        budget_utilization = (total_actual_cost / budget) * 100

    cost_variance_percentage = 0.0
    if evm_metrics is not None and budget > 0:
        cost_variance_percentage = (evm_metrics["CV"] / budget) * 100

    return_on_investment = 0.0
    if total_actual_cost != 0:
        assumed_value = total_actual_cost * VALUE_CREATION_FACTOR
        return_on_investment = ((assumed_value - total_actual_cost) / total_actual_cost) * 100

    return {
        "budget_utilization": _round2(budget_utilization),
        "cost_variance_percentage": _round2(cost_variance_percentage),
        "return_on_investment": _round2(return_on_investment),
    }


def calculate_schedule_kpis(tasks, evm_metrics=None):
    """
    task_completion_rate, schedule_variance_percentage and milestone_adherence.
    High-priority tasks stand in for milestones; no milestones means full adherence.
    """
    df_tasks = _to_task_frame(tasks)
    total_tasks = len(df_tasks)
    is_complete = df_tasks["status"].isin(COMPLETED_STATUSES)

    task_completion_rate = 0.0
    if total_tasks > 0:
        task_completion_rate = (is_complete.sum() / total_tasks) * 100

    schedule_variance_percentage = 0.0
    if evm_metrics is not None and evm_metrics["PV"] != 0:
        schedule_variance_percentage = (evm_metrics["SV"] / evm_metrics["PV"]) * 100

    is_milestone = df_tasks["priority"].isin(MILESTONE_PRIORITIES)
    milestone_count = int(is_milestone.sum())
    milestone_adherence = 100.0
    if milestone_count > 0:
        milestone_adherence = ((is_milestone & is_complete).sum() / milestone_count) * 100

    return {
        "schedule_variance_percentage": _round2(schedule_variance_percentage),
        "task_completion_rate": _round2(task_completion_rate),
        "milestone_adherence": _round2(milestone_adherence),
    }


def calculate_quality_kpis(quality_data=None):
    """
    defect_rate, rework_percentage and quality_score.
    Without quality tracking the project is assumed to be in good shape (score 85).
    """
    if quality_data is None:
        logger.debug("No quality observation supplied, using defaults")
        return dict(QUALITY_DEFAULTS)

    defects = utils.to_number(quality_data.get("defects"))
    total_deliverables = utils.to_number(quality_data.get("total_deliverables"))
    rework_hours = utils.to_number(quality_data.get("rework_hours"))
    total_hours = utils.to_number(quality_data.get("total_hours"))

    defect_rate = (defects / total_deliverables) * 100 if total_deliverables > 0 else 0.0
    rework_percentage = (rework_hours / total_hours) * 100 if total_hours > 0 else 0.0

    # Defects weigh twice as much as rework
    quality_score = max(0.0, 100 - defect_rate * DEFECT_PENALTY - rework_percentage * REWORK_PENALTY)

    return {
        "defect_rate": _round2(defect_rate),
        "rework_percentage": _round2(rework_percentage),
        "quality_score": _round2(quality_score),
    }


def calculate_team_efficiency(tasks, actual_hours):
    """
    Estimated task hours (duration days x 8h) against hours actually booked,
    clamped to [0, 150]. Falls back to 90 when there is nothing to compare.
    """
    df_tasks = _to_task_frame(tasks)
    actual_hours = utils.to_number(actual_hours)
    if df_tasks.empty or actual_hours == 0:
        return RESOURCE_DEFAULTS["team_efficiency"]

    estimated_hours = float((_task_duration_days(df_tasks) * HOURS_PER_DAY).sum())
    if estimated_hours == 0:
        return RESOURCE_DEFAULTS["team_efficiency"]

    efficiency = (estimated_hours / actual_hours) * 100
    lower, upper = TEAM_EFFICIENCY_BOUNDS
    return float(np.clip(efficiency, lower, upper))


def calculate_resource_kpis(resource_data=None, tasks=None):
    """
    resource_utilization, productivity_index and team_efficiency.
    """
    if resource_data is None:
        logger.debug("No resource observation supplied, using defaults")
        return dict(RESOURCE_DEFAULTS)

    allocated_hours = utils.to_number(resource_data.get("allocated_hours"))
    actual_hours = utils.to_number(resource_data.get("actual_hours"))

    resource_utilization = 0.0
    if allocated_hours > 0:
        resource_utilization = (actual_hours / allocated_hours) * 100

    # A missing or zero productivity reading counts as baseline
    productivity_index = utils.to_number(resource_data.get("productivity"))
    if productivity_index == 0:
        productivity_index = RESOURCE_DEFAULTS["productivity_index"]

    if tasks is None:
        team_efficiency = RESOURCE_DEFAULTS["team_efficiency"]
    else:
        team_efficiency = calculate_team_efficiency(tasks, actual_hours)

    return {
        "resource_utilization": _round2(resource_utilization),
        "productivity_index": _round2(productivity_index),
        "team_efficiency": _round2(team_efficiency),
    }


def calculate_risk_kpis(risk_data=None):
    """
    risk_exposure, issue_resolution_time and contingency_utilization.
    """
    if risk_data is None:
        logger.debug("No risk observation supplied, using defaults")
        return dict(RISK_DEFAULTS)

    total_risks = utils.to_number(risk_data.get("total_risks"))
    high_risks = utils.to_number(risk_data.get("high_risks"))
    contingency_used = utils.to_number(risk_data.get("contingency_used"))
    contingency_total = utils.to_number(risk_data.get("contingency_total"))

    risk_exposure = (high_risks / total_risks) * 100 if total_risks > 0 else 0.0
    contingency_utilization = 0.0
    if contingency_total > 0:
        contingency_utilization = (contingency_used / contingency_total) * 100

    return {
        "risk_exposure": _round2(risk_exposure),
        "issue_resolution_time": _round2(ISSUE_RESOLUTION_DAYS),
        "contingency_utilization": _round2(contingency_utilization),
    }


# --- Aggregation ---

def calculate_category_scores(metrics):
    """
    Normalizes each KPI category to a 0-100 'goodness' score.
    """
    return {
        "budget": max(0.0, 100 - abs(metrics["cost_variance_percentage"])),
        "schedule": max(0.0, 100 - abs(metrics["schedule_variance_percentage"])),
        "quality": metrics["quality_score"],
        "resource": (metrics["resource_utilization"] + metrics["team_efficiency"]) / 2,
        "risk": max(0.0, 100 - metrics["risk_exposure"]),
    }


def calculate_overall_health_score(metrics):
    """
    Weighted sum of the category scores, clamped to 0-100, rounded half-up.
    """
    scores = calculate_category_scores(metrics)
    weighted = sum(scores[cat] * weight for cat, weight in HEALTH_SCORE_WEIGHTS.items())
    clamped = min(100.0, max(0.0, weighted))
    return int(math.floor(clamped + 0.5))


def evaluate_trend_indicators(metrics):
    """
    Classifies each category as positive, negative or neutral.
    Returns dict: { category: indicator }
    """
    def classify_min(value, rule):
        if value >= rule["positive_min"]:
            return INDICATOR_POSITIVE
        if value < rule["negative_below"]:
            return INDICATOR_NEGATIVE
        return INDICATOR_NEUTRAL

    indicators = {
        "financial": classify_min(metrics["cost_variance_percentage"], TREND_THRESHOLDS["financial"]),
        "schedule": classify_min(metrics["schedule_variance_percentage"], TREND_THRESHOLDS["schedule"]),
        "quality": classify_min(metrics["quality_score"], TREND_THRESHOLDS["quality"]),
    }

    utilization = metrics["resource_utilization"]
    low_ok, high_ok = TREND_THRESHOLDS["resource"]["positive_range"]
    low_bad, high_bad = TREND_THRESHOLDS["resource"]["negative_outside"]
    if low_ok <= utilization <= high_ok:
        indicators["resource"] = INDICATOR_POSITIVE
    elif utilization < low_bad or utilization > high_bad:
        indicators["resource"] = INDICATOR_NEGATIVE
    else:
        indicators["resource"] = INDICATOR_NEUTRAL

    exposure = metrics["risk_exposure"]
    if exposure <= TREND_THRESHOLDS["risk"]["positive_max"]:
        indicators["risk"] = INDICATOR_POSITIVE
    elif exposure > TREND_THRESHOLDS["risk"]["negative_above"]:
        indicators["risk"] = INDICATOR_NEGATIVE
    else:
        indicators["risk"] = INDICATOR_NEUTRAL

    return indicators


def determine_performance_trend(metrics):
    """
    Majority vote over the category indicators. A lead of one is not enough,
    near-balanced signals resolve to Stable.
    """
    indicators = evaluate_trend_indicators(metrics)
    positives = sum(1 for v in indicators.values() if v == INDICATOR_POSITIVE)
    negatives = sum(1 for v in indicators.values() if v == INDICATOR_NEGATIVE)

    if positives > negatives + TREND_MARGIN:
        return TREND_IMPROVING
    if negatives > positives + TREND_MARGIN:
        return TREND_DECLINING
    return TREND_STABLE


# --- Entry Point ---

def calculate_kpi_metrics(tasks, actual_costs, budget_at_completion,
                          evm_data=None, quality_data=None, resource_data=None, risk_data=None):
    """
    Full KPI assessment of one project.
    Always returns a complete dict: the fifteen category KPIs,
    'overall_health_score' (int 0-100) and 'performance_trend'.
    """
    if budget_at_completion is None:
        logger.warning("budget_at_completion is None, treating as 0")

    evm_metrics = None
    if evm_data is not None:
        evm_metrics = evm_engine.calculate_evm_metrics(evm_data, budget_at_completion)

    # Category calculators are independent of each other
    metrics = {}
    metrics.update(calculate_financial_kpis(actual_costs, budget_at_completion, evm_metrics))
    metrics.update(calculate_schedule_kpis(tasks, evm_metrics))
    metrics.update(calculate_quality_kpis(quality_data))
    metrics.update(calculate_resource_kpis(resource_data, tasks))
    metrics.update(calculate_risk_kpis(risk_data))

    metrics["overall_health_score"] = calculate_overall_health_score(metrics)
    metrics["performance_trend"] = determine_performance_trend(metrics)

    logger.debug(
        "KPI assessment: health=%s trend=%s",
        metrics["overall_health_score"], metrics["performance_trend"],
    )
    return metrics


def get_overall_health_status(overall_health_score):
    """
    Dashboard label for the overall health score.
    """
    for minimum, label in HEALTH_STATUS_BANDS:
        if overall_health_score >= minimum:
            return label
    return HEALTH_STATUS_FLOOR


def calculate_budget_summary(actual_costs, budget_at_completion):
    """
    Budget position: BAC, spend to date, utilization % and what is left.
    """
    budget = utils.to_number(budget_at_completion)
    total_actual_cost = _total_actual_cost(actual_costs)
    utilization = (total_actual_cost / budget) * 100 if budget > 0 else 0.0
    return {
        "budget_at_completion": budget,
        "total_actual_cost": total_actual_cost,
        "budget_utilization": _round2(utilization),
        "remaining_budget": budget - total_actual_cost,
    }
