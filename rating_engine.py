import logging

import utils

logger = logging.getLogger(__name__)

# Rating Constants
RATING_EXCELLENT = "Excellent"
RATING_GOOD = "Good"
RATING_FAIR = "Fair"
RATING_POOR = "Poor"

RATING_ORDER = [RATING_POOR, RATING_FAIR, RATING_GOOD, RATING_EXCELLENT]

# metric -> thresholds (excellent, good, fair, poor), direction, and whether
# the magnitude is rated instead of the signed value.
# budget_utilization keeps the inherited plain >= ladder: anything >= 95
# (including heavy overspend) is Excellent, and the 105 step is unreachable.
RATING_THRESHOLDS = {
    # Financial
    "budget_utilization": {"thresholds": (95, 105, 85, 115), "lower_is_better": False, "absolute": False},
    "cost_variance_percentage": {"thresholds": (2, 5, 10, 20), "lower_is_better": True, "absolute": True},
    "return_on_investment": {"thresholds": (25, 15, 10, 5), "lower_is_better": False, "absolute": False},
    # Schedule
    "schedule_variance_percentage": {"thresholds": (2, 5, 10, 20), "lower_is_better": True, "absolute": True},
    "task_completion_rate": {"thresholds": (95, 85, 75, 65), "lower_is_better": False, "absolute": False},
    "milestone_adherence": {"thresholds": (95, 85, 75, 65), "lower_is_better": False, "absolute": False},
    # Quality
    "quality_score": {"thresholds": (90, 80, 70, 60), "lower_is_better": False, "absolute": False},
    "defect_rate": {"thresholds": (1, 3, 5, 10), "lower_is_better": True, "absolute": False},
    "rework_percentage": {"thresholds": (3, 7, 12, 20), "lower_is_better": True, "absolute": False},
    # Resource
    "resource_utilization": {"thresholds": (85, 75, 65, 55), "lower_is_better": False, "absolute": False},
    "productivity_index": {"thresholds": (110, 95, 85, 75), "lower_is_better": False, "absolute": False},
    "team_efficiency": {"thresholds": (95, 85, 75, 65), "lower_is_better": False, "absolute": False},
    # Risk
    "risk_exposure": {"thresholds": (15, 25, 35, 50), "lower_is_better": True, "absolute": False},
    "issue_resolution_time": {"thresholds": (3, 5, 7, 10), "lower_is_better": True, "absolute": False},
    "contingency_utilization": {"thresholds": (15, 25, 35, 50), "lower_is_better": True, "absolute": False},
    # Overall
    "overall_health_score": {"thresholds": (90, 80, 70, 60), "lower_is_better": False, "absolute": False},
}


def get_rating(value, thresholds, lower_is_better=False):
    """
    Classifies a value against (excellent, good, fair, poor) thresholds.
    The poor threshold is informational: anything past 'fair' is Poor.
    """
    excellent, good, fair = thresholds[0], thresholds[1], thresholds[2]

    if lower_is_better:
        if value <= excellent:
            return RATING_EXCELLENT
        if value <= good:
            return RATING_GOOD
        if value <= fair:
            return RATING_FAIR
        return RATING_POOR

    if value >= excellent:
        return RATING_EXCELLENT
    if value >= good:
        return RATING_GOOD
    if value >= fair:
        return RATING_FAIR
    return RATING_POOR


def rate_metric(metric, value):
    rule = RATING_THRESHOLDS[metric]
    value = utils.to_number(value)
    if rule["absolute"]:
        value = abs(value)
    return get_rating(value, rule["thresholds"], rule["lower_is_better"])


def calculate_kpi_ratings(metrics):
    """
    Rates every KPI present in `metrics`.
    Returns dict: { metric_name: rating }
    """
    ratings = {}
    for metric in RATING_THRESHOLDS:
        if metric not in metrics:
            logger.debug("Metric '%s' missing, not rated", metric)
            continue
        ratings[metric] = rate_metric(metric, metrics[metric])
    return ratings


def rating_rank(rating):
    """
    Poor=0 ... Excellent=3, for sorting and comparisons.
    """
    return RATING_ORDER.index(rating)
