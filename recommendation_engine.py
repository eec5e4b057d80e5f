import rating_engine

# Category Constants
CAT_FINANCIAL = "Financial"
CAT_SCHEDULE = "Schedule"
CAT_QUALITY = "Quality"
CAT_RESOURCE = "Resource"
CAT_RISK = "Risk"
CAT_OVERALL = "Overall"

# Evaluation order is the output order
RECOMMENDATIONS = [
    (CAT_FINANCIAL, [
        "Implement stricter cost controls and review budget allocations",
        "Conduct cost-benefit analysis for all remaining activities",
    ]),
    (CAT_SCHEDULE, [
        "Review project timeline and consider fast-tracking critical activities",
        "Increase resource allocation to delayed tasks",
    ]),
    (CAT_QUALITY, [
        "Implement additional quality assurance checkpoints",
        "Provide additional training to team members",
    ]),
    (CAT_RESOURCE, [
        "Optimize resource allocation and eliminate bottlenecks",
        "Consider team restructuring or additional resources",
    ]),
    (CAT_RISK, [
        "Implement additional risk mitigation strategies",
        "Increase contingency reserves and monitoring frequency",
    ]),
    (CAT_OVERALL, [
        "Conduct comprehensive project health assessment",
        "Consider project restructuring or scope adjustments",
    ]),
]

# Raw-metric trigger limits
COST_VARIANCE_LIMIT = -10
TASK_COMPLETION_LIMIT = 70
DEFECT_RATE_LIMIT = 5
TEAM_EFFICIENCY_LIMIT = 70
RISK_EXPOSURE_LIMIT = 40
HEALTH_SCORE_LIMIT = 70

# Upper bound on the list; with every category flagged the Overall lines are dropped
MAX_RECOMMENDATIONS = 10


def find_triggered_categories(metrics, ratings):
    """
    Returns the categories whose trigger holds, in output order.
    A missing metric or rating never triggers.
    """
    def is_poor(metric):
        return ratings.get(metric) == rating_engine.RATING_POOR

    def value(metric, default):
        return metrics.get(metric, default)

    triggers = {
        CAT_FINANCIAL: is_poor("budget_utilization")
            or value("cost_variance_percentage", 0) < COST_VARIANCE_LIMIT,
        CAT_SCHEDULE: is_poor("schedule_variance_percentage")
            or value("task_completion_rate", 100) < TASK_COMPLETION_LIMIT,
        CAT_QUALITY: is_poor("quality_score")
            or value("defect_rate", 0) > DEFECT_RATE_LIMIT,
        CAT_RESOURCE: is_poor("resource_utilization")
            or value("team_efficiency", 100) < TEAM_EFFICIENCY_LIMIT,
        CAT_RISK: is_poor("risk_exposure")
            or value("risk_exposure", 0) > RISK_EXPOSURE_LIMIT,
        CAT_OVERALL: value("overall_health_score", 100) < HEALTH_SCORE_LIMIT,
    }
    return [cat for cat, _ in RECOMMENDATIONS if triggers[cat]]


def generate_kpi_recommendations(metrics, ratings):
    """
    Rule-based corrective actions: two fixed lines per triggered category,
    at most MAX_RECOMMENDATIONS. Empty list when nothing triggers.
    """
    triggered = set(find_triggered_categories(metrics, ratings))
    recommendations = []
    for category, actions in RECOMMENDATIONS:
        if category in triggered:
            recommendations.extend(actions)
    return recommendations[:MAX_RECOMMENDATIONS]
