"""
Heuristic KPI Summary Engine
Generates a natural language summary of a KPI assessment for the dashboard Overview tab.
"""

import kpi_engine
import rating_engine

CATEGORY_LABELS = {
    "financial": "Cost",
    "schedule": "Schedule",
    "quality": "Quality",
    "resource": "Resource",
    "risk": "Risk",
}


def generate_kpi_summary(metrics, ratings=None, recommendations=None):
    """
    Generates a natural language summary of the KPI assessment.
    Returns empty string if no metrics are available.
    """
    if not metrics:
        return ""

    if ratings is None:
        ratings = rating_engine.calculate_kpi_ratings(metrics)

    summary_parts = []

    score = metrics.get("overall_health_score", 0)
    status = kpi_engine.get_overall_health_status(score)
    trend = metrics.get("performance_trend", kpi_engine.TREND_STABLE)
    summary_parts.append(
        f"Overall project health is **{score}/100 ({status})** and performance is **{trend.lower()}**."
    )

    # Category signals
    indicators = kpi_engine.evaluate_trend_indicators(metrics)
    weak = [CATEGORY_LABELS[c] for c, v in indicators.items() if v == kpi_engine.INDICATOR_NEGATIVE]
    strong = [CATEGORY_LABELS[c] for c, v in indicators.items() if v == kpi_engine.INDICATOR_POSITIVE]
    if weak:
        summary_parts.append(f"⚠️ **Attention Needed**: {', '.join(weak)} indicators are below tolerance.")
    if strong:
        summary_parts.append(f"✅ **On Track**: {', '.join(strong)} indicators are within tolerance.")

    # Budget
    utilization = metrics.get("budget_utilization", 0)
    if utilization > 100:
        summary_parts.append(f"⚠️ **Cost Alert**: Spend has reached **{utilization:.1f}%** of the budget at completion.")
    elif utilization > 0:
        summary_parts.append(f"Spend stands at **{utilization:.1f}%** of the budget at completion.")

    # Schedule
    completion = metrics.get("task_completion_rate", 0)
    milestones = metrics.get("milestone_adherence", 100)
    summary_parts.append(
        f"**{completion:.1f}%** of tasks are complete with **{milestones:.1f}%** milestone adherence."
    )

    # Weakest ratings
    poor = [m for m, r in ratings.items() if r == rating_engine.RATING_POOR and m != "overall_health_score"]
    if poor:
        names = ", ".join(m.replace("_", " ") for m in poor[:5])
        more = f" and {len(poor) - 5} more" if len(poor) > 5 else ""
        summary_parts.append(f"Metrics rated **Poor**: {names}{more}.")

    if recommendations:
        summary_parts.append(f"**{len(recommendations)} corrective action(s)** are recommended.")
    elif recommendations is not None:
        summary_parts.append("No corrective actions are required at this time.")

    return " ".join(summary_parts)
