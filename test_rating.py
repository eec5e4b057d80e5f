import unittest
import kpi_engine
import rating_engine
from rating_engine import RATING_EXCELLENT, RATING_GOOD, RATING_FAIR, RATING_POOR

class TestGetRating(unittest.TestCase):

    def test_higher_is_better_ladder(self):
        t = (95, 85, 75, 65)
        self.assertEqual(rating_engine.get_rating(95, t), RATING_EXCELLENT)
        self.assertEqual(rating_engine.get_rating(90, t), RATING_GOOD)
        self.assertEqual(rating_engine.get_rating(75, t), RATING_FAIR)
        self.assertEqual(rating_engine.get_rating(74.99, t), RATING_POOR)

    def test_lower_is_better_ladder(self):
        t = (1, 3, 5, 10)
        self.assertEqual(rating_engine.get_rating(0.5, t, True), RATING_EXCELLENT)
        self.assertEqual(rating_engine.get_rating(3, t, True), RATING_GOOD)
        self.assertEqual(rating_engine.get_rating(5, t, True), RATING_FAIR)
        self.assertEqual(rating_engine.get_rating(6, t, True), RATING_POOR)

    def test_rank_sorts_weakest_first(self):
        ratings = {"a": RATING_GOOD, "b": RATING_POOR, "c": RATING_EXCELLENT, "d": RATING_FAIR, "e": RATING_POOR}
        ranked = sorted(ratings.items(), key=lambda item: rating_engine.rating_rank(item[1]))
        self.assertEqual([m for m, _ in ranked], ["b", "e", "d", "a", "c"])

    def test_monotonic_higher_is_better(self):
        # Raising the value never lowers the tier
        for metric, rule in rating_engine.RATING_THRESHOLDS.items():
            if rule["lower_is_better"]:
                continue
            previous = -1
            for step in range(0, 2001):
                value = step / 10.0
                rank = rating_engine.rating_rank(rating_engine.get_rating(value, rule["thresholds"]))
                self.assertGreaterEqual(rank, previous, f"{metric} at {value}")
                previous = rank

    def test_monotonic_lower_is_better(self):
        for metric, rule in rating_engine.RATING_THRESHOLDS.items():
            if not rule["lower_is_better"]:
                continue
            previous = 4
            for step in range(0, 1001):
                value = step / 10.0
                rank = rating_engine.rating_rank(rating_engine.get_rating(value, rule["thresholds"], True))
                self.assertLessEqual(rank, previous, f"{metric} at {value}")
                previous = rank


class TestKPIRatings(unittest.TestCase):

    def test_every_kpi_rated(self):
        metrics = kpi_engine.calculate_kpi_metrics([], {}, 100)
        ratings = rating_engine.calculate_kpi_ratings(metrics)
        # 15 category KPIs + overall health score
        self.assertEqual(len(ratings), 16)
        self.assertNotIn("performance_trend", ratings)

    def test_budget_utilization_inherited_ladder(self):
        # Plain >= ladder: heavy overspend still reads Excellent
        self.assertEqual(rating_engine.rate_metric("budget_utilization", 150), RATING_EXCELLENT)
        self.assertEqual(rating_engine.rate_metric("budget_utilization", 100), RATING_EXCELLENT)
        self.assertEqual(rating_engine.rate_metric("budget_utilization", 90), RATING_FAIR)
        self.assertEqual(rating_engine.rate_metric("budget_utilization", 80), RATING_POOR)

    def test_variance_rated_on_magnitude(self):
        self.assertEqual(rating_engine.rate_metric("cost_variance_percentage", -3), RATING_GOOD)
        self.assertEqual(rating_engine.rate_metric("cost_variance_percentage", 3), RATING_GOOD)
        self.assertEqual(rating_engine.rate_metric("schedule_variance_percentage", -10), RATING_FAIR)
        self.assertEqual(rating_engine.rate_metric("schedule_variance_percentage", -12.5), RATING_POOR)

    def test_scenario_ratings(self):
        metrics = {
            "budget_utilization": 102.5,
            "cost_variance_percentage": -12.5,
            "return_on_investment": 30,
            "schedule_variance_percentage": -10,
            "task_completion_rate": 50,
            "milestone_adherence": 66.67,
            "defect_rate": 5,
            "rework_percentage": 4,
            "quality_score": 30,
            "resource_utilization": 83.33,
            "productivity_index": 105,
            "team_efficiency": 121.6,
            "risk_exposure": 20,
            "issue_resolution_time": 5,
            "contingency_utilization": 15,
            "overall_health_score": 75,
        }
        ratings = rating_engine.calculate_kpi_ratings(metrics)
        self.assertEqual(ratings["budget_utilization"], RATING_EXCELLENT)
        self.assertEqual(ratings["cost_variance_percentage"], RATING_POOR)
        self.assertEqual(ratings["return_on_investment"], RATING_EXCELLENT)
        self.assertEqual(ratings["task_completion_rate"], RATING_POOR)
        self.assertEqual(ratings["defect_rate"], RATING_FAIR)
        self.assertEqual(ratings["rework_percentage"], RATING_GOOD)
        self.assertEqual(ratings["quality_score"], RATING_POOR)
        self.assertEqual(ratings["resource_utilization"], RATING_GOOD)
        self.assertEqual(ratings["team_efficiency"], RATING_EXCELLENT)
        self.assertEqual(ratings["risk_exposure"], RATING_GOOD)
        self.assertEqual(ratings["issue_resolution_time"], RATING_GOOD)
        self.assertEqual(ratings["contingency_utilization"], RATING_EXCELLENT)
        self.assertEqual(ratings["overall_health_score"], RATING_FAIR)

    def test_partial_metrics(self):
        ratings = rating_engine.calculate_kpi_ratings({"defect_rate": 0})
        self.assertEqual(ratings, {"defect_rate": RATING_EXCELLENT})

if __name__ == '__main__':
    unittest.main()
