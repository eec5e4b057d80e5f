import unittest
import kpi_engine
import rating_engine
import recommendation_engine
import summary_engine

class TestKPISummary(unittest.TestCase):

    def setUp(self):
        self.metrics = kpi_engine.calculate_kpi_metrics(
            [
                {"status": "done", "priority": "high"},
                {"status": "todo", "priority": "high"},
            ],
            {"t1": 1200},
            1000,
            quality_data={"defects": 8, "total_deliverables": 100, "rework_hours": 0, "total_hours": 100},
        )
        self.ratings = rating_engine.calculate_kpi_ratings(self.metrics)
        self.recs = recommendation_engine.generate_kpi_recommendations(self.metrics, self.ratings)

    def test_empty_metrics(self):
        self.assertEqual(summary_engine.generate_kpi_summary({}), "")
        self.assertEqual(summary_engine.generate_kpi_summary(None), "")

    def test_headline(self):
        text = summary_engine.generate_kpi_summary(self.metrics, self.ratings, self.recs)
        score = self.metrics["overall_health_score"]
        self.assertIn(f"**{score}/100", text)
        self.assertIn(kpi_engine.get_overall_health_status(score), text)

    def test_alerts(self):
        text = summary_engine.generate_kpi_summary(self.metrics, self.ratings, self.recs)
        # 120% of budget spent, quality score 20
        self.assertIn("Cost Alert", text)
        self.assertIn("Quality indicators are below tolerance", text)
        self.assertIn("quality score", text)
        self.assertIn(f"**{len(self.recs)} corrective action(s)**", text)

    def test_ratings_computed_when_missing(self):
        text = summary_engine.generate_kpi_summary(self.metrics)
        self.assertIn("Metrics rated **Poor**", text)
        self.assertNotIn("corrective action", text)

    def test_no_actions(self):
        metrics = kpi_engine.calculate_kpi_metrics(
            [{"status": "done", "priority": "high"}], {"t1": 980}, 1000
        )
        text = summary_engine.generate_kpi_summary(metrics, recommendations=[])
        self.assertIn("No corrective actions are required", text)
        self.assertNotIn("Attention Needed", text)

if __name__ == '__main__':
    unittest.main()
