from datetime import date, timedelta
import unittest

from app.domain.forecast import (
    FALLBACK_NARRATIVE,
    ForecastInputs,
    RiskLevel,
    compute_forecast,
    merge_narrative,
)


TODAY = date(2026, 3, 1)


class ForecastEngineTests(unittest.TestCase):
    def test_on_track_example(self) -> None:
        inputs = ForecastInputs(
            completed_tasks=50,
            total_tasks=100,
            days_elapsed=20,
            total_days=40,
            consistency_percent=80,
        )
        metrics = compute_forecast(inputs, today=TODAY)

        self.assertAlmostEqual(metrics.tasks_per_day, 2.5)
        self.assertEqual(metrics.remaining, 50)
        self.assertEqual(metrics.days_left, 20)
        self.assertAlmostEqual(metrics.required_per_day, 2.5)
        self.assertAlmostEqual(metrics.pace, 1.0)
        self.assertIs(metrics.risk_level, RiskLevel.ON_TRACK)
        self.assertEqual(metrics.confidence_percent, 88)
        self.assertEqual(metrics.projected_date, TODAY + timedelta(days=20))

    def test_good_pace_with_low_consistency_is_at_risk(self) -> None:
        inputs = ForecastInputs(50, 100, 20, 40, 0, 60)
        metrics = compute_forecast(inputs, today=TODAY)
        self.assertIs(metrics.risk_level, RiskLevel.AT_RISK)
        self.assertEqual(metrics.confidence_percent, 55)

    def test_at_risk_pace(self) -> None:
        metrics = compute_forecast(ForecastInputs(40, 100, 20, 40, 3, 90), today=TODAY)
        self.assertAlmostEqual(metrics.pace, 2 / 3)
        self.assertIs(metrics.risk_level, RiskLevel.AT_RISK)

    def test_delayed(self) -> None:
        metrics = compute_forecast(ForecastInputs(10, 100, 20, 40, 0, 90), today=TODAY)
        self.assertIs(metrics.risk_level, RiskLevel.DELAYED)
        self.assertEqual(metrics.confidence_percent, 30)
        # 90 remaining at 0.5/day
        self.assertEqual(metrics.projected_date, TODAY + timedelta(days=180))

    def test_confidence_is_capped(self) -> None:
        metrics = compute_forecast(ForecastInputs(50, 100, 20, 40, 0, 250), today=TODAY)
        self.assertEqual(metrics.confidence_percent, 95)

    def test_zero_days_elapsed_does_not_divide_by_zero(self) -> None:
        metrics = compute_forecast(ForecastInputs(0, 10, 0, 0, 0, 0), today=TODAY)
        self.assertEqual(metrics.tasks_per_day, 0)
        self.assertEqual(metrics.required_per_day, 10)
        self.assertIs(metrics.risk_level, RiskLevel.DELAYED)
        self.assertEqual(metrics.projected_date, TODAY + timedelta(days=100))

    def test_deadline_reached_does_not_divide_by_zero(self) -> None:
        metrics = compute_forecast(ForecastInputs(5, 10, 10, 10, 0, 50), today=TODAY)
        self.assertEqual(metrics.days_left, 0)
        self.assertAlmostEqual(metrics.required_per_day, 5)
        self.assertIs(metrics.risk_level, RiskLevel.DELAYED)

    def test_finished_plan_projects_today(self) -> None:
        metrics = compute_forecast(ForecastInputs(10, 10, 5, 10, 5, 100), today=TODAY)
        self.assertIs(metrics.risk_level, RiskLevel.ON_TRACK)
        self.assertEqual(metrics.projected_date, TODAY)

    def test_huge_backlog_with_no_progress_caps_projection(self) -> None:
        metrics = compute_forecast(ForecastInputs(0, 1_000_000, 10, 30, 0, 0), today=TODAY)
        self.assertIs(metrics.risk_level, RiskLevel.DELAYED)
        self.assertEqual(metrics.projected_date, date.max)

    def test_non_finite_backlog_caps_projection(self) -> None:
        metrics = compute_forecast(ForecastInputs(0, float("inf"), 10, 30, 0, 0), today=TODAY)
        self.assertEqual(metrics.projected_date, date.max)

    def test_is_deterministic(self) -> None:
        inputs = ForecastInputs(33, 120, 17, 60, 4, 72)
        first = compute_forecast(inputs, today=TODAY)
        second = compute_forecast(inputs, today=TODAY)
        self.assertEqual(
            (first.risk_level, first.confidence_percent, first.projected_date),
            (second.risk_level, second.confidence_percent, second.projected_date),
        )

    def test_merge_narrative_fills_missing_fields_from_fallback(self) -> None:
        metrics = compute_forecast(ForecastInputs(50, 100, 20, 40, 0, 80), today=TODAY)
        merged = merge_narrative(metrics, {"recommendation": "  Keep it up.  ", "hoursNeeded": 2, "pattern": ""})

        self.assertEqual(merged["riskLevel"], "On Track")
        self.assertEqual(merged["confidencePercent"], 88)
        self.assertEqual(merged["projectedDate"], "2026-03-21")
        self.assertEqual(merged["recommendation"], "Keep it up.")
        self.assertEqual(merged["hoursNeeded"], "2")
        self.assertEqual(merged["pattern"], FALLBACK_NARRATIVE["pattern"])
        self.assertEqual(merged["motivation"], FALLBACK_NARRATIVE["motivation"])

    def test_merge_narrative_cannot_override_computed_fields(self) -> None:
        metrics = compute_forecast(ForecastInputs(10, 100, 20, 40, 0, 90), today=TODAY)
        merged = merge_narrative(metrics, {"riskLevel": "On Track", "confidencePercent": 99})
        self.assertEqual(merged["riskLevel"], "Delayed")
        self.assertEqual(merged["confidencePercent"], 30)

    def test_merge_narrative_with_non_object(self) -> None:
        metrics = compute_forecast(ForecastInputs(), today=TODAY)
        merged = merge_narrative(metrics, ["not", "an", "object"])
        for field, text in FALLBACK_NARRATIVE.items():
            self.assertEqual(merged[field], text)


if __name__ == "__main__":
    unittest.main()
