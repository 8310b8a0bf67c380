"""Offline progress forecasting.

Derives risk, confidence and a projected completion date from the learner's
progress counters. Runs without the LLM; the narrative half of a forecast
is layered on top by the caller.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
import math
from typing import Any


class RiskLevel(str, Enum):
    ON_TRACK = "On Track"
    AT_RISK = "At Risk"
    DELAYED = "Delayed"


@dataclass(frozen=True)
class ForecastInputs:
    completed_tasks: float = 0
    total_tasks: float = 0
    days_elapsed: float = 0
    total_days: float = 0
    streak: float = 0
    consistency_percent: float = 0


@dataclass(frozen=True)
class ForecastMetrics:
    tasks_per_day: float
    remaining: float
    days_left: float
    required_per_day: float
    pace: float
    risk_level: RiskLevel
    confidence_percent: int
    projected_date: date

    def as_payload(self) -> dict[str, Any]:
        return {
            "riskLevel": self.risk_level.value,
            "confidencePercent": self.confidence_percent,
            "projectedDate": self.projected_date.isoformat(),
            "pace": round(self.pace, 2),
            "tasksPerDay": round(self.tasks_per_day, 2),
            "requiredPerDay": round(self.required_per_day, 2),
        }


FALLBACK_NARRATIVE: dict[str, str] = {
    "recommendation": "Keep a steady daily rhythm and finish one task before starting the next.",
    "pattern": "Not enough data to describe a study pattern yet.",
    "hoursNeeded": "Stick to your planned daily hours.",
    "todayAction": "Complete the next pending task in your roadmap.",
    "motivation": "Small consistent steps add up. Keep going!",
}

NARRATIVE_FIELDS = tuple(FALLBACK_NARRATIVE)


def classify_risk(pace: float, consistency_percent: float) -> RiskLevel:
    if pace >= 0.9 and consistency_percent >= 70:
        return RiskLevel.ON_TRACK
    if pace >= 0.6:
        return RiskLevel.AT_RISK
    return RiskLevel.DELAYED


def confidence_for(risk: RiskLevel, consistency_percent: float) -> int:
    if risk is RiskLevel.ON_TRACK:
        value = 80 + min(15.0, consistency_percent / 10)
    elif risk is RiskLevel.AT_RISK:
        value = 55
    else:
        value = 30
    return max(0, min(100, int(value)))


def _projection_days(raw_days: float, today: date) -> int:
    # Capped at the last representable calendar date.
    horizon = (date.max - today).days
    if not math.isfinite(raw_days) or raw_days >= horizon:
        return horizon
    return max(0, math.ceil(raw_days))


def compute_forecast(inputs: ForecastInputs, *, today: date | None = None) -> ForecastMetrics:
    today = today or date.today()

    tasks_per_day = inputs.completed_tasks / max(inputs.days_elapsed, 1)
    remaining = inputs.total_tasks - inputs.completed_tasks
    days_left = inputs.total_days - inputs.days_elapsed
    required_per_day = remaining / max(days_left, 1)
    # 0.01 floor keeps an almost-finished plan from dividing by ~0.
    pace = tasks_per_day / max(required_per_day, 0.01)

    risk = classify_risk(pace, inputs.consistency_percent)
    days_to_finish = _projection_days(remaining / max(tasks_per_day, 0.1), today)

    return ForecastMetrics(
        tasks_per_day=tasks_per_day,
        remaining=remaining,
        days_left=days_left,
        required_per_day=required_per_day,
        pace=pace,
        risk_level=risk,
        confidence_percent=confidence_for(risk, inputs.consistency_percent),
        projected_date=today + timedelta(days=days_to_finish),
    )


def merge_narrative(metrics: ForecastMetrics, narrative: Any) -> dict[str, Any]:
    """Overlay narrative fields on the computed metrics; anything missing keeps the fallback text."""
    result = metrics.as_payload()
    source = narrative if isinstance(narrative, dict) else {}
    for field in NARRATIVE_FIELDS:
        value = source.get(field)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value.strip():
            result[field] = value.strip()
        else:
            result[field] = FALLBACK_NARRATIVE[field]
    return result
