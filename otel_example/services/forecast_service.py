from __future__ import annotations

import random
from datetime import date, timedelta

from otel_example.models.schemas import WeatherForecast

SUMMARIES: tuple[str, ...] = (
    "Freezing",
    "Bracing",
    "Chilly",
    "Cool",
    "Mild",
    "Warm",
    "Balmy",
    "Hot",
    "Sweltering",
    "Scorching",
)

MIN_TEMPERATURE_C = -20
MAX_TEMPERATURE_C = 55  # exclusive
FORECAST_DAYS = 5

_random_source: random.Random | None = None


def set_random_source(rng: random.Random | None) -> None:
    global _random_source
    _random_source = rng


def get_random_source() -> random.Random:
    global _random_source
    if _random_source is None:
        _random_source = random.Random()
    return _random_source


def generate_forecasts(today: date | None = None, days: int = FORECAST_DAYS) -> list[WeatherForecast]:
    """Random forecasts for the ``days`` calendar days after ``today`` (server local date)."""

    start = today or date.today()
    rng = get_random_source()
    return [
        WeatherForecast(
            date=start + timedelta(days=offset),
            temperature_c=rng.randrange(MIN_TEMPERATURE_C, MAX_TEMPERATURE_C),
            summary=rng.choice(SUMMARIES),
        )
        for offset in range(1, days + 1)
    ]
