from __future__ import annotations

from fastapi import APIRouter

from otel_example.models.schemas import WeatherForecast
from otel_example.services.forecast_service import generate_forecasts

router = APIRouter(tags=["forecast"])


@router.get("/weatherforecast", response_model=list[WeatherForecast], name="GetWeatherForecast")
def get_weather_forecast() -> list[WeatherForecast]:
    return generate_forecasts()
