from __future__ import annotations

import datetime as dt
import math

from pydantic import BaseModel, ConfigDict, Field, computed_field


class WeatherForecast(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: dt.date
    temperature_c: int = Field(ge=-20, le=54, alias="temperatureC")
    summary: str | None = None

    @computed_field(alias="temperatureF")
    @property
    def temperature_f(self) -> int:
        return 32 + math.floor(self.temperature_c / 0.5556)


class ErrorResponse(BaseModel):
    error: str
