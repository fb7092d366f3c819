"""Payload models for the weather and time providers."""

from pydantic import BaseModel


# serialized format of api.weatherapi.com/v1/current.json
class WeatherLocation(BaseModel):
    """Location the provider resolved the query to."""

    name: str
    region: str = ""
    country: str = ""


class WeatherCondition(BaseModel):
    """Human readable weather condition."""

    text: str


class CurrentWeather(BaseModel):
    """Current conditions block."""

    last_updated_epoch: int | None = None
    temp_c: float
    temp_f: float
    condition: WeatherCondition
    humidity: int


class WeatherResponse(BaseModel):
    """Current weather for a location."""

    location: WeatherLocation
    current: CurrentWeather


class TimeResponse(BaseModel):
    """Response from the IPGeolocation timezone API."""

    # YYYY-MM-DD
    date: str
    # 12-hour clock, e.g. "08:30 PM"
    time_12: str
