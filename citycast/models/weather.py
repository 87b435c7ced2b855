"""Weather domain models: catalog cities, observations, forecasts, favorites."""

from dataclasses import dataclass, field
from datetime import date, datetime

from citycast.models.common import CityId, UserId


@dataclass(frozen=True)
class City:
    id: CityId
    name: str
    country: str
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class WeatherObservation:
    city_id: CityId
    temperature: float  # °C
    humidity: int  # percent, 0-100
    condition: str
    recorded_at: datetime


@dataclass(frozen=True)
class ForecastDay:
    city_id: CityId
    date: date
    min_temp: float  # °C
    max_temp: float  # °C
    condition: str


@dataclass(frozen=True)
class FavoriteRelation:
    user_id: UserId
    city_id: CityId


@dataclass(frozen=True)
class CityWeatherView:
    """Composite built fresh on every aggregation call.

    ``observation_available`` is False when ``current`` is the "unknown"
    placeholder rather than a stored reading.
    """

    city: City
    current: WeatherObservation
    forecast: tuple[ForecastDay, ...] = field(default_factory=tuple)
    observation_available: bool = True

    @property
    def city_id(self) -> CityId:
        return self.city.id


@dataclass(frozen=True)
class BatchItemFailure:
    """Marks one city whose assembly failed inside a batch."""

    city_id: CityId
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


def unknown_observation(
    city_id: CityId, recorded_at: datetime, condition: str = "Unknown"
) -> WeatherObservation:
    """Placeholder reading used when a city has no stored observations."""
    return WeatherObservation(
        city_id=city_id,
        temperature=0.0,
        humidity=0,
        condition=condition,
        recorded_at=recorded_at,
    )
