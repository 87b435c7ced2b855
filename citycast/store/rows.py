"""Map persisted rows (snake_case, loosely typed) onto weather domain models."""

from datetime import UTC, date, datetime
from typing import Any

from citycast.models.weather import (
    City,
    FavoriteRelation,
    ForecastDay,
    WeatherObservation,
)
from citycast.store.errors import StoreError


def city_from_row(row: dict[str, Any]) -> City:
    try:
        return City(
            id=str(row["id"]),
            name=row["city_name"],
            country=row.get("country") or "",
            latitude=_optional_float(row.get("latitude")),
            longitude=_optional_float(row.get("longitude")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed cities row: {e}") from e


def observation_from_row(row: dict[str, Any]) -> WeatherObservation:
    try:
        return WeatherObservation(
            city_id=str(row["city_id"]),
            temperature=float(row["temperature"]),
            humidity=int(row["humidity"]),
            condition=row["condition"],
            recorded_at=parse_timestamp(row["recorded_at"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed weather_data row: {e}") from e


def forecast_from_row(row: dict[str, Any]) -> ForecastDay:
    try:
        return ForecastDay(
            city_id=str(row["city_id"]),
            date=parse_date(row["date"]),
            min_temp=float(row["min_temp"]),
            max_temp=float(row["max_temp"]),
            condition=row["condition"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed forecasts row: {e}") from e


def favorite_from_row(row: dict[str, Any]) -> FavoriteRelation:
    try:
        return FavoriteRelation(user_id=str(row["user_id"]), city_id=str(row["city_id"]))
    except KeyError as e:
        raise StoreError(f"Malformed user_preferences row: {e}") from e


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    ts = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def parse_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Tolerate full timestamps in date columns
    return date.fromisoformat(value[:10])


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)
