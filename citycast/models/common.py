"""Common types and helpers shared across models."""

from datetime import UTC, datetime
from typing import TypeAlias

CityId: TypeAlias = str
UserId: TypeAlias = str


def utc_now() -> datetime:
    return datetime.now(UTC)
