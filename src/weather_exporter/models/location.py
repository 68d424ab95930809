"""Resolved location model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def format_coordinate(value: float) -> str:
    """Render a coordinate with six fractional digits (``53.350000``)."""
    return f"{value:f}"


class Location(BaseModel):
    """A named place with its coordinates.

    Parameters
    ----------
    name : str
        Display name returned by the geocoder.
    latitude : float
        Decimal degrees, north positive.
    longitude : float
        Decimal degrees, east positive.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("name must be non-empty")
        return name

    @property
    def latitude_label(self) -> str:
        return format_coordinate(self.latitude)

    @property
    def longitude_label(self) -> str:
        return format_coordinate(self.longitude)
