from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Literal, Tuple
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from chart_plot.core.errors import InvalidInput


WAYPOINT_COLORS = (
    "#FF6B6B",  # red
    "#4ECDC4",  # turquoise
    "#45B7D1",  # blue
    "#96CEB4",  # green
    "#FFEAA7",  # yellow
    "#DDA0DD",  # violet
    "#FFA07A",  # orange
    "#98D8C8",  # aqua
)

TARGET_COLORS = (
    "#FF4757",
    "#2ED573",
    "#1E90FF",
    "#FFA502",
    "#A55EEA",
    "#26C6DA",
    "#FF6348",
    "#7BED9F",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class Coordinate(BaseModel):
    """Decimal-degree position. Computed positions are not range-normalised."""

    model_config = {"frozen": True}

    lat: float
    lng: float

    def validated(self) -> Coordinate:
        """Return self if it is a finite, in-range position, else raise InvalidInput."""
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise InvalidInput(f"Non-finite coordinate: {self.lat}, {self.lng}")
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidInput(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise InvalidInput(f"Longitude out of range: {self.lng}")
        return self


class SexagesimalAxis(BaseModel):
    model_config = {"frozen": True}

    degrees: int = Field(ge=0)
    minutes: int = Field(ge=0, le=59)
    seconds: float = Field(ge=0, lt=60)
    hemisphere: Literal["N", "S", "E", "W"]


class SexagesimalCoordinate(BaseModel):
    model_config = {"frozen": True}

    lat: SexagesimalAxis
    lng: SexagesimalAxis

    @field_validator("lat")
    @classmethod
    def _lat_hemisphere(cls, v: SexagesimalAxis) -> SexagesimalAxis:
        if v.hemisphere not in ("N", "S"):
            raise ValueError("latitude hemisphere must be N or S")
        return v

    @field_validator("lng")
    @classmethod
    def _lng_hemisphere(cls, v: SexagesimalAxis) -> SexagesimalAxis:
        if v.hemisphere not in ("E", "W"):
            raise ValueError("longitude hemisphere must be E or W")
        return v


class _PlottedRecord(BaseModel):
    """Shared shape of waypoints and targets: immutable, with coordinate history."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=_new_id)
    name: str
    coordinate: Coordinate
    previous_coordinates: Tuple[Coordinate, ...] = ()
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("coordinate")
    @classmethod
    def _coordinate_in_range(cls, v: Coordinate) -> Coordinate:
        return v.validated()

    def updated(self, **changes: Any):
        """Return a new record with *changes* applied.

        The prior coordinate is appended to ``previous_coordinates`` iff the
        coordinate actually changed.
        """
        new_coord = changes.get("coordinate", self.coordinate)
        if isinstance(new_coord, dict):
            new_coord = Coordinate(**new_coord)
        history = self.previous_coordinates
        if new_coord != self.coordinate:
            history = history + (self.coordinate,)

        data = self.model_dump()
        data.update(changes)
        data["coordinate"] = new_coord
        data["previous_coordinates"] = history
        data["id"] = self.id
        data["created_at"] = self.created_at
        data["updated_at"] = _utcnow()
        return type(self).model_validate(data)


class Waypoint(_PlottedRecord):
    color: str = WAYPOINT_COLORS[0]


class Target(_PlottedRecord):
    color: str = TARGET_COLORS[0]

    course: float = Field(default=0.0, ge=0, lt=360, description="degrees true")
    speed: float = Field(default=0.0, ge=0, description="knots")
    reference_time: datetime

    # Historical positions, supplied by the caller
    past_track: Tuple[Coordinate, ...] = ()
    # Dead-reckoned polyline, recomputed whenever course/speed/coordinate change
    future_track: Tuple[Coordinate, ...] = ()


class PlotSnapshot(BaseModel):
    """Bulk export/import document."""

    waypoints: list[Waypoint] = Field(default_factory=list)
    targets: list[Target] = Field(default_factory=list)
