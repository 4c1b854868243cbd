"""Exception taxonomy for the plotting core."""
from __future__ import annotations


class ChartPlotError(Exception):
    """Base class for chart-plot errors."""


class InvalidInput(ChartPlotError, ValueError):
    """Malformed coordinate, out-of-range course/speed or negative elapsed time."""


class InvalidTargetState(InvalidInput):
    """A target whose course/speed cannot be dead-reckoned."""


class PersistenceError(ChartPlotError):
    """The persistence collaborator could not load or save a collection."""


class UnknownRecord(ChartPlotError, KeyError):
    """No waypoint/target with the requested id."""
