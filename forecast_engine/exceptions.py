"""
Engine Exceptions

These are raised only by the pure helpers for inputs they cannot
interpret at all. The public facade catches them, reports them to the
audit logger and returns an empty result instead.
"""


class ForecastEngineError(Exception):
    """Base exception for forecast engine errors."""
    pass


class InvalidDateError(ForecastEngineError, ValueError):
    """A date could not be parsed as a YYYY-MM-DD calendar date."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid calendar date: {value!r} (expected YYYY-MM-DD)")


class UnknownCadenceError(ForecastEngineError, ValueError):
    """A cadence value is not one of the supported cadences."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unknown cadence: {value!r}")
