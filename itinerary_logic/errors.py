"""Typed errors for the itinerary scheduling core.

Only InvalidDateError reaches callers of schedule_day. RouteUnavailableError
is raised by individual routing strategies and absorbed by the fallback chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ItineraryLogicError(Exception):
    """Base error for the scheduling core.

    Attributes:
        message: Human-readable error description
        cause: Optional underlying exception that caused this error
    """

    message: str
    cause: Optional[Exception] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)


@dataclass
class InvalidDateError(ItineraryLogicError, ValueError):
    """The target date of a scheduling or validation call could not be parsed.

    Attributes:
        value: The rejected input
    """

    value: Optional[str] = None
    code: str = "INVALID_DATE"


@dataclass
class RouteUnavailableError(ItineraryLogicError):
    """A routing strategy could not produce a result.

    Attributes:
        provider: Name of the strategy that failed
    """

    provider: str = ""
