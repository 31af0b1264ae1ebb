"""
Exception hierarchy for the ingestion pipeline.

Every failure raised while handling one station message derives from
CollectorError, so the dispatcher can log and drop it without stopping
the process. Startup failures (SubscriptionError, capability source errors)
propagate to the process entry point instead.
"""

from typing import Iterable, Optional


class CollectorError(Exception):
    """Base class for all collector errors."""

    def __init__(self, message: str, *, station_id: Optional[int] = None):
        super().__init__(message)
        self.station_id = station_id


class NotFound(CollectorError):
    """A station id is not present in the capability source."""


class UnknownStation(NotFound):
    """A message arrived for a station that is not provisioned."""


class MalformedPayload(CollectorError):
    """The message body could not be decoded into a key-value map."""


class MissingTimestamp(CollectorError):
    """The message has no `date` field."""


class InvalidTimestamp(CollectorError):
    """The message `date` field could not be normalized."""


class MalformedTimestamp(InvalidTimestamp):
    """Text does not match the station timestamp layout or names an impossible instant."""


class IncompleteReading(CollectorError):
    """One or more capability-flagged channels are absent from the message."""

    def __init__(self, missing: Iterable[str], *, station_id: Optional[int] = None):
        self.missing = list(missing)
        super().__init__(
            f"Missing data for available fields: {', '.join(self.missing)}",
            station_id=station_id,
        )


class PersistenceError(CollectorError):
    """Storing a canonical reading failed in the storage layer."""


class AggregationError(CollectorError):
    """Recomputing an hourly or daily bucket failed in the storage layer."""


class TransportError(CollectorError):
    """The message transport failed to connect, subscribe or deliver."""


class SubscriptionError(TransportError):
    """Initial station subscriptions could not be established."""
