"""
Record validation and assembly.

Turns a raw station message into a CanonicalReading, or rejects it. The
only side effect is the capability registry read.
"""

import json
from typing import Any, Dict, Union

from pydantic import ValidationError

from weather_collector.config import settings
from weather_collector.core.capabilities import CapabilityRegistry
from weather_collector.core.exceptions import (
    IncompleteReading,
    InvalidTimestamp,
    MalformedPayload,
    MalformedTimestamp,
    MissingTimestamp,
    NotFound,
    UnknownStation,
)
from weather_collector.core.timestamps import parse_station_date
from weather_collector.schemas.reading import CanonicalReading


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"Unsupported JSON constant '{name}'")


def decode_payload(
    raw_payload: Union[bytes, str],
    *,
    station_id: int,
    max_bytes: int = settings.MAX_PAYLOAD_BYTES
) -> Dict[str, Any]:
    """
    Decode a message body into a key-value map.

    Args:
        raw_payload: Message body as received from the transport
        station_id: Station the message was published for
        max_bytes: Largest accepted body size

    Returns:
        Decoded JSON object

    Raises:
        MalformedPayload: If the body is too large, not UTF-8, not JSON,
            or not a JSON object
    """
    if isinstance(raw_payload, str):
        raw_payload = raw_payload.encode("utf-8")

    if len(raw_payload) > max_bytes:
        raise MalformedPayload(
            f"Payload of {len(raw_payload)} bytes exceeds the {max_bytes} byte limit",
            station_id=station_id,
        )

    try:
        data = json.loads(raw_payload.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedPayload(f"Payload is not valid JSON: {exc}", station_id=station_id) from exc

    if not isinstance(data, dict):
        raise MalformedPayload(
            f"Payload must be a JSON object, got {type(data).__name__}",
            station_id=station_id,
        )
    return data


class RecordAssembler:
    """Cross-checks messages against station capabilities."""

    def __init__(self, registry: CapabilityRegistry, max_payload_bytes: int = settings.MAX_PAYLOAD_BYTES):
        self.registry = registry
        self.max_payload_bytes = max_payload_bytes

    async def assemble(self, station_id: int, raw_payload: Union[bytes, str]) -> CanonicalReading:
        """
        Build a canonical reading from a raw message.

        Every channel the station is capable of must be present in the
        payload; channels it is not capable of are dropped even if sent.

        Args:
            station_id: Station the message was published for
            raw_payload: Message body

        Returns:
            Validated CanonicalReading

        Raises:
            MalformedPayload: Undecodable body or non-numeric channel value
            MissingTimestamp: No `date` field
            InvalidTimestamp: `date` field cannot be normalized
            UnknownStation: Station is not provisioned
            IncompleteReading: One or more capable channels are missing,
                all of them listed
        """
        data = decode_payload(raw_payload, station_id=station_id, max_bytes=self.max_payload_bytes)

        raw_date = data.get("date")
        if raw_date is None or raw_date == "":
            raise MissingTimestamp("Missing mandatory field: date", station_id=station_id)
        try:
            instant = parse_station_date(raw_date)
        except MalformedTimestamp as exc:
            raise InvalidTimestamp(str(exc), station_id=station_id) from exc

        try:
            capabilities = await self.registry.fields(station_id)
        except NotFound as exc:
            raise UnknownStation(str(exc), station_id=station_id) from exc

        available = capabilities.available_channels()
        missing = [channel for channel in available if channel not in data]
        if missing:
            raise IncompleteReading(missing, station_id=station_id)

        values = {channel: data[channel] for channel in available}
        try:
            return CanonicalReading(station_id=station_id, date=instant, **values)
        except ValidationError as exc:
            fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
            raise MalformedPayload(
                f"Invalid values for fields: {', '.join(fields)}",
                station_id=station_id,
            ) from exc
