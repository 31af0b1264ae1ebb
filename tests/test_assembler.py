"""
Tests for message validation and canonical reading assembly.
"""

import json

import pytest
from pydantic import ValidationError

from helpers import add_station, utc
from weather_collector.core.assembler import RecordAssembler, decode_payload
from weather_collector.core.capabilities import CapabilityRegistry
from weather_collector.core.exceptions import (
    CollectorError,
    IncompleteReading,
    InvalidTimestamp,
    MalformedPayload,
    MissingTimestamp,
    NotFound,
    UnknownStation,
)
from weather_collector.schemas.reading import CanonicalReading

VALID_DATE = "Monday 15 July 12:34:56 2024"


def payload(**fields) -> bytes:
    return json.dumps(fields).encode("utf-8")


@pytest.fixture
async def assembler(db, session_factory):
    """Assembler over stations 1 (temperature + humidity) and 2 (everything)."""
    await add_station(db, 1, temperature=True, humidity=True)
    await add_station(
        db, 2,
        temperature=True, pressure=True, humidity=True, lux=True, uvi=True,
        rain_gauge=True, anemometer=True, wind_vane=True,
    )
    registry = CapabilityRegistry(session_factory)
    await registry.load()
    return RecordAssembler(registry)


# Payload decoding
@pytest.mark.parametrize("raw", [
    b"not json",
    b"{\"date\": ",
    b"\xff\xfe\x00",
    b"[1, 2, 3]",
    b"\"Monday 15 July 12:34:56 2024\"",
    b"null",
    b"{\"date\": \"x\", \"temperature\": NaN}",
    b"{\"date\": \"x\", \"temperature\": Infinity}",
    b"{\"date\": \"x\", \"temperature\": -Infinity}",
])
def test_undecodable_payload(raw):
    with pytest.raises(MalformedPayload) as exc_info:
        decode_payload(raw, station_id=1)

    assert exc_info.value.station_id == 1


def test_oversized_payload():
    raw = payload(date=VALID_DATE, note="x" * 100)

    with pytest.raises(MalformedPayload):
        decode_payload(raw, station_id=1, max_bytes=64)


def test_text_payload_accepted():
    assert decode_payload('{"date": "x"}', station_id=1) == {"date": "x"}


# Assembly
@pytest.mark.asyncio
async def test_assemble_valid_reading(assembler):
    reading = await assembler.assemble(1, payload(date=VALID_DATE, temperature=21.4, humidity=55))

    assert reading.station_id == 1
    assert reading.date == utc(2024, 7, 15, 12, 34, 56)
    assert reading.temperature == 21.4
    assert reading.humidity == 55.0
    assert reading.present_channels == ["temperature", "humidity"]


@pytest.mark.asyncio
async def test_unsolicited_channels_ignored(assembler):
    reading = await assembler.assemble(
        1,
        payload(date=VALID_DATE, temperature=21.4, humidity=55, pressure=1013.2, rain=3.0, battery=4.1),
    )

    assert reading.pressure is None
    assert reading.rain is None
    assert "pressure" not in reading.present_channels
    assert not hasattr(reading, "battery")


@pytest.mark.asyncio
async def test_every_missing_channel_reported(assembler):
    with pytest.raises(IncompleteReading) as exc_info:
        await assembler.assemble(2, payload(date=VALID_DATE, temperature=20.0, rain=0.0))

    assert exc_info.value.missing == [
        "pressure", "humidity", "lux", "uvi",
        "wind_speed", "wind_direction", "gust_speed", "gust_direction",
    ]
    assert exc_info.value.station_id == 2
    assert "pressure, humidity" in str(exc_info.value)


@pytest.mark.asyncio
async def test_single_missing_channel(assembler):
    with pytest.raises(IncompleteReading) as exc_info:
        await assembler.assemble(1, payload(date=VALID_DATE, temperature=21.4))

    assert exc_info.value.missing == ["humidity"]


@pytest.mark.asyncio
async def test_null_value_counts_as_present(assembler):
    reading = await assembler.assemble(1, payload(date=VALID_DATE, temperature=None, humidity=55))

    assert reading.temperature is None
    assert "temperature" in reading.present_channels


@pytest.mark.asyncio
async def test_zero_is_kept(assembler):
    reading = await assembler.assemble(1, payload(date=VALID_DATE, temperature=0, humidity=0.0))

    assert reading.temperature == 0.0
    assert reading.humidity == 0.0


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["warm", "21.4", True, False, [21.4], {"value": 21.4}])
async def test_non_numeric_channel_rejected(assembler, value):
    with pytest.raises(MalformedPayload) as exc_info:
        await assembler.assemble(1, payload(date=VALID_DATE, temperature=value, humidity=55))

    assert "temperature" in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
async def test_non_finite_token_rejected(assembler, token):
    raw = f'{{"date": "{VALID_DATE}", "temperature": {token}, "humidity": 55}}'.encode("utf-8")

    with pytest.raises(MalformedPayload) as exc_info:
        await assembler.assemble(1, raw)

    assert exc_info.value.station_id == 1


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_canonical_reading_rejects_non_finite(value):
    with pytest.raises(ValidationError):
        CanonicalReading(station_id=1, date=utc(2024, 7, 15, 12), temperature=value)


def test_canonical_reading_accepts_integers():
    reading = CanonicalReading(station_id=1, date=utc(2024, 7, 15, 12), humidity=55)

    assert reading.humidity == 55.0


@pytest.mark.asyncio
@pytest.mark.parametrize("fields", [
    {"temperature": 21.4, "humidity": 55},
    {"date": None, "temperature": 21.4, "humidity": 55},
    {"date": "", "temperature": 21.4, "humidity": 55},
])
async def test_missing_timestamp(assembler, fields):
    with pytest.raises(MissingTimestamp):
        await assembler.assemble(1, payload(**fields))


@pytest.mark.asyncio
@pytest.mark.parametrize("date", [
    "1 January 0:00:00 2024",
    "Monday 1 Janvier 0:00:00 2024",
    "Tuesday 1 January 0:00:00 2024",
    1704067200,
])
async def test_invalid_timestamp(assembler, date):
    with pytest.raises(InvalidTimestamp) as exc_info:
        await assembler.assemble(1, payload(date=date, temperature=21.4, humidity=55))

    assert exc_info.value.station_id == 1


@pytest.mark.asyncio
async def test_timestamp_checked_before_channels(assembler):
    with pytest.raises(InvalidTimestamp):
        await assembler.assemble(1, payload(date="yesterday"))


@pytest.mark.asyncio
async def test_unknown_station(assembler):
    with pytest.raises(UnknownStation) as exc_info:
        await assembler.assemble(42, payload(date=VALID_DATE, temperature=21.4))

    assert isinstance(exc_info.value, NotFound)
    assert exc_info.value.station_id == 42


@pytest.mark.asyncio
async def test_station_without_sensors_needs_only_date(db, session_factory):
    await add_station(db, 3)
    assembler = RecordAssembler(CapabilityRegistry(session_factory))

    reading = await assembler.assemble(3, payload(date=VALID_DATE, temperature=19.0))

    assert reading.present_channels == []
    assert reading.temperature is None


@pytest.mark.asyncio
async def test_all_failures_are_collector_errors(assembler):
    for raw in (b"{", payload(), payload(date="bad"), payload(date=VALID_DATE)):
        with pytest.raises(CollectorError):
            await assembler.assemble(2, raw)
