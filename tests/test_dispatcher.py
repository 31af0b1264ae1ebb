"""
Tests for the ingestion dispatcher and the end-to-end message pipeline.

The broker is replaced by an in-process transport that subscribes in
memory and delivers a fixed list of messages.
"""

import json
import logging
from datetime import date

import pytest
from sqlalchemy import func, select

from helpers import add_station, naive, utc
from weather_collector.core.capabilities import CapabilityRegistry
from weather_collector.core.exceptions import SubscriptionError
from weather_collector.crud.readings import reading as reading_crud
from weather_collector.crud.summaries import daily_summary, hourly_summary
from weather_collector.ingestion import DispatcherState, IngestionDispatcher, IngestionPipeline
from weather_collector.models.reading import WeatherReading


class FakeTransport:
    """Transport double: records subscriptions and replays queued messages."""

    def __init__(self, messages=(), refuse=None):
        self.messages = list(messages)
        self.refuse = refuse
        self.subscriptions = []

    async def subscribe(self, topic, qos=0):
        if topic == self.refuse:
            raise RuntimeError("Not authorized")
        self.subscriptions.append((topic, qos))

    async def run(self, on_connect, on_message, on_disconnect=None):
        await on_connect()
        for topic, payload in self.messages:
            on_message(topic, payload)


def message(**fields) -> bytes:
    return json.dumps(fields).encode("utf-8")


async def build_dispatcher(session_factory, transport, **kwargs):
    registry = CapabilityRegistry(session_factory)
    await registry.load()
    pipeline = IngestionPipeline(registry, session_factory)
    kwargs.setdefault("max_concurrency", 1)
    return IngestionDispatcher(transport, pipeline, registry.station_ids(), **kwargs)


async def count_readings(session_factory) -> int:
    async with session_factory() as db:
        result = await db.execute(select(func.count()).select_from(WeatherReading))
        return result.scalar_one()


# Topics
def test_topic_mapping_default_template():
    dispatcher = IngestionDispatcher(FakeTransport(), None, [1, 25])

    assert dispatcher.topic_for(25) == "/25"
    assert dispatcher.station_id_for("/25") == 25
    assert dispatcher.station_id_for("/26") is None
    assert dispatcher.station_id_for("/abc") is None
    assert dispatcher.station_id_for("25") is None
    assert dispatcher.station_id_for("/-1") is None
    assert dispatcher.station_id_for("/²") is None
    assert dispatcher.station_id_for("/٢٥") is None


def test_topic_mapping_custom_template():
    dispatcher = IngestionDispatcher(
        FakeTransport(), None, [7], topic_template="stations/{station_id}/telemetry"
    )

    assert dispatcher.topic_for(7) == "stations/7/telemetry"
    assert dispatcher.station_id_for("stations/7/telemetry") == 7
    assert dispatcher.station_id_for("stations/7/status") is None


# Lifecycle
@pytest.mark.asyncio
async def test_subscribes_one_topic_per_station(db, session_factory):
    for station_id in (3, 1, 2):
        await add_station(db, station_id, temperature=True)
    transport = FakeTransport()
    dispatcher = await build_dispatcher(session_factory, transport, qos=1)

    assert dispatcher.state is DispatcherState.DISCONNECTED

    await dispatcher.on_connect()

    assert dispatcher.state is DispatcherState.SUBSCRIBED
    assert dispatcher.subscribed_count == 3
    assert transport.subscriptions == [("/1", 1), ("/2", 1), ("/3", 1)]


@pytest.mark.asyncio
async def test_resubscribes_after_reconnect(db, session_factory):
    await add_station(db, 1, temperature=True)
    transport = FakeTransport()
    dispatcher = await build_dispatcher(session_factory, transport)

    await dispatcher.on_connect()
    dispatcher.on_disconnect(ConnectionError("lost"))
    assert dispatcher.state is DispatcherState.DISCONNECTED
    assert dispatcher.subscribed_count == 0

    await dispatcher.on_connect()
    assert dispatcher.state is DispatcherState.SUBSCRIBED
    assert transport.subscriptions == [("/1", 0), ("/1", 0)]


@pytest.mark.asyncio
async def test_subscription_failure_is_fatal(db, session_factory):
    await add_station(db, 1, temperature=True)
    await add_station(db, 2, temperature=True)
    dispatcher = await build_dispatcher(session_factory, FakeTransport(refuse="/2"))

    with pytest.raises(SubscriptionError) as exc_info:
        await dispatcher.run()

    assert exc_info.value.station_id == 2
    assert dispatcher.state is DispatcherState.DISCONNECTED


@pytest.mark.asyncio
async def test_unexpected_topic_dropped(db, session_factory, caplog):
    await add_station(db, 1, temperature=True)
    dispatcher = await build_dispatcher(session_factory, FakeTransport())

    with caplog.at_level(logging.WARNING):
        assert dispatcher.on_message("/999", b"{}") is None
        assert dispatcher.on_message("/weather", b"{}") is None
        assert dispatcher.on_message("/²", b"{}") is None

    assert dispatcher.in_flight == 0
    assert "unexpected topic" in caplog.text


# End to end
@pytest.mark.asyncio
async def test_end_to_end_accepts_and_rejects(db, session_factory):
    await add_station(db, 1, temperature=True, humidity=True)
    transport = FakeTransport(messages=[
        ("/1", message(date="Monday 15 July 12:34:56 2024", temperature=21.4, humidity=55)),
        ("/1", message(date="Tuesday 16 July 08:00:00 2024", temperature=19.0)),
    ])
    dispatcher = await build_dispatcher(session_factory, transport)

    await dispatcher.run()
    await dispatcher.drain()

    assert await count_readings(session_factory) == 1
    async with session_factory() as check:
        stored = await reading_crud.get_reading(check, station_id=1, instant=utc(2024, 7, 15, 12, 34, 56))
        assert stored.temperature == 21.4
        assert stored.humidity == 55.0

        hourly = await hourly_summary.get_for_hour(check, station_id=1, hour=utc(2024, 7, 15, 12))
        assert naive(hourly.date) == naive(utc(2024, 7, 15, 12))
        assert hourly.avg_temperature == pytest.approx(21.4)
        assert hourly.avg_humidity == pytest.approx(55.0)

        daily = await daily_summary.get_for_date(check, station_id=1, day=date(2024, 7, 15))
        assert daily.max_temperature == 21.4
        assert daily.min_humidity == 55.0

        # the rejected reading left no trace
        assert await hourly_summary.get_for_hour(check, station_id=1, hour=utc(2024, 7, 16, 8)) is None
        assert await daily_summary.get_for_date(check, station_id=1, day=date(2024, 7, 16)) is None


@pytest.mark.asyncio
async def test_failing_message_does_not_stop_others(db, session_factory, caplog):
    await add_station(db, 1, temperature=True)
    await add_station(db, 2, temperature=True)
    transport = FakeTransport(messages=[
        ("/1", b"\x00 garbage"),
        ("/2", message(date="Monday 15 July 10:00:00 2024", temperature=18.0)),
        ("/1", message(date="Someday 15 July 10:00:00 2024", temperature=18.0)),
        ("/1", message(date="Monday 15 July 11:00:00 2024", temperature=20.0)),
    ])
    dispatcher = await build_dispatcher(session_factory, transport, max_concurrency=4)

    with caplog.at_level(logging.ERROR):
        await dispatcher.run()
        await dispatcher.drain()

    assert await count_readings(session_factory) == 2
    assert "[Station 1] MalformedPayload" in caplog.text
    assert "[Station 1] InvalidTimestamp" in caplog.text
    assert dispatcher.in_flight == 0


@pytest.mark.asyncio
async def test_replayed_message_is_stored_once(db, session_factory):
    await add_station(db, 1, temperature=True)
    body = message(date="Monday 15 July 12:00:00 2024", temperature=21.0)
    transport = FakeTransport(messages=[("/1", body), ("/1", body), ("/1", body)])
    dispatcher = await build_dispatcher(session_factory, transport)

    await dispatcher.run()
    await dispatcher.drain()

    assert await count_readings(session_factory) == 1
    async with session_factory() as check:
        hourly = await hourly_summary.get_for_hour(check, station_id=1, hour=utc(2024, 7, 15, 12))
        assert hourly.avg_temperature == pytest.approx(21.0)


@pytest.mark.asyncio
async def test_unexpected_error_logged_with_traceback(db, session_factory, caplog):
    await add_station(db, 1, temperature=True)

    class BrokenPipeline:
        async def handle(self, station_id, payload):
            raise RuntimeError("boom")

    dispatcher = IngestionDispatcher(FakeTransport(messages=[("/1", b"{}")]), BrokenPipeline(), [1])

    with caplog.at_level(logging.ERROR):
        await dispatcher.run()
        await dispatcher.drain()

    record = next(r for r in caplog.records if "Unexpected error" in r.getMessage())
    assert record.exc_info is not None
    assert record.station_id == 1
