"""
Ingestion dispatcher.

Subscribes to one topic per station known at startup and runs every
inbound message through the pipeline as its own asyncio task. A failing
message is logged with its station id and dropped; it never affects any
other message.
"""

import asyncio
from enum import Enum
from typing import Iterable, Optional, Set, Union

from weather_collector.config import settings
from weather_collector.core.exceptions import CollectorError, SubscriptionError
from weather_collector.ingestion.pipeline import IngestionPipeline
from weather_collector.ingestion.transport import Transport
from weather_collector.utils.logging_config import get_logger, station_logger

logger = get_logger(__name__)


class DispatcherState(str, Enum):
    """Connection lifecycle of the dispatcher."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"


class IngestionDispatcher:
    """
    Routes (topic, payload) pairs from a transport to the ingestion pipeline.

    Args:
        transport: Connected-on-run publish/subscribe transport
        pipeline: Per-message pipeline
        station_ids: Stations to subscribe to; fixed for the process lifetime
        topic_template: Topic pattern containing one `{station_id}` placeholder
        qos: Subscription QoS level
        max_concurrency: Upper bound on messages processed at once
    """

    def __init__(
        self,
        transport: Transport,
        pipeline: IngestionPipeline,
        station_ids: Iterable[int],
        *,
        topic_template: str = settings.STATION_TOPIC_TEMPLATE,
        qos: int = settings.MQTT_QOS,
        max_concurrency: int = settings.MAX_CONCURRENT_MESSAGES,
    ):
        self.transport = transport
        self.pipeline = pipeline
        self.station_ids = sorted(set(station_ids))
        self.qos = qos
        self.topic_prefix, _, self.topic_suffix = topic_template.partition("{station_id}")

        self.state = DispatcherState.DISCONNECTED
        self.subscribed_count = 0

        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------

    def topic_for(self, station_id: int) -> str:
        """Topic a station publishes on."""
        return f"{self.topic_prefix}{station_id}{self.topic_suffix}"

    def station_id_for(self, topic: str) -> Optional[int]:
        """
        Recover the station id from a topic.

        Returns:
            Station id, or None if the topic does not belong to a known station
        """
        if not (topic.startswith(self.topic_prefix) and topic.endswith(self.topic_suffix)):
            return None
        end = len(topic) - len(self.topic_suffix)
        raw_id = topic[len(self.topic_prefix):end]
        if not (raw_id.isascii() and raw_id.isdigit()):
            return None
        station_id = int(raw_id)
        return station_id if station_id in self.station_ids else None

    # ------------------------------------------------------------------
    # Transport callbacks
    # ------------------------------------------------------------------

    async def on_connect(self) -> None:
        """
        Subscribe to every station topic.

        Raises:
            SubscriptionError: If any subscription is refused
        """
        self.state = DispatcherState.CONNECTED
        self.subscribed_count = 0

        for station_id in self.station_ids:
            topic = self.topic_for(station_id)
            try:
                await self.transport.subscribe(topic, qos=self.qos)
            except Exception as exc:
                self.state = DispatcherState.DISCONNECTED
                raise SubscriptionError(
                    f"Error subscribing to topic {topic}: {exc}", station_id=station_id
                ) from exc
            self.subscribed_count += 1
            logger.info(f"Subscribed to topic '{topic}'")

        self.state = DispatcherState.SUBSCRIBED
        logger.info(f"Listening on {self.subscribed_count} station topic(s)")

    def on_disconnect(self, exc: Exception) -> None:
        """Record a lost connection; the transport reconnects."""
        self.state = DispatcherState.DISCONNECTED
        self.subscribed_count = 0

    def on_message(self, topic: str, payload: Union[bytes, str]) -> Optional[asyncio.Task]:
        """
        Schedule one inbound message for processing.

        Args:
            topic: Topic the message arrived on
            payload: Raw message body

        Returns:
            The task processing the message, or None if it was dropped
        """
        station_id = self.station_id_for(topic)
        if station_id is None:
            logger.warning(f"Dropping message on unexpected topic '{topic}'")
            return None

        task = asyncio.create_task(self._process(station_id, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _process(self, station_id: int, payload: Union[bytes, str]) -> None:
        station_log = station_logger(logger, station_id)
        async with self._semaphore:
            try:
                reading = await self.pipeline.handle(station_id, payload)
            except CollectorError as exc:
                station_log.error(f"{type(exc).__name__}: {exc}")
            except Exception:
                station_log.exception("Unexpected error processing message")
            else:
                station_log.debug(f"Processed reading at {reading.date.isoformat()}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def in_flight(self) -> int:
        """Number of messages currently scheduled or being processed."""
        return len(self._tasks)

    async def run(self) -> None:
        """
        Run the transport until cancelled.

        Raises:
            TransportError: If the initial connection or subscription fails
        """
        if not self.station_ids:
            logger.warning("No stations provisioned; no topics will be subscribed")
        try:
            await self.transport.run(self.on_connect, self.on_message, self.on_disconnect)
        finally:
            self.state = DispatcherState.DISCONNECTED

    async def drain(self) -> None:
        """Wait for every in-flight message to finish."""
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} in-flight message(s)")
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
