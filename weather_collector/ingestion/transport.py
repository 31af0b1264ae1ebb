"""
Publish/subscribe transport.

The dispatcher never touches a broker client directly: it is handed a
Transport and registers connect/message/disconnect callbacks with run().
MqttTransport is the production implementation; tests pass an in-process
fake with the same methods.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

import aiomqtt

from weather_collector.config import Settings, settings as default_settings
from weather_collector.core.exceptions import TransportError
from weather_collector.utils.logging_config import get_logger

logger = get_logger(__name__)

ConnectHandler = Callable[[], Awaitable[None]]
MessageHandler = Callable[[str, bytes], Any]
DisconnectHandler = Callable[[Exception], Any]


class Transport(Protocol):
    """Subscribe/receive primitive yielding (topic, payload) pairs."""

    async def subscribe(self, topic: str, qos: int = 0) -> None:
        ...

    async def run(
        self,
        on_connect: ConnectHandler,
        on_message: MessageHandler,
        on_disconnect: Optional[DisconnectHandler] = None,
    ) -> None:
        ...


def _payload_bytes(payload: Union[bytes, bytearray, str, int, float, None]) -> bytes:
    if payload is None:
        return b""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    return str(payload).encode("utf-8")


class MqttTransport:
    """
    MQTT broker connection over aiomqtt.

    run() connects, awaits on_connect (where the caller subscribes), then
    feeds every inbound message to on_message until cancelled. Once a first
    connection has been set up, a dropped connection is retried every
    reconnect_period seconds and on_connect runs again; failing before that
    point raises TransportError.
    """

    def __init__(
        self,
        hostname: str,
        port: int = 8883,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        identifier: Optional[str] = None,
        clean_session: bool = True,
        connect_timeout: float = 4.0,
        reconnect_period: float = 5.0,
        tls_params: Optional[aiomqtt.TLSParameters] = None,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.identifier = identifier
        self.clean_session = clean_session
        self.connect_timeout = connect_timeout
        self.reconnect_period = reconnect_period
        self.tls_params = tls_params
        self._client: Optional[aiomqtt.Client] = None

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "MqttTransport":
        """
        Build a transport from collector settings.

        Args:
            config: Settings instance (defaults to the global settings)

        Returns:
            Configured MqttTransport
        """
        tls_params = None
        if config.MQTT_TLS_ENABLED:
            tls_params = aiomqtt.TLSParameters(
                ca_certs=config.MQTT_CA_CERT,
                certfile=config.MQTT_CLIENT_CERT,
                keyfile=config.MQTT_CLIENT_KEY,
            )

        return cls(
            config.MQTT_BROKER_HOST,
            config.MQTT_BROKER_PORT,
            username=config.MQTT_USER,
            password=config.MQTT_PASS,
            identifier=config.MQTT_CLIENT_ID,
            clean_session=config.MQTT_CLEAN_SESSION,
            connect_timeout=config.MQTT_CONNECT_TIMEOUT,
            reconnect_period=config.MQTT_RECONNECT_PERIOD,
            tls_params=tls_params,
        )

    def _build_client(self) -> aiomqtt.Client:
        return aiomqtt.Client(
            self.hostname,
            self.port,
            username=self.username,
            password=self.password,
            identifier=self.identifier,
            clean_session=self.clean_session,
            timeout=self.connect_timeout,
            tls_params=self.tls_params,
        )

    async def subscribe(self, topic: str, qos: int = 0) -> None:
        """Subscribe on the live connection."""
        if self._client is None:
            raise TransportError(f"Cannot subscribe to '{topic}': not connected")
        await self._client.subscribe(topic, qos=qos)

    async def run(
        self,
        on_connect: ConnectHandler,
        on_message: MessageHandler,
        on_disconnect: Optional[DisconnectHandler] = None,
    ) -> None:
        """
        Connect and deliver messages until cancelled.

        Args:
            on_connect: Awaited after every (re)connection
            on_message: Called with (topic, payload) for every inbound message
            on_disconnect: Called with the cause when an established
                connection is lost

        Raises:
            TransportError: If the first connection or its setup fails
        """
        established = False
        while True:
            try:
                async with self._build_client() as client:
                    self._client = client
                    logger.info(f"Connected to MQTT broker {self.hostname}:{self.port}")
                    await on_connect()
                    established = True
                    async for message in client.messages:
                        on_message(message.topic.value, _payload_bytes(message.payload))
            except (aiomqtt.MqttError, TransportError) as exc:
                if not established:
                    if isinstance(exc, TransportError):
                        raise
                    raise TransportError(
                        f"MQTT connection error ({self.hostname}:{self.port}): {exc}"
                    ) from exc
                logger.warning(
                    f"MQTT connection lost: {exc}. Reconnecting in {self.reconnect_period}s"
                )
                if on_disconnect is not None:
                    on_disconnect(exc)
            finally:
                self._client = None

            await asyncio.sleep(self.reconnect_period)
