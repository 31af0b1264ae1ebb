# Message ingestion: transport, per-message pipeline and dispatcher

from weather_collector.ingestion.dispatcher import DispatcherState, IngestionDispatcher
from weather_collector.ingestion.pipeline import IngestionPipeline
from weather_collector.ingestion.transport import MqttTransport, Transport

__all__ = [
    "DispatcherState", "IngestionDispatcher",
    "IngestionPipeline",
    "MqttTransport", "Transport",
]
