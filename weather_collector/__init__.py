"""Weather station telemetry collector."""

__version__ = "1.0.0"
