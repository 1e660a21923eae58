"""Location sinks: where simulated fixes are sent."""

from .base import CallbackSink, LocationSink, RecordingSink

__all__ = ["CallbackSink", "LocationSink", "RecordingSink"]
