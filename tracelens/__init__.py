"""tracelens - entity classification and computed artifacts for browser telemetry."""

__version__ = "0.1.0"
