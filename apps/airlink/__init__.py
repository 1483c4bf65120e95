"""AirLink: real-time relay for short-lived file-transfer sessions."""

__version__ = "0.1.0"
