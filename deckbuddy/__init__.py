"""Building blocks for a host-side game streaming helper: pairing, HTTPS server, settings, heartbeat and stream state."""

__version__ = "1.9.0"