"""TrackNest: personal log entries, shareable groups and user accounts."""

__version__ = "0.3.0"
