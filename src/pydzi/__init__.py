"""pydzi - Deep Zoom image pyramid generator."""

__version__ = "0.2.0"
