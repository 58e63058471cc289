"""Convert pi agent session logs into paginated HTML transcripts."""

__version__ = "0.1.0"
