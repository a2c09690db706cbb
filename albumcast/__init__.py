"""albumcast - upload ingestion, classification fan-out and report notifications."""

__version__ = "0.1.0"
