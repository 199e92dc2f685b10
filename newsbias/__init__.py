"""News ingestion and bias scoring pipeline."""

__version__ = "0.1.0"
