"""News aggregation API: provider adapters, storage, cached reads and personalization."""

__version__ = "0.1.0"
