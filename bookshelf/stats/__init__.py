"""Library statistics."""

from bookshelf.stats.aggregator import aggregate, aggregate_documents

__all__ = ["aggregate", "aggregate_documents"]
