"""
Ingestion — chunking, embedding, persistence, and indexing of documents.

This module is responsible for turning an uploaded document's raw text
into persisted chunk rows and vector-index entries, while tracking the
document's lifecycle status.
"""
