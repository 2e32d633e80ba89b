from __future__ import annotations

from .registry import detect_format, get_collection_reader, get_reader, get_store, registered_formats

__all__ = ["detect_format", "get_reader", "get_store", "get_collection_reader", "registered_formats"]
