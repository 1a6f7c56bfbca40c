"""Catalog domain - remote search and stream resolution."""

from .service import (
    CatalogService,
    HttpCatalogService,
    StreamSource,
    parse_search_results,
    parse_stream_source,
)

__all__ = [
    "CatalogService",
    "HttpCatalogService",
    "StreamSource",
    "parse_search_results",
    "parse_stream_source",
]
