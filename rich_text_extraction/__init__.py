"""
Rich Text Extraction

Pull structured entities (links, @mentions, #hashtags, emails, phone numbers,
dates, image URLs, markdown tables and code) out of free text, and enrich
links with OpenGraph page metadata through a pluggable cache.

Design Principles:
- One recognizer table, one precedence order, no overlapping reports
- Failures are data: fetch problems come back as {"error": ...}
- Caching is explicit and optional; a broken cache never breaks a fetch

Example Usage:
    >>> from rich_text_extraction import Extractor, extract_metadata
    >>> ex = Extractor("Ping @alice about #release at https://example.com")
    >>> ex.links(), ex.mentions(), ex.tags()
    (['https://example.com'], ['alice'], ['release'])
    >>> cache = {}
    >>> extract_metadata("https://example.com", cache=cache)
"""

__version__ = "1.0.0"
__author__ = "Rich Text Extraction Contributors"

# Extraction
from rich_text_extraction.models import ExtractionKind, FetchOptions, LinkObject, Match
from rich_text_extraction.extractor import extract, extract_all, excerpt, find_matches
from rich_text_extraction.facade import Extractor, extract_rich_text

# Metadata
from rich_text_extraction.metadata import (
    MetadataFetcher,
    build_cache_key,
    clear_metadata_cache,
    create_fetcher,
    extract_metadata,
    is_valid_url,
    normalize_cache_key,
)

# Caching
from rich_text_extraction.cache import (
    CacheBackend,
    CacheIntegrations,
    ExternalCache,
    InMemoryCache,
    MappingCache,
    NoCache,
    integrations,
    resolve_cache,
)

# Adapters
from rich_text_extraction.previews import render_preview
from rich_text_extraction.rendering import render_markdown_html
from rich_text_extraction.validators import IDENTIFIER_VALIDATORS, is_valid, validate

__all__ = [
    # Extraction
    "ExtractionKind",
    "Match",
    "LinkObject",
    "FetchOptions",
    "extract",
    "extract_all",
    "excerpt",
    "find_matches",
    "Extractor",
    "extract_rich_text",
    # Metadata
    "MetadataFetcher",
    "create_fetcher",
    "extract_metadata",
    "clear_metadata_cache",
    "is_valid_url",
    "normalize_cache_key",
    "build_cache_key",
    # Caching
    "CacheBackend",
    "NoCache",
    "InMemoryCache",
    "MappingCache",
    "ExternalCache",
    "CacheIntegrations",
    "integrations",
    "resolve_cache",
    # Adapters
    "render_preview",
    "render_markdown_html",
    "IDENTIFIER_VALIDATORS",
    "is_valid",
    "validate",
]
