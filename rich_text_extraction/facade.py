"""
Object interface over one piece of text.

Extractor wraps a text value and exposes one accessor per extraction kind,
plus link_objects() which optionally enriches every link with page metadata.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional

from rich_text_extraction import extractor as engine
from rich_text_extraction.cache import CacheBackend, resolve_cache
from rich_text_extraction.metadata import MetadataFetcher, clear_metadata_cache, create_fetcher
from rich_text_extraction.models import ExtractionKind, FetchOptions, LinkObject

logger = logging.getLogger(__name__)

DEADLINE_ERROR = "timeout"
DEFAULT_CONTEXT_LENGTH = 50


class Extractor:
    """
    Extract entities from a single text value.

    Example:
        >>> Extractor("Visit https://example.com #ruby @alice").tags()
        ['ruby']
    """

    def __init__(self, text: Optional[str]):
        self.text = text if isinstance(text, str) else ""

    def __repr__(self):
        preview = engine.excerpt(self.text, 40)
        return f"Extractor({preview!r})"

    def extract(self, kind) -> List[str]:
        return engine.extract(self.text, kind)

    def extract_all(self, kinds=None) -> Dict[str, List[str]]:
        return engine.extract_all(self.text, kinds)

    def links(self) -> List[str]:
        return self.extract(ExtractionKind.LINKS)

    def mentions(self) -> List[str]:
        return self.extract(ExtractionKind.MENTIONS)

    def tags(self) -> List[str]:
        return self.extract(ExtractionKind.HASHTAGS)

    hashtags = tags

    def emails(self) -> List[str]:
        return self.extract(ExtractionKind.EMAILS)

    def phones(self) -> List[str]:
        return self.extract(ExtractionKind.PHONES)

    def dates(self) -> List[str]:
        return self.extract(ExtractionKind.DATES)

    def images(self) -> List[str]:
        return self.extract(ExtractionKind.IMAGES)

    def markdown_tables(self) -> List[str]:
        return self.extract(ExtractionKind.MARKDOWN_TABLES)

    def markdown_code(self) -> List[str]:
        return self.extract(ExtractionKind.MARKDOWN_CODE)

    def excerpt(self, length: int = engine.DEFAULT_EXCERPT_LENGTH) -> str:
        return engine.excerpt(self.text, length)

    def tags_with_context(self, context_length: int = DEFAULT_CONTEXT_LENGTH) -> List[Dict[str, str]]:
        """
        Return each unique hashtag with the text surrounding its first use.

        Example:
            >>> Extractor("Shipping #release today").tags_with_context(10)
            [{'tag': 'release', 'context': 'ping #release toda'}]
        """
        return self._with_context(ExtractionKind.HASHTAGS, "tag", context_length)

    def mentions_with_context(self, context_length: int = DEFAULT_CONTEXT_LENGTH) -> List[Dict[str, str]]:
        """Return each unique mention with the text surrounding its first use."""
        return self._with_context(ExtractionKind.MENTIONS, "mention", context_length)

    def _with_context(self, kind: ExtractionKind, label: str, context_length: int):
        half = max(context_length, 0) // 2
        seen = set()
        results = []
        for match in engine.find_matches(self.text, kind):
            if match.value in seen:
                continue
            seen.add(match.value)
            start = max(match.start - half, 0)
            end = min(match.end + half, len(self.text))
            results.append({label: match.value, "context": self.text[start:end].strip()})
        return results

    def link_objects(self, with_metadata: bool = False, cache=None, cache_options=None,
                     fetcher: Optional[MetadataFetcher] = None, max_workers: int = 1,
                     deadline: Optional[float] = None) -> List[LinkObject]:
        """
        Return every link as a LinkObject, optionally with page metadata.

        Args:
            with_metadata: Fetch metadata for each link
            cache: Cache for metadata records (see resolve_cache)
            cache_options: FetchOptions or mapping (key_prefix, expires_in, ...)
            fetcher: Fetcher to use (one is created when omitted)
            max_workers: Links fetched concurrently; above 1 the cache must be thread safe
            deadline: Seconds allowed for the whole enrichment; links still
                pending afterwards get {"error": "timeout"}

        Returns:
            One LinkObject per unique link, in text order
        """
        urls = self.links()
        if not with_metadata:
            return [LinkObject(url) for url in urls]
        if not urls:
            return []

        options = FetchOptions.coerce(cache_options)
        fetcher = fetcher or create_fetcher()

        if max_workers and max_workers > 1:
            records = self._fetch_parallel(urls, fetcher, cache, options, max_workers, deadline)
        else:
            records = self._fetch_sequential(urls, fetcher, cache, options, deadline)

        return [LinkObject(url, records[url]) for url in urls]

    def _fetch_sequential(self, urls, fetcher, cache, options, deadline):
        records = {}
        stop_at = time.monotonic() + deadline if deadline else None

        for url in urls:
            if stop_at is not None:
                remaining = stop_at - time.monotonic()
                if remaining <= 0:
                    records[url] = {"error": DEADLINE_ERROR}
                    continue
                call_options = _with_timeout(options, remaining)
            else:
                call_options = options
            records[url] = _fetch_one(fetcher, url, cache, call_options)

        return records

    def _fetch_parallel(self, urls, fetcher, cache, options, max_workers, deadline):
        records = {}
        if deadline:
            options = _with_timeout(options, deadline)
            cache = _DeadlineCache(resolve_cache(cache))
        executor = ThreadPoolExecutor(max_workers=min(max_workers, len(urls)))
        try:
            futures = {
                executor.submit(_fetch_one, fetcher, url, cache, options): url
                for url in urls
            }
            done, pending = wait(futures, timeout=deadline if deadline else None)
            if deadline:
                cache.close()

            for future in done:
                records[futures[future]] = future.result()
            for future in pending:
                future.cancel()
                records[futures[future]] = {"error": DEADLINE_ERROR}
            if pending:
                logger.debug(f"{len(pending)} link(s) missed the enrichment deadline")
        finally:
            executor.shutdown(wait=False)

        return records

    def clear_link_cache(self, cache=None, cache_options=None) -> int:
        """
        Drop cached metadata for every link in the text.

        Returns:
            Number of cache entries removed
        """
        return sum(
            1 for url in self.links()
            if clear_metadata_cache(url, cache=cache, options=cache_options)
        )


class _DeadlineCache(CacheBackend):
    """
    Cache view handed to parallel workers when a deadline applies.

    Workers still running after the deadline may finish their request, but
    once close() is called their writes are dropped so nothing reaches the
    caller's cache after link_objects() has returned.
    """

    def __init__(self, backend: CacheBackend):
        self.backend = backend
        self._closed = threading.Event()

    def close(self):
        self._closed.set()

    @property
    def enabled(self) -> bool:
        return self.backend.enabled

    @property
    def supports_ttl(self) -> bool:
        return self.backend.supports_ttl

    def get(self, key):
        return self.backend.get(key)

    def set(self, key, value, ttl=None):
        if self._closed.is_set():
            logger.debug(f"Dropped late cache write for {key}")
            return
        self.backend.set(key, value, ttl=ttl)

    def delete(self, key):
        return self.backend.delete(key)


def _with_timeout(options: FetchOptions, remaining: float) -> FetchOptions:
    timeout = options.timeout
    if timeout is None or timeout > remaining:
        timeout = remaining
    return FetchOptions(
        key_prefix=options.key_prefix,
        expires_in=options.expires_in,
        negative_ttl=options.negative_ttl,
        timeout=timeout,
        fallback=options.fallback,
    )


def _fetch_one(fetcher: MetadataFetcher, url: str, cache, options: FetchOptions) -> Dict[str, str]:
    try:
        return fetcher.fetch_metadata(url, cache=cache, options=options)
    except Exception as e:
        # a caller-supplied fetcher subclass must not abort the other links
        logger.debug(f"Metadata fetch raised for {url}: {e}")
        return {"error": str(e) or type(e).__name__}


def extract_rich_text(text, with_metadata: bool = False, cache=None, cache_options=None,
                      fetcher: Optional[MetadataFetcher] = None,
                      excerpt_length: int = engine.DEFAULT_EXCERPT_LENGTH) -> Dict[str, Any]:
    """
    Aggregate every extraction for text into one plain mapping.

    Intended as the unit of work for job runners: the result holds only
    strings, lists and dicts.
    """
    target = Extractor(text)
    result: Dict[str, Any] = target.extract_all()
    result["link_objects"] = [
        link.to_dict()
        for link in target.link_objects(with_metadata=with_metadata, cache=cache,
                                        cache_options=cache_options, fetcher=fetcher)
    ]
    result["excerpt"] = target.excerpt(excerpt_length)
    return result
