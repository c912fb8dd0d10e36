"""
Page-preview metadata fetching for rich_text_extraction.

Fetches one page per URL and reads its OpenGraph properties into a flat
string mapping. Every expected failure (bad URL, network error, non-2xx
status, unusable cache) comes back as {"error": ...} instead of an exception.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from rich_text_extraction.cache import SafeCache, resolve_cache
from rich_text_extraction.models import FetchOptions

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
DEFAULT_MAX_REDIRECTS = 3
DEFAULT_USER_AGENT = "RichTextExtraction/1.0"
CACHE_NAMESPACE = "opengraph"

INVALID_URL = "invalid_url"

# og:<name> properties copied into a record
RECOGNIZED_PROPERTIES = ("title", "description", "image", "site_name", "type", "url")
URL_PROPERTIES = ("image", "url")

DEFAULT_PORTS = {"http": 80, "https": 443}


def is_valid_url(url: Any) -> bool:
    """Check that url is an http(s) URL with a host."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
        parsed.port  # raises ValueError for a malformed port
    except ValueError:
        return False
    return parsed.scheme.lower() in DEFAULT_PORTS and bool(parsed.hostname)


def normalize_cache_key(url: str) -> str:
    """
    Reduce a URL to scheme, host and path so equivalent URLs share a cache slot.

    Lower-cases scheme and host, drops credentials, default ports, query,
    fragment and a trailing slash.
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    host = parsed.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = parsed.port
    if port and port != DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"
    path = parsed.path.rstrip("/")
    return f"{scheme}://{host}{path}"


def build_cache_key(key: str, prefix: Optional[str] = None) -> str:
    """Namespace a cache key when a prefix is given."""
    return f"{CACHE_NAMESPACE}:{prefix}:{key}" if prefix else key


class MetadataFetcher:
    """Fetch pages and parse their OpenGraph metadata."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, user_agent: Optional[str] = None,
                 max_redirects: int = DEFAULT_MAX_REDIRECTS, verify_ssl: bool = True,
                 session: Optional[requests.Session] = None):
        """
        Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds
            user_agent: Custom user agent string
            max_redirects: Redirects followed before giving up
            verify_ssl: Verify TLS certificates
            session: Session to reuse (a new one is created otherwise)
        """
        self.timeout = timeout
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.verify_ssl = verify_ssl
        self.session = session or requests.Session()
        self.session.max_redirects = max_redirects
        self.session.headers.update({"User-Agent": self.user_agent})

    def fetch(self, url: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Issue a single GET for url.

        Returns:
            Dictionary containing:
                - success: bool
                - status_code: int
                - content: bytes
                - final_url: str (after redirects)
                - error: str (if failed)
        """
        result = {
            "success": False,
            "status_code": 0,
            "content": b"",
            "final_url": url,
            "error": None,
        }

        try:
            response = self.session.get(
                url,
                timeout=timeout if timeout is not None else self.timeout,
                allow_redirects=True,
                verify=self.verify_ssl,
            )
            result["status_code"] = response.status_code
            if isinstance(response.url, str) and response.url:
                result["final_url"] = response.url

            if 200 <= response.status_code < 300:
                result["success"] = True
                result["content"] = response.content
            else:
                result["error"] = f"HTTP {response.status_code}"

        except requests.Timeout:
            result["error"] = "Request timeout"
        except requests.TooManyRedirects:
            result["error"] = "Too many redirects"
        except requests.ConnectionError:
            result["error"] = "Connection error"
        except Exception as e:
            result["error"] = str(e) or type(e).__name__

        if result["error"]:
            logger.debug(f"Failed to fetch {url}: {result['error']}")
        return result

    def parse(self, content, base_url: str, fallback: bool = True) -> Dict[str, str]:
        """
        Read recognized OpenGraph properties from an HTML document.

        Args:
            content: HTML as bytes or str
            base_url: URL used to resolve relative og:image / og:url values
            fallback: Fill a missing title/description from <title> and
                <meta name="description">

        Returns:
            Flat mapping such as {"title": ..., "image": ...}
        """
        soup = BeautifulSoup(content or b"", "html.parser")
        record: Dict[str, str] = {}

        for tag in soup.find_all("meta"):
            prop = tag.get("property") or tag.get("name")
            if not isinstance(prop, str) or not prop.lower().startswith("og:"):
                continue
            name = prop[3:].strip().lower()
            if name not in RECOGNIZED_PROPERTIES or name in record:
                continue
            value = (tag.get("content") or "").strip()
            if not value:
                continue
            if name in URL_PROPERTIES:
                value = urljoin(base_url, value)
            record[name] = value

        if fallback:
            if "title" not in record:
                title_tag = soup.find("title")
                if title_tag and title_tag.get_text().strip():
                    record["title"] = title_tag.get_text().strip()
            if "description" not in record:
                desc_tag = soup.find("meta", attrs={"name": "description"})
                if desc_tag and (desc_tag.get("content") or "").strip():
                    record["description"] = desc_tag["content"].strip()

        return record

    def fetch_metadata(self, url, cache=None, options=None) -> Dict[str, str]:
        """
        Fetch page metadata for url, reading and filling the cache.

        Args:
            url: Page URL
            cache: Anything resolve_cache() accepts; unusable values disable caching
            options: FetchOptions or a mapping of its fields

        Returns:
            Metadata record, or {"error": message}
        """
        if not is_valid_url(url):
            return {"error": INVALID_URL}

        options = FetchOptions.coerce(options)
        url = url.strip()
        backend = SafeCache(resolve_cache(cache))
        key = build_cache_key(normalize_cache_key(url), options.key_prefix)

        cached = backend.get(key)
        if cached is not None:
            logger.debug(f"Metadata cache hit for {key}")
            return cached

        result = self.fetch(url, timeout=options.timeout)
        if not result["success"]:
            record = {"error": result["error"]}
            if options.negative_ttl and options.negative_ttl > 0 and backend.supports_ttl:
                backend.set(key, record, ttl=options.negative_ttl)
            return record

        try:
            record = self.parse(result["content"], result["final_url"], fallback=options.fallback)
        except Exception as e:
            logger.debug(f"Failed to parse metadata for {url}: {e}")
            return {"error": f"Parse error: {e}"}

        backend.set(key, record, ttl=options.expires_in)
        return record

    def clear_cache(self, url, cache=None, options=None) -> bool:
        """Drop the cached record for url; returns True if one was removed."""
        return clear_metadata_cache(url, cache=cache, options=options)


def create_fetcher(**kwargs) -> MetadataFetcher:
    """Create a MetadataFetcher instance with optional configuration."""
    return MetadataFetcher(**kwargs)


def extract_metadata(url, cache=None, options=None,
                     fetcher: Optional[MetadataFetcher] = None) -> Dict[str, str]:
    """Fetch metadata for one URL; see MetadataFetcher.fetch_metadata."""
    if fetcher is None:
        if not is_valid_url(url):
            return {"error": INVALID_URL}
        fetcher = create_fetcher()
    return fetcher.fetch_metadata(url, cache=cache, options=options)


def clear_metadata_cache(url, cache=None, options=None) -> bool:
    """Drop the cached record for url from cache."""
    if not is_valid_url(url):
        return False
    options = FetchOptions.coerce(options)
    key = build_cache_key(normalize_cache_key(url), options.key_prefix)
    return SafeCache(resolve_cache(cache)).delete(key)
