"""
Data types shared across rich_text_extraction.

Holds the closed set of extraction kinds, the recognizer rule shape used by
the registry, and the small value objects returned by the facade.
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, NamedTuple, Optional, Pattern, Sequence, Union


class ExtractionKind(str, Enum):
    """Entity kinds the engine knows how to extract."""
    LINKS = "links"
    MENTIONS = "mentions"
    HASHTAGS = "hashtags"
    EMAILS = "emails"
    PHONES = "phones"
    DATES = "dates"
    IMAGES = "images"
    MARKDOWN_TABLES = "markdown_tables"
    MARKDOWN_CODE = "markdown_code"

    @classmethod
    def coerce(cls, kind: Any) -> "ExtractionKind":
        """
        Turn a kind or its string value into an ExtractionKind.

        Raises:
            ValueError: If kind is not one of the known kinds
        """
        if isinstance(kind, cls):
            return kind
        if isinstance(kind, str):
            try:
                return cls(kind)
            except ValueError:
                pass
        raise ValueError(f"Unknown extraction kind: {kind!r}")


class Match(NamedTuple):
    """A reported value and the span it occupies in the source text."""
    value: str
    start: int
    end: int


@dataclass(frozen=True)
class RecognizerRule:
    """
    A compiled pattern plus normalization for one extraction kind.

    normalize receives the regex match and returns the reported Match, None
    to reject it, or a list of Matches when one raw match holds several
    entities (a run of phone numbers). claims marks accepted spans as
    consumed for the kinds listed after this one; yields_to names the kinds
    whose consumed spans discard this rule's matches.
    """
    kind: ExtractionKind
    pattern: Pattern
    normalize: Callable[[Any], Union[Match, Sequence[Match], None]]
    precedence: int
    claims: bool = True
    yields_to: FrozenSet[ExtractionKind] = frozenset()


@dataclass
class LinkObject:
    """A link found in text, optionally enriched with page metadata."""
    url: str
    metadata: Optional[Dict[str, str]] = None

    @property
    def error(self) -> Optional[str]:
        if self.metadata:
            return self.metadata.get("error")
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url}
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        return data


def _to_seconds(value: Any) -> Optional[float]:
    """Convert a duration to float seconds, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class FetchOptions:
    """
    Per-call options for metadata fetching and caching.

    Attributes:
        key_prefix: Namespace for cache keys ("opengraph:<prefix>:<url>")
        expires_in: TTL in seconds handed to cache backends that support one
        negative_ttl: When positive, error records are cached for this many
            seconds; otherwise errors are never cached
        timeout: Request timeout override in seconds
        fallback: Fill missing title/description from <title> and
            <meta name="description">
    """
    key_prefix: Optional[str] = None
    expires_in: Optional[float] = None
    negative_ttl: Optional[float] = None
    timeout: Optional[float] = None
    fallback: bool = field(default=True)

    def __post_init__(self):
        # Values from config files and query strings arrive as text
        for name in ("expires_in", "negative_ttl", "timeout"):
            setattr(self, name, _to_seconds(getattr(self, name)))

    @classmethod
    def coerce(cls, value: Any) -> "FetchOptions":
        """Build options from None, an existing instance, or a mapping."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            return cls(**{k: v for k, v in value.items() if k in known})
        return cls()
