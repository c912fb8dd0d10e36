"""
Extraction engine for rich_text_extraction.

Applies the recognizer registry to free text. Every kind is scanned in
precedence order so that a span consumed by a higher-ranked kind (a URL, an
email address) is never reported again under a lower-ranked one (a hashtag
inside a URL fragment, a mention inside an email address).
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from rich_text_extraction.models import ExtractionKind, Match
from rich_text_extraction.registry import PRECEDENCE, RULES

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LENGTH = 300

Span = Tuple[int, int]


def _overlaps(start: int, end: int, spans: Iterable[Span]) -> bool:
    return any(start < s_end and s_start < end for s_start, s_end in spans)


def _scan(text: str, stop_at: Optional[ExtractionKind] = None,
          wanted: Optional[Iterable[ExtractionKind]] = None) -> Dict[ExtractionKind, List[Match]]:
    """
    Run the recognizers over text in precedence order.

    Args:
        text: Text to scan
        stop_at: Last kind to scan; lower kinds are skipped
        wanted: Kinds whose matches should be kept in the result

    Returns:
        Accepted matches per kind, in source order
    """
    claimed: Dict[ExtractionKind, List[Span]] = {}
    found: Dict[ExtractionKind, List[Match]] = {}
    keep = set(wanted) if wanted is not None else None

    for kind in PRECEDENCE:
        rule = RULES[kind]
        blocking = [span for other in rule.yields_to for span in claimed.get(other, ())]

        accepted = []
        for raw in rule.pattern.finditer(text):
            result = rule.normalize(raw)
            if result is None:
                continue
            for match in ([result] if isinstance(result, Match) else result):
                if not match.value:
                    continue
                if blocking and _overlaps(match.start, match.end, blocking):
                    continue
                accepted.append(match)

        if rule.claims:
            claimed[kind] = [(m.start, m.end) for m in accepted]
        if keep is None or kind in keep:
            found[kind] = accepted
        if kind == stop_at:
            break

    return found


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def find_matches(text, kind) -> List[Match]:
    """
    Find every accepted match of a kind, with spans, before deduplication.

    Raises:
        ValueError: If kind is not a known extraction kind
    """
    kind = ExtractionKind.coerce(kind)
    if not isinstance(text, str) or not text:
        return []
    return _scan(text, stop_at=kind, wanted=[kind]).get(kind, [])


def extract(text, kind) -> List[str]:
    """
    Extract the unique values of one kind from text.

    Args:
        text: Source text; non-strings and empty strings yield []
        kind: An ExtractionKind or its string value

    Returns:
        Values in order of first occurrence

    Raises:
        ValueError: If kind is not a known extraction kind
    """
    return _unique(m.value for m in find_matches(text, kind))


def extract_all(text, kinds: Optional[Iterable] = None) -> Dict[str, List[str]]:
    """
    Extract several kinds in a single pass.

    Args:
        text: Source text
        kinds: Kinds to return (default: all)

    Returns:
        Mapping of kind value (e.g. "links") to its extraction result
    """
    selected = [ExtractionKind.coerce(k) for k in kinds] if kinds is not None else list(PRECEDENCE)
    if not isinstance(text, str) or not text:
        return {kind.value: [] for kind in selected}

    found = _scan(text, wanted=selected)
    results = {kind.value: _unique(m.value for m in found.get(kind, [])) for kind in selected}
    logger.debug("Extracted %s", {k: len(v) for k, v in results.items()})
    return results


def excerpt(text, length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """Shorten text to at most length characters, marking the cut with an ellipsis."""
    if not isinstance(text, str):
        return ""
    if len(text) <= length:
        return text
    return f"{text[:length].rstrip()}…"
