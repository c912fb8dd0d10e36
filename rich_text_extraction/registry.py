"""
Recognizer registry for rich_text_extraction.

A static table mapping each ExtractionKind to the compiled pattern that finds
it and the normalization that turns a raw regex match into a reported value.
The table is built once at import time and exposed read-only.
"""
import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from rich_text_extraction.models import ExtractionKind, Match, RecognizerRule


IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "svg", "webp")

# Highest precedence first
PRECEDENCE = (
    ExtractionKind.LINKS,
    ExtractionKind.EMAILS,
    ExtractionKind.MENTIONS,
    ExtractionKind.HASHTAGS,
    ExtractionKind.IMAGES,
    ExtractionKind.PHONES,
    ExtractionKind.DATES,
    ExtractionKind.MARKDOWN_TABLES,
    ExtractionKind.MARKDOWN_CODE,
)

# Block-level constructs contain other entities instead of competing with them
CONTAINER_KINDS = frozenset({
    ExtractionKind.MARKDOWN_TABLES,
    ExtractionKind.MARKDOWN_CODE,
})

URL_PATTERN = re.compile(r"https?://[^\s<>\"'`]+", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
MENTION_PATTERN = re.compile(r"(?<![\w@.])@(\w+)")
HASHTAG_PATTERN = re.compile(r"(?<![\w&])#(\w+)")
PHONE_PATTERN = re.compile(
    r"(?<![\w/.+-])"
    r"(?!\d{4}-\d{2}-\d{2}(?!\d))(?!\d{2}/\d{2}/\d{4})"
    r"\+?\(?\d[\d\-() ]{5,}\d(?![\w/])"
)
DATE_PATTERN = re.compile(r"\b\d{4}-\d{2}-\d{2}\b|\b\d{2}/\d{2}/\d{4}\b")
MARKDOWN_TABLE_PATTERN = re.compile(
    r"^[ \t]*\|[^\n]*\|[ \t]*\n"
    r"[ \t]*\|(?:[ \t]*:?-+:?[ \t]*\|)+[ \t]*"
    r"(?:\n[ \t]*\|[^\n]*\|[ \t]*)*",
    re.MULTILINE,
)
MARKDOWN_CODE_PATTERN = re.compile(r"```[\s\S]*?```|`[^`\n]+`")

LINK_TRAILING_PUNCTUATION = ".,!?:;"
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15
# a bare space after this many digits starts the next number
PHONE_GROUP_DIGITS = 10
PHONE_TOKEN_PATTERN = re.compile(r"\S+")


def _strip_link(url: str) -> str:
    """Strip sentence punctuation and unbalanced closing brackets from a URL."""
    while url:
        last = url[-1]
        if last in LINK_TRAILING_PUNCTUATION:
            url = url[:-1]
        elif last == ")" and url.count(")") > url.count("("):
            url = url[:-1]
        elif last == "]" and url.count("]") > url.count("["):
            url = url[:-1]
        else:
            break
    return url


def normalize_link(match) -> Optional[Match]:
    url = _strip_link(match.group(0))
    if not urlparse(url).netloc:
        return None
    return Match(url, match.start(), match.start() + len(url))


def normalize_image(match) -> Optional[Match]:
    found = normalize_link(match)
    if found is None:
        return None
    path = urlparse(found.value).path.lower()
    if not path.endswith(tuple(f".{ext}" for ext in IMAGE_EXTENSIONS)):
        return None
    return found


def normalize_symbol(match) -> Optional[Match]:
    """Report the word after the @ or # marker; the span keeps the marker."""
    return Match(match.group(1), match.start(), match.end())


def _phone_groups(run: str) -> List[Tuple[int, int, int, bool]]:
    """
    Split a run of phone characters at spaces into number-shaped groups.

    A space closes the current group once it holds PHONE_GROUP_DIGITS digits,
    when the next token would push it past MAX_PHONE_DIGITS, or around a
    token that is a date.

    Returns:
        (start, end, digit count, is_date) per group, offsets within run
    """
    groups: List[List] = []
    for token in PHONE_TOKEN_PATTERN.finditer(run):
        digits = sum(ch.isdigit() for ch in token.group())
        is_date = DATE_PATTERN.fullmatch(token.group()) is not None
        current = groups[-1] if groups else None
        if (current is None or is_date or current[3]
                or current[2] >= PHONE_GROUP_DIGITS
                or current[2] + digits > MAX_PHONE_DIGITS):
            groups.append([token.start(), token.end(), digits, is_date])
        else:
            current[1] = token.end()
            current[2] += digits
    return [tuple(group) for group in groups]


def normalize_phone(match) -> List[Match]:
    """Report every phone-shaped group of the run with 7 to 15 digits."""
    run = match.group(0)
    found = []
    for start, end, digits, is_date in _phone_groups(run):
        if is_date or not MIN_PHONE_DIGITS <= digits <= MAX_PHONE_DIGITS:
            continue
        value = run[start:end]
        lead = len(value) - len(value.lstrip("-)"))
        value = value[lead:].rstrip("-(")
        start += lead
        found.append(Match(value, match.start() + start, match.start() + start + len(value)))
    return found


def normalize_block(match) -> Optional[Match]:
    raw = match.group(0)
    value = raw.strip()
    if not value:
        return None
    start = match.start() + (len(raw) - len(raw.lstrip()))
    return Match(value, start, start + len(value))


def normalize_plain(match) -> Optional[Match]:
    return Match(match.group(0), match.start(), match.end())


_RULE_SPECS = {
    ExtractionKind.LINKS: (URL_PATTERN, normalize_link),
    ExtractionKind.EMAILS: (EMAIL_PATTERN, normalize_plain),
    ExtractionKind.MENTIONS: (MENTION_PATTERN, normalize_symbol),
    ExtractionKind.HASHTAGS: (HASHTAG_PATTERN, normalize_symbol),
    ExtractionKind.IMAGES: (URL_PATTERN, normalize_image),
    ExtractionKind.PHONES: (PHONE_PATTERN, normalize_phone),
    ExtractionKind.DATES: (DATE_PATTERN, normalize_plain),
    ExtractionKind.MARKDOWN_TABLES: (MARKDOWN_TABLE_PATTERN, normalize_block),
    ExtractionKind.MARKDOWN_CODE: (MARKDOWN_CODE_PATTERN, normalize_block),
}

# Kinds a rule does not yield to even though they rank higher
_EXEMPTIONS = {
    # every image URL is also a link
    ExtractionKind.IMAGES: frozenset({ExtractionKind.LINKS}),
}


def _build_rules() -> Dict[ExtractionKind, RecognizerRule]:
    rules = {}
    for precedence, kind in enumerate(PRECEDENCE):
        pattern, normalize = _RULE_SPECS[kind]
        if kind in CONTAINER_KINDS:
            yields_to = frozenset()
        else:
            higher = {k for k in PRECEDENCE[:precedence] if k not in CONTAINER_KINDS}
            yields_to = frozenset(higher - _EXEMPTIONS.get(kind, frozenset()))
        rules[kind] = RecognizerRule(
            kind=kind,
            pattern=pattern,
            normalize=normalize,
            precedence=precedence,
            claims=kind not in CONTAINER_KINDS,
            yields_to=yields_to,
        )
    return rules


RULES: Mapping[ExtractionKind, RecognizerRule] = MappingProxyType(_build_rules())


def get_rule(kind) -> RecognizerRule:
    """
    Look up the recognizer rule for a kind.

    Raises:
        ValueError: If kind is not a known extraction kind
    """
    return RULES[ExtractionKind.coerce(kind)]


def rules_in_order() -> List[RecognizerRule]:
    """All rules, highest precedence first."""
    return [RULES[kind] for kind in PRECEDENCE]
