"""
Format validators built on the extraction engine.

is_valid() answers "is this whole value exactly one entity of kind?", which
is what record-validation layers need for fields such as an email address or
a hashtag. Identifier formats and checksums (ISBN, IBAN, barcodes, UUIDs
and others) live here too.
"""
import ipaddress
import re
from typing import Callable, Dict, Optional

from rich_text_extraction.extractor import find_matches
from rich_text_extraction.models import ExtractionKind

WORD_PATTERN = re.compile(r"\w+")
IBAN_PATTERN = re.compile(r"[A-Z]{2}\d{2}[A-Z0-9]{11,30}")
ISSN_PATTERN = re.compile(r"\d{4}-?\d{3}[\dX]")
VIN_PATTERN = re.compile(r"[A-HJ-NPR-Z0-9]{17}")
EAN13_PATTERN = re.compile(r"\d{13}")
UPCA_PATTERN = re.compile(r"\d{12}")
UUID_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
MAC_PATTERN = re.compile(r"(?:[0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}")
HEX_COLOR_PATTERN = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")

VIN_TRANSLITERATION = {
    "A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 6, "G": 7, "H": 8,
    "J": 1, "K": 2, "L": 3, "M": 4, "N": 5, "P": 7, "R": 9,
    "S": 2, "T": 3, "U": 4, "V": 5, "W": 6, "X": 7, "Y": 8, "Z": 9,
}
VIN_WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)

ERROR_MESSAGES = {
    ExtractionKind.LINKS.value: "is not a valid URL",
    ExtractionKind.EMAILS.value: "is not a valid email address",
    ExtractionKind.MENTIONS.value: "is not a valid mention",
    ExtractionKind.HASHTAGS.value: "is not a valid hashtag",
    ExtractionKind.PHONES.value: "is not a valid phone number",
    ExtractionKind.DATES.value: "is not a valid date",
    ExtractionKind.IMAGES.value: "is not a valid image URL",
    ExtractionKind.MARKDOWN_TABLES.value: "is not a valid markdown table",
    ExtractionKind.MARKDOWN_CODE.value: "is not valid markdown code",
    "isbn": "is not a valid ISBN",
    "issn": "is not a valid ISSN",
    "iban": "is not a valid IBAN",
    "vin": "is not a valid VIN",
    "luhn": "does not pass the Luhn checksum",
    "ean13": "is not a valid EAN-13 barcode",
    "upca": "is not a valid UPC-A barcode",
    "uuid": "is not a valid UUID",
    "ip": "is not a valid IP address",
    "mac_address": "is not a valid MAC address",
    "hex_color": "is not a valid hex color",
}


def is_valid(value, kind) -> bool:
    """
    Check that value, once stripped, is exactly one entity of kind.

    Raises:
        ValueError: If kind is not a known extraction kind
    """
    kind = ExtractionKind.coerce(kind)
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    matches = find_matches(candidate, kind)
    if len(matches) != 1:
        return False
    match = matches[0]
    if kind in (ExtractionKind.HASHTAGS, ExtractionKind.MENTIONS):
        # span covers the marker, value does not
        return match.start == 0 and match.end == len(candidate)
    return match.value == candidate


def valid_hashtag(tag) -> bool:
    """A bare hashtag body such as "ruby" (no leading #)."""
    return isinstance(tag, str) and WORD_PATTERN.fullmatch(tag) is not None


def valid_mention(mention) -> bool:
    """A bare mention body such as "alice" (no leading @)."""
    return isinstance(mention, str) and WORD_PATTERN.fullmatch(mention) is not None


def valid_isbn(isbn) -> bool:
    """ISBN-10 or ISBN-13 checksum (hyphens and spaces ignored)."""
    if not isinstance(isbn, str):
        return False
    digits = re.sub(r"[^0-9Xx]", "", isbn).upper()

    if len(digits) == 10:
        if "X" in digits[:-1]:
            return False
        total = sum((10 if ch == "X" else int(ch)) * (10 - i) for i, ch in enumerate(digits))
        return total % 11 == 0
    if len(digits) == 13 and digits.isdigit():
        total = sum(int(ch) * (1 if i % 2 == 0 else 3) for i, ch in enumerate(digits))
        return total % 10 == 0
    return False


def valid_issn(issn) -> bool:
    """ISSN mod-11 check digit."""
    if not isinstance(issn, str):
        return False
    issn = issn.strip().upper()
    if not ISSN_PATTERN.fullmatch(issn):
        return False
    digits = issn.replace("-", "")
    total = sum(int(ch) * (8 - i) for i, ch in enumerate(digits[:7]))
    check = (11 - total % 11) % 11
    return digits[7] == ("X" if check == 10 else str(check))


def valid_iban(iban) -> bool:
    """IBAN mod-97 check."""
    if not isinstance(iban, str):
        return False
    iban = re.sub(r"\s+", "", iban).upper()
    if not IBAN_PATTERN.fullmatch(iban):
        return False
    rearranged = iban[4:] + iban[:4]
    numeric = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(numeric) % 97 == 1


def luhn_valid(number) -> bool:
    """Luhn checksum used by payment cards and IMEIs."""
    if not isinstance(number, str):
        return False
    digits = [int(ch) for ch in number if ch.isdigit()]
    if len(digits) < 2:
        return False
    total = 0
    for i, digit in enumerate(reversed(digits)):
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def valid_vin(vin) -> bool:
    """Vehicle identification number check digit (position 9)."""
    if not isinstance(vin, str):
        return False
    vin = vin.strip().upper()
    if not VIN_PATTERN.fullmatch(vin):
        return False
    total = sum(
        (int(ch) if ch.isdigit() else VIN_TRANSLITERATION[ch]) * weight
        for ch, weight in zip(vin, VIN_WEIGHTS)
    )
    check = total % 11
    return vin[8] == ("X" if check == 10 else str(check))


def _gtin_valid(digits: str) -> bool:
    # UPC-A is EAN-13 with an implied leading zero
    digits = digits.zfill(13)
    total = sum(int(ch) * (1 if i % 2 == 0 else 3) for i, ch in enumerate(digits))
    return total % 10 == 0


def valid_ean13(code) -> bool:
    """EAN-13 barcode: 13 digits with a mod-10 check digit."""
    if not isinstance(code, str):
        return False
    code = code.strip()
    return EAN13_PATTERN.fullmatch(code) is not None and _gtin_valid(code)


def valid_upca(code) -> bool:
    """UPC-A barcode: 12 digits with a mod-10 check digit."""
    if not isinstance(code, str):
        return False
    code = code.strip()
    return UPCA_PATTERN.fullmatch(code) is not None and _gtin_valid(code)


def valid_uuid(value) -> bool:
    return isinstance(value, str) and UUID_PATTERN.fullmatch(value.strip()) is not None


def valid_ip(value) -> bool:
    """IPv4 or IPv6 address."""
    if not isinstance(value, str):
        return False
    try:
        ipaddress.ip_address(value.strip())
    except ValueError:
        return False
    return True


def valid_mac_address(value) -> bool:
    return isinstance(value, str) and MAC_PATTERN.fullmatch(value.strip()) is not None


def valid_hex_color(value) -> bool:
    """CSS hex color such as #fff or #1a2b3c."""
    return isinstance(value, str) and HEX_COLOR_PATTERN.fullmatch(value.strip()) is not None


IDENTIFIER_VALIDATORS: Dict[str, Callable[[str], bool]] = {
    "isbn": valid_isbn,
    "issn": valid_issn,
    "iban": valid_iban,
    "vin": valid_vin,
    "luhn": luhn_valid,
    "ean13": valid_ean13,
    "upca": valid_upca,
    "uuid": valid_uuid,
    "ip": valid_ip,
    "mac_address": valid_mac_address,
    "hex_color": valid_hex_color,
}


def validate(value, kind) -> Optional[str]:
    """
    Validate value against an extraction kind or an identifier scheme.

    Args:
        value: Field value
        kind: An ExtractionKind (or its value) or a key of IDENTIFIER_VALIDATORS

    Returns:
        None when valid, otherwise an error message

    Raises:
        ValueError: If kind is neither an extraction kind nor an identifier scheme
    """
    checker = IDENTIFIER_VALIDATORS.get(kind) if isinstance(kind, str) else None
    if checker is not None:
        return None if checker(value) else ERROR_MESSAGES[kind]

    kind = ExtractionKind.coerce(kind)
    return None if is_valid(value, kind) else ERROR_MESSAGES[kind.value]
