"""
Deck Transport Codec.

Converts a deck to and from its share envelope: compact UTF-8 JSON embedded
in a URL (`?deck=` query or `#data=` fragment) or written raw as a `.json`
file. Also measures the envelope and classifies the risk of it exceeding
real-world URL limits.

Everything here is a pure function of its arguments. Clipboard writes and
file downloads belong to the caller.

INVARIANTS:
- decode() either returns a deck that passed the same validation rules as
  a storage write, or raises DecodeError. It never returns a partial deck.
- Local image bytes never enter the envelope; only their handle does.
"""

import base64
import binascii
import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import parse_qs, quote, unquote, urlsplit

from statdeck.config import Settings, settings
from statdeck.models.deck import Card, Deck, is_durable_url
from statdeck.models.failure import DecodeError
from statdeck.models.validation import validate_deck

logger = logging.getLogger(__name__)

QUERY_PARAM = "deck"
# Older links carried the payload under ?data= or #data=
ALT_QUERY_PARAM = "data"
FRAGMENT_PREFIX = "data="


class TransportForm(str, Enum):
    QUERY = "query"
    FRAGMENT = "fragment"
    FILE = "file"


class SizeStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class TransportLimits:
    """
    Size thresholds for share URLs, in bytes.

    Attributes:
        warning_bytes: Absolute ceiling above which a link is risky
        error_bytes: Ceiling above which a link is expected to break
        target_limits: Known URL length limit per browser target
    """

    warning_bytes: int = 25_000
    error_bytes: int = 30_000
    target_limits: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "TransportLimits":
        return cls(
            warning_bytes=config.share_warning_bytes,
            error_bytes=config.share_error_bytes,
            target_limits=dict(config.share_browser_limits),
        )

    @property
    def smallest_target_limit(self) -> int | None:
        return min(self.target_limits.values()) if self.target_limits else None

    @property
    def warning_ceiling(self) -> int:
        """The lower of the absolute warning ceiling and the smallest target limit."""
        smallest = self.smallest_target_limit
        if smallest is None:
            return self.warning_bytes
        return min(self.warning_bytes, smallest)


@dataclass(frozen=True)
class BrowserSupport:
    target: str
    limit: int
    supported: bool


@dataclass(frozen=True)
class MigrationReport:
    """
    Image portability of a deck.

    Attributes:
        blob_count: Cards whose image only resolves locally
        missing_image_count: Cards with no image at all
    """

    blob_count: int
    missing_image_count: int

    @property
    def needs_migration(self) -> bool:
        return self.blob_count > 0


# =============================================================================
# ENCODING
# =============================================================================


def encode_deck_json(deck: Deck) -> str:
    """Deterministic compact JSON of the full deck, without image bytes."""
    return json.dumps(deck.to_dict(), ensure_ascii=False, separators=(",", ":"))


def encode(
    deck: Deck,
    form: TransportForm = TransportForm.QUERY,
    origin: str | None = None,
) -> str:
    """
    Encode a deck into its share envelope.

    Args:
        deck: Deck to encode
        form: URL query, URL fragment, or raw file content
        origin: Base URL for link forms (defaults to settings.share_origin)

    Returns:
        The share URL, or pretty-printed JSON for TransportForm.FILE
    """
    if form is TransportForm.FILE:
        return json.dumps(deck.to_dict(), ensure_ascii=False, indent=2)

    base = (origin if origin is not None else settings.share_origin).rstrip("/")
    payload = quote(encode_deck_json(deck), safe="")
    if form is TransportForm.FRAGMENT:
        return f"{base}#{FRAGMENT_PREFIX}{payload}"
    return f"{base}?{QUERY_PARAM}={payload}"


def measure_size(deck: Deck, origin: str | None = None) -> int:
    """Exact UTF-8 byte length of the deck's share URL."""
    return len(encode(deck, TransportForm.QUERY, origin).encode("utf-8"))


def export_filename(deck: Deck) -> str:
    """File name for a JSON export ("Tales of the Uncanny" -> "tales-of-the-uncanny.json")."""
    slug = re.sub(r"[^a-z0-9]+", "-", deck.meta.name.lower()).strip("-")
    return f"{slug or 'deck'}.json"


# =============================================================================
# DECODING
# =============================================================================


def _unwrap_payload(text: str) -> str:
    """Return JSON text, decoding a base64 payload if that is what was sent."""
    text = text.strip()
    if text.startswith("{"):
        return text

    padded = text + "=" * (-len(text) % 4)
    for decoder in (base64.urlsafe_b64decode, base64.b64decode):
        try:
            decoded = decoder(padded).decode("utf-8")
        except (binascii.Error, ValueError):
            continue
        if decoded.lstrip().startswith("{"):
            return decoded

    raise DecodeError("Invalid deck data in link", detail="Payload is neither JSON nor base64 JSON")


def _extract_payload(transport: str) -> str:
    if transport.startswith("{"):
        return transport

    parts = urlsplit(transport)
    if parts.fragment.startswith(FRAGMENT_PREFIX):
        return _unwrap_payload(unquote(parts.fragment[len(FRAGMENT_PREFIX) :]))

    query = parse_qs(parts.query, keep_blank_values=True)
    for param in (QUERY_PARAM, ALT_QUERY_PARAM):
        values = query.get(param)
        if values and values[0]:
            return _unwrap_payload(values[0])

    raise DecodeError("No deck data found in link")


def decode(transport: str) -> Deck:
    """
    Decode a share URL, fragment, query string, or JSON file content.

    Raises:
        DecodeError: If the input cannot be parsed or fails validation
    """
    if not isinstance(transport, str) or not transport.strip():
        raise DecodeError("No deck data found in link")

    text = _extract_payload(transport.strip())

    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError, ValueError) as e:
        # Deeply nested payloads exhaust the parser stack before they fail as JSON
        logger.warning("Share payload is not valid JSON: %s", type(e).__name__)
        raise DecodeError("Invalid deck data in link", detail=str(e)) from e

    try:
        issues = validate_deck(data)
    except (RecursionError, TypeError, ValueError) as e:
        raise DecodeError("Invalid deck data in link", detail=str(e)) from e
    if issues:
        raise DecodeError(
            f"Invalid deck data in link: {', '.join(issue.message for issue in issues)}",
            detail=", ".join(issue.field for issue in issues),
        )

    try:
        return Deck.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError("Invalid deck data in link", detail=str(e)) from e


# =============================================================================
# SIZE CLASSIFICATION
# =============================================================================


def classify(size: int, limits: TransportLimits | None = None) -> SizeStatus:
    """
    Classify a share URL size.

    With the default limits: above 30,000 bytes is an error, above 25,000
    (or above the smallest browser limit, if lower) is a warning.
    """
    limits = limits or TransportLimits.from_settings()
    if size > limits.error_bytes:
        return SizeStatus.ERROR
    if size > limits.warning_ceiling:
        return SizeStatus.WARNING
    return SizeStatus.OK


def browser_support(size: int, limits: TransportLimits | None = None) -> list[BrowserSupport]:
    """Whether each known browser target can open a URL of this size."""
    limits = limits or TransportLimits.from_settings()
    return [
        BrowserSupport(target=target, limit=limit, supported=size <= limit)
        for target, limit in limits.target_limits.items()
    ]


# =============================================================================
# IMAGE PORTABILITY
# =============================================================================


def cards_needing_migration(deck: Deck) -> list[Card]:
    """
    Cards whose image cannot resolve on a recipient's machine.

    Only absolute http(s) URLs count as durable, whatever the reference type.
    """
    return [
        card for card in deck.cards if card.image is not None and not is_durable_url(card.image.ref)
    ]


def detect_migration_needed(deck: Deck) -> MigrationReport:
    """Count local-only images and missing images in a deck."""
    return MigrationReport(
        blob_count=len(cards_needing_migration(deck)),
        missing_image_count=sum(1 for card in deck.cards if card.image is None),
    )
