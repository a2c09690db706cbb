"""Expected response shapes for the classification functions.

Responses are never trusted implicitly: each parser validates the payload and
returns a tagged ParseResult instead of raising.

All three functions answer with a Lambda-style envelope
``{"statusCode": 200, "body": "<json>"}`` where ``body`` may also arrive
already decoded.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from albumcast.errors import ClassifierParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ParseResult(Generic[T]):
    """Either a parsed value or the parse error that replaced it."""

    value: Optional[T] = None
    error: Optional[ClassifierParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, classifier: str, reason: str) -> "ParseResult[T]":
        return cls(error=ClassifierParseError(classifier, reason))


class Envelope(BaseModel):
    """Function response envelope."""

    statusCode: Optional[int] = None
    body: Any = None


class RecognitionMatch(BaseModel):
    """One per-user match from the recognition function."""

    model_config = ConfigDict(extra="allow")

    user_id: Optional[int] = None
    distance: float
    photo_urls: Optional[Union[Dict[str, str], List[str]]] = None
    album_id: Optional[int] = None
    key: Optional[str] = None

    def resolved_album_id(self) -> Optional[int]:
        """Album id, falling back to the ``images/{albumId}/...`` storage key."""
        if self.album_id is not None:
            return self.album_id
        if self.key:
            parts = self.key.split("/")
            if len(parts) > 1 and parts[1].isdigit():
                return int(parts[1])
        return None


@dataclass
class RecognitionResponse:
    matches: List[RecognitionMatch] = field(default_factory=list)
    skipped: int = 0


class DuplicateSummary(BaseModel):
    """Duplicate function summary for one album."""

    album_id: Optional[int] = None
    total_duplicates: int = 0


def decode_body(raw: Union[str, bytes, Dict[str, Any]]) -> Any:
    """Decode an envelope and return its body.

    Raises:
        ValueError: If the envelope or body is not valid JSON
        ValidationError: If the envelope is not an object
    """
    data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    envelope = Envelope.model_validate(data)
    body = envelope.body
    if isinstance(body, (str, bytes)):
        body = json.loads(body)
    if body is None:
        raise ValueError("envelope has no body")
    return body


def parse_recognition(raw: Union[str, bytes, Dict[str, Any]]) -> ParseResult[RecognitionResponse]:
    """Parse a recognition response into per-user matches.

    The body is either a list of matches or ``{"results": [...]}``. Items
    that fail validation are skipped rather than failing the whole response.
    """
    try:
        body = decode_body(raw)
    except (ValueError, ValidationError) as e:
        return ParseResult.failure("recognition", str(e))

    items = body.get("results") if isinstance(body, dict) else body
    if not isinstance(items, list):
        return ParseResult.failure("recognition", "body is not a list of results")

    response = RecognitionResponse()
    for item in items:
        try:
            response.matches.append(RecognitionMatch.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed recognition result {item!r}: {e}")
            response.skipped += 1
    return ParseResult.success(response)


def parse_blur(raw: Union[str, bytes, Dict[str, Any]]) -> ParseResult[Dict[int, int]]:
    """Parse a blur response ``{albumId: blurredCount}``.

    Non-numeric album keys are dropped.
    """
    try:
        body = decode_body(raw)
    except (ValueError, ValidationError) as e:
        return ParseResult.failure("blur", str(e))

    if not isinstance(body, dict):
        return ParseResult.failure("blur", "body is not an object of album counts")

    counts: Dict[int, int] = {}
    for album_key, count in body.items():
        if not str(album_key).isdigit():
            logger.warning(f"Ignoring non-numeric album id {album_key!r} in blur response")
            continue
        try:
            counts[int(album_key)] = int(count)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric blur count {count!r} for album {album_key}")
    return ParseResult.success(counts)


def parse_duplicate(raw: Union[str, bytes, Dict[str, Any]]) -> ParseResult[DuplicateSummary]:
    """Parse a duplicate response ``{album_id, total_duplicates}``."""
    try:
        body = decode_body(raw)
        return ParseResult.success(DuplicateSummary.model_validate(body))
    except (ValueError, ValidationError) as e:
        return ParseResult.failure("duplicate", str(e))
