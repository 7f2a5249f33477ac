"""Decoding of Firestore REST documents into Post and Reply records.

Firestore encodes every field as a tagged value: a JSON object carrying
exactly one of ``stringValue``, ``integerValue`` (a decimal string),
``booleanValue``, ``timestampValue`` (RFC 3339), ``arrayValue`` or
``mapValue``. ``Document.from_json`` turns that into a closed set of value
classes; ``decode_post`` and ``decode_reply`` then pick out the fields they
know about. Both decoders are total: a missing field, or a field of the
wrong kind, leaves the record's default in place.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple, TypeVar

from .data_models import ZERO_TIME, Post, Reply

logger = logging.getLogger("cyberspace.decoder")

T = TypeVar("T")

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})$"
)


class DecodeError(ValueError):
    """Raised when a raw document is not shaped like a document at all"""
    pass


# ───────── Tagged values ─────────


class Value:
    """Base class of the tagged value union."""
    __slots__ = ()


@dataclass(frozen=True)
class Absent(Value):
    """No value, or a value of a kind this client does not read."""


@dataclass(frozen=True)
class StringValue(Value):
    value: str


@dataclass(frozen=True)
class IntegerValue(Value):
    # kept as the decimal string sent on the wire
    raw: str


@dataclass(frozen=True)
class BooleanValue(Value):
    value: bool


@dataclass(frozen=True)
class TimestampValue(Value):
    raw: str


@dataclass(frozen=True)
class ArrayValue(Value):
    values: Tuple[Value, ...] = ()


@dataclass(frozen=True)
class MapValue(Value):
    fields: Mapping[str, Value] = field(default_factory=dict)


ABSENT = Absent()


def parse_value(raw: Any) -> Value:
    """Convert one wire-format tagged value into a Value.

    Never raises; anything unrecognised becomes ABSENT.
    """
    if not isinstance(raw, dict):
        return ABSENT

    if "stringValue" in raw:
        v = raw["stringValue"]
        return StringValue(v) if isinstance(v, str) else ABSENT
    if "integerValue" in raw:
        v = raw["integerValue"]
        if isinstance(v, bool):
            return ABSENT
        if isinstance(v, int):
            return IntegerValue(str(v))
        return IntegerValue(v) if isinstance(v, str) else ABSENT
    if "booleanValue" in raw:
        v = raw["booleanValue"]
        return BooleanValue(v) if isinstance(v, bool) else ABSENT
    if "timestampValue" in raw:
        v = raw["timestampValue"]
        return TimestampValue(v) if isinstance(v, str) else ABSENT
    if "arrayValue" in raw:
        v = raw["arrayValue"]
        if not isinstance(v, dict):
            return ABSENT
        values = v.get("values") or []
        if not isinstance(values, list):
            return ABSENT
        return ArrayValue(tuple(parse_value(item) for item in values))
    if "mapValue" in raw:
        v = raw["mapValue"]
        if not isinstance(v, dict):
            return ABSENT
        return MapValue(parse_fields(v.get("fields")))
    return ABSENT


def parse_fields(raw: Any) -> Dict[str, Value]:
    if not isinstance(raw, dict):
        return {}
    return {str(k): parse_value(v) for k, v in raw.items()}


@dataclass(frozen=True)
class Document:
    """A named Firestore document with parsed fields."""
    name: str = ""
    fields: Mapping[str, Value] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: Any) -> "Document":
        if not isinstance(raw, dict):
            raise DecodeError(f"document must be an object, got {type(raw).__name__}")
        name = raw.get("name")
        return cls(
            name=name if isinstance(name, str) else "",
            fields=parse_fields(raw.get("fields")),
        )

    def get(self, key: str) -> Value:
        return self.fields.get(key, ABSENT)


# ───────── Field helpers ─────────


def document_id(name: str) -> str:
    """Return the final path segment of a document name."""
    idx = name.rfind("/")
    if idx < 0:
        return name
    return name[idx + 1:]


def parse_integer(raw: str) -> int:
    if not _INTEGER_RE.match(raw):
        return 0
    return int(raw)


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp, returning ZERO_TIME on failure."""
    m = _TIMESTAMP_RE.match(raw.strip())
    if not m:
        return ZERO_TIME
    text = m.group("base").replace("t", "T").replace(" ", "T")
    frac = m.group("frac")
    if frac:
        text += "." + frac[:6].ljust(6, "0")
    tz = m.group("tz")
    text += "+00:00" if tz in ("Z", "z") else tz
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return ZERO_TIME


def _string(doc: Document, key: str) -> str:
    v = doc.get(key)
    if isinstance(v, StringValue):
        return v.value
    return ""


def _integer(doc: Document, key: str) -> int:
    v = doc.get(key)
    if isinstance(v, IntegerValue):
        return parse_integer(v.raw)
    return 0


def _boolean(doc: Document, key: str) -> bool:
    v = doc.get(key)
    if isinstance(v, BooleanValue):
        return v.value
    return False


def _timestamp(doc: Document, key: str) -> datetime:
    v = doc.get(key)
    if isinstance(v, TimestampValue):
        return parse_timestamp(v.raw)
    return ZERO_TIME


def _string_array(doc: Document, key: str) -> Tuple[str, ...]:
    v = doc.get(key)
    if not isinstance(v, ArrayValue):
        return ()
    # skip elements of the wrong kind, keep store order
    return tuple(item.value for item in v.values if isinstance(item, StringValue))


# ───────── Decoders ─────────


def decode_post(doc: Document) -> Post:
    return Post(
        id=document_id(doc.name),
        author_id=_string(doc, "authorId"),
        author_username=_string(doc, "authorUsername"),
        content=_string(doc, "content"),
        created_at=_timestamp(doc, "createdAt"),
        replies_count=_integer(doc, "repliesCount"),
        bookmarks_count=_integer(doc, "bookmarksCount"),
        topics=_string_array(doc, "topics"),
        deleted=_boolean(doc, "deleted"),
    )


def decode_reply(doc: Document) -> Reply:
    return Reply(
        id=document_id(doc.name),
        post_id=_string(doc, "postId"),
        author_id=_string(doc, "authorId"),
        author_username=_string(doc, "authorUsername"),
        content=_string(doc, "content"),
        created_at=_timestamp(doc, "createdAt"),
        deleted=_boolean(doc, "deleted"),
    )


def decode_documents(results: Iterable[Any], decode: Callable[[Document], T]) -> List[T]:
    """Decode a runQuery result list with ``decode``.

    Entries without a ``document`` member are skipped. A document that
    fails to decode is logged and dropped; the rest of the batch is kept.
    """
    out: List[T] = []
    for i, entry in enumerate(results):
        if not isinstance(entry, dict) or "document" not in entry:
            continue
        try:
            out.append(decode(Document.from_json(entry["document"])))
        except DecodeError as e:
            logger.debug("skipping malformed document at index %d: %s", i, e)
    return out
