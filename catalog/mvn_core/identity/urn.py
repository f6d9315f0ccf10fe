"""
URN codec for the catalog.

URNs are the only identifier syntax in the system:

    urn:{namespace}:{type-or-source}:{id}

Namespaces:
    - mvn: internal resources; type must be one of MVN_TYPES and the id
      must match [a-zA-Z0-9_-]+
    - src: federated resources; the third segment names the source system
      and everything after it is the source's own id, colons included

Invariants:
    - Input longer than MAX_URN_LENGTH is rejected before it is split
    - Namespace and type compare case-insensitively and are stored lower-case
    - src ids are kept verbatim
    - Parsing is pure and never blocks

How to change safely:
    - Add new mvn types to MVN_TYPES; never remove one that has been issued
    - Keep the length check first in parse(), it bounds worst-case cost
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Optional

from ..errors import UrnError, UrnErrorKind

logger = logging.getLogger(__name__)

URN_PREFIX = "urn"
DELIMITER = ":"
MVN_NAMESPACE = "mvn"
SRC_NAMESPACE = "src"
NAMESPACES = frozenset({MVN_NAMESPACE, SRC_NAMESPACE})

MAX_URN_LENGTH = 512
MAX_ID_LENGTH = 256

MIN_URN_PARTS = 3
MIN_MVN_PARTS = 4
MIN_SRC_PARTS = 4

MVN_TYPES = frozenset(
    {
        "series",
        "unit",
        "user",
        "asset",
        "comment",
        "error",
        "collection",
        "tag",
        "annotation",
        "session",
    }
)

_COMPONENT_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")


def _is_component(value: str) -> bool:
    return _COMPONENT_PATTERN.fullmatch(value) is not None


@dataclass(frozen=True)
class Urn:
    """A parsed URN.

    Attributes:
        namespace: "mvn" or "src" (lower-case)
        type: Resource kind for mvn, source system name for src (lower-case)
        id: Resource identifier; for src it may contain the delimiter
    """

    namespace: str
    type: str
    id: str

    def __str__(self) -> str:
        return DELIMITER.join((URN_PREFIX, self.namespace, self.type, self.id))

    @property
    def is_source(self) -> bool:
        return self.namespace == SRC_NAMESPACE

    def is_of_type(self, expected_type: str) -> bool:
        """True for an mvn URN whose type equals expected_type (any case)."""
        return self.namespace == MVN_NAMESPACE and self.type == expected_type.lower()

    @classmethod
    def parse(cls, text: str) -> Urn:
        return parse(text)

    @classmethod
    def create(cls, type_: str) -> Urn:
        return create(type_)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of a non-throwing parse: exactly one of urn / error is set."""

    urn: Optional[Urn] = None
    error: Optional[UrnError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[UrnErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> Urn:
        """Return the URN or raise the captured error."""
        if self.error is not None:
            raise self.error
        assert self.urn is not None
        return self.urn


def _fail(kind: UrnErrorKind, message: str, value: Optional[str]) -> ParseResult:
    return ParseResult(error=UrnError(kind, message, value=value))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def try_parse(text: Optional[str]) -> ParseResult:
    """Parse a URN without raising.

    Args:
        text: Candidate URN string

    Returns:
        ParseResult holding either the Urn or the UrnError describing why
        the input was rejected
    """
    if text is None:
        return _fail(UrnErrorKind.EMPTY, "URN cannot be empty", text)

    if len(text) > MAX_URN_LENGTH:
        return _fail(
            UrnErrorKind.TOO_LONG,
            f"URN exceeds maximum length of {MAX_URN_LENGTH} characters",
            text[:64],
        )

    if not text.strip():
        return _fail(UrnErrorKind.EMPTY, "URN cannot be empty", text)

    parts = text.split(DELIMITER)
    if len(parts) < MIN_URN_PARTS or parts[0].lower() != URN_PREFIX:
        return _fail(
            UrnErrorKind.MALFORMED,
            f"Invalid URN format: {text}. Expected urn:{{namespace}}:{{type}}:{{id}}",
            text,
        )

    namespace = parts[1].lower()
    if namespace == MVN_NAMESPACE:
        return _parse_mvn(text, parts)
    if namespace == SRC_NAMESPACE:
        return _parse_src(text, parts)

    return _fail(
        UrnErrorKind.UNKNOWN_NAMESPACE,
        f"Unknown URN namespace '{namespace}'. Supported: {', '.join(sorted(NAMESPACES))}",
        text,
    )


def _parse_mvn(text: str, parts: list[str]) -> ParseResult:
    if len(parts) < MIN_MVN_PARTS:
        return _fail(
            UrnErrorKind.MALFORMED,
            f"Invalid mvn URN: {text}. Expected urn:mvn:{{type}}:{{id}}",
            text,
        )

    type_ = parts[2].lower()
    if not type_.strip():
        return _fail(UrnErrorKind.EMPTY, f"Invalid mvn URN: {text}. Type cannot be empty", text)
    if type_ not in MVN_TYPES:
        return _fail(
            UrnErrorKind.UNKNOWN_TYPE,
            f"Invalid mvn URN: {text}. Unknown type '{parts[2]}'",
            text,
        )

    id_ = DELIMITER.join(parts[3:])
    if not id_.strip():
        return _fail(UrnErrorKind.EMPTY, f"Invalid mvn URN: {text}. ID cannot be empty", text)
    if not _is_component(id_):
        return _fail(
            UrnErrorKind.INVALID_COMPONENT,
            f"Invalid mvn URN: {text}. ID '{id_}' contains invalid characters",
            text,
        )
    if len(id_) > MAX_ID_LENGTH:
        return _fail(
            UrnErrorKind.TOO_LONG,
            f"Invalid mvn URN: {text}. ID exceeds maximum length of {MAX_ID_LENGTH} characters",
            text,
        )

    return ParseResult(urn=Urn(MVN_NAMESPACE, type_, id_))


def _parse_src(text: str, parts: list[str]) -> ParseResult:
    if len(parts) < MIN_SRC_PARTS:
        return _fail(
            UrnErrorKind.MALFORMED,
            f"Invalid source URN: {text}. Expected urn:src:{{source}}:{{id}}",
            text,
        )

    source = parts[2]
    if not source.strip():
        return _fail(UrnErrorKind.EMPTY, f"Invalid source URN: {text}. Source cannot be empty", text)
    if not _is_component(source):
        return _fail(
            UrnErrorKind.INVALID_COMPONENT,
            f"Invalid source URN: {text}. Source '{source}' contains invalid characters",
            text,
        )

    # The source's own id may contain the delimiter
    id_ = DELIMITER.join(parts[3:])
    if not id_.strip():
        return _fail(UrnErrorKind.EMPTY, f"Invalid source URN: {text}. ID cannot be empty", text)
    if len(id_) > MAX_ID_LENGTH:
        return _fail(
            UrnErrorKind.TOO_LONG,
            f"Invalid source URN: {text}. ID exceeds maximum length of {MAX_ID_LENGTH} characters",
            text,
        )

    return ParseResult(urn=Urn(SRC_NAMESPACE, source.lower(), id_))


def parse(text: str) -> Urn:
    """Parse a URN.

    Args:
        text: URN string, e.g. "urn:mvn:series:123" or "urn:src:mangadex:abc"

    Returns:
        Parsed Urn in canonical (lower-case namespace/type) form

    Raises:
        UrnError: If the text is not a valid URN; .kind says why
    """
    return try_parse(text).unwrap()


def is_valid(text: Optional[str], expected_type: Optional[str] = None) -> bool:
    """Check a URN, optionally requiring an mvn URN of a given type."""
    result = try_parse(text)
    if not result.ok:
        return False
    if expected_type is None:
        return True
    assert result.urn is not None
    return result.urn.is_of_type(expected_type)


def is_valid_of_type(text: Optional[str], expected_type: str) -> bool:
    return is_valid(text, expected_type)


def canonical(text: str) -> str:
    """Parse and re-serialize, lower-casing namespace and type."""
    return str(parse(text))


def extract_id(text: str) -> str:
    return parse(text).id


def extract_type(text: str) -> str:
    """Return the resource type of an mvn URN.

    Raises:
        UrnError: If the URN is invalid, or NOT_APPLICABLE for src URNs
            (source URNs have no fixed type taxonomy)
    """
    urn = parse(text)
    if urn.namespace != MVN_NAMESPACE:
        raise UrnError(
            UrnErrorKind.NOT_APPLICABLE,
            f"Cannot extract type from non-mvn URN: {text}",
            value=text,
        )
    return urn.type


def try_extract_id(text: Optional[str]) -> Optional[str]:
    result = try_parse(text)
    return result.urn.id if result.urn is not None else None


def try_extract_type(text: Optional[str]) -> Optional[str]:
    result = try_parse(text)
    if result.urn is None or result.urn.namespace != MVN_NAMESPACE:
        return None
    return result.urn.type


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def create(type_: str) -> Urn:
    """Create a new mvn URN with a random 128-bit id.

    The id is rendered as a lower-case hyphenated 8-4-4-4-12 hex string.

    Raises:
        UrnError: If type_ is not a known mvn type (programmer error)
    """
    normalized = type_.lower()
    if normalized not in MVN_TYPES:
        raise UrnError(
            UrnErrorKind.UNKNOWN_TYPE,
            f"Cannot create URN of unknown type '{type_}'",
            value=type_,
        )
    return Urn(MVN_NAMESPACE, normalized, str(uuid.uuid4()))


def create_series() -> Urn:
    return create("series")


def create_unit() -> Urn:
    return create("unit")


def create_user() -> Urn:
    return create("user")


def create_asset() -> Urn:
    return create("asset")


def create_comment() -> Urn:
    return create("comment")


def create_collection() -> Urn:
    return create("collection")


def create_tag() -> Urn:
    return create("tag")


def create_error(code: str) -> Urn:
    """Create an error URN: urn:mvn:error:{code}.

    The code is lower-cased before embedding.

    Raises:
        UrnError: If code is empty, longer than MAX_ID_LENGTH, or contains
            characters outside [a-zA-Z0-9_-]
    """
    if code is None or not code.strip():
        raise UrnError(UrnErrorKind.EMPTY, "Error code cannot be empty", value=code)
    if len(code) > MAX_ID_LENGTH:
        raise UrnError(
            UrnErrorKind.TOO_LONG,
            f"Error code exceeds maximum length of {MAX_ID_LENGTH} characters",
            value=code[:64],
        )
    if not _is_component(code):
        raise UrnError(
            UrnErrorKind.INVALID_COMPONENT,
            f"Error code '{code}' contains invalid characters. "
            "Only alphanumeric characters, hyphens and underscores are allowed.",
            value=code,
        )
    return Urn(MVN_NAMESPACE, "error", code.lower())


def create_source(source: str, id_: str) -> Urn:
    """Create a federated URN: urn:src:{source}:{id}.

    The source is lower-cased; the id is stored verbatim and may contain
    the delimiter.

    Raises:
        UrnError: If source is empty or has invalid characters, if id is
            empty or longer than MAX_ID_LENGTH, or if the composed URN would
            exceed MAX_URN_LENGTH
    """
    if source is None or not source.strip():
        raise UrnError(UrnErrorKind.EMPTY, "Source cannot be empty", value=source)
    if id_ is None or not id_.strip():
        raise UrnError(UrnErrorKind.EMPTY, "ID cannot be empty", value=id_)
    if not _is_component(source):
        raise UrnError(
            UrnErrorKind.INVALID_COMPONENT,
            f"Source '{source}' contains invalid characters. "
            "Only alphanumeric characters, hyphens and underscores are allowed.",
            value=source,
        )

    length = len(URN_PREFIX) + len(SRC_NAMESPACE) + len(source) + len(id_) + 3
    if length > MAX_URN_LENGTH:
        raise UrnError(
            UrnErrorKind.TOO_LONG,
            f"Combined URN length would exceed maximum of {MAX_URN_LENGTH} characters",
            value=source,
        )
    if len(id_) > MAX_ID_LENGTH:
        raise UrnError(
            UrnErrorKind.TOO_LONG,
            f"ID exceeds maximum length of {MAX_ID_LENGTH} characters",
            value=id_[:64],
        )

    return Urn(SRC_NAMESPACE, source.lower(), id_)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _normalize(value: str, type_: str) -> str:
    if value is None or not value.strip():
        raise UrnError(UrnErrorKind.EMPTY, f"{type_.capitalize()} ID cannot be empty", value=value)

    if value[:4].lower() == URN_PREFIX + DELIMITER:
        urn = parse(value)
        if not urn.is_of_type(type_):
            raise UrnError(
                UrnErrorKind.NOT_APPLICABLE,
                f"Expected a {type_} URN, got {value}",
                value=value,
            )
        return str(urn)

    return str(parse(DELIMITER.join((URN_PREFIX, MVN_NAMESPACE, type_, value))))


def normalize_series_urn(value: str) -> str:
    """Turn a bare series id or a series URN into a canonical series URN."""
    return _normalize(value, "series")


def normalize_unit_urn(value: str) -> str:
    return _normalize(value, "unit")


def normalize_user_urn(value: str) -> str:
    return _normalize(value, "user")
