"""
Identity module - the URN codec.

Every resource in the catalog is named by a URN. This module parses,
validates, creates and normalizes them. It has no dependencies on the rest
of the core and is safe to call from any number of concurrent tasks.
"""

from ..errors import UrnError, UrnErrorKind
from .urn import (
    MAX_ID_LENGTH,
    MAX_URN_LENGTH,
    MVN_NAMESPACE,
    MVN_TYPES,
    SRC_NAMESPACE,
    ParseResult,
    Urn,
    canonical,
    create,
    create_error,
    create_series,
    create_source,
    create_unit,
    create_user,
    extract_id,
    extract_type,
    is_valid,
    is_valid_of_type,
    normalize_series_urn,
    normalize_unit_urn,
    normalize_user_urn,
    parse,
    try_extract_id,
    try_extract_type,
    try_parse,
)

__all__ = [
    # Types
    "Urn",
    "ParseResult",
    "UrnError",
    "UrnErrorKind",
    # Constants
    "MVN_NAMESPACE",
    "SRC_NAMESPACE",
    "MVN_TYPES",
    "MAX_URN_LENGTH",
    "MAX_ID_LENGTH",
    # Parsing
    "parse",
    "try_parse",
    "is_valid",
    "is_valid_of_type",
    "canonical",
    "extract_id",
    "extract_type",
    "try_extract_id",
    "try_extract_type",
    # Creation
    "create",
    "create_series",
    "create_unit",
    "create_user",
    "create_error",
    "create_source",
    # Normalization
    "normalize_series_urn",
    "normalize_unit_urn",
    "normalize_user_urn",
]
