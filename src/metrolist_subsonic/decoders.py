"""Tolerant decoders for fields Subsonic servers encode inconsistently.

Different server implementations disagree on whether ``artistId``,
``albumId`` and ``parent`` are strings or bare numbers, and whether
``year`` is numeric or quoted. These helpers accept either JSON shape so a
single model works against all of them.

Examples:
    >>> flexible_str(123)
    '123'
    >>> flexible_str("123")
    '123'
    >>> flexible_int("2024")
    2024
    >>> flexible_int("unknown") is None
    True
"""

from typing import Any, Dict, List, Optional

from .exceptions import FlexibleDecodeError


def flexible_str(value: Any, field: str = "value") -> Optional[str]:
    """Decode a JSON string or number into its textual content.

    Args:
        value: Decoded JSON value
        field: Field name, used in the error message

    Returns:
        String content, or None for JSON null

    Raises:
        FlexibleDecodeError: If the value is an object, array or boolean
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise FlexibleDecodeError(field, value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # 42.0 from a lenient JSON encoder is still id "42"
        return str(int(value)) if value.is_integer() else repr(value)
    raise FlexibleDecodeError(field, value)


def flexible_int(value: Any, field: str = "value") -> Optional[int]:
    """Decode a JSON number or numeric string into an int.

    Unparsable strings yield None instead of failing the whole decode.

    Args:
        value: Decoded JSON value
        field: Field name, used in the error message

    Returns:
        Parsed integer, or None

    Raises:
        FlexibleDecodeError: If the value is an object, array or boolean
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise FlexibleDecodeError(field, value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    raise FlexibleDecodeError(field, value)


def optional_int(value: Any) -> Optional[int]:
    """Lenient int for plain numeric fields (duration, bitRate, size...)."""
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def optional_float(value: Any) -> Optional[float]:
    """Lenient float for rating/gain fields."""
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def as_list(value: Any) -> List[Dict[str, Any]]:
    """Normalize a JSON value that may be a list, a single object or absent.

    Some servers collapse one-element arrays into a bare object.

    Examples:
        >>> as_list(None)
        []
        >>> as_list({"id": "1"})
        [{'id': '1'}]
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def require(data: Dict[str, Any], key: str) -> Any:
    """Fetch a required key, raising KeyError like ``data[key]`` for null too."""
    value = data.get(key)
    if value is None:
        raise KeyError(key)
    return value
