"""
Form Encoder Module

Flattens nested request parameters into ordered form-encoded pairs using the
bracket notation the SMS Gateway API expects:

    {"data": [{"to": "1"}]}  ->  [("data[0][to]", "1")]
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode


class FieldTypeError(TypeError):
    """Raised when a request parameter has a shape the encoder cannot flatten"""


@dataclass(frozen=True)
class Scalar:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise FieldTypeError(f"Scalar value must be a string, got {type(self.value).__name__}")


@dataclass(frozen=True)
class StringSequence:
    items: Tuple[str, ...]

    def __post_init__(self):
        if isinstance(self.items, str):
            raise FieldTypeError("StringSequence items must be a sequence of strings, not a string")
        for index, item in enumerate(self.items):
            if not isinstance(item, str):
                raise FieldTypeError(
                    f"StringSequence item {index} must be a string, got {type(item).__name__}")


@dataclass(frozen=True)
class MapSequence:
    items: Tuple["FieldMap", ...]

    def __post_init__(self):
        if isinstance(self.items, (str, Mapping)):
            raise FieldTypeError("MapSequence items must be a sequence of mappings")
        for index, item in enumerate(self.items):
            if not isinstance(item, Mapping):
                raise FieldTypeError(
                    f"MapSequence item {index} must be a mapping, got {type(item).__name__}")
            # nested values must be encodable too
            field_map(item)


FieldValue = Union[Scalar, StringSequence, MapSequence]
FieldMap = Dict[str, FieldValue]
EncodedPair = Tuple[str, str]


def field_value(value: Any) -> FieldValue:
    """
    Lift a plain Python value into a tagged field value.

    Args:
        value: a str, a list/tuple of str, a list/tuple of mappings,
            or an existing field value

    Returns:
        FieldValue: the matching Scalar, StringSequence or MapSequence

    Raises:
        FieldTypeError: for any other shape, including mixed sequences
    """
    if isinstance(value, (Scalar, StringSequence, MapSequence)):
        return value
    if isinstance(value, str):
        return Scalar(value)
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return StringSequence(tuple(value))
        if all(isinstance(item, Mapping) for item in value):
            return MapSequence(tuple(field_map(item) for item in value))
        raise FieldTypeError("Sequence values must be all strings or all mappings")
    raise FieldTypeError(f"Unsupported field value type: {type(value).__name__}")


def field_map(values: Mapping[str, Any]) -> FieldMap:
    """Build a new field map from a mapping, preserving key order"""
    result: FieldMap = {}
    for key, value in values.items():
        if not isinstance(key, str):
            raise FieldTypeError(f"Field names must be strings, got {type(key).__name__}")
        result[key] = field_value(value)
    return result


def encode(fields: Mapping[str, Any], prefix: Optional[str] = None) -> List[EncodedPair]:
    """
    Flatten a field map into ordered (name, value) pairs.

    Keys are visited in insertion order and nested maps depth-first, so the
    same input always produces the same sequence. Plain values are accepted
    and lifted with field_value().

    Args:
        fields: mapping of field name to field value
        prefix: name the keys are nested under; empty or None for top level

    Returns:
        list of (name, value) string tuples
    """
    pairs: List[EncodedPair] = []
    _encode_into(fields, prefix, pairs)
    return pairs


def _encode_into(fields: Mapping[str, Any], prefix: Optional[str], pairs: List[EncodedPair]) -> None:
    for key, raw in fields.items():
        name = f"{prefix}[{key}]" if prefix else key
        value = field_value(raw)

        if isinstance(value, Scalar):
            pairs.append((name, value.value))
        elif isinstance(value, StringSequence):
            for index, item in enumerate(value.items):
                pairs.append((f"{name}[{index}]", item))
        else:
            for index, nested in enumerate(value.items):
                _encode_into(nested, f"{name}[{index}]", pairs)


def urlencode_pairs(pairs: List[EncodedPair]) -> str:
    """Serialize pairs as application/x-www-form-urlencoded UTF-8 text"""
    return urlencode(pairs, encoding="utf-8")


def encode_form(fields: Mapping[str, Any]) -> str:
    """Shortcut for urlencode_pairs(encode(fields))"""
    return urlencode_pairs(encode(fields))
