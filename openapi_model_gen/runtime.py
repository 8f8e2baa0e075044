"""
Runtime support for decoding and encoding model values.

Generated modules and ModelCodec are both thin call graphs over the
combinators defined here, so the null/undefined semantics live in one place:

- a decoder or encoder is a callable ``fn(value, path=...)``;
- ``UNSET`` stands for an absent (undefined) field, ``None`` for an explicit
  null;
- containers and alternations are built by composing callables.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .errors import (
    DecodeError,
    MissingRequiredFieldError,
    NoMatchingVariantError,
    TypeMismatchError,
    UnexpectedNullError,
    UnknownDiscriminatorValueError,
    UnknownEnumValueError,
)

__all__ = [
    "UNSET",
    "Unset",
    "Codec",
    "Predicate",
    "DecodeError",
    "MissingRequiredFieldError",
    "NoMatchingVariantError",
    "TypeMismatchError",
    "UnexpectedNullError",
    "UnknownDiscriminatorValueError",
    "UnknownEnumValueError",
    "identity",
    "enum_of",
    "nullable",
    "list_of",
    "dict_of",
    "first_match",
    "select_variant",
    "dispatch_on",
    "any_of",
    "has_required",
    "is_primitive",
    "is_sequence",
    "is_mapping",
    "is_enum_member",
    "is_model",
    "require_mapping",
    "decode_field",
    "encode_field",
]

Codec = Callable[..., Any]
Predicate = Callable[[Any], bool]


class Unset:
    """Marker type for a field that is absent from the encoded form."""

    _instance: Unset | None = None

    def __new__(cls) -> Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> Unset:
        return self

    def __deepcopy__(self, memo: dict) -> Unset:
        return self

    def __reduce__(self) -> str:
        return "UNSET"


UNSET = Unset()


def _accepts_null(fn: Codec) -> bool:
    return getattr(fn, "accepts_null", False)


def identity(value: Any, path: str = "") -> Any:
    """Primitive values pass through unchanged."""
    return value


def enum_of(values: Iterable[Any]) -> Codec:
    """Build a codec accepting only the given enumeration values."""
    allowed = tuple(values)

    def check(value: Any, path: str = "") -> Any:
        if not is_enum_member(allowed)(value):
            raise UnknownEnumValueError(f"{value!r} is not one of {list(allowed)!r}", path)
        return value

    return check


def nullable(fn: Codec) -> Codec:
    """Wrap a codec so that an explicit null passes through."""

    def wrapper(value: Any, path: str = "") -> Any:
        if value is None:
            return None
        return fn(value, path=path)

    wrapper.accepts_null = True
    return wrapper


def list_of(fn: Codec) -> Codec:
    """Apply ``fn`` to every element of a sequence."""

    def each(value: Any, path: str = "") -> list[Any]:
        if not is_sequence(value):
            raise TypeMismatchError(f"expected an array, got {type(value).__name__}", path)
        result = []
        for index, item in enumerate(value):
            item_path = f"{path}[{index}]"
            if item is None and not _accepts_null(fn):
                raise UnexpectedNullError("", "", item_path)
            result.append(fn(item, path=item_path))
        return result

    return each


def dict_of(fn: Codec) -> Codec:
    """Apply ``fn`` to every value of a string-keyed mapping."""

    def each(value: Any, path: str = "") -> dict[str, Any]:
        if not is_mapping(value):
            raise TypeMismatchError(f"expected an object, got {type(value).__name__}", path)
        result = {}
        for key, item in value.items():
            item_path = f"{path}[{key!r}]"
            if item is None and not _accepts_null(fn):
                raise UnexpectedNullError("", "", item_path)
            result[key] = fn(item, path=item_path)
        return result

    return each


def first_match(options: Iterable[tuple[Predicate, Codec]], description: str = "union") -> Codec:
    """Try alternatives in declaration order; the first whose predicate holds wins.

    Overlapping alternatives are inherently ambiguous: the earlier one is
    always chosen.
    """
    ordered = tuple(options)

    def choose(value: Any, path: str = "") -> Any:
        for predicate, fn in ordered:
            if predicate(value):
                return fn(value, path=path)
        raise NoMatchingVariantError(f"value does not match any variant of {description}", path)

    return choose


def select_variant(data: Mapping[str, Any], property_name: str, cases: Mapping[Any, Codec | None], path: str = "") -> Codec | None:
    """Return the codec selected by the discriminator value of ``data``.

    A case mapped to None means "the model itself" and is returned as None.
    """
    value = data.get(property_name, UNSET)
    try:
        if value is not UNSET and value in cases:
            return cases[value]
    except TypeError:
        pass
    raise UnknownDiscriminatorValueError(property_name, None if value is UNSET else value, path)


def dispatch_on(property_name: str, cases: Mapping[Any, Codec]) -> Codec:
    """Build a codec for a discriminated union: the property value selects the case."""

    def dispatch(value: Any, path: str = "") -> Any:
        data = require_mapping(value, "discriminated union", path)
        return select_variant(data, property_name, cases, path)(data, path=path)

    return dispatch


def has_required(value: Any, names: Iterable[str]) -> bool:
    """Shallow type-identity check: a mapping carrying every required key."""
    return is_mapping(value) and all(name in value for name in names)


_PRIMITIVE_CHECKS: dict[str, Predicate] = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "null": lambda v: v is None,
    "any": lambda v: True,
}


def is_primitive(kind: str) -> Predicate:
    return _PRIMITIVE_CHECKS[kind]


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_enum_member(values: Iterable[Any]) -> Predicate:
    allowed = tuple(values)

    def check(value: Any) -> bool:
        # 1 == True in Python, so compare types as well as values
        return any(value == candidate and type(value) is type(candidate) for candidate in allowed)

    return check


def any_of(predicates: Iterable[Predicate]) -> Predicate:
    options = tuple(predicates)

    def check(value: Any) -> bool:
        return any(predicate(value) for predicate in options)

    return check


def is_model(cls: type) -> Predicate:
    def check(value: Any) -> bool:
        return isinstance(value, cls)

    return check


def require_mapping(data: Any, model: str, path: str = "") -> Mapping[str, Any]:
    if not is_mapping(data):
        raise TypeMismatchError(f"expected an object for {model}, got {type(data).__name__}", path)
    return data


def decode_field(
    data: Mapping[str, Any],
    wire_name: str,
    decoder: Codec,
    *,
    model: str,
    required: bool,
    nullable: bool,
    path: str = "",
) -> Any:
    """Decode one field of an untyped mapping."""
    if wire_name not in data:
        if required:
            raise MissingRequiredFieldError(model, wire_name, path)
        return UNSET
    field_path = f"{path}.{wire_name}"
    value = data[wire_name]
    if value is None:
        if nullable:
            return None
        raise UnexpectedNullError(model, wire_name, field_path)
    return decoder(value, path=field_path)


def encode_field(
    result: dict[str, Any],
    wire_name: str,
    value: Any,
    encoder: Codec,
    *,
    model: str,
    required: bool,
    nullable: bool,
    path: str = "",
) -> None:
    """Encode one field into ``result``; UNSET values are omitted."""
    if value is UNSET:
        if required:
            raise MissingRequiredFieldError(model, wire_name, path)
        return
    field_path = f"{path}.{wire_name}"
    if value is None:
        if not nullable:
            raise UnexpectedNullError(model, wire_name, field_path)
        result[wire_name] = None
        return
    result[wire_name] = encoder(value, path=field_path)
