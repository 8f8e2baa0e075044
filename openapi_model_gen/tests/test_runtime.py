import copy

import pytest

from openapi_model_gen.errors import (
    MissingRequiredFieldError,
    NoMatchingVariantError,
    TypeMismatchError,
    UnexpectedNullError,
    UnknownDiscriminatorValueError,
    UnknownEnumValueError,
)
from openapi_model_gen.runtime import (
    UNSET,
    Unset,
    any_of,
    decode_field,
    dict_of,
    dispatch_on,
    encode_field,
    enum_of,
    first_match,
    has_required,
    identity,
    is_enum_member,
    is_primitive,
    list_of,
    nullable,
    select_variant,
)


def test_unset_is_a_falsy_singleton():
    assert Unset() is UNSET
    assert not UNSET
    assert repr(UNSET) == "UNSET"
    assert copy.deepcopy(UNSET) is UNSET
    assert copy.copy([UNSET])[0] is UNSET


def test_enum_of_compares_types():
    check = enum_of((1, 2))
    assert check(1) == 1
    with pytest.raises(UnknownEnumValueError):
        check(True)
    assert is_enum_member(("a",))("a")
    assert not is_enum_member(("a",))("b")


def test_primitive_predicates():
    assert is_primitive("integer")(3)
    assert not is_primitive("integer")(True)
    assert is_primitive("number")(3)
    assert is_primitive("number")(1.5)
    assert is_primitive("any")(None)
    assert not is_primitive("string")(3)


def test_list_of_reports_element_path():
    decode = list_of(enum_of(("a", "b")))
    assert decode(["a", "b"], path="X.tags") == ["a", "b"]
    with pytest.raises(UnknownEnumValueError) as exc_info:
        decode(["a", "c"], path="X.tags")
    assert exc_info.value.path == "X.tags[1]"


def test_list_of_rejects_null_elements_unless_nullable():
    with pytest.raises(UnexpectedNullError) as exc_info:
        list_of(identity)([1, None], path="X.values")
    assert exc_info.value.path == "X.values[1]"
    assert list_of(nullable(identity))([1, None]) == [1, None]


def test_list_of_requires_a_sequence():
    with pytest.raises(TypeMismatchError):
        list_of(identity)("abc")


def test_dict_of():
    assert dict_of(identity)({"a": 1}) == {"a": 1}
    with pytest.raises(UnexpectedNullError) as exc_info:
        dict_of(identity)({"a": None}, path="X.labels")
    assert exc_info.value.path == "X.labels['a']"
    with pytest.raises(TypeMismatchError):
        dict_of(identity)([1])


def test_first_match_picks_the_first_holding_predicate():
    choose = first_match(
        [
            (is_primitive("integer"), lambda value, path="": ("int", value)),
            (is_primitive("number"), lambda value, path="": ("number", value)),
        ],
        "Size",
    )
    assert choose(3) == ("int", 3)
    assert choose(1.5) == ("number", 1.5)
    with pytest.raises(NoMatchingVariantError) as exc_info:
        choose("big", path="X.size")
    assert exc_info.value.path == "X.size"


def test_select_variant():
    cases = {"cat": "decode_cat", "self": None}
    assert select_variant({"kind": "cat"}, "kind", cases) == "decode_cat"
    assert select_variant({"kind": "self"}, "kind", cases) is None
    with pytest.raises(UnknownDiscriminatorValueError) as exc_info:
        select_variant({"kind": "bird"}, "kind", cases, "Pet")
    assert exc_info.value.value == "bird"
    with pytest.raises(UnknownDiscriminatorValueError):
        select_variant({"kind": ["unhashable"]}, "kind", cases)


def test_dispatch_on():
    dispatch = dispatch_on("kind", {"a": lambda value, path="": ("a", path)})
    assert dispatch({"kind": "a"}, path="P") == ("a", "P")
    with pytest.raises(TypeMismatchError):
        dispatch("not a mapping")
    with pytest.raises(UnknownDiscriminatorValueError):
        dispatch({})


def test_has_required_and_any_of():
    assert has_required({"a": 1, "b": None}, ("a", "b"))
    assert not has_required({"a": 1}, ("a", "b"))
    assert not has_required([("a", 1)], ("a",))
    assert any_of([is_primitive("string"), is_primitive("boolean")])(True)
    assert not any_of([])(1)


def test_decode_field_absent_and_null():
    kwargs = {"model": "Pet", "path": "Pet"}
    assert decode_field({}, "name", identity, required=False, nullable=False, **kwargs) is UNSET
    assert decode_field({"name": None}, "name", identity, required=False, nullable=True, **kwargs) is None
    with pytest.raises(MissingRequiredFieldError) as exc_info:
        decode_field({}, "name", identity, required=True, nullable=False, **kwargs)
    assert exc_info.value.path == "Pet"
    with pytest.raises(UnexpectedNullError) as exc_info:
        decode_field({"name": None}, "name", identity, required=True, nullable=False, **kwargs)
    assert exc_info.value.path == "Pet.name"


def test_encode_field_absent_and_null():
    result = {}
    encode_field(result, "a", UNSET, identity, model="M", required=False, nullable=False)
    encode_field(result, "b", None, identity, model="M", required=False, nullable=True)
    encode_field(result, "c", 3, identity, model="M", required=True, nullable=False)
    assert result == {"b": None, "c": 3}
    with pytest.raises(MissingRequiredFieldError):
        encode_field({}, "a", UNSET, identity, model="M", required=True, nullable=False)
    with pytest.raises(UnexpectedNullError):
        encode_field({}, "a", None, identity, model="M", required=False, nullable=False)


if __name__ == "__main__":
    pytest.main([__file__])
