from urllib.parse import parse_qsl

import pytest

from smsgateway.form_encoder import (
    FieldTypeError, MapSequence, Scalar, StringSequence, encode, encode_form, field_map, field_value,
    urlencode_pairs,
)


def test_scalar_fields_keep_names_and_order():
    assert encode({"name": "Bob", "number": "123"}) == [("name", "Bob"), ("number", "123")]


def test_scalar_fields_under_prefix():
    pairs = encode({"to": "1", "msg": "hi"}, "data[0]")
    assert pairs == [("data[0][to]", "1"), ("data[0][msg]", "hi")]


def test_empty_prefix_behaves_like_no_prefix():
    assert encode({"a": "1"}, "") == encode({"a": "1"}) == [("a", "1")]


def test_string_sequence_is_indexed():
    pairs = encode({"number": ["111", "222", "333"]})
    assert pairs == [("number[0]", "111"), ("number[1]", "222"), ("number[2]", "333")]


def test_map_sequence_is_flattened_depth_first():
    pairs = encode({"data": [{"to": "1", "msg": "hi"}, {"to": "2", "msg": "yo"}]})
    assert pairs == [
        ("data[0][to]", "1"),
        ("data[0][msg]", "hi"),
        ("data[1][to]", "2"),
        ("data[1][msg]", "yo"),
    ]


def test_deeply_nested_maps_and_sequences():
    fields = {
        "data": [
            {"number": ["1", "2"], "options": [{"send_at": "10"}]},
        ],
        "email": "a@b.c",
    }
    assert encode(fields) == [
        ("data[0][number][0]", "1"),
        ("data[0][number][1]", "2"),
        ("data[0][options][0][send_at]", "10"),
        ("email", "a@b.c"),
    ]


def test_map_sequence_equals_concatenation_of_nested_encodings():
    nested = [{"to": "1", "msg": "a"}, {"to": "2"}, {}]
    expected = []
    for index, item in enumerate(nested):
        expected.extend(encode(item, f"data[{index}]"))
    assert encode({"data": nested}) == expected


def test_empty_inputs_produce_no_pairs():
    assert encode({}) == []
    assert encode({"number": []}) == []
    assert encode({"a": [], "b": "x"}) == [("b", "x")]


def test_encoding_is_deterministic():
    fields = {"z": "1", "a": ["x", "y"], "m": [{"k": "v"}]}
    assert encode(fields) == encode(fields)


def test_tagged_values_are_accepted_directly():
    fields = {
        "name": Scalar("Bob"),
        "number": StringSequence(("1", "2")),
        "data": MapSequence(({"to": Scalar("3")},)),
    }
    assert encode(fields) == [
        ("name", "Bob"),
        ("number[0]", "1"),
        ("number[1]", "2"),
        ("data[0][to]", "3"),
    ]


def test_field_value_lifts_plain_values():
    assert field_value("x") == Scalar("x")
    assert field_value(("a", "b")) == StringSequence(("a", "b"))
    assert field_value([]) == StringSequence(())
    assert field_value([{"a": "1"}]) == MapSequence(({"a": Scalar("1")},))


@pytest.mark.parametrize("value", [1, None, 2.5, True, {"a": "1"}, ["a", 1], ["a", {"b": "c"}], [["a"]]])
def test_unsupported_shapes_are_rejected(value):
    with pytest.raises(FieldTypeError):
        encode({"field": value})


def test_tagged_constructors_validate_contents():
    with pytest.raises(FieldTypeError):
        Scalar(5)
    with pytest.raises(FieldTypeError):
        StringSequence(("a", 5))


def test_field_map_rejects_non_string_keys():
    with pytest.raises(FieldTypeError):
        field_map({1: "a"})


def test_field_value_error_is_a_type_error():
    with pytest.raises(TypeError):
        field_value(object())


def test_urlencode_pairs_percent_encodes_utf8():
    query = urlencode_pairs([("number[0]", "111"), ("message", "héllo wörld & more")])
    assert query == "number%5B0%5D=111&message=h%C3%A9llo+w%C3%B6rld+%26+more"
    assert parse_qsl(query) == [("number[0]", "111"), ("message", "héllo wörld & more")]


def test_encode_form_for_many_numbers():
    assert encode_form({"number": ["111", "222"]}) == "number%5B0%5D=111&number%5B1%5D=222"
    assert parse_qsl(encode_form({"number": ["111", "222"]})) == [("number[0]", "111"), ("number[1]", "222")]


@pytest.mark.parametrize("items", [("x",), ({"a": "1"}, "x"), ({1: "a"},), ({"a": 1},), "abc", {"a": "1"}])
def test_map_sequence_rejects_unencodable_items(items):
    with pytest.raises(FieldTypeError):
        MapSequence(items)


def test_map_sequence_accepts_plain_nested_mappings():
    assert encode({"data": MapSequence(({"to": "1"},))}) == [("data[0][to]", "1")]


def test_string_sequence_rejects_a_bare_string():
    with pytest.raises(FieldTypeError):
        StringSequence("abc")
