"""Tests for the ordered query parameter encoder."""

from isilonclient.ordered_values import OrderedValues


def test_encode_keeps_insertion_order_and_duplicates():
    params = OrderedValues([("k1", b"v1"), ("k1", b"v2"), ("k2", b"v3")])
    assert params.encode() == "k1=v1&k1=v2&k2=v3"


def test_none_value_encodes_as_bare_key():
    params = OrderedValues()
    params.add("acl")
    params.add("nsaccess", "true")
    assert params.encode() == "acl&nsaccess=true"


def test_keys_and_values_are_percent_encoded():
    params = OrderedValues([("path", "/ifs/data/my dir"), ("a&b", "x=y")])
    assert params.encode() == "path=%2Fifs%2Fdata%2Fmy%20dir&a%26b=x%3Dy"


def test_non_text_values_are_stringified():
    assert OrderedValues([("max-depth", -1)]).encode() == "max-depth=-1"


def test_empty_encodes_to_empty_string():
    assert OrderedValues().encode() == ""
    assert str(OrderedValues()) == ""


def test_set_replaces_all_values_at_first_position():
    params = OrderedValues([("a", "1"), ("b", "2"), ("a", "3")])
    params.set("a", "9")
    assert list(params) == [("a", "9"), ("b", "2")]


def test_set_appends_missing_key():
    params = OrderedValues([("a", "1")])
    params.set("b", "2")
    assert params.encode() == "a=1&b=2"


def test_get_get_all_and_delete():
    params = OrderedValues.from_pairs(("a", "1"), ("b", None), ("a", "2"))
    assert params.get("a") == "1"
    assert params.get("missing") is None
    assert params.get_all("a") == ["1", "2"]
    assert list(params.keys()) == ["a", "b", "a"]
    params.delete("a")
    assert params.encode() == "b"


def test_from_mapping():
    params = OrderedValues({"detail": "size", "max-depth": "-1"})
    assert params.encode() == "detail=size&max-depth=-1"
