"""Tests for the event payload codec."""

from trackplan.catalog.codec import (
    decode_properties,
    encode_properties,
    infer_property_type,
    is_contextual_value,
    stringify_value,
)


class TestDecodeProperties:
    """decode_properties never raises."""

    def test_valid_object(self):
        assert decode_properties('{"plan": "pro", "count": 3}') == {"plan": "pro", "count": 3}

    def test_dict_passthrough(self):
        data = {"a": 1}
        assert decode_properties(data) is data

    def test_empty_inputs(self):
        assert decode_properties(None) == {}
        assert decode_properties("") == {}
        assert decode_properties("   ") == {}

    def test_malformed_json(self):
        assert decode_properties("{not json") == {}

    def test_non_object_json(self):
        assert decode_properties("[1, 2, 3]") == {}
        assert decode_properties('"text"') == {}
        assert decode_properties("42") == {}

    def test_bytes(self):
        assert decode_properties(b'{"k": "v"}') == {"k": "v"}

    def test_unsupported_type(self):
        assert decode_properties(12) == {}


class TestEncodeProperties:

    def test_keeps_key_order_and_unicode(self):
        text = encode_properties({"z": "é", "a": 1})
        assert text == '{"z": "é", "a": 1}'

    def test_none_is_empty_object(self):
        assert encode_properties(None) == "{}"


class TestStringifyValue:

    def test_scalars(self):
        assert stringify_value("Homepage") == "Homepage"
        assert stringify_value(True) == "true"
        assert stringify_value(False) == "false"
        assert stringify_value(None) == "null"
        assert stringify_value(3) == "3"
        assert stringify_value(3.0) == "3"
        assert stringify_value(2.5) == "2.5"

    def test_containers_are_compact_json(self):
        assert stringify_value([1, "a"]) == '[1,"a"]'
        assert stringify_value({"k": 1}) == '{"k":1}'


class TestTypeInference:

    def test_bool_before_number(self):
        assert infer_property_type(True) == "boolean"
        assert infer_property_type(1) == "number"
        assert infer_property_type(1.5) == "number"

    def test_other_types(self):
        assert infer_property_type("x") == "string"
        assert infer_property_type([1]) == "array"
        assert infer_property_type({"a": 1}) == "object"
        assert infer_property_type(None) == "string"


def test_contextual_prefix():
    assert is_contextual_value("$user.id")
    assert not is_contextual_value("user.$id")
    assert not is_contextual_value("")
