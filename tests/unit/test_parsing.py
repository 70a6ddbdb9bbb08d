"""Unit tests for delimited record parsing."""
import pytest

from shopreport.errors import ParseError
from shopreport.parsing import parse_records


def test_header_mapping_round_trip():
    records = parse_records("brand;category_code\nAcme;a.b.c")
    assert records == [{"brand": "Acme", "category_code": "a.b.c"}]


def test_headers_are_trimmed_and_values_kept_raw():
    records = parse_records(" brand ; price \nAcme; 1 200,50 ")
    assert list(records[0]) == ["brand", "price"]
    assert records[0]["price"] == " 1 200,50 "


def test_mixed_line_endings_and_blank_lines_are_collapsed():
    text = "a;b\r\n1;2\r\r\n\n3;4\r5;6\n   \n"
    records = parse_records(text)
    assert [r["a"] for r in records] == ["1", "3", "5"]


def test_missing_tokens_are_none_and_extra_tokens_dropped():
    records = parse_records("a;b;c\n1\n1;2;3;4")
    assert records[0] == {"a": "1", "b": None, "c": None}
    assert records[1] == {"a": "1", "b": "2", "c": "3"}


def test_custom_delimiter():
    records = parse_records("a,b\nx,y", delimiter=",")
    assert records == [{"a": "x", "b": "y"}]


@pytest.mark.parametrize("text", ["", None, 42, "brand;price", "brand;price\n\n  \n"])
def test_invalid_input_raises_parse_error(text):
    with pytest.raises(ParseError):
        parse_records(text)


def test_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_records("")
