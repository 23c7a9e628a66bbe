"""
Unit tests for the multiplier, text and attribute sub-parsers.
"""

import pytest
from zentree.attributes import (
    Attribute,
    extract_attributes,
    extract_text,
    optimize_attributes,
    parse_attributes,
    split_multiplier,
)
from zentree.exceptions import (
    InvalidAttributeSetError,
    InvalidAttributeValueError,
    UnmatchedDelimiterError,
)


def pairs(attrs):
    return [(a.name, a.value) for a in attrs]


class TestSplitMultiplier:
    def test_explicit(self):
        assert split_multiplier("li*3") == ("li", 3, False)

    def test_implicit(self):
        assert split_multiplier("li*") == ("li", None, True)

    def test_absent(self):
        assert split_multiplier("li") == ("li", None, False)

    def test_zero(self):
        assert split_multiplier("li*0") == ("li", 1, False)

    def test_only_trailing(self):
        assert split_multiplier("a*2b") == ("a*2b", None, False)


class TestExtractText:
    def test_simple(self):
        m = extract_text("a{hello}")
        assert m.element == "a"
        assert m.text == "hello"

    def test_none_without_brace(self):
        assert extract_text("a[title=x]") is None

    def test_skips_attribute_set(self):
        m = extract_text("a[title={x}]{y}")
        assert m.element == "a[title={x}]"
        assert m.text == "y"

    def test_escaped_brace(self):
        m = extract_text("a\\{x}{y}")
        assert m.text == "y"

    def test_text_only(self):
        m = extract_text("{Click here}")
        assert m.element == ""
        assert m.text == "Click here"

    def test_unterminated(self):
        with pytest.raises(UnmatchedDelimiterError):
            extract_text("a{x")


class TestExtractAttributes:
    def test_mixed_values(self):
        attrs = extract_attributes('attr col=3 title="Quoted string"')
        assert pairs(attrs) == [("attr", ""), ("col", "3"), ("title", "Quoted string")]

    def test_single_quotes(self):
        assert pairs(extract_attributes("title='a b'")) == [("title", "a b")]

    def test_escaped_quote(self):
        attrs = extract_attributes('title="say \\"hi\\""')
        assert pairs(attrs) == [("title", 'say "hi"')]

    def test_bare_value_with_leading_symbol(self):
        assert pairs(extract_attributes("href=# rel=nofollow")) == [("href", "#"), ("rel", "nofollow")]

    def test_surrounding_space(self):
        assert pairs(extract_attributes("  a=1   b  ")) == [("a", "1"), ("b", "")]

    def test_missing_value(self):
        with pytest.raises(InvalidAttributeValueError):
            extract_attributes("a=")

    def test_unclosed_quote(self):
        with pytest.raises(InvalidAttributeValueError):
            extract_attributes('a="x')


class TestParseAttributes:
    def test_id_and_classes(self):
        m = parse_attributes("div#main.a.b")
        assert m.element == "div"
        assert pairs(m.attributes) == [("id", "main"), ("class", "a b")]

    def test_all_markers(self):
        m = parse_attributes('#item[attr=Hello other="World"].class')
        assert m.element == ""
        assert pairs(m.attributes) == [
            ("id", "item"),
            ("attr", "Hello"),
            ("other", "World"),
            ("class", "class"),
        ]

    def test_bracket_ends_name(self):
        m = parse_attributes("a[href=#]")
        assert m.element == "a"
        assert pairs(m.attributes) == [("href", "#")]

    def test_no_attributes(self):
        assert parse_attributes("div") is None

    def test_empty_set(self):
        with pytest.raises(InvalidAttributeSetError):
            parse_attributes("a[ ]")

    def test_unterminated_set(self):
        with pytest.raises(InvalidAttributeSetError):
            parse_attributes("div[x")


class TestOptimizeAttributes:
    def test_class_values_are_joined(self):
        attrs = [Attribute("class", "a"), Attribute("id", "x"), Attribute("class", "b")]
        assert pairs(optimize_attributes(attrs)) == [("class", "a b"), ("id", "x")]

    def test_class_join_skips_separator_for_empty(self):
        attrs = [Attribute("class", ""), Attribute("class", "b")]
        assert pairs(optimize_attributes(attrs)) == [("class", "b")]

    def test_class_is_case_insensitive(self):
        attrs = [Attribute("CLASS", "a"), Attribute("CLASS", "b")]
        assert pairs(optimize_attributes(attrs)) == [("CLASS", "a b")]

    def test_last_value_wins_at_first_position(self):
        attrs = [Attribute("id", "a"), Attribute("title", "t"), Attribute("id", "b")]
        assert pairs(optimize_attributes(attrs)) == [("id", "b"), ("title", "t")]

    def test_input_is_not_modified(self):
        first = Attribute("class", "a")
        optimize_attributes([first, Attribute("class", "b")])
        assert first.value == "a"

    def test_idempotent(self):
        attrs = [Attribute("class", "a"), Attribute("id", "x"), Attribute("class", "b"), Attribute("id", "y")]
        once = optimize_attributes(attrs)
        assert optimize_attributes(once) == once
