"""Tests for Content-Range parsing and formatting."""

import pytest

from awaithttp.exceptions import ContentRangeError
from awaithttp.http.ranges import ContentRange, MAX_END, UNKNOWN_SIZE


class TestParse:
    """Test ContentRange.parse."""

    def test_full_range(self):
        assert ContentRange.parse("bytes 0-99/200") == ContentRange(0, 99, 200)

    def test_open_ended_without_unit(self):
        assert ContentRange.parse("0-") == ContentRange(0, MAX_END, UNKNOWN_SIZE)

    def test_missing_size(self):
        assert ContentRange.parse("bytes 100-199") == ContentRange(100, 199, UNKNOWN_SIZE)

    def test_unknown_size_star(self):
        assert ContentRange.parse("bytes 5-9/*") == ContentRange(5, 9, UNKNOWN_SIZE)

    def test_open_ended_with_size(self):
        result = ContentRange.parse("bytes 10-/100")
        assert result.start == 10
        assert result.end == MAX_END
        assert result.size == 100

    def test_surrounding_whitespace(self):
        assert ContentRange.parse("  bytes 0-0/1 ") == ContentRange(0, 0, 1)

    @pytest.mark.parametrize("value", ["-99/200", "bytes -5", "", "abc", "bytes 1-2/x"])
    def test_malformed_raises(self, value):
        with pytest.raises(ContentRangeError):
            ContentRange.parse(value)

    def test_wrong_unit_raises(self):
        with pytest.raises(ContentRangeError, match="unit"):
            ContentRange.parse("items 0-9/10")

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            ContentRange.parse("nope")


class TestFormat:
    """Test building and rendering ranges."""

    def test_of_computes_end(self):
        assert ContentRange.of(100, 50) == ContentRange(100, 149, 50)

    def test_length(self):
        assert ContentRange(0, 99, 200).length == 100
        assert ContentRange(0, MAX_END).length == UNKNOWN_SIZE

    def test_format(self):
        assert ContentRange(0, 99, 200).format() == "bytes 0-99/200"
        assert str(ContentRange(5, 9)) == "bytes 5-9/*"

    def test_format_parses_back(self):
        original = ContentRange(7, 20, 21)
        assert ContentRange.parse(original.format()) == original

    def test_range_header(self):
        assert ContentRange(0, 499).to_range_header() == "bytes=0-499"
        assert ContentRange(500, MAX_END).to_range_header() == "bytes=500-"
