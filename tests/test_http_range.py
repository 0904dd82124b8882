"""Tests for Range header parsing and window computation."""

import pytest

from util.errors import InvalidRange
from util.http_range import RangeOption, parse_range, serving_window


class TestParseRange:
    def test_closed_range(self):
        assert parse_range("bytes=10-19") == RangeOption(10, 19)

    def test_open_ended_range(self):
        assert parse_range("bytes=5-") == RangeOption(5, -1)

    def test_suffix_range(self):
        assert parse_range("bytes=-4") == RangeOption(-1, 4)

    def test_whitespace_around_bounds(self):
        assert parse_range("bytes= 1 - 2") == RangeOption(1, 2)

    @pytest.mark.parametrize(
        "header",
        [
            "10-19",
            "items=0-1",
            "bytes=0-1,4-5",
            "bytes=10",
            "bytes=a-b",
            "bytes=1-x",
            "bytes=-1-2",
        ],
    )
    def test_invalid_headers(self, header):
        with pytest.raises(InvalidRange):
            parse_range(header)


class TestServingWindow:
    def test_closed_range_inside_object(self):
        assert serving_window(RangeOption(10, 19), 100) == (10, 20)

    def test_end_clamped_to_size(self):
        assert serving_window(RangeOption(10, 1000), 50) == (10, 50)

    def test_open_ended_reads_to_end(self):
        assert serving_window(RangeOption(5, -1), 30) == (5, 30)

    def test_suffix_reads_last_bytes(self):
        assert serving_window(RangeOption(-1, 4), 30) == (26, 30)

    def test_suffix_longer_than_object(self):
        assert serving_window(RangeOption(-1, 40), 30) == (0, 30)

    def test_offset_past_end_is_empty(self):
        assert serving_window(RangeOption(50, 60), 30) == (30, 30)

    def test_content_range_descriptor(self):
        assert RangeOption(10, 19).content_range(100) == "bytes 10-19/100"

    def test_decode(self):
        assert RangeOption(10, 19).decode(100) == (10, 10)
        assert RangeOption(10, -1).decode(100) == (10, -1)
        assert RangeOption(-1, 10).decode(100) == (90, -1)
        assert RangeOption(-1, -1).decode(100) == (0, -1)
