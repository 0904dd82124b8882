# util/http_range.py
from typing import NamedTuple, Tuple
from util.errors import InvalidRange

_PREAMBLE = "bytes="


class RangeOption(NamedTuple):
    # -1 means the bound was not given.
    start: int
    end: int

    def decode(self, size: int) -> Tuple[int, int]:
        """
        Return (offset, limit) for an object of `size` bytes.
        limit == -1 means read to the end.
        """
        if self.start >= 0:
            if self.end >= 0:
                return self.start, self.end - self.start + 1
            return self.start, -1
        if self.end >= 0:
            return size - self.end, -1
        return 0, -1

    def content_range(self, size: int) -> str:
        offset, end = serving_window(self, size)
        return f"bytes {offset}-{end - 1}/{size}"


def _parse_bound(raw: str, which: str) -> int:
    if raw == "":
        return -1
    if not raw.isdigit():
        raise InvalidRange(f"Range: header invalid: bad {which}")
    return int(raw)


def parse_range(header: str) -> RangeOption:
    """
    Parse a single `bytes=` range: "a-b", "a-" or "-n".
    Multiple ranges are not supported.
    """
    if not header.startswith(_PREAMBLE):
        raise InvalidRange(f"Range: header invalid: doesn't start with {_PREAMBLE}")
    ranges = header[len(_PREAMBLE):]
    if "," in ranges:
        raise InvalidRange(
            "Range: header invalid: contains multiple ranges which isn't supported"
        )
    start, dash, end = ranges.partition("-")
    if not dash:
        raise InvalidRange("Range: header invalid: contains no '-'")
    return RangeOption(
        start=_parse_bound(start.strip(), "start"),
        end=_parse_bound(end.strip(), "end"),
    )


def serving_window(option: RangeOption, size: int) -> Tuple[int, int]:
    """Return (offset, exclusive end), both clamped to [0, size]."""
    offset, limit = option.decode(size)
    offset = max(0, min(offset, size))
    end = size if limit < 0 else offset + limit
    end = max(offset, min(end, size))
    return offset, end
