"""Content-Range parsing and formatting."""

import re
import sys
from dataclasses import dataclass

from awaithttp.exceptions import ContentRangeError

BYTES_UNIT = "bytes"
UNKNOWN_SIZE = -1
MAX_END = sys.maxsize  # open-ended range

_RANGE_PATTERN = re.compile(
    r"(?:(?P<unit>\w+)\s+)?(?P<start>\d+)-(?P<end>\d*)(?:/(?P<size>\d+|\*))?"
)


@dataclass(frozen=True)
class ContentRange:
    """A byte range as carried by the Content-Range header.

    Attributes:
        start: First byte position (inclusive)
        end: Last byte position (inclusive), MAX_END when open-ended
        size: Complete length of the representation, UNKNOWN_SIZE if unknown
    """

    start: int
    end: int
    size: int = UNKNOWN_SIZE

    @classmethod
    def of(cls, start: int, size: int) -> "ContentRange":
        """Build the range covering `size` bytes starting at `start`."""
        return cls(start, start + size - 1, size)

    @classmethod
    def parse(cls, value: str) -> "ContentRange":
        """Parse `[unit ]start-[end][/size]`.

        Args:
            value: Header value, e.g. "bytes 0-99/200" or "0-"

        Returns:
            Parsed ContentRange

        Raises:
            ContentRangeError: If the value is malformed or uses a unit
                other than bytes
        """
        match = _RANGE_PATTERN.fullmatch(value.strip())
        if match is None:
            raise ContentRangeError(f"Invalid content range: {value!r}")

        unit = match.group("unit")
        if unit is not None and unit != BYTES_UNIT:
            raise ContentRangeError(f"Unsupported range unit: {unit!r}")

        start = int(match.group("start"))
        end = int(match.group("end")) if match.group("end") else MAX_END
        size_text = match.group("size")
        size = int(size_text) if size_text and size_text != "*" else UNKNOWN_SIZE
        return cls(start, end, size)

    @property
    def length(self) -> int:
        """Number of bytes covered, or UNKNOWN_SIZE for an open-ended range."""
        if self.end == MAX_END:
            return UNKNOWN_SIZE
        return self.end - self.start + 1

    def format(self) -> str:
        """Render as a Content-Range header value."""
        size = "*" if self.size == UNKNOWN_SIZE else str(self.size)
        end = "" if self.end == MAX_END else str(self.end)
        return f"{BYTES_UNIT} {self.start}-{end}/{size}"

    def to_range_header(self) -> str:
        """Render as a Range request header value (bytes=start-end)."""
        end = "" if self.end == MAX_END else str(self.end)
        return f"{BYTES_UNIT}={self.start}-{end}"

    def __str__(self) -> str:
        return self.format()
