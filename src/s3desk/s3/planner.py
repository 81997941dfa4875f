"""
Decides how a local file of a given size travels to the endpoint.

Files under the 5 MiB part floor go up in a single put. Everything else is
split into byte ranges of ``part_size`` with a possibly shorter final range,
one range per multipart part.
"""

from dataclasses import dataclass

from s3desk.s3.types import DEFAULT_PART_SIZE, MIN_PART_SIZE
from s3desk.types import SizeSuffix


@dataclass(frozen=True)
class ByteRange:
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length  # exclusive

    def __post_init__(self):
        assert self.offset >= 0
        assert self.length > 0


@dataclass(frozen=True)
class SingleShot:
    file_size: int


@dataclass(frozen=True)
class Chunked:
    file_size: int
    part_size: int
    ranges: tuple[ByteRange, ...]

    def num_parts(self) -> int:
        return len(self.ranges)

    def parts(self) -> list[tuple[int, ByteRange]]:
        """(part_number, range) pairs, part numbers starting at 1."""
        return [(i + 1, r) for i, r in enumerate(self.ranges)]


Strategy = SingleShot | Chunked


def split_ranges(file_size: int, part_size: int) -> tuple[ByteRange, ...]:
    out: list[ByteRange] = []
    offset = 0
    remaining = file_size
    while remaining > 0:
        length = min(part_size, remaining)
        out.append(ByteRange(offset=offset, length=length))
        offset += length
        remaining -= length
    return tuple(out)


def plan(
    file_size: int, part_size: "int | str | SizeSuffix | None" = None
) -> Strategy:
    if file_size < 0:
        raise ValueError(f"File size must not be negative, got {file_size}")
    part_size_int = (
        DEFAULT_PART_SIZE if part_size is None else SizeSuffix(part_size).as_int()
    )
    if part_size_int <= 0:
        raise ValueError(f"Part size must be positive, got {part_size_int}")

    if file_size < MIN_PART_SIZE:
        return SingleShot(file_size=file_size)

    ranges = split_ranges(file_size, part_size_int)
    return Chunked(file_size=file_size, part_size=part_size_int, ranges=ranges)
