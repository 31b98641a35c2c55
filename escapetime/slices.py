"""Partitioning of an image into horizontal bands, one per worker."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ConfigInvalid


@dataclass(frozen=True)
class Slice:
    """A full-width band of ``height`` rows starting at ``row``."""

    row: int
    width: int
    height: int

    @property
    def rows(self) -> range:
        return range(self.row, self.row + self.height)

    @property
    def byte_length(self) -> int:
        return self.width * self.height * 3


def plan_slices(dimensions: tuple[int, int], workers: int) -> list[Slice]:
    """Split the rows of ``dimensions`` into ``workers`` contiguous bands.

    Every band is ``height // workers`` rows tall except the last, which also
    takes the remainder rows.
    """

    width, height = dimensions
    if workers < 1 or workers > height:
        raise ConfigInvalid(
            f"worker count must be between 1 and the image height ({height}), got {workers}",
            workers=workers,
            height=height,
        )

    rows_per_slice = height // workers
    slices: list[Slice] = []
    for y in range(0, height, rows_per_slice):
        if len(slices) == workers:
            last = slices[-1]
            slices[-1] = Slice(row=last.row, width=width, height=height - last.row)
            break
        slices.append(Slice(row=y, width=width, height=min(rows_per_slice, height - y)))
    return slices
