"""Rendering primitives for escape-time fractals."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import ConfigInvalid
from .palette import Palette, wraparound
from .plane import ComplexPoint, pixel_to_complex
from .pool import WorkerPool
from .slices import Slice, plan_slices

MAX_ITERATIONS = 255
ESCAPE_RADIUS_SQR = 4.0

KERNELS = ("python", "tensorflow")

SliceKernel = Callable[..., bytes]


@dataclass(frozen=True)
class RenderConfig:
    """Parameters that describe a single render of a Mandelbrot or Julia set.

    ``output`` identifies the destination; the CLI stores the resolved image
    path there and writes to it. The render itself never reads it.
    """

    width: int
    height: int
    lower_left: ComplexPoint
    upper_right: ComplexPoint
    julia: Optional[ComplexPoint] = None
    output: str = "fractal.png"
    workers: int = 1
    max_iterations: int = MAX_ITERATIONS

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def is_julia(self) -> bool:
        return self.julia is not None

    def validate(self) -> RenderConfig:
        if self.width < 1 or self.height < 1:
            raise ConfigInvalid(
                f"image dimensions must be positive, got {self.width}x{self.height}",
                width=self.width,
                height=self.height,
            )
        if not (self.lower_left.re < self.upper_right.re and self.lower_left.im < self.upper_right.im):
            raise ConfigInvalid(
                f"lower-left corner {self.lower_left} must be strictly below and left of "
                f"upper-right corner {self.upper_right}",
                lower_left=self.lower_left,
                upper_right=self.upper_right,
            )
        if not 1 <= self.workers <= self.height:
            raise ConfigInvalid(
                f"worker count must be between 1 and the image height ({self.height}), got {self.workers}",
                workers=self.workers,
                height=self.height,
            )
        if self.max_iterations < 1:
            raise ConfigInvalid(
                f"max_iterations must be at least 1, got {self.max_iterations}",
                max_iterations=self.max_iterations,
            )
        return self


def escape_time(sample: ComplexPoint, julia: Optional[ComplexPoint], max_iterations: int) -> Optional[int]:
    """Return the iteration at which the orbit of ``sample`` leaves radius 2.

    The escape test runs before each update, so a result is always in
    ``[0, max_iterations)``. ``None`` means the orbit stayed bounded.
    """

    c = julia if julia is not None else sample
    z = sample
    for i in range(max_iterations):
        if z.norm_sqr() > ESCAPE_RADIUS_SQR:
            return i
        z = z.mul(z).add(c)
    return None


def render_slice(
    slice_: Slice,
    dimensions: tuple[int, int],
    lower_left: ComplexPoint,
    upper_right: ComplexPoint,
    julia: Optional[ComplexPoint],
    max_iterations: int,
    palette: Palette,
) -> bytes:
    """Render the rows of ``slice_`` pixel by pixel into packed RGB bytes."""

    colors = [bytes(palette(count, max_iterations)) for count in range(max_iterations)]
    inside = bytes(palette(None, max_iterations))

    buf = bytearray(slice_.byte_length)
    offset = 0
    for y in slice_.rows:
        for x in range(slice_.width):
            sample = pixel_to_complex((x, y), dimensions, lower_left, upper_right)
            count = escape_time(sample, julia, max_iterations)
            buf[offset:offset + 3] = inside if count is None else colors[count]
            offset += 3
    return bytes(buf)


def get_kernel(name: str) -> SliceKernel:
    if name == "python":
        return render_slice
    if name == "tensorflow":
        from . import tf_kernel

        return tf_kernel.render_slice
    raise ValueError(f"Unknown kernel '{name}'. Valid choices: {', '.join(KERNELS)}.")


def render(config: RenderConfig, *, palette: Optional[Palette] = None, kernel: str = "python") -> bytes:
    """Render ``config`` across ``config.workers`` threads into one RGB buffer."""

    config.validate()
    slice_kernel = get_kernel(kernel)
    palette = palette if palette is not None else wraparound

    slices = plan_slices(config.dimensions, config.workers)
    pool = WorkerPool(config.workers)

    handles = []
    for slice_ in slices:
        job = functools.partial(
            slice_kernel,
            slice_,
            config.dimensions,
            config.lower_left,
            config.upper_right,
            config.julia,
            config.max_iterations,
            palette,
        )
        handles.append(pool.dispatch(job))

    return pool.collect_all(handles, config.dimensions)
