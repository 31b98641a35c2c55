"""Public API for multi-threaded escape-time fractal rendering."""

from .errors import (
    AlreadyCollected,
    BufferOverflow,
    ComplexParseError,
    ConfigInvalid,
    JoinFailure,
    NoIdleWorker,
    NoWorkersRan,
    RenderError,
    UnknownJob,
)
from .palette import (
    available_palettes,
    build_lookup_table,
    colormap_palette,
    get_palette,
    linear,
    wraparound,
    wrapping_add,
)
from .plane import ComplexPoint, parse_complex, pixel_to_complex
from .pool import JobHandle, SlotState, WorkerPool
from .renderer import KERNELS, MAX_ITERATIONS, RenderConfig, escape_time, render, render_slice
from .slices import Slice, plan_slices

__all__ = [
    "AlreadyCollected",
    "BufferOverflow",
    "ComplexParseError",
    "ComplexPoint",
    "ConfigInvalid",
    "JobHandle",
    "JoinFailure",
    "KERNELS",
    "MAX_ITERATIONS",
    "NoIdleWorker",
    "NoWorkersRan",
    "RenderConfig",
    "RenderError",
    "Slice",
    "SlotState",
    "UnknownJob",
    "WorkerPool",
    "available_palettes",
    "build_lookup_table",
    "colormap_palette",
    "escape_time",
    "get_palette",
    "linear",
    "parse_complex",
    "pixel_to_complex",
    "plan_slices",
    "render",
    "render_slice",
    "wraparound",
    "wrapping_add",
]
