"""Color mappers turning escape-time counts into RGB triples.

A palette is any callable ``palette(count, max_iterations) -> (r, g, b)``
where ``count`` is ``None`` for points that never escaped. Palettes must be
pure so that they can be tabulated once per render.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
from matplotlib import colormaps

RGB = tuple[int, int, int]
Palette = Callable[[Optional[int], int], RGB]

INSIDE_COLOR: RGB = (0, 0, 0)

# Exponent applied to the count for the red, green and blue channels.
WRAPAROUND_POWERS = (3, 4, 5)
# Escaped pixels never go darker than this, so they stay distinct from the set.
WRAPAROUND_FLOOR = 48


def wrapping_add(a: int, b: int, modulus: int) -> int:
    """Return ``(a + b) % modulus`` without the sum ever reaching ``2 * modulus``."""

    if modulus <= 0:
        raise ValueError(f"modulus must be positive, got {modulus}")
    a %= modulus
    b %= modulus
    headroom = modulus - b
    if a >= headroom:
        return a - headroom
    return a + b


def wrapping_mul(a: int, b: int, modulus: int) -> int:
    """Multiply by repeated doubling and :func:`wrapping_add`."""

    result = 0
    a %= modulus
    while b > 0:
        if b & 1:
            result = wrapping_add(result, a, modulus)
        a = wrapping_add(a, a, modulus)
        b >>= 1
    return result


def wrapping_pow(base: int, exponent: int, modulus: int) -> int:
    result = 1 % modulus
    for _ in range(exponent):
        result = wrapping_mul(result, base, modulus)
    return result


def _check_count(count: int, max_iterations: int) -> None:
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
    if not 0 <= count <= max_iterations:
        raise ValueError(f"count {count} outside [0, {max_iterations}]")


def wraparound(count: Optional[int], max_iterations: int) -> RGB:
    """Default palette: per-channel powers of the count, wrapped by the budget."""

    if count is None:
        return INSIDE_COLOR
    _check_count(count, max_iterations)

    span = max(max_iterations - 1, 1)
    scale = 255 - WRAPAROUND_FLOOR
    r, g, b = (
        WRAPAROUND_FLOOR + wrapping_pow(count, power, max_iterations) * scale // span
        for power in WRAPAROUND_POWERS
    )
    return r, g, b


def linear(count: Optional[int], max_iterations: int) -> RGB:
    """Fill red, then green, then blue in equal steps as the count grows."""

    if count is None:
        return INSIDE_COLOR
    _check_count(count, max_iterations)

    step = max((255 * 3) // max_iterations, 1)
    color = [0, 0, 0]
    remaining = count
    for channel in range(3):
        while remaining and color[channel] < 255:
            color[channel] = min(color[channel] + step, 255)
            remaining -= 1
    return color[0], color[1], color[2]


def colormap_palette(name: str) -> Palette:
    """Sample the matplotlib colormap ``name`` at ``count / max_iterations``."""

    cmap = colormaps[name]

    def palette(count: Optional[int], max_iterations: int) -> RGB:
        if count is None:
            return INSIDE_COLOR
        _check_count(count, max_iterations)
        rgba = cmap(count / max_iterations)
        r, g, b = (int(round(channel * 255)) for channel in rgba[:3])
        return r, g, b

    palette.__name__ = name
    return palette


_BUILTIN_PALETTES: dict[str, Palette] = {
    "wraparound": wraparound,
    "linear": linear,
}


def available_palettes() -> list[str]:
    return sorted(_BUILTIN_PALETTES) + sorted(colormaps)


def get_palette(name: str) -> Palette:
    """Resolve a builtin palette name or a matplotlib colormap name."""

    if name in _BUILTIN_PALETTES:
        return _BUILTIN_PALETTES[name]
    try:
        return colormap_palette(name)
    except KeyError as exc:
        raise ValueError(
            f"Unknown palette '{name}'. Use 'wraparound', 'linear' or a matplotlib colormap name."
        ) from exc


def build_lookup_table(palette: Palette, max_iterations: int) -> np.ndarray:
    """Tabulate ``palette`` into a ``(max_iterations + 1, 3)`` uint8 array.

    Row ``i`` holds the color of a point escaping after ``i`` iterations; the
    last row holds the color of points that never escaped.
    """

    rows = [palette(count, max_iterations) for count in range(max_iterations)]
    rows.append(palette(None, max_iterations))
    return np.array(rows, dtype=np.uint8)
