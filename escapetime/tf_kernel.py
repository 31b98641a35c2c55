"""Vectorized slice kernel running the escape-time loop in TensorFlow."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

from .palette import Palette, build_lookup_table
from .plane import ComplexPoint
from .slices import Slice

ESCAPE_RADIUS_SQR = 4.0
DEVICE = "/CPU:0"


@tf.function
def _escape_step(
    i: tf.Tensor,
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    counts: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Record points leaving the disk at step ``i`` and advance the rest."""

    norm = zr * zr + zi * zi
    escaped = tf.logical_and(active, norm > tf.cast(ESCAPE_RADIUS_SQR, norm.dtype))
    counts = tf.where(escaped, tf.fill(tf.shape(counts), i), counts)
    active = tf.logical_and(active, tf.logical_not(escaped))

    zr_new = (zr * zr - zi * zi) + cr
    zi_new = (zr * zi + zi * zr) + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    return zr, zi, counts, active


@tf.function
def _escape_run(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    max_iterations: tf.Tensor,
) -> tf.Tensor:
    """Iterate until every point escaped or the budget is spent.

    Points that never escape keep the count ``max_iterations``.
    """

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    counts = tf.fill(tf.shape(zr), max_iterations)
    active = tf.ones_like(counts, tf.bool)

    def cond(i, zr, zi, counts, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, counts, active):
        zr, zi, counts, active = _escape_step(i, zr, zi, cr, ci, counts, active)
        return i + 1, zr, zi, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, zr, zi, counts, active))
    return counts


def sample_grid(
    slice_: Slice,
    dimensions: tuple[int, int],
    lower_left: ComplexPoint,
    upper_right: ComplexPoint,
) -> tuple[np.ndarray, np.ndarray]:
    """Real and imaginary sample coordinates for every pixel of ``slice_``."""

    width, height = dimensions
    xs = np.arange(slice_.width, dtype=np.float64)
    ys = np.arange(slice_.row, slice_.row + slice_.height, dtype=np.float64)
    re = np.float64(lower_left.re) + (np.float64(upper_right.re - lower_left.re) * xs) / np.float64(width)
    im = np.float64(lower_left.im) + (np.float64(upper_right.im - lower_left.im) * ys) / np.float64(height)
    return np.meshgrid(re, im)


def escape_counts(
    slice_: Slice,
    dimensions: tuple[int, int],
    lower_left: ComplexPoint,
    upper_right: ComplexPoint,
    julia: Optional[ComplexPoint],
    max_iterations: int,
) -> np.ndarray:
    re, im = sample_grid(slice_, dimensions, lower_left, upper_right)

    with tf.device(DEVICE):
        zr = tf.convert_to_tensor(re, dtype=tf.float64)
        zi = tf.convert_to_tensor(im, dtype=tf.float64)
        if julia is None:
            cr, ci = tf.identity(zr), tf.identity(zi)
        else:
            cr = tf.fill(tf.shape(zr), tf.constant(julia.re, dtype=tf.float64))
            ci = tf.fill(tf.shape(zi), tf.constant(julia.im, dtype=tf.float64))
        counts = _escape_run(zr, zi, cr, ci, tf.constant(max_iterations, dtype=tf.int32))

    return counts.numpy()


def render_slice(
    slice_: Slice,
    dimensions: tuple[int, int],
    lower_left: ComplexPoint,
    upper_right: ComplexPoint,
    julia: Optional[ComplexPoint],
    max_iterations: int,
    palette: Palette,
) -> bytes:
    """Render ``slice_`` with TensorFlow; same bytes as the Python kernel."""

    counts = escape_counts(slice_, dimensions, lower_left, upper_right, julia, max_iterations)
    lut = build_lookup_table(palette, max_iterations)
    return lut[counts].tobytes()
