"""Complex-plane primitives: points, parsing and pixel mapping."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ComplexParseError


@dataclass(frozen=True)
class ComplexPoint:
    """A point in the complex plane stored as two floats."""

    re: float
    im: float

    def add(self, other: ComplexPoint) -> ComplexPoint:
        return ComplexPoint(self.re + other.re, self.im + other.im)

    def mul(self, other: ComplexPoint) -> ComplexPoint:
        return ComplexPoint(
            self.re * other.re - self.im * other.im,
            self.re * other.im + self.im * other.re,
        )

    def norm_sqr(self) -> float:
        return self.re * self.re + self.im * self.im

    __add__ = add
    __mul__ = mul

    def __str__(self) -> str:
        return f"{self.re:.6g},{self.im:.6g}"


def parse_complex(text: str) -> ComplexPoint:
    """Parse ``"<real>,<imaginary>"`` (e.g. ``"1.5,-3.25"``) into a point."""

    real, sep, imag = text.partition(",")
    if not sep:
        raise ComplexParseError(
            f"{text!r}: structure must be two floating point values separated by a comma"
        )
    try:
        return ComplexPoint(float(real), float(imag))
    except ValueError as exc:
        raise ComplexParseError(f"{text!r}: failed to parse a component ({exc})") from exc


def pixel_to_complex(
    pixel: tuple[int, int],
    dimensions: tuple[int, int],
    lower_left: ComplexPoint,
    upper_right: ComplexPoint,
) -> ComplexPoint:
    """Map ``pixel`` (x, y) of an image of ``dimensions`` onto the rectangle.

    Row 0 maps onto ``lower_left.im``. Pixels outside the image and inverted
    or degenerate rectangles are rejected rather than clamped.
    """

    x, y = pixel
    width, height = dimensions
    if not (0 <= x < width and 0 <= y < height):
        raise ValueError(f"pixel {pixel} lies outside a {width}x{height} image")
    if not (lower_left.re < upper_right.re and lower_left.im < upper_right.im):
        raise ValueError(f"lower-left {lower_left} must be strictly below and left of upper-right {upper_right}")

    complex_width = upper_right.re - lower_left.re
    complex_height = upper_right.im - lower_left.im
    return ComplexPoint(
        lower_left.re + (complex_width * x) / width,
        lower_left.im + (complex_height * y) / height,
    )
