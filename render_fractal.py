import os
import sys
import time
import warnings
from argparse import ArgumentParser, ArgumentTypeError
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np
import PIL.Image

from escapetime import (
    KERNELS,
    MAX_ITERATIONS,
    ComplexParseError,
    RenderConfig,
    RenderError,
    available_palettes,
    get_palette,
    parse_complex,
    render,
)


def _complex_arg(text):
    try:
        return parse_complex(text)
    except ComplexParseError as exc:
        raise ArgumentTypeError(f"{exc} (expected complex point)") from exc


def _julia_arg(text):
    if text.lower() == "none":
        return None
    try:
        return parse_complex(text)
    except ComplexParseError as exc:
        raise ArgumentTypeError(f"{exc} (expected complex point or `none`)") from exc


def build_parser():
    parser = ArgumentParser(description="Render a Mandelbrot or Julia set across several threads.")

    parser.add_argument('--width', type=int,
                        dest='width', help='width of the image in pixels',
                        metavar='WIDTH', default=512)

    parser.add_argument('--height', type=int,
                        dest='height', help='height of the image in pixels',
                        metavar='HEIGHT', default=512)

    parser.add_argument('--lower-left', type=_complex_arg,
                        dest='lower_left', help='lower-left corner of the sampled region as "re,im"',
                        metavar='RE,IM', default=parse_complex("-2,-2"))

    parser.add_argument('--upper-right', type=_complex_arg,
                        dest='upper_right', help='upper-right corner of the sampled region as "re,im"',
                        metavar='RE,IM', default=parse_complex("2,2"))

    parser.add_argument('--julia', type=_julia_arg,
                        dest='julia', help='fixed Julia constant as "re,im", or "none" for the Mandelbrot set',
                        metavar='RE,IM', default=None)

    parser.add_argument('--output', type=str,
                        dest='output', help='destination image file',
                        metavar='OUTPUT', default='fractal.png')

    parser.add_argument('--format', type=str,
                        dest='format', help='image format. Any extension supported by Pillow. Default: taken from --output, else "png".',
                        metavar='FORMAT', default=None)

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of worker threads, one horizontal slice each. Default: CPU count, at most the image height.',
                        metavar='WORKERS', default=None)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='iteration budget before a point counts as inside the set',
                        metavar='MAX_ITERATIONS', default=MAX_ITERATIONS)

    parser.add_argument('--palette', type=str,
                        dest='palette', help='"wraparound", "linear" or a matplotlib colormap name (e.g. "inferno")',
                        metavar='PALETTE', default='wraparound')

    parser.add_argument('--list-palettes', action='store_true',
                        dest='list_palettes', help='print the accepted --palette names and exit')

    parser.add_argument('--kernel', choices=KERNELS, default='python',
                        help='slice kernel: pure "python" or vectorized "tensorflow" (needs the tensorflow extra).')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics.')

    return parser


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_output(opt, parser: ArgumentParser) -> tuple[Path, str]:
    """Return the output path and its image format, adding a suffix if missing."""

    output_path = Path(opt.output).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")

    suffix = output_path.suffix.lower().lstrip(".")
    image_format = (opt.format or suffix or "png").lower().lstrip(".")
    if suffix:
        if opt.format and suffix != image_format:
            parser.error(f"--output extension .{suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(f".{image_format}")
    return output_path.resolve(), image_format


def resolve_config(opt, parser: ArgumentParser, output_path: Path) -> RenderConfig:
    """Build the render configuration; ``output`` holds the resolved image path."""

    if opt.width < 1 or opt.height < 1:
        parser.error("--width and --height must be positive.")
    if opt.max_iterations < 1:
        parser.error("--max-iterations must be at least 1.")

    workers = opt.workers
    if workers is None:
        workers = min(os.cpu_count() or 1, opt.height)
    elif workers < 1:
        parser.error("--workers must be at least 1.")
    elif workers > opt.height:
        parser.error(f"--workers ({workers}) cannot exceed --height ({opt.height}); each worker needs a row.")

    return RenderConfig(
        width=opt.width,
        height=opt.height,
        lower_left=opt.lower_left,
        upper_right=opt.upper_right,
        julia=opt.julia,
        output=str(output_path),
        workers=workers,
        max_iterations=opt.max_iterations,
    )


def _load_tensorflow():
    """Import TensorFlow, silencing its start-up chatter unless running verbose."""

    suppress = (not VERBOSE) and os.environ.get("TF_CPP_MIN_LOG_LEVEL") != "0"
    if suppress:
        os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "3")
        warnings.filterwarnings(
            "ignore",
            message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
            category=UserWarning,
            module="google.protobuf",
        )

    import tensorflow as tf

    if suppress:
        tf.get_logger().setLevel("ERROR")
    log("TensorFlow version: %s" % tf.__version__)


def write_image(buffer: bytes, dimensions: tuple[int, int], output_path: Path, image_format: str) -> None:
    """Write a packed RGB ``buffer`` as an 8-bit-per-channel image."""

    width, height = dimensions
    frame_array = np.frombuffer(buffer, dtype=np.uint8).reshape((height, width, 3))
    image = PIL.Image.fromarray(frame_array)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=_pil_format_name(image_format))


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    if opt.list_palettes:
        print("\n".join(available_palettes()))
        return

    output_path, image_format = resolve_output(opt, parser)
    config = resolve_config(opt, parser, output_path)

    try:
        palette = get_palette(opt.palette)
    except ValueError as exc:
        parser.error(str(exc))

    if opt.kernel == "tensorflow":
        try:
            _load_tensorflow()
        except ImportError as exc:
            parser.error(f"--kernel tensorflow needs TensorFlow (pip install 'escapetime[tensorflow]'): {exc}")

    mode = f"Julia set c={config.julia}" if config.is_julia else "Mandelbrot set"
    log(f"Rendering {mode} at {config.width}x{config.height} over [{config.lower_left}] .. [{config.upper_right}]")
    log(f"Using {config.workers} worker thread(s), {opt.kernel} kernel, palette '{opt.palette}'")

    start = time.perf_counter()
    try:
        buffer = render(config, palette=palette, kernel=opt.kernel)
    except RenderError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start

    log(f"Finished rendering across {config.workers} threads in {elapsed:.2f}s, writing to file...")
    write_image(buffer, config.dimensions, Path(config.output), image_format)
    print(f"Image written to {config.output}")


if __name__ == '__main__':
    main()
