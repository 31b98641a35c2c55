import numpy as np
import PIL.Image
import pytest

import render_fractal
from escapetime import ComplexPoint


def _run(args):
    render_fractal.main(args)


def test_defaults():
    opt = render_fractal.build_parser().parse_args([])
    assert (opt.width, opt.height) == (512, 512)
    assert opt.lower_left == ComplexPoint(-2.0, -2.0)
    assert opt.upper_right == ComplexPoint(2.0, 2.0)
    assert opt.julia is None
    assert opt.max_iterations == 255
    assert opt.palette == "wraparound"
    assert opt.kernel == "python"


def test_complex_arguments_are_parsed():
    opt = render_fractal.build_parser().parse_args(
        ["--lower-left=-1.5,-3.25", "--upper-right", "1.5,3.25", "--julia=-0.8,0.156"]
    )
    assert opt.lower_left == ComplexPoint(-1.5, -3.25)
    assert opt.upper_right == ComplexPoint(1.5, 3.25)
    assert opt.julia == ComplexPoint(-0.8, 0.156)


def test_julia_none():
    assert render_fractal.build_parser().parse_args(["--julia", "none"]).julia is None


def test_bad_complex_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        render_fractal.build_parser().parse_args(["--lower-left", "bad"])
    assert excinfo.value.code == 2
    assert "comma" in capsys.readouterr().err


def test_writes_png(tmp_path, capsys):
    output = tmp_path / "out" / "mandelbrot.png"
    _run(["--width", "8", "--height", "6", "--workers", "3", "--output", str(output)])

    assert output.exists()
    with PIL.Image.open(output) as image:
        assert image.size == (8, 6)
        assert image.mode == "RGB"
        pixels = np.asarray(image)
    assert pixels.shape == (6, 8, 3)
    assert output.name in capsys.readouterr().out


def test_image_matches_render_buffer(tmp_path):
    from escapetime import RenderConfig, render

    output = tmp_path / "julia.png"
    _run(["--width", "5", "--height", "4", "--julia", "0,1", "--workers", "2", "--output", str(output)])

    expected = render(
        RenderConfig(
            width=5,
            height=4,
            lower_left=ComplexPoint(-2.0, -2.0),
            upper_right=ComplexPoint(2.0, 2.0),
            julia=ComplexPoint(0.0, 1.0),
            workers=2,
        )
    )
    with PIL.Image.open(output) as image:
        assert image.tobytes() == expected


def test_missing_suffix_gets_format(tmp_path):
    _run(["--width", "4", "--height", "4", "--format", "bmp", "--output", str(tmp_path / "plain")])
    assert (tmp_path / "plain.bmp").exists()


def test_format_mismatch_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        _run(["--width", "4", "--height", "4", "--format", "bmp", "--output", str(tmp_path / "x.png")])
    assert excinfo.value.code == 2


def test_default_workers_are_clamped_to_height(tmp_path):
    parser = render_fractal.build_parser()
    opt = parser.parse_args(["--height", "1", "--width", "3"])
    assert render_fractal.resolve_config(opt, parser, tmp_path / "x.png").workers == 1


@pytest.mark.parametrize("args", [["--workers", "0"], ["--workers", "5"], ["--width", "0"], ["--max-iterations", "0"]])
def test_invalid_counts_are_usage_errors(tmp_path, args):
    with pytest.raises(SystemExit) as excinfo:
        _run(["--height", "4", "--output", str(tmp_path / "x.png"), *args])
    assert excinfo.value.code == 2


def test_unknown_palette_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        _run(["--width", "4", "--height", "4", "--palette", "nope", "--output", str(tmp_path / "x.png")])
    assert excinfo.value.code == 2


def test_inverted_region_exits_with_render_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _run([
            "--width", "4", "--height", "4",
            "--lower-left", "2,2", "--upper-right=-2,-2",
            "--output", str(tmp_path / "x.png"),
        ])
    assert excinfo.value.code == 1
    assert "ConfigInvalid" in capsys.readouterr().err
    assert not (tmp_path / "x.png").exists()


def test_config_output_is_the_written_path(tmp_path):
    parser = render_fractal.build_parser()
    opt = parser.parse_args(["--width", "4", "--height", "4", "--format", "bmp", "--output", str(tmp_path / "plain")])
    output_path, image_format = render_fractal.resolve_output(opt, parser)
    config = render_fractal.resolve_config(opt, parser, output_path)

    assert image_format == "bmp"
    assert config.output == str(output_path)
    assert config.output.endswith("plain.bmp")


def test_list_palettes(tmp_path, capsys):
    output = tmp_path / "unused.png"
    _run(["--list-palettes", "--output", str(output)])

    names = capsys.readouterr().out.split()
    assert names[:2] == ["linear", "wraparound"]
    assert "inferno" in names
    assert not output.exists()
