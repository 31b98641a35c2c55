from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--width", "160", "--height", "160", "--workers", "4"]


@dataclass
class Example:
    name: str
    args: list[str]
    output: Path

    def full_args(self) -> list[str]:
        return ["python", "render_fractal.py", *BASE_ARGS, *self.args, "--output", str(self.output)]


def _example(name: str, filename: str, *args: str) -> Example:
    return Example(name=name, args=list(args), output=EXAMPLES_ROOT / name / filename)


EXAMPLES: list[Example] = [
    _example("default", "mandelbrot.png"),
    _example("region", "seahorse-valley.png", "--lower-left=-0.8,0.05", "--upper-right=-0.7,0.15"),
    _example("julia", "dendrite.png", "--julia", "0,1", "--lower-left=-1.6,-1.6", "--upper-right", "1.6,1.6"),
    _example("max-iterations", "shallow.png", "--max-iterations", "32"),
    _example("workers", "single-thread.png", "--workers", "1"),
    _example("palette-linear", "linear.png", "--palette", "linear"),
    _example("palette-colormap", "inferno.png", "--palette", "inferno"),
    _example("format", "mandelbrot.bmp", "--format", "bmp"),
]


def run_example(example: Example) -> None:
    shutil.rmtree(example.output.parent, ignore_errors=True)
    print(f"[{example.name}] {' '.join(example.full_args())}")
    subprocess.run(example.full_args(), check=True)
    if not example.output.exists():
        raise FileNotFoundError(f"{example.name}: expected {example.output} to be written")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        run_example(example)
    print(f"Wrote {len(EXAMPLES)} examples under {EXAMPLES_ROOT}")


if __name__ == "__main__":
    main()
