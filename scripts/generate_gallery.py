from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

GALLERY_ROOT = Path("examples/gallery")
BASE_ARGS = ["--seed", "7", "--width", "320", "--height", "320"]


@dataclass
class Example:
    name: str
    args: list[str]
    output: Path

    def full_args(self) -> list[str]:
        return [sys.executable, "render.py", *self.args, "--output", str(self.output)]


EXAMPLES: list[Example] = [
    Example(
        name="mandelbrot",
        args=[*BASE_ARGS, "--family", "mandelbrot", "--zoom", "120", "--pan-x", "0.6", "--pan-y", "0"],
        output=GALLERY_ROOT / "mandelbrot.png",
    ),
    Example(
        name="julia",
        args=[*BASE_ARGS, "--family", "julia", "--c-re", "-0.8", "--c-im", "0.156", "--zoom", "2.5"],
        output=GALLERY_ROOT / "julia.png",
    ),
    Example(
        name="lsystem",
        args=[*BASE_ARGS, "--family", "lsystem", "--iterations", "4", "--angle", "25"],
        output=GALLERY_ROOT / "lsystem.png",
    ),
    Example(
        name="sierpinski",
        args=[*BASE_ARGS, "--family", "sierpinski", "--depth", "6"],
        output=GALLERY_ROOT / "sierpinski.png",
    ),
    Example(
        name="koch",
        args=[*BASE_ARGS, "--family", "koch", "--depth", "4", "--angle", "60"],
        output=GALLERY_ROOT / "koch.png",
    ),
    Example(
        name="mandelbrot-pan",
        args=[*BASE_ARGS, "--family", "mandelbrot", "--zoom", "300", "--frames", "12", "--pan-step", "4", "1"],
        output=GALLERY_ROOT / "mandelbrot-pan.gif",
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def main() -> None:
    GALLERY_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[gallery] {example.name}")
        _ensure_clean([example.output])
        subprocess.run(example.full_args(), check=True)
        if not example.output.is_file():
            raise RuntimeError(f"Expected file {example.output} was not created")
    print("\nGallery generated successfully.")


if __name__ == "__main__":
    main()
