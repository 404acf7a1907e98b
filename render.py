import os
import sys
import warnings

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

import logging
import math
from argparse import ArgumentParser
from dataclasses import replace
from pathlib import Path
from typing import Optional

import imageio
import numpy as np
import PIL.Image
import tensorflow as tf

from fractal_engine import Family, FractalEngine, FractalError, FractalState, RasterSurface

logger = logging.getLogger("fractal_render")

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

DEFAULT_OUTPUT = "fractal.png"


def detect_device() -> str:
    """Use the first visible GPU when there is one, otherwise the CPU."""

    gpus = tf.config.list_physical_devices("GPU")
    if not gpus:
        logger.debug("No GPU found, using CPU")
        return "/CPU:0"
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as exc:
        logger.debug("could not configure GPU memory growth: %s", exc)
        return "/CPU:0"
    logger.debug("GPU found, using %s", gpus[0].name)
    return "/GPU:0"


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Render a Mandelbrot, Julia, L-system, Sierpinski or Koch fractal.")

    parser.add_argument('--family', type=str, choices=[family.value for family in Family],
                        dest='family', help='fractal family to draw; random when omitted',
                        metavar='FAMILY', default=None)

    parser.add_argument('--seed', type=int,
                        dest='seed', help='seed for the random source, for repeatable output',
                        metavar='SEED', default=None)

    parser.add_argument('--width', type=int,
                        dest='width', help='width of the output image in pixels',
                        metavar='WIDTH', default=600)

    parser.add_argument('--height', type=int,
                        dest='height', help='height of the output image in pixels',
                        metavar='HEIGHT', default=600)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='escape-time iteration bound for mandelbrot/julia',
                        metavar='MAX_ITERATIONS', default=100)

    parser.add_argument('--zoom', type=float,
                        dest='zoom', help='mandelbrot pixels per unit, or julia zoom',
                        metavar='ZOOM', default=None)

    parser.add_argument('--pan-x', type=float,
                        dest='pan_x', help='mandelbrot horizontal plane offset',
                        metavar='PAN_X', default=None)

    parser.add_argument('--pan-y', type=float,
                        dest='pan_y', help='mandelbrot vertical plane offset',
                        metavar='PAN_Y', default=None)

    parser.add_argument('--c-re', type=float,
                        dest='c_re', help='real part of the julia constant',
                        metavar='C_RE', default=None)

    parser.add_argument('--c-im', type=float,
                        dest='c_im', help='imaginary part of the julia constant',
                        metavar='C_IM', default=None)

    parser.add_argument('--iterations', type=int,
                        dest='iterations', help='l-system generation count (0-7)',
                        metavar='ITERATIONS', default=None)

    parser.add_argument('--angle', type=float,
                        dest='angle', help='l-system turn angle or koch spike angle, in degrees',
                        metavar='DEGREES', default=None)

    parser.add_argument('--depth', type=int,
                        dest='depth', help='sierpinski or koch recursion depth',
                        metavar='DEPTH', default=None)

    parser.add_argument('--base-hue', type=float,
                        dest='base_hue', help='palette base hue in degrees',
                        metavar='HUE', default=None)

    parser.add_argument('--frames', type=int,
                        dest='frames', help='number of frames; more than one writes a GIF, panning between frames',
                        metavar='FRAMES', default=1)

    parser.add_argument('--pan-step', type=float, nargs=2,
                        dest='pan_step', help='pan deltas applied between GIF frames (mandelbrot only)',
                        metavar=('DX', 'DY'), default=(10.0, 0.0))

    parser.add_argument('--background', type=str, default='#000000',
                        help='Hex color the path-based families are drawn over.')

    parser.add_argument('--output', dest='output', type=str, default=DEFAULT_OUTPUT,
                        help='Destination file; the suffix picks the format (png, jpg, gif, ...).')

    parser.add_argument('--device', type=str, default=None,
                        help='TensorFlow device for escape-time renders, e.g. "/CPU:0"; auto-detected when omitted.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_state(opt, engine: FractalEngine) -> FractalState:
    """Start from the engine's random state and apply command-line overrides."""

    state = engine.state
    if opt.family is not None:
        state = replace(state, family=Family(opt.family))
    family = state.family

    updates = {}
    if opt.base_hue is not None:
        updates["base_hue"] = opt.base_hue % 360.0
    if opt.zoom is not None:
        updates["julia_zoom" if family is Family.JULIA else "mandelbrot_zoom"] = opt.zoom
    if opt.pan_x is not None:
        updates["mandelbrot_pan_x"] = opt.pan_x
    if opt.pan_y is not None:
        updates["mandelbrot_pan_y"] = opt.pan_y
    if opt.c_re is not None:
        updates["julia_c_re"] = opt.c_re
    if opt.c_im is not None:
        updates["julia_c_im"] = opt.c_im
    if opt.iterations is not None:
        updates["lsystem_iterations"] = opt.iterations
    if opt.angle is not None:
        updates["koch_angle" if family is Family.KOCH else "lsystem_angle"] = math.radians(opt.angle)
    if opt.depth is not None:
        updates["koch_depth" if family is Family.KOCH else "sierpinski_depth"] = opt.depth
    return replace(state, **updates)


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path) -> None:
    """Write ``image`` using the format implied by the suffix of ``output_path``."""

    image_format = output_path.suffix.lstrip(".") or "png"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=_pil_format_name(image_format))


def write_gif(frames: list[np.ndarray], output_path: Path, duration: float = 0.1) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with imageio.get_writer(str(output_path), mode='I', duration=duration, loop=0) as writer:
        for frame in frames:
            writer.append_data(frame)


def resolve_output(opt, parser: ArgumentParser) -> Path:
    output_path = Path(opt.output).expanduser()
    if not output_path.suffix:
        output_path = output_path.with_suffix(".gif" if opt.frames > 1 else ".png")
    if opt.frames > 1 and output_path.suffix.lower() != ".gif":
        parser.error("--frames greater than 1 requires a .gif output.")
    return output_path.resolve()


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    opt = parser.parse_args(argv)

    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.frames < 1:
        parser.error("--frames must be at least 1.")

    logging.basicConfig(
        level=logging.DEBUG if opt.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    logger.debug("TensorFlow version: %s", tf.__version__)

    output_path = resolve_output(opt, parser)
    device = opt.device if opt.device is not None else detect_device()
    engine = FractalEngine(opt.seed, max_iter=opt.max_iterations, device=device)

    try:
        engine.state = resolve_state(opt, engine)
        surface = RasterSurface(opt.width, opt.height, background=opt.background)

        if opt.frames == 1:
            engine.render(surface)
            write_single_image(surface.image, output_path)
        else:
            frames: list[np.ndarray] = []
            for i in range(opt.frames):
                print("frame {0} out of {1}".format(i, opt.frames), end='\r')
                engine.render(surface)
                frames.append(surface.to_array())
                engine.pan(*opt.pan_step)
            write_gif(frames, output_path)
    except FractalError as exc:
        print(f"Render error: {exc}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as exc:
        print(f"Output error: {exc}", file=sys.stderr)
        return 2

    logger.info("wrote %s (%s)", output_path, engine.state.family.value)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
