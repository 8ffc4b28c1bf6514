import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path

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

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import multiprocessing

import numpy as np

# Imports for image and video output
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont
import imageio

from algebraic_numbers import (
    ConfigurationError,
    RenderConfig,
    plan_height_frames,
    points_up_to_height,
    run_generation,
)
from algebraic_numbers.scheduler import default_worker_count

# Set by configure_tensorflow().
DEVICE = None


def configure_tensorflow():
    """Import TensorFlow and pick the rasterization device."""

    global DEVICE
    if DEVICE is not None:
        return DEVICE

    import tensorflow as tf

    if _suppress_messages:
        tf.get_logger().setLevel("ERROR")
        for handler in tf.get_logger().handlers:
            handler.setLevel("ERROR")

    log("TensorFlow version: %s" % tf.__version__)

    # Rasterize on the first GPU when one is visible, otherwise on the CPU.
    gpus = tf.config.list_physical_devices('GPU')
    if gpus:
        try:
            for gpu in gpus:
                tf.config.experimental.set_memory_growth(gpu, True)
            DEVICE = '/GPU:0'
            log("GPU found, using %s" % gpus[0].name)
        except RuntimeError as e:
            log(e)
            DEVICE = '/CPU:0'
    else:
        DEVICE = '/CPU:0'
        log("No GPU found, using CPU")
    return DEVICE


def worker_context():
    """Process context for the root-finding pool; workers never inherit TensorFlow state."""

    return multiprocessing.get_context("spawn")


from argparse import ArgumentParser

DEFAULT_IMAGE_OUTPUT = "algebraic_numbers.png"
DEFAULT_VIDEO_OUTPUT = "algebraic_numbers.mp4"
VIDEO_SUFFIXES = {".mp4", ".mov", ".mkv", ".avi", ".gif"}
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp"}
VIDEO_HEIGHT_WARNING = 15
IMAGE_HEIGHT_WARNING = 30
PROGRESS_HEIGHT = 15


@dataclass
class OutputConfig:
    video: bool
    path: Path
    image_format: str
    fps: int


def build_parser():
    parser = ArgumentParser(
        description='Render algebraic numbers in the complex plane rectangle from '
                    '(x_min + y_min*i) to (x_max + y_max*i).',
    )

    parser.add_argument('--max-height', type=int,
                        dest='max_height', help='maximum polynomial height (complexity). Higher = more detail but slower',
                        metavar='MAX_HEIGHT', default=15)

    parser.add_argument('--video', action='store_true',
                        help='generate an animation showing heights 2 to max-height')

    parser.add_argument('--fps', type=int,
                        dest='fps', help='frame rate for video mode',
                        metavar='FPS', default=2)

    parser.add_argument('--output', dest='output', type=str,
                        help='output filename (default: algebraic_numbers.png, or .mp4 for video)')

    parser.add_argument('--width', type=int,
                        dest='width', help='width of the image in pixels',
                        metavar='WIDTH', default=1200)

    parser.add_argument('--height', type=int,
                        dest='height', help='height of the image in pixels',
                        metavar='HEIGHT', default=800)

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of worker processes (default: one per CPU core)',
                        metavar='WORKERS', default=None)

    parser.add_argument('--seed', type=int,
                        dest='seed', help='seed for the root finders\' random starting points',
                        metavar='SEED', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    parser.add_argument('viewport', nargs='*', type=float,
                        metavar='BOUND', help='optional x_min y_min x_max y_max of the viewport')

    return parser


def resolve_render_config(opt, parser: ArgumentParser) -> RenderConfig:
    bounds = list(opt.viewport or [])
    if len(bounds) not in (0, 4):
        parser.error("Wrong number of positional arguments: expected x_min y_min x_max y_max.")

    kwargs = {}
    if bounds:
        kwargs = dict(zip(("x_min", "y_min", "x_max", "y_max"), bounds))

    config = RenderConfig(
        width=opt.width,
        height=opt.height,
        max_height=opt.max_height,
        **kwargs,
    )
    try:
        return config.validate()
    except ConfigurationError as exc:
        parser.error(str(exc))


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    if opt.fps < 1 or opt.fps > 60:
        parser.error("fps must be between 1 and 60")
    if opt.workers is not None and opt.workers < 1:
        parser.error("workers must be at least 1")

    video = bool(opt.video)
    default_output = DEFAULT_VIDEO_OUTPUT if video else DEFAULT_IMAGE_OUTPUT
    output_path = Path(opt.output or default_output).expanduser()

    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")

    suffix = output_path.suffix.lower()
    allowed = VIDEO_SUFFIXES if video else IMAGE_SUFFIXES
    if not suffix:
        output_path = output_path.with_suffix(Path(default_output).suffix)
        suffix = output_path.suffix
    elif suffix not in allowed:
        kind = "video" if video else "image"
        parser.error(f"Unsupported {kind} extension {suffix}. Choices: {', '.join(sorted(allowed))}.")

    return OutputConfig(
        video=video,
        path=output_path.resolve(),
        image_format=suffix.lstrip("."),
        fps=opt.fps,
    )


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def open_video_writer(output_path: Path, fps: int):
    """Open an imageio writer for ``output_path``; GIFs use per-frame durations."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() == ".gif":
        return imageio.get_writer(str(output_path), mode='I', duration=1.0 / fps, loop=0)
    return imageio.get_writer(
        str(output_path),
        fps=fps,
        codec="libx264",
        pixelformat="yuv420p",
        ffmpeg_params=["-crf", "18"],
    )


_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
)


def _load_annotation_font(image: PIL.Image.Image, scale: float = 1.0) -> PIL.ImageFont.ImageFont:
    base = max(min(image.size), 1)
    target_size = max(12, int(round(base * 0.028 * scale)))
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), target_size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def _text_size(draw: PIL.ImageDraw.ImageDraw, text: str, font: PIL.ImageFont.ImageFont) -> tuple[int, int]:
    bbox = draw.textbbox((0, 0), text, font=font)
    return int(round(bbox[2] - bbox[0])), int(round(bbox[3] - bbox[1]))


def annotate_height(image: PIL.Image.Image, height: int) -> PIL.Image.Image:
    """Stamp ``Height: N`` on a dark panel in the bottom-right corner."""

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    overlay = PIL.Image.new("RGBA", image.size, (0, 0, 0, 0))
    draw = PIL.ImageDraw.Draw(overlay)
    font = _load_annotation_font(image)
    font_size = getattr(font, "size", 12)

    text = f"Height: {height}"
    text_width, text_height = _text_size(draw, text, font)
    padding = max(6, int(round(font_size * 0.5)))
    margin = max(10, int(round(font_size * 0.8)))

    right = image.width - margin
    bottom = image.height - margin
    left = max(right - text_width - padding * 2, 0)
    top = max(bottom - text_height - padding * 2, 0)

    draw.rectangle([(left, top), (right, bottom)], fill=(0, 0, 0, 180))
    shadow_offset = max(1, int(round(font_size * 0.08)))
    draw.text((left + padding + shadow_offset, top + padding + shadow_offset), text, font=font, fill=(0, 0, 0, 160))
    draw.text((left + padding, top + padding), text, font=font, fill=(255, 255, 255, 255))

    return PIL.Image.alpha_composite(image, overlay).convert("RGB")


def _print_height_progress(height: int, max_height: int) -> None:
    if max_height > PROGRESS_HEIGHT:
        print(f"Processing height {height}/{max_height}...")


def _warn_about_height(config: RenderConfig, video: bool) -> None:
    if video and config.max_height > VIDEO_HEIGHT_WARNING:
        print(f"Warning: Video mode with max-height {config.max_height} will take a very long time")
        print("Consider using a lower max-height (8-12) for reasonable video generation time")
    elif not video and config.max_height > IMAGE_HEIGHT_WARNING:
        print(f"Warning: max-height {config.max_height} is very high and may take a long time")


def compute_points(config: RenderConfig, opt):
    workers = opt.workers if opt.workers is not None else default_worker_count()
    print(f"Using {workers} CPU cores for parallel computation")
    result = run_generation(
        config.max_height,
        workers=workers,
        seed=opt.seed,
        progress=_print_height_progress,
        context=worker_context(),
    )
    print(f"Generated: eqns={result.stats.polynomials} roots={result.stats.roots}")
    return result.points


def render_image(points, config: RenderConfig) -> PIL.Image.Image:
    from algebraic_numbers.renderer import render

    print(f"Rendering {len(points)} points to {config.width}x{config.height} image...")
    pixels = render(points, config, device=configure_tensorflow())
    return PIL.Image.fromarray(pixels)


def write_video(points, config: RenderConfig, output: OutputConfig) -> None:
    plans = plan_height_frames(config.max_height, output.fps)
    print(f"Generating video frames for heights 2 to {config.max_height}...")

    writer = open_video_writer(output.path, output.fps)
    try:
        for plan in plans:
            print(f"Generating frame for height {plan.height}/{config.max_height}...")
            frame_points = points_up_to_height(points, plan.height)
            image = annotate_height(render_image(frame_points, config), plan.height)
            frame_array = np.asarray(image, dtype=np.uint8)
            for _ in range(plan.repeats):
                writer.append_data(frame_array)
    finally:
        writer.close()

    print(f"Video saved to {output.path}")


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = resolve_render_config(opt, parser)
    output = resolve_output_config(opt, parser)

    _warn_about_height(config, output.video)
    print(
        "Rendering complex plane from ({:.2f} + {:.2f}i) to ({:.2f} + {:.2f}i)".format(
            config.x_min, config.y_min, config.x_max, config.y_max
        )
    )

    print("Calculating algebraic numbers...")
    points = compute_points(config, opt)

    if output.video:
        write_video(points, config, output)
        return

    image = render_image(points, config)
    write_single_image(image, output.path, output.image_format)
    print(f"Saved image to {output.path}")


if __name__ == '__main__':
    main()
