import importlib.util
import subprocess
import sys
from pathlib import Path

import numpy as np
import PIL.Image
import pytest

import render_algebraic
from render_algebraic import (
    annotate_height,
    build_parser,
    resolve_output_config,
    resolve_render_config,
)

REPO_ROOT = Path(__file__).resolve().parents[1]


def _parse(*args):
    parser = build_parser()
    return parser, parser.parse_args(list(args))


def test_defaults():
    parser, opt = _parse()
    config = resolve_render_config(opt, parser)
    output = resolve_output_config(opt, parser)
    assert (config.width, config.height, config.max_height) == (1200, 800, 15)
    assert (config.x_min, config.y_min, config.x_max, config.y_max) == (-2.0, -2.0, 2.0, 2.0)
    assert output.path.name == "algebraic_numbers.png"
    assert not output.video


def test_video_default_output():
    parser, opt = _parse("--video")
    output = resolve_output_config(opt, parser)
    assert output.video
    assert output.path.name == "algebraic_numbers.mp4"


def test_viewport_with_negative_bounds():
    parser, opt = _parse("--max-height", "8", "0", "-1", "1", "2")
    config = resolve_render_config(opt, parser)
    assert (config.x_min, config.y_min, config.x_max, config.y_max) == (0.0, -1.0, 1.0, 2.0)
    assert config.max_height == 8


@pytest.mark.parametrize(
    "args",
    [
        ("1", "2"),
        ("1", "-1", "-1", "1"),
        ("--max-height", "1"),
        ("--width", "0"),
    ],
)
def test_invalid_render_arguments(args):
    parser, opt = _parse(*args)
    with pytest.raises(SystemExit):
        resolve_render_config(opt, parser)


@pytest.mark.parametrize(
    "args",
    [
        ("--fps", "0"),
        ("--fps", "61"),
        ("--workers", "0"),
        ("--output", "out.xyz"),
        ("--video", "--output", "out.png"),
    ],
)
def test_invalid_output_arguments(args):
    parser, opt = _parse(*args)
    with pytest.raises(SystemExit):
        resolve_output_config(opt, parser)


def test_output_without_suffix(tmp_path):
    parser, opt = _parse("--output", str(tmp_path / "render"))
    output = resolve_output_config(opt, parser)
    assert output.path.suffix == ".png"
    assert output.image_format == "png"


def test_annotate_height_marks_bottom_right():
    image = PIL.Image.new("RGB", (320, 200), (0, 0, 0))
    annotated = annotate_height(image, 7)
    pixels = np.asarray(annotated)
    assert annotated.mode == "RGB"
    assert annotated.size == (320, 200)
    assert pixels[100:, 160:].any()
    assert not pixels[:50, :100].any()


def test_main_writes_image(tmp_path):
    output = tmp_path / "render.png"
    render_algebraic.main([
        "--max-height", "5", "--width", "64", "--height", "48",
        "--workers", "1", "--seed", "0", "--output", str(output),
    ])
    with PIL.Image.open(output) as image:
        assert image.size == (64, 48)
        assert np.asarray(image.convert("RGB")).any()


def test_main_writes_gif(tmp_path):
    output = tmp_path / "heights.gif"
    render_algebraic.main([
        "--max-height", "4", "--width", "64", "--height", "48",
        "--workers", "1", "--seed", "0", "--video", "--fps", "2", "--output", str(output),
    ])
    assert output.is_file()
    assert output.stat().st_size > 0


def test_gallery_examples_parse(monkeypatch):
    spec = importlib.util.spec_from_file_location(
        "generate_cli_examples", REPO_ROOT / "scripts" / "generate_cli_examples.py"
    )
    module = importlib.util.module_from_spec(spec)
    # dataclasses resolves string annotations through sys.modules
    monkeypatch.setitem(sys.modules, spec.name, module)
    spec.loader.exec_module(module)

    assert module.EXAMPLES
    for example in module.EXAMPLES:
        assert example.full_args()[1] == "render_algebraic.py"
        parser, opt = _parse(*example.args)
        config = resolve_render_config(opt, parser)
        output = resolve_output_config(opt, parser)
        assert config.max_height >= 2
        assert output.path.name == example.expected[0].path.name


def test_worker_context_is_spawn():
    assert render_algebraic.worker_context().get_start_method() == "spawn"


def test_worker_imports_stay_free_of_tensorflow():
    code = (
        "import sys\n"
        "import algebraic_numbers.scheduler\n"
        "import render_algebraic\n"
        "print('tensorflow' in sys.modules)\n"
    )
    completed = subprocess.run(
        [sys.executable, "-c", code],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
        check=True,
    )
    assert completed.stdout.strip() == "False"


def test_renderer_names_resolve_lazily():
    import algebraic_numbers
    from algebraic_numbers import renderer

    assert algebraic_numbers.render is renderer.render
    with pytest.raises(AttributeError):
        algebraic_numbers.not_a_name


def test_configure_tensorflow_picks_device():
    device = render_algebraic.configure_tensorflow()
    assert device in ("/CPU:0", "/GPU:0")
    assert render_algebraic.configure_tensorflow() == device
