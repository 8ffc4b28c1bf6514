from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--max-height", "6", "--width", "240", "--height", "160"]


@dataclass
class Expected:
    path: Path
    is_dir: bool = False


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return ["python", "render_algebraic.py", *self.args]


EXAMPLES: list[Example] = [
    Example(
        name="max-height",
        args=["--max-height", "9", "--width", "240", "--height", "160", "--output", str(EXAMPLES_ROOT / "max-height" / "height-nine.png")],
        expected=[Expected(EXAMPLES_ROOT / "max-height" / "height-nine.png")],
        clean=[EXAMPLES_ROOT / "max-height"],
    ),
    Example(
        name="width",
        args=[*BASE_ARGS, "--width", "400", "--output", str(EXAMPLES_ROOT / "width" / "wide.png")],
        expected=[Expected(EXAMPLES_ROOT / "width" / "wide.png")],
        clean=[EXAMPLES_ROOT / "width"],
    ),
    Example(
        name="height",
        args=[*BASE_ARGS, "--height", "300", "--output", str(EXAMPLES_ROOT / "height" / "tall.png")],
        expected=[Expected(EXAMPLES_ROOT / "height" / "tall.png")],
        clean=[EXAMPLES_ROOT / "height"],
    ),
    Example(
        name="viewport",
        args=[*BASE_ARGS, "--output", str(EXAMPLES_ROOT / "viewport" / "upper-right.png"), "--", "0", "-1", "1", "2"],
        expected=[Expected(EXAMPLES_ROOT / "viewport" / "upper-right.png")],
        clean=[EXAMPLES_ROOT / "viewport"],
    ),
    Example(
        name="output",
        args=[*BASE_ARGS, "--output", str(EXAMPLES_ROOT / "output" / "custom-name.jpg")],
        expected=[Expected(EXAMPLES_ROOT / "output" / "custom-name.jpg")],
        clean=[EXAMPLES_ROOT / "output"],
    ),
    Example(
        name="workers",
        args=[*BASE_ARGS, "--workers", "2", "--output", str(EXAMPLES_ROOT / "workers" / "two-workers.png")],
        expected=[Expected(EXAMPLES_ROOT / "workers" / "two-workers.png")],
        clean=[EXAMPLES_ROOT / "workers"],
    ),
    Example(
        name="seed",
        args=[*BASE_ARGS, "--seed", "1234", "--output", str(EXAMPLES_ROOT / "seed" / "seeded.png")],
        expected=[Expected(EXAMPLES_ROOT / "seed" / "seeded.png")],
        clean=[EXAMPLES_ROOT / "seed"],
    ),
    Example(
        name="video",
        args=[*BASE_ARGS, "--video", "--output", str(EXAMPLES_ROOT / "video" / "heights.mp4")],
        expected=[Expected(EXAMPLES_ROOT / "video" / "heights.mp4")],
        clean=[EXAMPLES_ROOT / "video"],
    ),
    Example(
        name="fps",
        args=[*BASE_ARGS, "--video", "--fps", "6", "--output", str(EXAMPLES_ROOT / "fps" / "fast.gif")],
        expected=[Expected(EXAMPLES_ROOT / "fps" / "fast.gif")],
        clean=[EXAMPLES_ROOT / "fps"],
    ),
    Example(
        name="verbose",
        args=[*BASE_ARGS, "--verbose", "--output", str(EXAMPLES_ROOT / "verbose" / "diagnostic.png")],
        expected=[Expected(EXAMPLES_ROOT / "verbose" / "diagnostic.png")],
        clean=[EXAMPLES_ROOT / "verbose"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if expected.is_dir:
            if not expected.path.is_dir():
                raise RuntimeError(f"Expected directory {expected.path} was not created")
            if not any(expected.path.iterdir()):
                raise RuntimeError(f"Directory {expected.path} is empty")
        else:
            if not expected.path.is_file():
                raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
