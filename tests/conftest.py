from __future__ import annotations

import io
import random
from pathlib import Path

import pytest
from PIL import Image

PIL_FORMATS = {".png": "PNG", ".jpg": "JPEG", ".jpeg": "JPEG", ".webp": "WEBP"}


def render_image(size=(64, 48), mode="RGB", seed=0) -> Image.Image:
    """Noisy gradient, so encoders have real work to do."""
    rng = random.Random(seed)
    w, h = size
    img = Image.new("RGB", size)
    img.putdata([
        ((x * 4 + rng.randint(0, 40)) % 256, (y * 5) % 256, rng.randint(0, 255))
        for y in range(h) for x in range(w)
    ])
    if mode == "RGBA":
        img = img.convert("RGBA")
        img.putalpha(Image.new("L", size, 128))
    elif mode != "RGB":
        img = img.convert(mode)
    return img


def image_bytes(suffix: str = ".png", **kwargs) -> bytes:
    buffer = io.BytesIO()
    render_image(**kwargs).save(buffer, format=PIL_FORMATS[suffix])
    return buffer.getvalue()


@pytest.fixture
def make_image(tmp_path: Path):
    """make_image("a.png") -> path of a real image in tmp_path."""
    def _make(name: str = "sample.png", directory: Path | None = None, **kwargs) -> Path:
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(image_bytes(path.suffix.lower(), **kwargs))
        return path

    return _make
