import io
import os
from pathlib import Path

import pytest
from PIL import Image

from img2vcard.imaging import ImageService


class FakeImageService(ImageService):
    """Serves canned format tags and bytes without touching image libraries."""

    def __init__(self, image_format="JPEG", resized=b"resized-bytes"):
        self.image_format = image_format
        self.resized = resized
        self.resize_calls = []

    def detect_format(self, path):
        return self.image_format

    def resize(self, path, box):
        self.resize_calls.append((Path(path), box))
        return self.resized


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from IMG2VCARD_* variables and any .env file."""
    names = ("IMG2VCARD_CONFIG", "IMG2VCARD_RESIZE", "IMG2VCARD_BACKEND", "IMG2VCARD_VERBOSE")
    for name in names:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    # load_dotenv writes straight into os.environ
    for name in names:
        os.environ.pop(name, None)


@pytest.fixture
def fake_service():
    return FakeImageService()


def write_image(path: Path, size=(200, 100), fmt="PNG", mode="RGB") -> Path:
    img = Image.new(mode, size, "red" if mode != "P" else 1)
    img.save(path, format=fmt)
    return path


@pytest.fixture
def png_file(tmp_path):
    return write_image(tmp_path / "wide.png", size=(200, 100), fmt="PNG")


@pytest.fixture
def jpeg_file(tmp_path):
    return write_image(tmp_path / "tall.jpg", size=(50, 80), fmt="JPEG")


def open_bytes(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img
